
from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()

class Settings(BaseModel):
    SZAMLAZZ_URL: str = os.getenv("SZAMLAZZ_URL", "https://www.szamlazz.hu/szamla/")
    SZAMLAZZ_KEY: str = os.getenv("SZAMLAZZ_KEY", "")
    SZAMLAZZ_USERNAME: str = os.getenv("SZAMLAZZ_USERNAME", "")
    SZAMLAZZ_PASSWORD: str = os.getenv("SZAMLAZZ_PASSWORD", "")

    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))
    # Default issue/completion/due dates are "today" in this zone
    TIMEZONE: str = os.getenv("TIMEZONE", "Europe/Budapest")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "")

settings = Settings()
