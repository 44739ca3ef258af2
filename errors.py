
from typing import Optional


class SzamlazzError(Exception):
    """Base class for every error raised by the Agent client."""


class TransportError(SzamlazzError):
    """The request never produced a usable HTTP response."""


class DecodeError(SzamlazzError):
    """The response could not be read as an Agent envelope.

    ``response`` keeps the raw text: on failure the provider often answers
    with a plain-text message instead of XML.
    """

    def __init__(self, message: str, response: str):
        super().__init__(message)
        self.response = response


class ProviderError(SzamlazzError):
    """The provider answered with an error code (``hibakod``)."""

    def __init__(self, code: Optional[int], message: str, response: str):
        super().__init__(f"Számlázz.hu error [{code}]: {message}")
        self.code = code
        self.message = message
        self.response = response
