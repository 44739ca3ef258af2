
import os, asyncio, re
from typing import Iterable, Optional, Protocol

from loguru import logger
import aiohttp

from config import Settings, settings as default_settings
from decoder import NOT_FOUND, decode_error_code, decode_invoice_response
from errors import DecodeError, ProviderError, TransportError
from mapper import build_cancellation_xml, build_invoice_xml, build_query_xml, today_in
from models import Auth, CancellationOptions, CredentialAuth, InvoiceOptions, InvoiceResult, KeyAuth, LineItem

# Multipart field names selecting the Agent operation
CREATE_FIELD = "action-xmlagentxmlfile"
CANCEL_FIELD = "action-szamla_agent_st"
QUERY_FIELD = "action-szamla_agent_xml"

# Lookup target for the connectivity probe; must never exist
PROBE_INVOICE_NUMBER = "CONNECTION-TEST-0000"

_SECRETS = re.compile(r"<(szamlaagentkulcs|jelszo)>[^<]*</\1>")

# log file path -> loguru sink id, one sink per file
_sinks = {}

def setup_logging(cfg: Settings):
    if not cfg.LOG_DIR:
        return None
    path = os.path.abspath(os.path.join(cfg.LOG_DIR, "szamlazz.log"))
    if path not in _sinks:
        os.makedirs(cfg.LOG_DIR, exist_ok=True)
        _sinks[path] = logger.add(path, rotation="10 MB", level=cfg.LOG_LEVEL)
    return _sinks[path]

def mask_credentials(xml: str) -> str:
    return _SECRETS.sub(r"<\1>***</\1>", xml)


class Transport(Protocol):
    async def post_form(self, field: str, xml: str) -> str: ...

class AiohttpTransport:
    """POSTs one XML document as a multipart file field and returns the body text."""

    def __init__(self, url: str, timeout: int = 30, session: Optional[aiohttp.ClientSession] = None):
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.s = session

    async def post_form(self, field: str, xml: str) -> str:
        if self.s is not None:
            return await self._post(self.s, field, xml)
        async with aiohttp.ClientSession() as session:
            return await self._post(session, field, xml)

    async def _post(self, session, field, xml):
        form = aiohttp.FormData()
        form.add_field(field, xml.encode("utf-8"), filename="request.xml", content_type="text/xml")
        try:
            async with session.post(self.url, data=form, timeout=self.timeout) as r:
                r.raise_for_status()
                return await r.text()
        except aiohttp.ClientResponseError as e:
            raise TransportError(f"Számlázz.hu answered HTTP {e.status}: {e.message}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Számlázz.hu request failed: {e!r}") from e


class Szamlazz:
    def __init__(self, auth: Auth, transport: Optional[Transport] = None, settings: Optional[Settings] = None):
        if not isinstance(auth, (KeyAuth, CredentialAuth)):
            raise TypeError(f"Unsupported auth: {type(auth).__name__}")
        cfg = settings or default_settings
        self.auth = auth
        self.settings = cfg
        self.transport = transport or AiohttpTransport(cfg.SZAMLAZZ_URL, timeout=cfg.REQUEST_TIMEOUT)

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None, transport: Optional[Transport] = None) -> "Szamlazz":
        cfg = cfg or default_settings
        if cfg.SZAMLAZZ_KEY:
            auth = KeyAuth(key=cfg.SZAMLAZZ_KEY)
        elif cfg.SZAMLAZZ_USERNAME and cfg.SZAMLAZZ_PASSWORD:
            auth = CredentialAuth(username=cfg.SZAMLAZZ_USERNAME, password=cfg.SZAMLAZZ_PASSWORD)
        else:
            raise ValueError("Set SZAMLAZZ_KEY or SZAMLAZZ_USERNAME and SZAMLAZZ_PASSWORD")
        setup_logging(cfg)
        return cls(auth, transport=transport, settings=cfg)

    async def _send(self, field: str, xml: str) -> str:
        logger.info(f"Számlázz.hu request {field}")
        logger.debug(f"Request body:\n{mask_credentials(xml)}")
        return await self.transport.post_form(field, xml)

    def _decode(self, text: str) -> InvoiceResult:
        try:
            res = decode_invoice_response(text)
        except (DecodeError, ProviderError) as e:
            logger.warning(f"Számlázz.hu response rejected: {e}")
            raise
        logger.info(f"Számlázz.hu invoice {res.invoiceNumber} partId={res.partId}")
        return res

    async def create_invoice(self, options: InvoiceOptions, items: Iterable[LineItem] = ()) -> InvoiceResult:
        xml = build_invoice_xml(self.auth, options, items, today=today_in(self.settings.TIMEZONE))
        return self._decode(await self._send(CREATE_FIELD, xml))

    async def cancel_invoice(self, invoice_number: str, options: CancellationOptions) -> InvoiceResult:
        xml = build_cancellation_xml(self.auth, invoice_number, options)
        return self._decode(await self._send(CANCEL_FIELD, xml))

    async def test_connection(self) -> bool:
        """Look up a non-existent invoice; only a "not found" answer proves key and reachability."""
        xml = build_query_xml(self.auth, PROBE_INVOICE_NUMBER)
        text = await self._send(QUERY_FIELD, xml)
        code = decode_error_code(text)
        if code == NOT_FOUND:
            logger.success("Számlázz.hu connection OK")
            return True
        logger.warning(f"Számlázz.hu connection test failed, hibakod={code}: {text[:200]!r}")
        return False
