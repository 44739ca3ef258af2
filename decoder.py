
import base64
import binascii
import re
from typing import Optional

from lxml import etree
from multidict import MultiDict
from yarl import URL

from errors import DecodeError, ProviderError
from models import InvoiceResult

_parser = etree.XMLParser(resolve_entities=False, no_network=True)
# Responses arrive as decoded str; lxml must not see a declared encoding
_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

# envelope tag -> (result field, required)
INVOICE_FIELDS = {
    "szamlaszam": ("invoiceNumber", False),
    "vevoifiokurl": ("url", True),
    "szamlanetto": ("net", False),
    "szamlabrutto": ("gross", False),
    "kintlevoseg": ("receivables", False),
    "pdf": ("pdf", False),
    "sikeres": ("success", False),
}

# account URL query parameter -> result field
URL_IDS = {"partguid": "partId", "szfejguid": "szfejId"}

NOT_FOUND = 7


def parse_envelope(text: str):
    if not text or not text.strip():
        raise DecodeError("Empty response", text)
    try:
        return etree.fromstring(_DECLARATION.sub("", text, count=1), _parser)
    except etree.XMLSyntaxError as e:
        raise DecodeError(f"Response is not XML: {e}", text) from e

def _child_text(root, tag) -> Optional[str]:
    elem = root.find(f"{{*}}{tag}")
    if elem is None or elem.text is None:
        return None
    return elem.text.strip()

def _number(value: Optional[str]) -> float:
    # Non-numeric amounts become NaN, never an exception
    if value is None:
        return float("nan")
    try:
        return float(value.replace(",", "."))
    except ValueError:
        return float("nan")

def _int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None

def pdf_download_url(url: URL) -> URL:
    query = MultiDict(url.query)
    query.popall("page", None)
    query["action"] = "pdf-download"
    return url.with_query(query)


def decode_invoice_response(text: str) -> InvoiceResult:
    root = parse_envelope(text)

    fields = {name: _child_text(root, tag) for tag, (name, _) in INVOICE_FIELDS.items()}

    success = fields["success"]
    code = _int(_child_text(root, "hibakod"))
    if success == "false" or (code is not None and not fields["url"]):
        raise ProviderError(code, _child_text(root, "hibauzenet") or "", text)

    for tag, (name, required) in INVOICE_FIELDS.items():
        if required and not fields[name]:
            raise DecodeError(f"Missing <{tag}> in response", text)

    url = URL(fields["url"])
    ids = {}
    for param, name in URL_IDS.items():
        value = url.query.get(param)
        if not value:
            raise DecodeError(f"Missing {param} in account URL {url}", text)
        ids[name] = value

    pdf = None
    if fields["pdf"]:
        try:
            pdf = base64.b64decode(fields["pdf"])
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid base64 PDF: {e}", text) from e

    return InvoiceResult(
        success=success != "false",
        invoiceNumber=fields["invoiceNumber"],
        url=fields["url"],
        pdfUrl=str(pdf_download_url(url)),
        net=_number(fields["net"]),
        gross=_number(fields["gross"]),
        receivables=_number(fields["receivables"]),
        pdf=pdf,
        **ids,
    )


def decode_error_code(text: str) -> Optional[int]:
    """Return ``hibakod`` from anywhere in the envelope, None when absent or unreadable."""
    try:
        root = parse_envelope(text)
    except DecodeError:
        return None
    elem = root.find(".//{*}hibakod")
    if elem is None or elem.text is None:
        return None
    return _int(elem.text.strip())
