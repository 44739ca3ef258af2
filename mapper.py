
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from lxml import etree

from config import settings
from models import (
    Auth,
    CancellationOptions,
    CredentialAuth,
    InvoiceOptions,
    KeyAuth,
    LineItem,
)

XSI = "http://www.w3.org/2001/XMLSchema-instance"
XSD_BASE = "https://www.szamlazz.hu/szamla/docs/xsds"

# root tag -> (namespace, schema location)
SCHEMAS = {
    "xmlszamla": ("http://www.szamlazz.hu/xmlszamla", f"{XSD_BASE}/agent/xmlszamla.xsd"),
    "xmlszamlast": ("http://www.szamlazz.hu/xmlszamlast", f"{XSD_BASE}/agentst/xmlszamlast.xsd"),
    "xmlszamlaxml": ("http://www.szamlazz.hu/xmlszamlaxml", f"{XSD_BASE}/agentpdf/xmlszamlaxml.xsd"),
}

# Answer with the XML envelope (xmlszamlavalasz) instead of bare text/PDF
RESPONSE_VERSION = 2
CANCELLATION_TYPE = "SS"


def auth_fields(auth: Auth) -> List[Tuple[str, str]]:
    """Resolve credentials into the tags injected into every document.

    Exactly one credential shape is ever rendered: the agent key alone, or
    the username/password pair.
    """
    if isinstance(auth, KeyAuth):
        return [("szamlaagentkulcs", auth.key)]
    if isinstance(auth, CredentialAuth):
        return [("felhasznalo", auth.username), ("jelszo", auth.password)]
    raise TypeError(f"Unsupported auth: {type(auth).__name__}")


def _text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)

def _e(parent, tag, value=None, always=False):
    """Append ``tag`` under ``parent``; a None value emits nothing unless ``always``."""
    if value is None and not always:
        return None
    elem = etree.SubElement(parent, etree.QName(parent, tag))
    if value is not None:
        elem.text = _text(value)
    return elem

def _root(tag):
    ns, location = SCHEMAS[tag]
    root = etree.Element(f"{{{ns}}}{tag}", nsmap={None: ns, "xsi": XSI})
    root.set(f"{{{XSI}}}schemaLocation", f"{ns} {location}")
    return root

def _serialize(root) -> str:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True).decode("utf-8")

def today_in(tz: Optional[str] = None) -> date:
    return datetime.now(ZoneInfo(tz or settings.TIMEZONE)).date()

def _add_settings(root, auth: Auth, e_invoice: bool, download_pdf: bool):
    block = _e(root, "beallitasok", always=True)
    for tag, value in auth_fields(auth):
        _e(block, tag, value)
    _e(block, "eszamla", e_invoice)
    _e(block, "szamlaLetoltes", download_pdf)
    _e(block, "valaszVerzio", RESPONSE_VERSION)
    return block


def build_invoice_xml(auth: Auth, options: InvoiceOptions, items: Iterable[LineItem], today: Optional[date] = None) -> str:
    root = _root("xmlszamla")
    _add_settings(root, auth, options.eInvoice, options.downloadPDF)

    today = today or today_in()
    header = _e(root, "fejlec", always=True)
    _e(header, "keltDatum", options.issueDate or today)
    _e(header, "teljesitesDatum", options.completionDate or today)
    _e(header, "fizetesiHataridoDatum", options.dueDate or today)
    _e(header, "fizmod", options.paymentMethod)
    _e(header, "penznem", options.currency)
    _e(header, "szamlaNyelve", options.language)
    _e(header, "megjegyzes", options.comment)
    _e(header, "rendelesSzam", options.orderNumber)
    _e(header, "szamlaszamElotag", options.prefix)
    _e(header, "fizetve", options.settled)
    _e(header, "szamlaSablon", options.template)
    _e(header, "elonezetpdf", options.previewOnly)

    seller = _e(root, "elado", always=True)
    if options.payee:
        _e(seller, "bank", options.payee.bankName)
        _e(seller, "bankszamlaszam", options.payee.bankAccountNumber)
    _add_email(seller, options.email)

    buyer = _e(root, "vevo", always=True)
    c = options.customer
    if c:
        _e(buyer, "nev", c.name)
        _e(buyer, "orszag", c.country)
        _e(buyer, "irsz", c.zip)
        _e(buyer, "telepules", c.city)
        _e(buyer, "cim", c.address)
        _e(buyer, "email", c.email)
    _e(buyer, "sendEmail", options.sendEmail)
    if c:
        _e(buyer, "adoszam", c.taxNumber)
        _e(buyer, "azonosito", c.id)
        _e(buyer, "telefonszam", c.phone)
        _e(buyer, "megjegyzes", c.comment)

    lines = _e(root, "tetelek", always=True)
    for item in items:
        _build_line(lines, item)

    return _serialize(root)

def _add_email(seller, email):
    if email is None:
        return
    _e(seller, "emailReplyto", email.replyTo)
    _e(seller, "emailTargy", email.subject)
    _e(seller, "emailSzoveg", email.content)

def _build_line(parent, item: LineItem):
    line = _e(parent, "tetel", always=True)
    _e(line, "megnevezes", item.name)
    _e(line, "azonosito", item.id)
    _e(line, "mennyiseg", item.amount)
    _e(line, "mennyisegiEgyseg", item.amountName)
    _e(line, "nettoEgysegar", item.netUnitPrice)
    _e(line, "afakulcs", item.vatRate)
    _e(line, "nettoErtek", item.netAmount)
    _e(line, "afaErtek", item.taxAmount)
    _e(line, "bruttoErtek", item.grossAmount)
    _e(line, "megjegyzes", item.comment)


def build_cancellation_xml(auth: Auth, invoice_number: str, options: CancellationOptions) -> str:
    root = _root("xmlszamlast")
    _add_settings(root, auth, options.eInvoice, options.downloadPDF)

    header = _e(root, "fejlec", always=True)
    _e(header, "szamlaszam", invoice_number)
    _e(header, "keltDatum", options.issueDate)
    _e(header, "teljesitesDatum", options.completionDate)
    _e(header, "tipus", CANCELLATION_TYPE)

    seller = _e(root, "elado", always=True)
    _add_email(seller, options.email)

    buyer = _e(root, "vevo", always=True)
    _e(buyer, "email", options.customerEmail)

    return _serialize(root)


def build_query_xml(auth: Auth, invoice_number: str, order_number: Optional[str] = None) -> str:
    """Invoice lookup by number (or order number); credentials sit directly under the root."""
    root = _root("xmlszamlaxml")
    for tag, value in auth_fields(auth):
        _e(root, tag, value)
    _e(root, "szamlaszam", invoice_number)
    _e(root, "rendelesSzam", order_number)
    return _serialize(root)
