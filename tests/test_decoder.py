import base64
import math

import pytest
from yarl import URL

from decoder import decode_error_code, decode_invoice_response, pdf_download_url
from errors import DecodeError, ProviderError

ACCOUNT_URL = "https://host/path?partguid=P&szfejguid=S&page=2"


def envelope(*fields, ns=' xmlns="http://www.szamlazz.hu/xmlszamlavalasz"'):
    body = "".join(f"<{tag}>{value}</{tag}>" for tag, value in fields)
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<xmlszamlavalasz{ns}>{body}</xmlszamlavalasz>'

def success(*extra):
    return envelope(
        ("sikeres", "true"),
        ("szamlaszam", "E-TST-2022-1"),
        ("szamlanetto", "1000"),
        ("szamlabrutto", "1270.5"),
        ("kintlevoseg", "1270.5"),
        ("vevoifiokurl", f"<![CDATA[{ACCOUNT_URL}]]>"),
        *extra,
    )


def test_decodes_full_envelope():
    res = decode_invoice_response(success())
    assert res.success is True
    assert res.invoiceNumber == "E-TST-2022-1"
    assert res.url == ACCOUNT_URL
    assert res.partId == "P"
    assert res.szfejId == "S"
    assert res.pdfUrl == "https://host/path?partguid=P&szfejguid=S&action=pdf-download"
    assert res.net == 1000
    assert res.gross == 1270.5
    assert res.receivables == 1270.5
    assert res.pdf is None

def test_decodes_without_namespace():
    res = decode_invoice_response(envelope(("vevoifiokurl", ACCOUNT_URL.replace("&", "&amp;")), ns=""))
    assert res.partId == "P"
    assert math.isnan(res.net)
    assert res.invoiceNumber is None

def test_decodes_embedded_pdf():
    pdf = b"%PDF-1.4 test"
    encoded = base64.b64encode(pdf).decode()
    res = decode_invoice_response(success(("pdf", f"\n{encoded[:8]}\n{encoded[8:]}\n")))
    assert res.pdf == pdf

def test_invalid_pdf_is_decode_error():
    with pytest.raises(DecodeError):
        decode_invoice_response(success(("pdf", "abc")))

def test_non_numeric_amount_is_nan():
    text = success().replace("<szamlanetto>1000</szamlanetto>", "<szamlanetto>n/a</szamlanetto>")
    assert math.isnan(decode_invoice_response(text).net)

def test_result_is_immutable():
    res = decode_invoice_response(success())
    with pytest.raises(ValueError):
        res.partId = "other"

def test_plain_text_response_is_decode_error():
    with pytest.raises(DecodeError) as exc:
        decode_invoice_response("ERROR: invalid key")
    assert exc.value.response == "ERROR: invalid key"

def test_empty_response_is_decode_error():
    with pytest.raises(DecodeError) as exc:
        decode_invoice_response("")
    assert exc.value.response == ""

def test_missing_account_url_is_decode_error():
    text = envelope(("sikeres", "true"), ("szamlaszam", "E-1"))
    with pytest.raises(DecodeError) as exc:
        decode_invoice_response(text)
    assert exc.value.response == text

@pytest.mark.parametrize("url", [
    "https://host/path?szfejguid=S",
    "https://host/path?partguid=P",
    "https://host/path",
])
def test_missing_url_ids_is_decode_error(url):
    with pytest.raises(DecodeError):
        decode_invoice_response(envelope(("vevoifiokurl", url)))

def test_provider_error_code():
    text = envelope(("sikeres", "false"), ("hibakod", "3"), ("hibauzenet", "Sikertelen bejelentkezés."))
    with pytest.raises(ProviderError) as exc:
        decode_invoice_response(text)
    assert exc.value.code == 3
    assert exc.value.message == "Sikertelen bejelentkezés."
    assert exc.value.response == text

def test_error_code_without_success_flag():
    with pytest.raises(ProviderError) as exc:
        decode_invoice_response(envelope(("hibakod", "57")))
    assert exc.value.code == 57


def test_pdf_download_url_keeps_other_params():
    url = pdf_download_url(URL("https://www.szamlazz.hu/szamla/?page=vevoifiok&partguid=a&szfejguid=b"))
    assert url.query.get("page") is None
    assert url.query["action"] == "pdf-download"
    assert list(url.query.keys()) == ["partguid", "szfejguid", "action"]


def test_error_code_found():
    assert decode_error_code(envelope(("sikeres", "false"), ("hibakod", "7"))) == 7

def test_error_code_nested():
    assert decode_error_code("<valasz><hiba><hibakod> 7 </hibakod></hiba></valasz>") == 7

@pytest.mark.parametrize("text", [
    envelope(("sikeres", "true")),
    envelope(("hibakod", "")),
    envelope(("hibakod", "x")),
    "ERROR: invalid key",
])
def test_error_code_absent(text):
    assert decode_error_code(text) is None

def test_declared_encoding_does_not_garble_text():
    text = (
        '<?xml version="1.0" encoding="ISO-8859-2"?>\n'
        "<xmlszamlavalasz><sikeres>false</sikeres><hibakod>3</hibakod>"
        "<hibauzenet>Sikertelen bejelentkezés, próbálja újra.</hibauzenet></xmlszamlavalasz>"
    )
    with pytest.raises(ProviderError) as exc:
        decode_invoice_response(text)
    assert exc.value.message == "Sikertelen bejelentkezés, próbálja újra."
    assert decode_error_code(text) == 3
