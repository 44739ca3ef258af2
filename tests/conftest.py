from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from loguru import logger

from config import Settings
from models import (
    CustomerDetails,
    EmailDetails,
    InvoiceOptions,
    KeyAuth,
    Language,
    Currency,
    LineItem,
    NamedVATRate,
    PayeeDetails,
    PaymentMethod,
)
from szamlazz import _sinks
from tests.mock_server import VALID_KEY, MockTransport, app


@pytest.fixture(autouse=True)
def log_sinks():
    yield
    for sink in _sinks.values():
        logger.remove(sink)
    _sinks.clear()


@pytest.fixture
def mock_transport():
    return MockTransport(TestClient(app))


@pytest.fixture
def key_auth():
    return KeyAuth(key=VALID_KEY)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(SZAMLAZZ_URL="http://testserver/szamla/", LOG_DIR=str(tmp_path / "logs"))


@pytest.fixture
def options():
    return InvoiceOptions(
        issueDate=date(2022, 1, 1),
        completionDate=date(2022, 1, 1),
        dueDate=date(2022, 1, 15),
        paymentMethod=PaymentMethod.Card,
        currency=Currency.HUF,
        language=Language.HU,
        eInvoice=True,
        payee=PayeeDetails(bankName="OTP Bank", bankAccountNumber="11111111-22222222-33333333"),
        customer=CustomerDetails(
            name="Teszt Vevő Kft.",
            address="Fő utca 1.",
            zip="1010",
            city="Budapest",
            email="vevo@example.com",
        ),
        email=EmailDetails(subject="Számla", content="Mellékelten küldjük a számlát."),
    )


@pytest.fixture
def items():
    return [
        LineItem(
            name="Tanácsadás",
            amount=Decimal("2"),
            amountName="óra",
            netUnitPrice=Decimal("10000"),
            vatRate=27,
            netAmount=Decimal("20000"),
            taxAmount=Decimal("5400"),
            grossAmount=Decimal("25400"),
            comment="januári díj",
        ),
        LineItem(
            id="SKU-2",
            name="Tankönyv",
            amount=Decimal("1"),
            amountName="db",
            netUnitPrice=Decimal("1000"),
            vatRate=NamedVATRate.AAM,
            netAmount=Decimal("1000"),
            taxAmount=Decimal("0"),
            grossAmount=Decimal("1000"),
        ),
    ]
