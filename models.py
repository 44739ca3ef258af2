
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

# Enum values are the provider's wire vocabulary, sent as-is.

class PaymentMethod(str, Enum):
    Transfer = "átutalás"
    Cash = "készpénz"
    Card = "bankkártya"

class Currency(str, Enum):
    HUF = "HUF"
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    CHF = "CHF"
    CZK = "CZK"
    PLN = "PLN"
    RON = "RON"
    HRK = "HRK"
    BGN = "BGN"
    DKK = "DKK"
    SEK = "SEK"
    NOK = "NOK"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"

class Language(str, Enum):
    HU = "hu"
    EN = "en"
    DE = "de"
    IT = "it"
    RO = "ro"
    SK = "sk"
    HR = "hr"
    FR = "fr"
    ES = "es"
    CZ = "cz"
    PL = "pl"

class NamedVATRate(str, Enum):
    TEHK = "TEHK"  # outside the scope of Hungarian VAT
    TAHK = "TAHK"  # not subject to VAT
    TAM = "TAM"  # exempt supply
    AAM = "AAM"  # exempt person
    EUT = "EUT"  # within EU
    EUKT = "EUKT"  # outside EU
    MAA = "MAA"  # exempt from tax
    F_AFA = "F.AFA"  # reverse charge
    K_AFA = "K.AFA"  # margin scheme
    HO = "HO"
    EUE = "EUE"
    EUFADE = "EUFADE"
    EUFAD37 = "EUFAD37"
    ATK = "ATK"
    NAM = "NAM"
    EAM = "EAM"
    KBAUK = "KBAUK"
    KBAET = "KBAET"

VATRate = Union[NamedVATRate, Literal[0, 5, 7, 18, 19, 20, 25, 27]]

class InvoiceTemplate(str, Enum):
    SzlaMost = "SzlaMost"
    SzlaAlap = "SzlaAlap"
    SzlaNoEnv = "SzlaNoEnv"
    Szla8cm = "Szla8cm"
    SzlaTomb = "SzlaTomb"


class Record(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

class CustomerDetails(Record):
    id: Optional[str] = None
    name: str
    zip: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    address: str
    email: Optional[str] = None
    phone: Optional[str] = None
    comment: Optional[str] = None
    taxNumber: Optional[str] = None

class PayeeDetails(Record):
    bankName: str
    bankAccountNumber: str

class EmailDetails(Record):
    replyTo: Optional[str] = None
    subject: str
    content: str

class LineItem(Record):
    id: Optional[str] = None
    name: str
    amount: Decimal
    amountName: str
    netUnitPrice: Decimal
    vatRate: VATRate
    netAmount: Decimal
    taxAmount: Decimal
    grossAmount: Decimal
    comment: Optional[str] = None

class InvoiceOptions(Record):
    issueDate: Optional[date] = None
    completionDate: Optional[date] = None
    dueDate: Optional[date] = None
    paymentMethod: PaymentMethod
    currency: Currency = Currency.HUF
    language: Language = Language.HU
    sendEmail: bool = False
    eInvoice: bool = False
    downloadPDF: bool = False
    settled: Optional[bool] = None
    previewOnly: Optional[bool] = None
    comment: Optional[str] = None
    orderNumber: Optional[str] = None
    prefix: Optional[str] = None
    template: Optional[InvoiceTemplate] = None
    customer: Optional[CustomerDetails] = None
    payee: Optional[PayeeDetails] = None
    email: Optional[EmailDetails] = None

class CancellationOptions(Record):
    issueDate: date
    completionDate: date
    eInvoice: bool = False
    downloadPDF: bool = False
    email: Optional[EmailDetails] = None
    customerEmail: Optional[str] = None


class KeyAuth(Record):
    key: str

class CredentialAuth(Record):
    username: str
    password: str

Auth = Union[KeyAuth, CredentialAuth]


class InvoiceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    invoiceNumber: Optional[str] = None
    url: str
    partId: str
    szfejId: str
    pdfUrl: str
    net: float
    gross: float
    receivables: float
    pdf: Optional[bytes] = None
