"""
Core Record Models for the Finance Engine

These models define the strict schemas for every record the engine consumes.
They are designed to:
1. Enforce the cross-field invariants of a transaction at construction time
2. Normalize dates (UTC calendar date) and money (Decimal cents) on the way in
3. Be immutable snapshots - the engine builds new records, never edits inputs

DESIGN DECISION: Records are frozen pydantic models.
Derived values are returned as new objects (model_copy), so a caller's
snapshot cannot be changed behind its back.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from finance_engine.normalization import normalize_amount, normalize_date


def new_id() -> str:
    """Mint a new record identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Transaction kinds."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"
    INVOICE_PAYMENT = "INVOICE_PAYMENT"


class TransactionCategory(str, Enum):
    """
    Built-in category keys.

    Transactions may also carry custom user category keys, which is why
    Transaction.category is a plain string. Labels live in
    finance_engine.reports.categories.
    """
    # Income
    SALARY = "SALARY"
    FREELANCE = "FREELANCE"
    INVESTMENT = "INVESTMENT"
    OTHER_INCOME = "OTHER_INCOME"

    # Expense
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    HOUSING = "HOUSING"
    UTILITIES = "UTILITIES"
    HEALTHCARE = "HEALTHCARE"
    ENTERTAINMENT = "ENTERTAINMENT"
    EDUCATION = "EDUCATION"
    SHOPPING = "SHOPPING"
    OTHER_EXPENSE = "OTHER_EXPENSE"

    TRANSFER = "TRANSFER"


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    WALLET = "WALLET"
    INVESTMENT = "INVESTMENT"


class EquityType(str, Enum):
    """Kinds of tracked assets."""
    REAL_ESTATE_HOUSE = "real-estate-house"
    REAL_ESTATE_APT = "real-estate-apt"
    REAL_ESTATE_LAND = "real-estate-land"
    VEHICLE_CAR = "vehicle-car"
    VEHICLE_MOTORCYCLE = "vehicle-motorcycle"
    BUSINESS = "business"
    STOCKS = "stocks"
    CRYPTO = "crypto"
    JEWELRY = "jewelry"
    ART = "art"
    ELECTRONICS = "electronics"
    CASH = "cash"
    OTHER = "other"


class EquityGroup(str, Enum):
    """Reporting groups used by allocation and composition charts."""
    REAL_ESTATE = "Imóveis"
    VEHICLES = "Veículos"
    HOLDINGS = "Participações"
    INVESTMENTS = "Investimentos"
    LIQUIDITY = "Liquidez"
    PERSONAL_GOODS = "Bens Pessoais"
    OTHER = "Outros"


# (display label, reporting group) per equity type
EQUITY_TYPE_INFO: dict[EquityType, tuple[str, EquityGroup]] = {
    EquityType.REAL_ESTATE_HOUSE: ("Casa", EquityGroup.REAL_ESTATE),
    EquityType.REAL_ESTATE_APT: ("Apartamento", EquityGroup.REAL_ESTATE),
    EquityType.REAL_ESTATE_LAND: ("Terreno / Lote", EquityGroup.REAL_ESTATE),
    EquityType.VEHICLE_CAR: ("Carro", EquityGroup.VEHICLES),
    EquityType.VEHICLE_MOTORCYCLE: ("Moto", EquityGroup.VEHICLES),
    EquityType.BUSINESS: ("Empresa / Participação", EquityGroup.HOLDINGS),
    EquityType.STOCKS: ("Ações / Fundos", EquityGroup.INVESTMENTS),
    EquityType.CRYPTO: ("Criptomoedas", EquityGroup.INVESTMENTS),
    EquityType.CASH: ("Dinheiro em Espécie", EquityGroup.LIQUIDITY),
    EquityType.JEWELRY: ("Joias / Relógios", EquityGroup.PERSONAL_GOODS),
    EquityType.ART: ("Obras de Arte", EquityGroup.PERSONAL_GOODS),
    EquityType.ELECTRONICS: ("Eletrônicos", EquityGroup.PERSONAL_GOODS),
    EquityType.OTHER: ("Outro", EquityGroup.OTHER),
}


class BudgetType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    INVESTMENT = "INVESTMENT"


class BudgetPeriod(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class RecurrenceFrequency(str, Enum):
    """How often a recurring transaction repeats."""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUAL = "SEMI_ANNUAL"
    ANNUAL = "ANNUAL"


# =============================================================================
# SHARED VALIDATION
# =============================================================================

def _check_routing(
    tx_type: TransactionType,
    account_id: Optional[str],
    card_id: Optional[str],
    destination_account_id: Optional[str],
) -> None:
    """
    Check the source/destination references of a transaction.

    - Non-transfers post against exactly one of an account or a card
    - Transfers move money between two accounts, never a card
    """
    if tx_type == TransactionType.TRANSFER:
        if card_id:
            raise ValueError("Transfers cannot post against a card")
        if not account_id or not destination_account_id:
            raise ValueError("Transfers require account_id and destination_account_id")
        if account_id == destination_account_id:
            raise ValueError("Transfer source and destination must differ")
        return

    if bool(account_id) == bool(card_id):
        raise ValueError("Exactly one of account_id or card_id must be set")


def _enum_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


# =============================================================================
# RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A persisted transaction.

    CRITICAL: A transaction is an immutable fact. Updates produce a new
    record via model_copy(update=...) - never in-place edits.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique transaction ID"
    )
    type: TransactionType
    category: str = Field(
        ...,
        min_length=1,
        description="Category key (built-in or user-defined)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount with cent precision"
    )
    description: str = Field(default="", max_length=500)
    date: dt.date = Field(
        ...,
        description="Calendar date (UTC-normalized)"
    )

    # Routing
    account_id: Optional[str] = None
    card_id: Optional[str] = None
    destination_account_id: Optional[str] = None

    # Links
    equity_id: Optional[str] = None
    goal_id: Optional[str] = None

    # Installments
    current_installment: Optional[int] = Field(default=None, ge=1)
    total_installments: Optional[int] = Field(default=None, ge=1)

    # Back-reference to the recurrence that generated this transaction
    recurring_transaction_id: Optional[str] = None

    # Settlement
    is_paid: bool = False
    paid_date: Optional[dt.date] = None

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount_field(cls, v: Any) -> Any:
        return normalize_amount(v)

    @field_validator("date", "paid_date", mode="before")
    @classmethod
    def normalize_date_fields(cls, v: Any) -> Any:
        if v is None:
            return v
        return normalize_date(v)

    @field_validator("category", mode="before")
    @classmethod
    def category_key(cls, v: Any) -> Any:
        return _enum_value(v)

    @model_validator(mode="after")
    def validate_invariants(self) -> "Transaction":
        """Validate routing and installment invariants."""
        _check_routing(
            self.type, self.account_id, self.card_id, self.destination_account_id
        )

        if self.current_installment is not None and self.total_installments is None:
            raise ValueError("current_installment requires total_installments")

        if self.total_installments is not None:
            current = self.current_installment
            if current is None or not 1 <= current <= self.total_installments:
                raise ValueError(
                    "current_installment must be between 1 and total_installments"
                )

        return self

    @property
    def is_installment(self) -> bool:
        return self.total_installments is not None

    @property
    def is_recurring(self) -> bool:
        return self.recurring_transaction_id is not None


class TransactionIntent(BaseModel):
    """
    A draft transaction from the entry wizard.

    CRITICAL: An intent is never persisted. It is converted into one
    Transaction (or several, for installments and recurrences) first.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    type: TransactionType
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    description: str = Field(default="", max_length=500)
    date: dt.date

    account_id: Optional[str] = None
    card_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    equity_id: Optional[str] = None
    goal_id: Optional[str] = None

    is_paid: bool = False
    paid_date: Optional[dt.date] = None

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount_field(cls, v: Any) -> Any:
        return normalize_amount(v)

    @field_validator("date", "paid_date", mode="before")
    @classmethod
    def normalize_date_fields(cls, v: Any) -> Any:
        if v is None:
            return v
        return normalize_date(v)

    @field_validator("category", mode="before")
    @classmethod
    def category_key(cls, v: Any) -> Any:
        return _enum_value(v)

    @model_validator(mode="after")
    def validate_routing(self) -> "TransactionIntent":
        _check_routing(
            self.type, self.account_id, self.card_id, self.destination_account_id
        )
        return self

    def to_transaction(self, **overrides: Any) -> Transaction:
        """Build a concrete transaction from this draft."""
        data = self.model_dump()
        data.update(overrides)
        return Transaction(**data)


class Account(BaseModel):
    """
    A bank account or wallet.

    The balance is a stored scalar owned by the data store.
    The engine takes it as given and never recomputes it from history.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    type: AccountType = AccountType.CHECKING
    balance: Decimal = Field(
        default=Decimal("0.00"),
        description="Current balance (may be negative)"
    )
    color: Optional[str] = None

    @field_validator("balance", mode="before")
    @classmethod
    def normalize_balance(cls, v: Any) -> Any:
        return normalize_amount(v)


class CreditCard(BaseModel):
    """A credit card. Expenses on a card are a deferred liability."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    account_id: Optional[str] = Field(
        default=None,
        description="Account that pays the invoice"
    )
    limit: Decimal = Field(..., ge=0)
    limit_used: Decimal = Field(
        default=Decimal("0.00"),
        description="Current invoice balance"
    )
    closing_day: Optional[int] = Field(default=None, ge=1, le=31)
    due_day: Optional[int] = Field(default=None, ge=1, le=31)
    color: Optional[str] = None

    @field_validator("limit", "limit_used", mode="before")
    @classmethod
    def normalize_money(cls, v: Any) -> Any:
        return normalize_amount(v)

    @property
    def available(self) -> Decimal:
        """Remaining limit (negative when the card is over its limit)."""
        return self.limit - self.limit_used


class Equity(BaseModel):
    """
    A held asset contributing to net worth.

    The engine never revalues an equity. value and cost are whatever
    the user last entered.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    type: EquityType = EquityType.OTHER
    value: Decimal = Field(
        ...,
        ge=0,
        description="Current mark"
    )
    cost: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Acquisition cost basis"
    )
    acquisition_date: dt.date
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = None

    @field_validator("value", "cost", mode="before")
    @classmethod
    def normalize_money(cls, v: Any) -> Any:
        return normalize_amount(v)

    @field_validator("acquisition_date", mode="before")
    @classmethod
    def normalize_acquisition_date(cls, v: Any) -> Any:
        return normalize_date(v)

    @property
    def type_label(self) -> str:
        return EQUITY_TYPE_INFO[self.type][0]

    @property
    def group(self) -> EquityGroup:
        return EQUITY_TYPE_INFO[self.type][1]


class Budget(BaseModel):
    """
    A spending (or income/investment) ceiling for one period.

    category=None means the budget covers every category of its type.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    type: BudgetType = BudgetType.EXPENSE
    category: Optional[str] = None
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Budget ceiling"
    )
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    year: int = Field(..., ge=1900, le=9999)
    month: Optional[int] = Field(default=None, ge=1, le=12)

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_money(cls, v: Any) -> Any:
        return normalize_amount(v)

    @field_validator("category", mode="before")
    @classmethod
    def category_key(cls, v: Any) -> Any:
        return _enum_value(v)

    @model_validator(mode="after")
    def validate_period(self) -> "Budget":
        if self.period == BudgetPeriod.MONTHLY and self.month is None:
            raise ValueError("Monthly budgets require a month")
        return self

    def period_bounds(self) -> tuple[dt.date, dt.date]:
        """First and last calendar day covered by this budget."""
        if self.period == BudgetPeriod.YEARLY:
            return dt.date(self.year, 1, 1), dt.date(self.year, 12, 31)

        start = dt.date(self.year, self.month, 1)
        next_month = dt.date(self.year + self.month // 12, self.month % 12 + 1, 1)
        return start, next_month - dt.timedelta(days=1)


class RecurrenceDefinition(BaseModel):
    """
    How a transaction repeats.

    Not stored by the engine. It only drives expansion into concrete
    transactions that share one recurring_transaction_id.
    """
    model_config = ConfigDict(frozen=True)

    frequency: RecurrenceFrequency
    start_date: Optional[dt.date] = Field(
        default=None,
        description="First occurrence (defaults to the intent date)"
    )
    end_date: Optional[dt.date] = Field(
        default=None,
        description="Last possible occurrence, inclusive"
    )

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, v: Any) -> Any:
        if v is None:
            return v
        return normalize_date(v)
