"""
Shared fixtures for the Finance Engine tests.

Factories build valid records with sensible defaults so each test only
spells out the fields it is about.
"""

from datetime import date
from decimal import Decimal

import pytest

from finance_engine.config import EngineSettings, get_settings
from finance_engine.models import (
    Account,
    AccountType,
    Equity,
    EquityType,
    Transaction,
    TransactionCategory,
    TransactionIntent,
    TransactionType,
)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate every test from FINANCE_ENGINE_* variables in the environment."""
    for name in list(EngineSettings.model_fields):
        monkeypatch.delenv(f"FINANCE_ENGINE_{name.upper()}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_tx():
    """Factory for transactions. Defaults to a R$10.00 FOOD expense on account 'acc-1'."""

    def _make(**overrides) -> Transaction:
        data = {
            "type": TransactionType.EXPENSE,
            "category": TransactionCategory.FOOD,
            "amount": Decimal("10.00"),
            "date": date(2025, 1, 15),
            "account_id": "acc-1",
        }
        data.update(overrides)
        return Transaction(**data)

    return _make


@pytest.fixture
def make_intent():
    """Factory for transaction intents. Same defaults as make_tx."""

    def _make(**overrides) -> TransactionIntent:
        data = {
            "type": TransactionType.EXPENSE,
            "category": TransactionCategory.FOOD,
            "amount": Decimal("10.00"),
            "date": date(2025, 1, 15),
            "account_id": "acc-1",
        }
        data.update(overrides)
        return TransactionIntent(**data)

    return _make


@pytest.fixture
def make_account():
    """Factory for accounts. Defaults to checking account 'acc-1' with R$100.00."""

    def _make(**overrides) -> Account:
        data = {
            "id": "acc-1",
            "name": "Conta Corrente",
            "type": AccountType.CHECKING,
            "balance": Decimal("100.00"),
        }
        data.update(overrides)
        return Account(**data)

    return _make


@pytest.fixture
def make_equity():
    """Factory for equities. Defaults to a stock position bought in 2024."""

    def _make(**overrides) -> Equity:
        data = {
            "name": "Carteira de Ações",
            "type": EquityType.STOCKS,
            "value": Decimal("1000.00"),
            "cost": Decimal("800.00"),
            "acquisition_date": date(2024, 1, 10),
        }
        data.update(overrides)
        return Equity(**data)

    return _make
