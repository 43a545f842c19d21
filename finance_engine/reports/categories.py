"""
Category Labels

The single canonical mapping from category keys to display labels.

Keys missing from the table (user-defined categories, legacy keys) are
humanized: split on underscores, hyphens and whitespace, then title-case
each token. "PET_CARE" renders as "Pet Care", never as the raw key.
"""

import re
from enum import Enum
from typing import Union

from finance_engine.models.records import TransactionCategory


CATEGORY_LABELS: dict[str, str] = {
    # Income
    TransactionCategory.SALARY.value: "Salário",
    TransactionCategory.FREELANCE.value: "Freelance",
    TransactionCategory.INVESTMENT.value: "Investimentos",
    TransactionCategory.OTHER_INCOME.value: "Outras Receitas",
    # Expense
    TransactionCategory.FOOD.value: "Alimentação",
    TransactionCategory.TRANSPORT.value: "Transporte",
    TransactionCategory.HOUSING.value: "Moradia",
    TransactionCategory.UTILITIES.value: "Contas",
    TransactionCategory.HEALTHCARE.value: "Saúde",
    TransactionCategory.ENTERTAINMENT.value: "Lazer",
    TransactionCategory.EDUCATION.value: "Educação",
    TransactionCategory.SHOPPING.value: "Compras",
    TransactionCategory.OTHER_EXPENSE.value: "Outras Despesas",
    TransactionCategory.TRANSFER.value: "Transferência",
    # Legacy keys still present in older records
    "DEBT_PAYMENT": "Pagamento de Dívida",
    "BONUS": "Bônus / PLR",
    "SELF_EMPLOYED": "Autônomo / PJ",
    "DIVIDENDS": "Dividendos",
    "INTEREST": "Juros",
    "RENT": "Aluguel",
    "INVESTMENT_INCOME": "Rendimentos",
    "PENSION_INCOME": "Previdência",
    "INSURANCE": "Seguros",
    "CLOTHING": "Vestuário",
    "SUBSCRIPTIONS": "Assinaturas",
    "TAXES": "Impostos",
    "FEES": "Taxas e Tarifas",
    "PETS": "Pets",
    "DONATIONS": "Doações",
    "TRAVEL": "Viagens",
}

_SEPARATORS = re.compile(r"[_\-\s]+")


def humanize_category(key: str) -> str:
    """Turn an unknown key into a readable label."""
    tokens = [token for token in _SEPARATORS.split(key) if token]
    if not tokens:
        return key
    return " ".join(token.capitalize() for token in tokens)


def category_label(key: Union[str, Enum]) -> str:
    """Label for a category key, falling back to the humanized key."""
    if isinstance(key, Enum):
        key = key.value
    return CATEGORY_LABELS.get(key) or humanize_category(key)
