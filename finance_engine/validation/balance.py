"""
Balance & Insufficient-Funds Validator

DESIGN DECISION: Insufficient funds is NOT an error in this system.
Negative balances are a permitted end state, but the user has to see
them coming. The check is a two-phase protocol:

PHASE 1 - CHECK:
- balance - debit >= 0       -> ALLOWED
- balance - debit <  0       -> NEEDS_CONFIRMATION, with current balance,
                                required amount and final balance for the prompt

PHASE 2 - CONFIRM:
- the caller resubmits the identical payload with confirm_negative_balance=True
- the same computation now returns ALLOWED

BLOCKED is reserved for requests that cannot be evaluated at all
(missing account reference, non-positive debit).

IMPORTANT: NEEDS_CONFIRMATION is returned, never raised. It is a normal
branch of the flow.
"""

import hashlib
import json
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union

import structlog

from finance_engine.models.records import (
    Account,
    Transaction,
    TransactionIntent,
    TransactionType,
)
from finance_engine.models.views import ZERO, BalanceCheck, BalanceOutcome
from finance_engine.normalization import normalize_amount


logger = structlog.get_logger(__name__)

# Transaction types that take money out of their account_id
DEBIT_TYPES = frozenset({
    TransactionType.EXPENSE,
    TransactionType.TRANSFER,
    TransactionType.INVOICE_PAYMENT,
})

Draft = Union[Transaction, TransactionIntent]


def idempotency_key(
    account_id: Optional[str],
    amount: Decimal,
    payload: Any = None,
) -> str:
    """
    Fingerprint a submission.

    The confirm flag is deliberately not part of the key: the confirmed
    resubmission of a payload must map to the same key as the first try.
    """
    canonical = json.dumps(
        {"account_id": account_id, "amount": str(amount), "payload": payload},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def apply_debit(account: Account, amount: Decimal) -> Account:
    """Return a copy of the account with the amount taken out."""
    return account.model_copy(update={"balance": account.balance - amount})


def apply_credit(account: Account, amount: Decimal) -> Account:
    """Return a copy of the account with the amount added."""
    return account.model_copy(update={"balance": account.balance + amount})


class BalanceValidator:
    """
    Decides whether a debit may proceed against an account.

    Stateless: the same inputs always produce the same BalanceCheck.
    """

    def validate(
        self,
        account: Optional[Account],
        proposed_debit: Union[Decimal, int, float, str],
        confirm_negative_balance: bool = False,
        payload: Any = None,
    ) -> BalanceCheck:
        """
        Validate a proposed debit.

        Args:
            account: The account being debited (None if the reference is missing)
            proposed_debit: Amount to take out of the account
            confirm_negative_balance: The user accepted a negative final balance
            payload: Extra data identifying the submission, for the idempotency key

        Returns:
            BalanceCheck with the outcome and the figures for a confirmation prompt
        """
        debit = normalize_amount(proposed_debit)
        account_id = account.id if account else None
        key = idempotency_key(account_id, debit, payload)

        if account is None:
            return self._blocked("Missing account reference", debit, key)

        if debit <= 0:
            return self._blocked(
                "Debit amount must be greater than zero", debit, key, account
            )

        final_balance = account.balance - debit

        if final_balance >= 0 or confirm_negative_balance:
            outcome = BalanceOutcome.ALLOWED
        else:
            outcome = BalanceOutcome.NEEDS_CONFIRMATION

        logger.debug(
            "balance_checked",
            account_id=account.id,
            outcome=outcome.value,
            final_balance=str(final_balance),
            confirmed=confirm_negative_balance,
        )

        return BalanceCheck(
            outcome=outcome,
            account_id=account.id,
            current_balance=account.balance,
            required_amount=debit,
            final_balance=final_balance,
            confirmed=confirm_negative_balance,
            idempotency_key=key,
        )

    def validate_transaction(
        self,
        draft: Draft,
        accounts: Union[Mapping[str, Account], Iterable[Account]],
        confirm_negative_balance: bool = False,
        amount: Optional[Decimal] = None,
        context: Any = None,
    ) -> BalanceCheck:
        """
        Validate a transaction (or draft) against the account it debits.

        Income and card expenses do not debit an account balance and are
        ALLOWED without a check. Everything in DEBIT_TYPES is checked against
        its account_id.

        Args:
            draft: Transaction or TransactionIntent
            accounts: Account snapshot, as a list or keyed by id
            confirm_negative_balance: The user accepted a negative final balance
            amount: Debit to check instead of draft.amount (e.g. first installment)
            context: Extra submission data folded into the idempotency key
        """
        if not isinstance(accounts, Mapping):
            accounts = {a.id: a for a in accounts}

        debit = draft.amount if amount is None else amount
        payload = {
            "draft": draft.model_dump(mode="json", exclude={"id"}),
            "context": context,
        }

        debits_account = draft.type in DEBIT_TYPES and draft.card_id is None
        if not debits_account:
            account = accounts.get(draft.account_id) if draft.account_id else None
            if draft.account_id and account is None:
                return self._blocked(
                    f"Unknown account {draft.account_id}",
                    ZERO,
                    idempotency_key(draft.account_id, debit, payload),
                )
            balance = account.balance if account else ZERO
            return BalanceCheck(
                outcome=BalanceOutcome.ALLOWED,
                account_id=draft.account_id,
                current_balance=balance,
                required_amount=ZERO,
                final_balance=balance,
                confirmed=confirm_negative_balance,
                idempotency_key=idempotency_key(draft.account_id, debit, payload),
            )

        return self.validate(
            accounts.get(draft.account_id),
            debit,
            confirm_negative_balance=confirm_negative_balance,
            payload=payload,
        )

    def _blocked(
        self,
        reason: str,
        debit: Decimal,
        key: str,
        account: Optional[Account] = None,
    ) -> BalanceCheck:
        logger.warning("balance_check_blocked", reason=reason)
        balance = account.balance if account else ZERO
        return BalanceCheck(
            outcome=BalanceOutcome.BLOCKED,
            account_id=account.id if account else None,
            current_balance=balance,
            required_amount=debit,
            final_balance=balance,
            reason=reason,
            idempotency_key=key,
        )
