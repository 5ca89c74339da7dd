"""
Ledger Reducer - fold a group's transaction log into net balances.

Positive balance = the group owes this user.
Negative balance = this user owes the group.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable

from .errors import LedgerConsistencyError
from .models import Expense, Group, Settlement
from .money import ZERO

logger = logging.getLogger(__name__)


class LedgerReducer:
    """Pure fold over expenses and settlements."""

    @classmethod
    def compute_balances(
        cls,
        group: Group,
        expenses: Iterable[Expense],
        settlements: Iterable[Settlement]
    ) -> Dict[str, Decimal]:
        """
        Compute every member's net balance.

        Deleted records are skipped. Nothing is rounded here; rounding to
        the minor unit happens only when a balance is presented.

        Raises:
            LedgerConsistencyError: if the log breaks an invariant
        """
        balances = {user_id: ZERO for user_id in group.member_ids}
        expense_count = 0
        settlement_count = 0

        for expense in expenses:
            if expense.is_deleted:
                continue
            cls._check_expense(group, expense)
            # Payer gets credit for the full amount...
            balances[expense.payer_id] += expense.amount
            # ...and every split owner, payer included, is debited their share
            for split in expense.splits:
                balances[split.user_id] -= split.amount
            expense_count += 1

        for settlement in settlements:
            if settlement.is_deleted:
                continue
            cls._check_settlement(group, settlement)
            # Payer owed money and paid it back: balance goes up
            balances[settlement.payer_id] += settlement.amount
            # Payee was owed money and received it: balance goes down
            balances[settlement.payee_id] -= settlement.amount
            settlement_count += 1

        logger.debug(
            "Reduced %d expenses and %d settlements for group %s",
            expense_count, settlement_count, group.id
        )
        return balances

    @classmethod
    def _check_expense(cls, group: Group, expense: Expense) -> None:
        details = {"group_id": group.id, "expense_id": expense.id}

        if expense.group_id != group.id:
            raise LedgerConsistencyError(
                f"Expense {expense.id} belongs to group {expense.group_id}", details=details
            )
        if expense.amount <= ZERO:
            raise LedgerConsistencyError(
                f"Expense {expense.id} has a non-positive amount", details=details
            )
        if not expense.splits:
            raise LedgerConsistencyError(
                f"Expense {expense.id} has no splits", details=details
            )

        involved = [expense.payer_id] + [s.user_id for s in expense.splits]
        strangers = sorted({uid for uid in involved if not group.has_member(uid)})
        if strangers:
            raise LedgerConsistencyError(
                f"Expense {expense.id} references non-members {strangers}", details=details
            )

        splits_sum = sum((s.amount for s in expense.splits), ZERO)
        # stored splits are exact; any difference would break conservation
        if splits_sum != expense.amount:
            raise LedgerConsistencyError(
                f"Splits of expense {expense.id} sum to {splits_sum}, expected {expense.amount}",
                details=dict(details, expected=str(expense.amount), actual=str(splits_sum))
            )

    @classmethod
    def _check_settlement(cls, group: Group, settlement: Settlement) -> None:
        details = {"group_id": group.id, "settlement_id": settlement.id}

        if settlement.group_id != group.id:
            raise LedgerConsistencyError(
                f"Settlement {settlement.id} belongs to group {settlement.group_id}",
                details=details
            )
        if settlement.amount <= ZERO:
            raise LedgerConsistencyError(
                f"Settlement {settlement.id} has a non-positive amount", details=details
            )
        if settlement.payer_id == settlement.payee_id:
            raise LedgerConsistencyError(
                f"Settlement {settlement.id} has the same payer and payee", details=details
            )
        strangers = sorted({
            uid for uid in (settlement.payer_id, settlement.payee_id)
            if not group.has_member(uid)
        })
        if strangers:
            raise LedgerConsistencyError(
                f"Settlement {settlement.id} references non-members {strangers}",
                details=details
            )
