"""
Balance Service - read side of the engine.

Responsibilities:
- Load a consistent snapshot of a group's transaction log
- Reduce it to balances and simplify the debts
- Attach display names only when building the response
- Build the group activity feed
"""
import logging
from typing import Dict, Any, List

from .debt_service import DebtSimplifier
from .errors import GroupNotFoundError, UserNotFoundError
from .ledger_service import LedgerReducer
from .models import GroupLog, GroupSummary
from .money import format_amount
from ..utils.enums import ActivityType

logger = logging.getLogger(__name__)


class BalanceService:
    """Stateless per call; safe to share between requests."""

    def __init__(self, store):
        self.store = store

    def _load(self, group_id: str, include_deleted: bool = False) -> GroupLog:
        log = self.store.load_group_log(group_id, include_deleted=include_deleted)
        if log is None:
            raise GroupNotFoundError(group_id)
        return log

    def get_group_summary(self, group_id: str) -> GroupSummary:
        """
        Compute balances and suggested payments for a group.

        Raises:
            GroupNotFoundError: unknown group
            LedgerConsistencyError: the stored log breaks an invariant
        """
        log = self._load(group_id)
        balances = LedgerReducer.compute_balances(log.group, log.expenses, log.settlements)
        debts = DebtSimplifier.simplify(balances)

        logger.debug(
            "Group %s summary: %d members, %d suggested payments",
            group_id, len(balances), len(debts)
        )
        return GroupSummary(group=log.group, balances=balances, simplified_debts=debts)

    def get_user_balance(self, group_id: str, user_id: str) -> Dict[str, Any]:
        """One member's balance plus the suggested payments they take part in."""
        summary = self.get_group_summary(group_id)
        if not summary.group.has_member(user_id):
            raise UserNotFoundError(user_id)

        payload = summary.to_dict()
        balance = next(b for b in payload["balances"] if b["user_id"] == user_id)
        debts = [
            d for d in payload["simplified_debts"]
            if d["from_user_id"] == user_id or d["to_user_id"] == user_id
        ]
        return {
            "group_id": group_id,
            "user_id": user_id,
            "name": balance["name"],
            "amount": balance["amount"],
            "simplified_debts": debts
        }

    def get_group_history(self, group_id: str, include_deleted: bool = False) -> List[Dict[str, Any]]:
        """
        Expenses and settlements of a group, newest first.

        Soft-deleted records show up only when include_deleted is set.
        """
        log = self._load(group_id, include_deleted=include_deleted)
        group = log.group
        history = []

        for e in log.expenses:
            if e.is_deleted and not include_deleted:
                continue
            history.append((e.created_at, {
                "id": e.id,
                "type": ActivityType.EXPENSE.value,
                "description": e.description,
                "amount": format_amount(e.amount),
                "policy": e.policy.value,
                "paid_by_user_id": e.payer_id,
                "paid_by_user_name": group.member_name(e.payer_id),
                "splits": [
                    {
                        "user_id": s.user_id,
                        "user_name": group.member_name(s.user_id),
                        "amount": format_amount(s.amount)
                    }
                    for s in e.splits
                ],
                "created_at": e.created_at.isoformat(),
                "deleted": e.is_deleted
            }))

        for s in log.settlements:
            if s.is_deleted and not include_deleted:
                continue
            payer_name = group.member_name(s.payer_id)
            payee_name = group.member_name(s.payee_id)
            history.append((s.created_at, {
                "id": s.id,
                "type": ActivityType.SETTLEMENT.value,
                "description": f"{payer_name} paid {payee_name}",
                "amount": format_amount(s.amount),
                "paid_by_user_id": s.payer_id,
                "paid_by_user_name": payer_name,
                "paid_to_user_id": s.payee_id,
                "paid_to_user_name": payee_name,
                "created_at": s.created_at.isoformat(),
                "deleted": s.is_deleted
            }))

        history.sort(key=lambda pair: pair[0], reverse=True)
        return [item for _, item in history]
