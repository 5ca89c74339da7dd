"""
Record Service - write side of the engine.

Responsibilities:
- Validate expense input and materialize its splits
- Resolve user ids: unknown users are not found, known outsiders are invalid
- Validate settlements (payer != payee, both members, amount > 0)
- Hand atomic units to the store and soft-delete on request
"""
import logging
from datetime import datetime
from typing import Optional, Dict, Any, Iterable, List

from .errors import (
    ExpenseNotFoundError, GroupNotFoundError, NotAGroupMemberError,
    SelfSettlementError, SettlementNotFoundError, UserNotFoundError,
)
from .models import Expense, Group, Settlement, Split
from .money import to_positive_amount
from .split_service import SplitCalculator
from ..utils.enums import SplitPolicy

logger = logging.getLogger(__name__)


class RecordService:
    """Validates writes before they reach the store."""

    def __init__(self, store):
        self.store = store

    def _get_group(self, group_id: str) -> Group:
        group = self.store.get_group(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    def _require_users(self, user_ids: Iterable[str], field: str) -> None:
        user_ids = list(user_ids)
        if not user_ids:
            return
        found = self.store.get_users(user_ids)
        for user_id in user_ids:
            if user_id not in found:
                raise UserNotFoundError(user_id, field=field)

    def _require_participants(
        self,
        policy: str,
        participant_ids: Optional[List[str]],
        exact_amounts: Optional[Dict[str, Any]]
    ) -> None:
        user_ids = list(participant_ids or [])
        if not user_ids and SplitCalculator.parse_policy(policy) == SplitPolicy.EXACT:
            user_ids = list(exact_amounts or {})
        self._require_users(user_ids, field="participant_ids")

    def preview_splits(
        self,
        group_id: str,
        total_amount: Any,
        policy: str,
        participant_ids: Optional[List[str]],
        exact_amounts: Optional[Dict[str, Any]] = None
    ) -> List[Split]:
        """ComputeSplits against the current members of a group. Stores nothing."""
        group = self._get_group(group_id)
        self._require_participants(policy, participant_ids, exact_amounts)
        return SplitCalculator.compute_splits(
            total_amount, policy, participant_ids, exact_amounts,
            member_ids=group.member_ids
        )

    def record_expense(
        self,
        group_id: str,
        payer_id: str,
        total_amount: Any,
        policy: str,
        participant_ids: Optional[List[str]],
        exact_amounts: Optional[Dict[str, Any]] = None,
        description: str = ""
    ) -> Expense:
        """
        Record an expense together with its splits.

        Args:
            group_id: Owning group
            payer_id: Member who paid
            total_amount: Expense total
            policy: EQUAL or EXACT
            participant_ids: Members sharing the cost
            exact_amounts: {user_id: amount} for EXACT
            description: Free text

        Returns:
            The stored Expense with its id
        """
        group = self._get_group(group_id)
        self._require_users([payer_id], field="payer_id")
        self._require_participants(policy, participant_ids, exact_amounts)
        if not group.has_member(payer_id):
            raise NotAGroupMemberError([payer_id], field="payer_id")

        splits = SplitCalculator.compute_splits(
            total_amount, policy, participant_ids, exact_amounts,
            member_ids=group.member_ids
        )

        expense = Expense(
            id=None,
            group_id=group_id,
            payer_id=payer_id,
            amount=to_positive_amount(total_amount, field="total_amount"),
            policy=SplitCalculator.parse_policy(policy),
            splits=splits,
            description=description or "",
            created_at=datetime.utcnow()
        )
        expense = self.store.insert_expense(expense)

        logger.info(
            "Recorded expense %s in group %s (%s, %d splits)",
            expense.id, group_id, expense.policy.value, len(splits)
        )
        return expense

    def record_settlement(
        self,
        group_id: str,
        payer_id: str,
        payee_id: str,
        amount: Any
    ) -> Settlement:
        """Record a real-world payment from payer to payee."""
        group = self._get_group(group_id)

        if payer_id == payee_id:
            raise SelfSettlementError(payer_id)

        self._require_users([payer_id], field="payer_id")
        self._require_users([payee_id], field="payee_id")

        non_members = [uid for uid in (payer_id, payee_id) if not group.has_member(uid)]
        if non_members:
            raise NotAGroupMemberError(non_members, field="payer_id" if payer_id in non_members else "payee_id")

        settlement = Settlement(
            id=None,
            group_id=group_id,
            payer_id=payer_id,
            payee_id=payee_id,
            amount=to_positive_amount(amount),
            created_at=datetime.utcnow()
        )
        settlement = self.store.insert_settlement(settlement)

        logger.info("Recorded settlement %s in group %s", settlement.id, group_id)
        return settlement

    def delete_expense(self, group_id: str, expense_id: str) -> None:
        self._get_group(group_id)
        if not self.store.soft_delete_expense(group_id, expense_id):
            raise ExpenseNotFoundError(expense_id)
        logger.info("Deleted expense %s in group %s", expense_id, group_id)

    def delete_settlement(self, group_id: str, settlement_id: str) -> None:
        self._get_group(group_id)
        if not self.store.soft_delete_settlement(group_id, settlement_id):
            raise SettlementNotFoundError(settlement_id)
        logger.info("Deleted settlement %s in group %s", settlement_id, group_id)
