"""
Debt Simplifier - turn net balances into a short list of payments.

Greedy matching: the largest debtor pays the largest creditor
min(|debt|, credit), and the one who reaches zero drops out. Each step
clears at least one member, so n non-zero members need at most n - 1
payments. This is not the global minimum for every balance set (that is a
partition-style problem); it is always correct and always deterministic.
"""
import heapq
import logging
from decimal import Decimal
from typing import Dict, List, Tuple

from .models import SimplifiedDebt
from .money import ZERO, is_negligible

logger = logging.getLogger(__name__)


class DebtSimplifier:
    """Pure simplification over a balance map."""

    @classmethod
    def simplify(cls, balances: Dict[str, Decimal]) -> List[SimplifiedDebt]:
        """
        Produce the payments that zero every balance.

        Args:
            balances: {user_id: signed balance}, positive = owed money

        Returns:
            Ordered list of SimplifiedDebt, at most (non-zero members - 1) long
        """
        creditors, debtors = cls._partition(balances)

        debts = []
        while creditors and debtors:
            credit_neg, creditor_id = heapq.heappop(creditors)
            debt_neg, debtor_id = heapq.heappop(debtors)

            credit = -credit_neg
            debt = -debt_neg
            amount = min(credit, debt)

            debts.append(SimplifiedDebt(
                from_user_id=debtor_id,
                to_user_id=creditor_id,
                amount=amount
            ))

            remaining_credit = credit - amount
            remaining_debt = debt - amount

            # sub-minor-unit residue is dropped, never emitted
            if not is_negligible(remaining_credit):
                heapq.heappush(creditors, (-remaining_credit, creditor_id))
            if not is_negligible(remaining_debt):
                heapq.heappush(debtors, (-remaining_debt, debtor_id))

        logger.debug("Simplified %d balances into %d debts", len(balances), len(debts))
        return debts

    @classmethod
    def _partition(
        cls,
        balances: Dict[str, Decimal]
    ) -> Tuple[List[Tuple[Decimal, str]], List[Tuple[Decimal, str]]]:
        """
        Split balances into two max-heaps keyed by (-magnitude, user_id).

        heapq is a min-heap, so magnitudes are negated; equal magnitudes
        fall back to user id order.
        """
        creditors = []
        debtors = []

        for user_id, balance in balances.items():
            if is_negligible(balance):
                continue
            if balance > ZERO:
                creditors.append((-balance, user_id))
            else:
                debtors.append((balance, user_id))

        heapq.heapify(creditors)
        heapq.heapify(debtors)
        return creditors, debtors
