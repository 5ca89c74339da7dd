"""
Split Calculator - turn one expense into per-participant owed amounts.

Responsibilities:
- Calculate equal splits with deterministic remainder assignment
- Validate exact splits against the expense total
- Validate participants against group membership
"""
import logging
from decimal import Decimal
from typing import Optional, Dict, Any, List, Iterable, Union

from .errors import (
    DuplicateParticipantError, EmptyParticipantsError, InvalidAmountError,
    InvalidSplitPolicyError, NotAGroupMemberError, SplitMismatchError, ValidationError,
)
from .models import Split
from .money import (
    SPLIT_TOLERANCE, ZERO, from_minor_units, is_whole_minor_units, to_decimal,
    to_minor_units, to_positive_amount,
)
from ..utils.enums import SplitPolicy

logger = logging.getLogger(__name__)


class SplitCalculator:
    """Pure split computation. Holds no state."""

    @classmethod
    def parse_policy(cls, policy: Union[str, SplitPolicy]) -> SplitPolicy:
        if isinstance(policy, SplitPolicy):
            return policy
        try:
            return SplitPolicy(str(policy).strip().upper())
        except ValueError:
            raise InvalidSplitPolicyError(
                f"Invalid split policy {policy!r}. Use EQUAL or EXACT.",
                field="policy"
            )

    @classmethod
    def compute_splits(
        cls,
        total_amount: Any,
        policy: Union[str, SplitPolicy],
        participant_ids: Optional[List[str]],
        exact_amounts: Optional[Dict[str, Any]] = None,
        member_ids: Optional[Iterable[str]] = None
    ) -> List[Split]:
        """
        Compute the split set for one expense.

        Args:
            total_amount: Expense total, > 0, whole minor units
            policy: EQUAL or EXACT
            participant_ids: Users sharing the expense, in a fixed order
            exact_amounts: {user_id: amount}, required for EXACT
            member_ids: Group members; participants must be among them

        Returns:
            List of Split in participant order, summing exactly to the total

        Raises:
            InvalidAmountError, EmptyParticipantsError, DuplicateParticipantError,
            NotAGroupMemberError, SplitMismatchError, InvalidSplitPolicyError,
            ValidationError
        """
        total = to_positive_amount(total_amount, field="total_amount")
        policy = cls.parse_policy(policy)

        participant_ids = list(participant_ids or [])
        if not participant_ids and policy == SplitPolicy.EXACT and exact_amounts:
            participant_ids = list(exact_amounts.keys())

        if policy == SplitPolicy.EQUAL and exact_amounts:
            raise ValidationError(
                "exact_amounts is only accepted with the EXACT policy",
                field="exact_amounts"
            )

        cls._validate_participants(participant_ids, member_ids)

        if policy == SplitPolicy.EQUAL:
            splits = cls.calculate_equal_split(total, participant_ids)
        else:
            splits = cls.calculate_exact_split(total, participant_ids, exact_amounts or {})

        logger.debug("Computed %d %s splits", len(splits), policy.value)
        return splits

    @classmethod
    def calculate_equal_split(cls, total: Decimal, participant_ids: List[str]) -> List[Split]:
        """
        Divide total evenly.

        Each share is floor(total / n) minor units; the leftover units are
        handed out one at a time in participant order.
        """
        n = len(participant_ids)
        total_units = to_minor_units(total)
        base_units, remainder = divmod(total_units, n)

        splits = []
        for i, user_id in enumerate(participant_ids):
            units = base_units + (1 if i < remainder else 0)
            splits.append(Split(user_id=user_id, amount=from_minor_units(units)))
        return splits

    @classmethod
    def calculate_exact_split(
        cls,
        total: Decimal,
        participant_ids: List[str],
        exact_amounts: Dict[str, Any]
    ) -> List[Split]:
        """
        Use explicit per-user amounts.

        The sum may differ from the total by at most SPLIT_TOLERANCE
        (client-side float noise); that difference goes to the first
        participant so the stored splits sum to the total exactly.
        """
        missing = [uid for uid in participant_ids if uid not in exact_amounts]
        extra = [uid for uid in exact_amounts if uid not in participant_ids]
        if missing or extra:
            raise SplitMismatchError(
                "Exact amounts must be given for every participant and no one else",
                field="exact_amounts",
                details={"missing": missing, "unexpected": extra}
            )

        amounts = []
        for user_id in participant_ids:
            amount = to_decimal(exact_amounts[user_id], field=f"exact_amounts.{user_id}")
            if amount < ZERO:
                raise InvalidAmountError(
                    f"Negative amount for user {user_id}",
                    field="exact_amounts",
                    details={"user_id": user_id, "actual": str(amount)}
                )
            if not is_whole_minor_units(amount):
                raise InvalidAmountError(
                    f"Amount for user {user_id} has fractions of a cent",
                    field="exact_amounts",
                    details={"user_id": user_id, "actual": str(amount)}
                )
            amounts.append(amount)

        actual = sum(amounts, ZERO)
        difference = total - actual
        if abs(difference) > SPLIT_TOLERANCE:
            raise SplitMismatchError(
                f"Split amounts sum to {actual}, expected {total}",
                field="exact_amounts",
                details={"expected": str(total), "actual": str(actual)}
            )

        if difference != ZERO:
            amounts[0] += difference
            if amounts[0] < ZERO:
                raise SplitMismatchError(
                    f"Split amounts sum to {actual}, expected {total}",
                    field="exact_amounts",
                    details={"expected": str(total), "actual": str(actual)}
                )

        return [Split(user_id=uid, amount=amt) for uid, amt in zip(participant_ids, amounts)]

    @classmethod
    def _validate_participants(
        cls,
        participant_ids: List[str],
        member_ids: Optional[Iterable[str]]
    ) -> None:
        if not participant_ids:
            raise EmptyParticipantsError()

        if len(participant_ids) != len(set(participant_ids)):
            duplicates = sorted({uid for uid in participant_ids if participant_ids.count(uid) > 1})
            raise DuplicateParticipantError(
                "Duplicate users in participants",
                field="participant_ids",
                details={"user_ids": duplicates}
            )

        if member_ids is not None:
            members = set(member_ids)
            non_members = [uid for uid in participant_ids if uid not in members]
            if non_members:
                raise NotAGroupMemberError(non_members)
