"""Error taxonomy for the balance engine.

- ValidationError: bad input the caller can fix (HTTP 400)
- NotFoundError: unknown group/user/expense/settlement reference (HTTP 404)
- LedgerConsistencyError: stored data breaks an invariant (HTTP 500)
"""
from typing import Optional, Dict, Any


class SettleUpError(Exception):
    """Base class for all engine errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.message, "kind": self.__class__.__name__}
        if self.field:
            payload["field"] = self.field
        if self.details:
            payload["details"] = self.details
        return payload


# ==================== VALIDATION ====================

class ValidationError(SettleUpError):
    status_code = 400


class InvalidAmountError(ValidationError):
    pass


class EmptyParticipantsError(ValidationError):
    def __init__(self, field: str = "participant_ids"):
        super().__init__("At least one participant is required", field=field)


class DuplicateParticipantError(ValidationError):
    pass


class NotAGroupMemberError(ValidationError):
    def __init__(self, user_ids, field: str = "participant_ids"):
        user_ids = list(user_ids)
        super().__init__(
            f"The following users are not members of this group: {user_ids}",
            field=field,
            details={"user_ids": user_ids}
        )


class SplitMismatchError(ValidationError):
    pass


class SelfSettlementError(ValidationError):
    def __init__(self, user_id: str):
        super().__init__(
            "Payer and payee must be different users",
            field="payee_id",
            details={"user_id": user_id}
        )


class InvalidSplitPolicyError(ValidationError):
    pass


class MissingFieldError(ValidationError):
    def __init__(self, fields):
        fields = list(fields)
        super().__init__(f"Missing required fields: {fields}", details={"fields": fields})


# ==================== NOT FOUND ====================

class NotFoundError(SettleUpError):
    status_code = 404


class GroupNotFoundError(NotFoundError):
    def __init__(self, group_id: str):
        super().__init__(f"Group not found: {group_id}", details={"group_id": group_id})


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str, field: Optional[str] = None):
        super().__init__(f"User not found: {user_id}", field=field, details={"user_id": user_id})


class ExpenseNotFoundError(NotFoundError):
    def __init__(self, expense_id: str):
        super().__init__(f"Expense not found: {expense_id}", details={"expense_id": expense_id})


class SettlementNotFoundError(NotFoundError):
    def __init__(self, settlement_id: str):
        super().__init__(
            f"Settlement not found: {settlement_id}",
            details={"settlement_id": settlement_id}
        )


# ==================== CONSISTENCY ====================

class LedgerConsistencyError(SettleUpError):
    """Stored transactions violate an invariant; no summary can be produced."""
    status_code = 500
