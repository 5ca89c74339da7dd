"""Persistence collaborators for the engine."""
from typing import Dict, Iterable, Optional

from ..core.models import Expense, Group, GroupLog, Settlement, User


class LedgerStore:
    """
    What the engine expects from persistence.

    - insert_expense writes an expense and all its splits as one unit
    - soft_delete_* sets a deletion marker; rows stay inspectable
    - load_group_log returns group, expenses and settlements as one snapshot
    """

    def get_group(self, group_id: str) -> Optional[Group]:
        raise NotImplementedError

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Users that exist, keyed by id. Unknown ids are left out."""
        raise NotImplementedError

    def load_group_log(self, group_id: str, include_deleted: bool = False) -> Optional[GroupLog]:
        raise NotImplementedError

    def insert_expense(self, expense: Expense) -> Expense:
        raise NotImplementedError

    def insert_settlement(self, settlement: Settlement) -> Settlement:
        raise NotImplementedError

    def soft_delete_expense(self, group_id: str, expense_id: str) -> bool:
        raise NotImplementedError

    def soft_delete_settlement(self, group_id: str, settlement_id: str) -> bool:
        raise NotImplementedError
