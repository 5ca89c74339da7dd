"""Engine data model. Ids are opaque strings; amounts are Decimal."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Dict, Any

from .money import format_amount
from ..utils.enums import SplitPolicy


# ==================== LOG RECORDS ====================

@dataclass(frozen=True)
class User:
    id: str
    name: str


@dataclass
class Group:
    id: str
    name: str
    members: List[User] = field(default_factory=list)

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]

    def has_member(self, user_id: str) -> bool:
        return any(m.id == user_id for m in self.members)

    def find_member(self, user_id: str) -> Optional[User]:
        for m in self.members:
            if m.id == user_id:
                return m
        return None

    def member_name(self, user_id: str) -> str:
        member = self.find_member(user_id)
        return member.name if member else "Unknown"


@dataclass(frozen=True)
class Split:
    user_id: str
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "amount": str(self.amount)}


@dataclass
class Expense:
    id: Optional[str]
    group_id: str
    payer_id: str
    amount: Decimal
    policy: SplitPolicy
    splits: List[Split] = field(default_factory=list)
    description: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class Settlement:
    id: Optional[str]
    group_id: str
    payer_id: str
    payee_id: str
    amount: Decimal
    created_at: datetime = field(default_factory=datetime.utcnow)
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class GroupLog:
    """Everything the engine needs for one group, read as one snapshot."""
    group: Group
    expenses: List[Expense] = field(default_factory=list)
    settlements: List[Settlement] = field(default_factory=list)


# ==================== DERIVED VIEWS ====================

@dataclass(frozen=True)
class SimplifiedDebt:
    from_user_id: str
    to_user_id: str
    amount: Decimal


@dataclass
class GroupSummary:
    group: Group
    balances: Dict[str, Decimal]
    simplified_debts: List[SimplifiedDebt]

    @property
    def is_settled(self) -> bool:
        return not self.simplified_debts

    def to_dict(self) -> Dict[str, Any]:
        # names are attached here and nowhere earlier
        return {
            "group_id": self.group.id,
            "group_name": self.group.name,
            "balances": [
                {
                    "user_id": user_id,
                    "name": self.group.member_name(user_id),
                    "amount": format_amount(amount)
                }
                for user_id, amount in self.balances.items()
            ],
            "simplified_debts": [
                {
                    "from_user_id": d.from_user_id,
                    "from_user_name": self.group.member_name(d.from_user_id),
                    "to_user_id": d.to_user_id,
                    "to_user_name": self.group.member_name(d.to_user_id),
                    "amount": format_amount(d.amount)
                }
                for d in self.simplified_debts
            ],
            "is_settled": self.is_settled
        }
