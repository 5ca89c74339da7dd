"""
MongoDB ledger store.

Splits are embedded in their expense document, so an expense and its
splits are written and soft-deleted by a single atomic document operation.
Amounts are stored as Decimal128.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, Iterable, List

from bson import ObjectId
from bson.decimal128 import Decimal128
from bson.errors import InvalidId

from . import LedgerStore
from ..core.models import Expense, Group, GroupLog, Settlement, Split, User
from ..utils.enums import SplitPolicy

logger = logging.getLogger(__name__)


def to_object_id(value) -> Optional[ObjectId]:
    """Parse an id; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def to_decimal128(amount: Decimal) -> Decimal128:
    return Decimal128(amount)


def from_decimal128(value) -> Decimal:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    return Decimal(str(value))


# ==================== DOCUMENT CONVERTERS ====================

def expense_to_document(expense: Expense) -> Dict[str, Any]:
    return {
        "group_id": ObjectId(expense.group_id),
        "payer_id": ObjectId(expense.payer_id),
        "amount": to_decimal128(expense.amount),
        "policy": expense.policy.value,
        "description": expense.description,
        "splits": [
            {"user_id": ObjectId(s.user_id), "amount": to_decimal128(s.amount)}
            for s in expense.splits
        ],
        "created_at": expense.created_at,
        "deleted_at": expense.deleted_at
    }


def expense_from_document(doc: Dict[str, Any]) -> Expense:
    return Expense(
        id=str(doc["_id"]),
        group_id=str(doc["group_id"]),
        payer_id=str(doc["payer_id"]),
        amount=from_decimal128(doc["amount"]),
        policy=SplitPolicy(doc.get("policy", SplitPolicy.EQUAL.value)),
        splits=[
            Split(user_id=str(s["user_id"]), amount=from_decimal128(s["amount"]))
            for s in doc.get("splits", [])
        ],
        description=doc.get("description", ""),
        created_at=doc["created_at"],
        deleted_at=doc.get("deleted_at")
    )


def settlement_to_document(settlement: Settlement) -> Dict[str, Any]:
    return {
        "group_id": ObjectId(settlement.group_id),
        "payer_id": ObjectId(settlement.payer_id),
        "payee_id": ObjectId(settlement.payee_id),
        "amount": to_decimal128(settlement.amount),
        "created_at": settlement.created_at,
        "deleted_at": settlement.deleted_at
    }


def settlement_from_document(doc: Dict[str, Any]) -> Settlement:
    return Settlement(
        id=str(doc["_id"]),
        group_id=str(doc["group_id"]),
        payer_id=str(doc["payer_id"]),
        payee_id=str(doc["payee_id"]),
        amount=from_decimal128(doc["amount"]),
        created_at=doc["created_at"],
        deleted_at=doc.get("deleted_at")
    )


def group_from_documents(group_doc: Dict[str, Any], user_docs: List[Dict[str, Any]]) -> Group:
    """Build a Group keeping the member order stored on the group document."""
    names = {d["_id"]: d.get("name", "Unknown") for d in user_docs}
    members = []
    for member_id in group_doc.get("member_ids", []):
        if member_id not in names:
            logger.warning("Group %s lists unknown user %s", group_doc["_id"], member_id)
        members.append(User(id=str(member_id), name=names.get(member_id, "Unknown")))
    return Group(id=str(group_doc["_id"]), name=group_doc.get("name", ""), members=members)


# ==================== STORE ====================

class MongoLedgerStore(LedgerStore):
    """LedgerStore over the users, groups, expenses and settlements collections."""

    def __init__(self, db, snapshot_reads: bool = False):
        self.db = db
        self.snapshot_reads = snapshot_reads

    @contextmanager
    def _read_session(self):
        if not self.snapshot_reads:
            yield None
            return
        # snapshot sessions need a replica set or sharded cluster
        with self.db.client.start_session(snapshot=True) as session:
            yield session

    def _find_group(self, group_oid: ObjectId, session=None) -> Optional[Group]:
        group_doc = self.db.groups.find_one({"_id": group_oid}, session=session)
        if not group_doc:
            return None
        user_docs = list(self.db.users.find(
            {"_id": {"$in": group_doc.get("member_ids", [])}},
            {"name": 1},
            session=session
        ))
        return group_from_documents(group_doc, user_docs)

    def get_group(self, group_id: str) -> Optional[Group]:
        group_oid = to_object_id(group_id)
        if group_oid is None:
            return None
        return self._find_group(group_oid)

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        oids = [oid for oid in (to_object_id(uid) for uid in user_ids) if oid is not None]
        if not oids:
            return {}
        return {
            str(d["_id"]): User(id=str(d["_id"]), name=d.get("name", "Unknown"))
            for d in self.db.users.find({"_id": {"$in": oids}}, {"name": 1})
        }

    def load_group_log(self, group_id: str, include_deleted: bool = False) -> Optional[GroupLog]:
        group_oid = to_object_id(group_id)
        if group_oid is None:
            return None

        query = {"group_id": group_oid}
        if not include_deleted:
            query["deleted_at"] = None

        with self._read_session() as session:
            group = self._find_group(group_oid, session=session)
            if group is None:
                return None
            expenses = [
                expense_from_document(d)
                for d in self.db.expenses.find(query, session=session).sort("created_at", 1)
            ]
            settlements = [
                settlement_from_document(d)
                for d in self.db.settlements.find(query, session=session).sort("created_at", 1)
            ]

        return GroupLog(group=group, expenses=expenses, settlements=settlements)

    def insert_expense(self, expense: Expense) -> Expense:
        result = self.db.expenses.insert_one(expense_to_document(expense))
        expense.id = str(result.inserted_id)
        return expense

    def insert_settlement(self, settlement: Settlement) -> Settlement:
        result = self.db.settlements.insert_one(settlement_to_document(settlement))
        settlement.id = str(result.inserted_id)
        return settlement

    def _soft_delete(self, collection, group_id: str, record_id: str) -> bool:
        group_oid = to_object_id(group_id)
        record_oid = to_object_id(record_id)
        if group_oid is None or record_oid is None:
            return False
        result = collection.update_one(
            {"_id": record_oid, "group_id": group_oid, "deleted_at": None},
            {"$set": {"deleted_at": datetime.utcnow()}}
        )
        return result.modified_count == 1

    def soft_delete_expense(self, group_id: str, expense_id: str) -> bool:
        return self._soft_delete(self.db.expenses, group_id, expense_id)

    def soft_delete_settlement(self, group_id: str, settlement_id: str) -> bool:
        return self._soft_delete(self.db.settlements, group_id, settlement_id)
