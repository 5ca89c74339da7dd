import copy
import itertools
from datetime import datetime
from decimal import Decimal

import pytest

from settleup import create_app
from settleup.config import TestConfig
from settleup.core import BalanceService, RecordService
from settleup.core.models import Group, GroupLog, User
from settleup.store import LedgerStore


class InMemoryLedgerStore(LedgerStore):
    """Dict-backed store. Every read hands out copies, like a snapshot."""

    def __init__(self):
        self.groups = {}
        self.users = {}
        self.expenses = {}
        self.settlements = {}
        self._ids = itertools.count(1)

    def add_user(self, user):
        self.users[user.id] = user
        return user

    def add_group(self, group):
        for member in group.members:
            self.add_user(member)
        self.groups[group.id] = group
        return group

    def get_group(self, group_id):
        return copy.deepcopy(self.groups.get(group_id))

    def get_users(self, user_ids):
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}

    def load_group_log(self, group_id, include_deleted=False):
        group = self.groups.get(group_id)
        if group is None:
            return None
        expenses = [
            e for e in self.expenses.values()
            if e.group_id == group_id and (include_deleted or not e.is_deleted)
        ]
        settlements = [
            s for s in self.settlements.values()
            if s.group_id == group_id and (include_deleted or not s.is_deleted)
        ]
        return copy.deepcopy(GroupLog(group=group, expenses=expenses, settlements=settlements))

    def insert_expense(self, expense):
        expense = copy.deepcopy(expense)
        if expense.id is None:
            expense.id = f"e{next(self._ids)}"
        self.expenses[expense.id] = expense
        return copy.deepcopy(expense)

    def insert_settlement(self, settlement):
        settlement = copy.deepcopy(settlement)
        if settlement.id is None:
            settlement.id = f"s{next(self._ids)}"
        self.settlements[settlement.id] = settlement
        return copy.deepcopy(settlement)

    def _soft_delete(self, records, group_id, record_id):
        record = records.get(record_id)
        if record is None or record.group_id != group_id or record.is_deleted:
            return False
        record.deleted_at = datetime.utcnow()
        return True

    def soft_delete_expense(self, group_id, expense_id):
        return self._soft_delete(self.expenses, group_id, expense_id)

    def soft_delete_settlement(self, group_id, settlement_id):
        return self._soft_delete(self.settlements, group_id, settlement_id)


ALICE = User(id="alice", name="Alice")
BOB = User(id="bob", name="Bob")
CAROL = User(id="carol", name="Carol")
# exists, but is not in the trip group
DAVE = User(id="dave", name="Dave")


def D(value):
    return Decimal(value)


@pytest.fixture
def trip_group():
    return Group(id="g1", name="Trip", members=[ALICE, BOB, CAROL])


@pytest.fixture
def store(trip_group):
    store = InMemoryLedgerStore()
    store.add_group(trip_group)
    store.add_user(DAVE)
    return store


@pytest.fixture
def records(store):
    return RecordService(store)


@pytest.fixture
def balances(store):
    return BalanceService(store)


@pytest.fixture
def app(store):
    return create_app(TestConfig, store=store)


@pytest.fixture
def client(app):
    return app.test_client()
