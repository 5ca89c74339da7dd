"""Service tests over the in-memory store: write side, summary, history."""
import random
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from settleup.core import BalanceService, RecordService
from settleup.core.errors import (
    ExpenseNotFoundError, GroupNotFoundError, InvalidAmountError, LedgerConsistencyError,
    NotAGroupMemberError, SelfSettlementError, SettlementNotFoundError, UserNotFoundError,
)
from settleup.core.models import Expense, Group, Settlement, Split, User
from settleup.utils.enums import SplitPolicy

from conftest import InMemoryLedgerStore


def test_end_to_end_scenario(records, balances):
    records.record_expense("g1", "alice", "90.00", "EQUAL", ["alice", "bob", "carol"])

    summary = balances.get_group_summary("g1")
    assert summary.balances == {
        "alice": Decimal("60.00"),
        "bob": Decimal("-30.00"),
        "carol": Decimal("-30.00"),
    }

    records.record_settlement("g1", "bob", "alice", "30.00")

    payload = balances.get_group_summary("g1").to_dict()
    assert payload["balances"] == [
        {"user_id": "alice", "name": "Alice", "amount": "30.00"},
        {"user_id": "bob", "name": "Bob", "amount": "0.00"},
        {"user_id": "carol", "name": "Carol", "amount": "-30.00"},
    ]
    assert payload["simplified_debts"] == [{
        "from_user_id": "carol",
        "from_user_name": "Carol",
        "to_user_id": "alice",
        "to_user_name": "Alice",
        "amount": "30.00",
    }]
    assert payload["is_settled"] is False


def test_group_becomes_settled_and_unsettled_again(records, balances):
    records.record_expense("g1", "alice", "90.00", "EQUAL", ["alice", "bob", "carol"])
    records.record_settlement("g1", "bob", "alice", "30.00")
    settlement = records.record_settlement("g1", "carol", "alice", "30.00")

    assert balances.get_group_summary("g1").is_settled

    records.delete_settlement("g1", settlement.id)
    assert not balances.get_group_summary("g1").is_settled


def test_deleting_an_expense_removes_its_contribution(records, balances):
    expense = records.record_expense("g1", "bob", "40.00", "EXACT", ["alice", "bob"],
                                     {"alice": "25.00", "bob": "15.00"})
    assert balances.get_group_summary("g1").balances["alice"] == Decimal("-25.00")

    records.delete_expense("g1", expense.id)

    summary = balances.get_group_summary("g1")
    assert all(v == 0 for v in summary.balances.values())
    assert summary.simplified_debts == []


def test_deleting_twice_is_not_found(records):
    expense = records.record_expense("g1", "alice", "10.00", "EQUAL", ["alice", "bob"])
    records.delete_expense("g1", expense.id)

    with pytest.raises(ExpenseNotFoundError):
        records.delete_expense("g1", expense.id)
    with pytest.raises(SettlementNotFoundError):
        records.delete_settlement("g1", "nope")


def test_unknown_group_is_not_found(balances, records):
    with pytest.raises(GroupNotFoundError):
        balances.get_group_summary("missing")
    with pytest.raises(GroupNotFoundError):
        records.record_settlement("missing", "alice", "bob", "1.00")


def test_settlement_validation(records):
    with pytest.raises(SelfSettlementError):
        records.record_settlement("g1", "bob", "bob", "10.00")
    with pytest.raises(NotAGroupMemberError) as exc:
        records.record_settlement("g1", "bob", "dave", "10.00")
    assert exc.value.field == "payee_id"
    with pytest.raises(InvalidAmountError):
        records.record_settlement("g1", "bob", "alice", "0")


def test_settlement_with_unknown_user_is_not_found(records, store):
    with pytest.raises(UserNotFoundError) as exc:
        records.record_settlement("g1", "bob", "mallory", "10.00")
    assert exc.value.field == "payee_id"
    assert exc.value.status_code == 404

    with pytest.raises(UserNotFoundError) as exc:
        records.record_settlement("g1", "mallory", "bob", "10.00")
    assert exc.value.field == "payer_id"
    assert store.settlements == {}


def test_expense_payer_must_be_a_member(records):
    with pytest.raises(NotAGroupMemberError) as exc:
        records.record_expense("g1", "dave", "10.00", "EQUAL", ["alice"])
    assert exc.value.field == "payer_id"


def test_expense_with_unknown_users_is_not_found(records, store):
    with pytest.raises(UserNotFoundError) as exc:
        records.record_expense("g1", "mallory", "10.00", "EQUAL", ["alice"])
    assert exc.value.field == "payer_id"

    with pytest.raises(UserNotFoundError) as exc:
        records.record_expense("g1", "alice", "10.00", "EQUAL", ["alice", "mallory"])
    assert exc.value.field == "participant_ids"
    assert exc.value.details == {"user_id": "mallory"}

    with pytest.raises(UserNotFoundError):
        records.record_expense("g1", "alice", "10.00", "EXACT", [], {"alice": 5, "mallory": 5})
    assert store.expenses == {}


def test_preview_splits_checks_membership(records, store):
    splits = records.preview_splits("g1", "10.00", "EQUAL", ["alice", "bob", "carol"])
    assert [s.amount for s in splits] == [Decimal("3.34"), Decimal("3.33"), Decimal("3.33")]
    assert store.expenses == {}

    with pytest.raises(NotAGroupMemberError):
        records.preview_splits("g1", "10.00", "EQUAL", ["alice", "dave"])
    with pytest.raises(UserNotFoundError):
        records.preview_splits("g1", "10.00", "EQUAL", ["alice", "mallory"])


def test_names_attach_by_id_even_when_names_collide():
    store = InMemoryLedgerStore()
    store.add_group(Group(id="g", name="Twins", members=[
        User(id="sam-1", name="Sam"), User(id="sam-2", name="Sam"), User(id="kim", name="Kim"),
    ]))
    RecordService(store).record_expense("g", "sam-1", "20.00", "EQUAL", ["sam-1", "sam-2"])

    debts = BalanceService(store).get_group_summary("g").to_dict()["simplified_debts"]

    assert debts == [{
        "from_user_id": "sam-2", "from_user_name": "Sam",
        "to_user_id": "sam-1", "to_user_name": "Sam",
        "amount": "10.00",
    }]


def test_corrupted_log_refuses_summary(store, balances):
    store.insert_expense(Expense(
        id=None, group_id="g1", payer_id="alice", amount=Decimal("10.00"),
        policy=SplitPolicy.EXACT, splits=[Split("bob", Decimal("9.00"))]
    ))

    with pytest.raises(LedgerConsistencyError):
        balances.get_group_summary("g1")


def test_user_balance_lists_only_their_debts(records, balances):
    records.record_expense("g1", "alice", "90.00", "EQUAL", ["alice", "bob", "carol"])

    bob = balances.get_user_balance("g1", "bob")

    assert bob["amount"] == "-30.00"
    assert bob["name"] == "Bob"
    assert [(d["from_user_id"], d["to_user_id"]) for d in bob["simplified_debts"]] == [("bob", "alice")]

    with pytest.raises(UserNotFoundError):
        balances.get_user_balance("g1", "mallory")


def test_history_is_newest_first_and_hides_deleted(store, balances):
    start = datetime(2024, 5, 1, 12, 0)
    store.insert_expense(Expense(
        id="e-old", group_id="g1", payer_id="alice", amount=Decimal("30.00"),
        policy=SplitPolicy.EQUAL, description="Taxi",
        splits=[Split("alice", Decimal("15.00")), Split("bob", Decimal("15.00"))],
        created_at=start
    ))
    store.insert_settlement(Settlement(
        id="s-mid", group_id="g1", payer_id="bob", payee_id="alice",
        amount=Decimal("15.00"), created_at=start + timedelta(hours=1)
    ))
    store.insert_expense(Expense(
        id="e-gone", group_id="g1", payer_id="carol", amount=Decimal("5.00"),
        policy=SplitPolicy.EQUAL, splits=[Split("carol", Decimal("5.00"))],
        created_at=start + timedelta(hours=2), deleted_at=start + timedelta(hours=3)
    ))

    history = balances.get_group_history("g1")
    assert [h["id"] for h in history] == ["s-mid", "e-old"]
    assert history[0]["description"] == "Bob paid Alice"
    assert history[1]["splits"] == [
        {"user_id": "alice", "user_name": "Alice", "amount": "15.00"},
        {"user_id": "bob", "user_name": "Bob", "amount": "15.00"},
    ]

    full = balances.get_group_history("g1", include_deleted=True)
    assert [h["id"] for h in full] == ["e-gone", "s-mid", "e-old"]
    assert full[0]["deleted"] is True


def test_conservation_and_simplification_over_random_activity(store, records, balances):
    rng = random.Random(42)
    members = ["alice", "bob", "carol"]
    expense_ids = []

    for step in range(60):
        action = rng.random()
        if action < 0.6:
            payer = rng.choice(members)
            participants = rng.sample(members, rng.randint(1, 3))
            amount = Decimal(rng.randint(1, 20000)) / 100
            if rng.random() < 0.5:
                expense = records.record_expense("g1", payer, amount, "EQUAL", participants)
            else:
                units = int(amount * 100)
                cuts = sorted(rng.randint(0, units) for _ in participants[1:])
                bounds = [0] + cuts + [units]
                shares = {
                    uid: Decimal(bounds[i + 1] - bounds[i]) / 100
                    for i, uid in enumerate(participants)
                }
                expense = records.record_expense("g1", payer, amount, "EXACT", participants, shares)
            expense_ids.append(expense.id)
        elif action < 0.85:
            payer, payee = rng.sample(members, 2)
            records.record_settlement("g1", payer, payee, Decimal(rng.randint(1, 5000)) / 100)
        elif expense_ids:
            records.delete_expense("g1", expense_ids.pop(rng.randrange(len(expense_ids))))

        summary = balances.get_group_summary("g1")
        assert sum(summary.balances.values()) == 0
        assert len(summary.simplified_debts) <= 2

    # paying the suggested debts settles the group
    for debt in balances.get_group_summary("g1").simplified_debts:
        records.record_settlement("g1", debt.from_user_id, debt.to_user_id, debt.amount)
    assert balances.get_group_summary("g1").is_settled
