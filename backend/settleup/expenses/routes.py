"""Expense routes: split preview, recording and deletion."""
from flask import Blueprint, jsonify

from settleup.core import RecordService
from settleup.core.money import format_amount
from settleup.extensions import get_store
from settleup.utils.validators import (
    as_amount_map, as_id_list, as_text, get_payload, require_keys,
)

expenses_bp = Blueprint("expenses", __name__)


def _splits_payload(splits):
    return [{"user_id": s.user_id, "amount": format_amount(s.amount)} for s in splits]


@expenses_bp.route("/expenses/splits", methods=["POST"])
def compute_splits():
    """
    Preview how an expense would be split. Nothing is stored.

    Request body:
    {
        "group_id": "...",
        "total_amount": "100.00",
        "policy": "EQUAL|EXACT",
        "participant_ids": ["...", "..."],
        "exact_amounts": {"<user_id>": "40.00"}  // EXACT only, rejected with EQUAL
    }
    """
    data = get_payload()
    require_keys(data, "group_id", "total_amount")

    splits = RecordService(get_store()).preview_splits(
        group_id=str(data["group_id"]),
        total_amount=data["total_amount"],
        policy=data.get("policy", "EQUAL"),
        participant_ids=as_id_list(data.get("participant_ids"), "participant_ids"),
        exact_amounts=as_amount_map(data.get("exact_amounts"), "exact_amounts")
    )
    return jsonify({"splits": _splits_payload(splits)})


@expenses_bp.route("/expenses", methods=["POST"])
def add_expense():
    """
    Record an expense and its splits.

    Request body:
    {
        "group_id": "...",
        "payer_id": "...",
        "total_amount": "90.00",
        "policy": "EQUAL|EXACT",  // default: EQUAL
        "participant_ids": ["..."],
        "exact_amounts": {...},  // EXACT only
        "description": "Dinner"
    }
    """
    data = get_payload()
    require_keys(data, "group_id", "payer_id", "total_amount")

    expense = RecordService(get_store()).record_expense(
        group_id=str(data["group_id"]),
        payer_id=str(data["payer_id"]),
        total_amount=data["total_amount"],
        policy=data.get("policy", "EQUAL"),
        participant_ids=as_id_list(data.get("participant_ids"), "participant_ids"),
        exact_amounts=as_amount_map(data.get("exact_amounts"), "exact_amounts"),
        description=as_text(data.get("description"), "description")
    )

    return jsonify({
        "id": expense.id,
        "group_id": expense.group_id,
        "payer_id": expense.payer_id,
        "amount": format_amount(expense.amount),
        "policy": expense.policy.value,
        "description": expense.description,
        "splits": _splits_payload(expense.splits),
        "created_at": expense.created_at.isoformat()
    }), 201


@expenses_bp.route("/groups/<group_id>/expenses/<expense_id>", methods=["DELETE"])
def delete_expense(group_id, expense_id):
    """Soft-delete an expense; balances drop its contribution on the next read."""
    RecordService(get_store()).delete_expense(group_id, expense_id)
    return jsonify({"message": "Expense deleted", "expense_id": expense_id})
