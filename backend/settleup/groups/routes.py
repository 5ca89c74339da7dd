"""Group read model: balances, suggested payments and activity feed."""
from flask import Blueprint, request, jsonify

from settleup.core import BalanceService
from settleup.extensions import get_store

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/<group_id>/summary", methods=["GET"])
def get_group_summary(group_id):
    """
    Balances and simplified debts for a group.

    Returns:
    {
        "group_id": "...",
        "group_name": "Trip",
        "balances": [
            {"user_id": "...", "name": "alice", "amount": "30.00"},
            {"user_id": "...", "name": "bob", "amount": "-30.00"}
        ],
        "simplified_debts": [
            {"from_user_id": "...", "from_user_name": "bob",
             "to_user_id": "...", "to_user_name": "alice", "amount": "30.00"}
        ],
        "is_settled": false
    }

    Positive amount = is owed money
    Negative amount = owes money
    """
    summary = BalanceService(get_store()).get_group_summary(group_id)
    return jsonify(summary.to_dict())


@groups_bp.route("/<group_id>/balances/<user_id>", methods=["GET"])
def get_user_balance(group_id, user_id):
    """One member's balance and the payments that involve them."""
    return jsonify(BalanceService(get_store()).get_user_balance(group_id, user_id))


@groups_bp.route("/<group_id>/history", methods=["GET"])
def get_group_history(group_id):
    """
    Expenses and settlements, newest first.

    ?include_deleted=true also lists soft-deleted records.
    """
    include_deleted = request.args.get("include_deleted", "false").lower() == "true"
    history = BalanceService(get_store()).get_group_history(group_id, include_deleted=include_deleted)
    return jsonify({"group_id": group_id, "history": history})
