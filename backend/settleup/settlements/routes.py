"""Settlement routes for recording who paid whom back."""
from flask import Blueprint, jsonify

from settleup.core import RecordService
from settleup.core.money import format_amount
from settleup.extensions import get_store
from settleup.utils.validators import get_payload, require_keys

settlements_bp = Blueprint("settlements", __name__)


@settlements_bp.route("/settlements", methods=["POST"])
def record_settlement():
    """
    Record a settlement payment between two members.

    Request body:
    {
        "group_id": "...",
        "payer_id": "...",
        "payee_id": "...",
        "amount": "30.00"
    }
    """
    data = get_payload()
    require_keys(data, "group_id", "payer_id", "payee_id", "amount")

    settlement = RecordService(get_store()).record_settlement(
        group_id=str(data["group_id"]),
        payer_id=str(data["payer_id"]),
        payee_id=str(data["payee_id"]),
        amount=data["amount"]
    )

    return jsonify({
        "id": settlement.id,
        "group_id": settlement.group_id,
        "payer_id": settlement.payer_id,
        "payee_id": settlement.payee_id,
        "amount": format_amount(settlement.amount),
        "created_at": settlement.created_at.isoformat()
    }), 201


@settlements_bp.route("/groups/<group_id>/settlements/<settlement_id>", methods=["DELETE"])
def delete_settlement(group_id, settlement_id):
    """Soft-delete a settlement."""
    RecordService(get_store()).delete_settlement(group_id, settlement_id)
    return jsonify({"message": "Settlement deleted", "settlement_id": settlement_id})
