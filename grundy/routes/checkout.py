from flask import Blueprint, jsonify, request

from grundy.errors import ValidationError
from grundy.extensions import checkout_service

checkout_bp = Blueprint("checkout", __name__)


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


@checkout_bp.route("/checkout", methods=["POST"])
def checkout():
    body = _json_body()

    result = checkout_service().checkout(
        cart=body.get("cart"),
        customer_info=body.get("customerInfo"),
        method=body.get("method"),
    )

    return jsonify({
        "success": True,
        "authorization_url": result.authorization_url,
        "reference": result.reference,
    })


@checkout_bp.route("/callback", methods=["GET"])
def payment_callback():
    reference = request.args.get("reference") or request.args.get("trxref")

    result = checkout_service().verify(reference)

    return jsonify({
        "success": result.success,
        "status": result.status,
        "reference": result.reference,
        "order": result.order.to_dict() if result.order else None,
        "message": _verification_message(result),
    })


def _verification_message(result):
    if result.success:
        return "Payment verified successfully"
    if result.status == "success" and result.order is not None:
        return "Payment received but not applied to the order"
    return "Payment verification failed"


@checkout_bp.route("/pod-callback", methods=["GET"])
def pod_callback():
    order = checkout_service().authorize(
        reference=request.args.get("reference"),
        authorization_code=request.args.get("auth_code"),
    )

    return jsonify({
        "success": True,
        "status": order.status.value,
        "reference": order.id,
        "order": order.to_dict(),
    })
