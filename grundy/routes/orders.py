from flask import Blueprint, jsonify, request

from grundy.extensions import checkout_service

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("/delivery/confirm", methods=["POST"])
def confirm_delivery():
    body = request.get_json(silent=True) or {}
    order_id = body.get("orderId") if isinstance(body, dict) else None

    result = checkout_service().confirm_delivery(order_id)

    response = {"success": result.completed, "order": result.order.to_dict()}
    if not result.completed:
        response["message"] = "Charge on delivery was not successful"
        response["status"] = result.gateway_status
    return jsonify(response)


@orders_bp.route("/order/<order_id>", methods=["GET"])
def get_order(order_id):
    order = checkout_service().get_order(order_id)
    return jsonify({"success": True, "order": order.to_dict()})


# TODO: put behind admin authentication before exposing publicly
@orders_bp.route("/orders", methods=["GET"])
def list_orders():
    orders = checkout_service().list_orders()
    return jsonify({"success": True, "orders": [order.to_dict() for order in orders]})
