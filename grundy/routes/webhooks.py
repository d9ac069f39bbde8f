import logging

from flask import Blueprint, abort, jsonify, request

from grundy.extensions import checkout_service

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("paystack_webhook", __name__, url_prefix="/webhooks/paystack")


@webhooks_bp.route("", methods=["POST"])
def paystack_webhook():
    service = checkout_service()
    signature = request.headers.get("x-paystack-signature")

    if not service.gateway.verify_webhook_signature(request.get_data(), signature):
        logger.warning("Rejected webhook with bad signature")
        abort(401)

    outcome = service.handle_gateway_event(request.get_json(silent=True))
    return jsonify({"status": outcome}), 200
