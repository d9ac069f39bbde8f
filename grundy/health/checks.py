import time
from datetime import datetime, timezone

from flask import current_app

from grundy.extensions import checkout_service


def _check_storage():
    start = time.time()
    try:
        count = checkout_service().repository.count()
    except Exception as e:
        return {"status": "error", "error": str(e)}
    latency = round((time.time() - start) * 1000, 2)
    return {"status": "ok", "orders": count, "latency_ms": latency}


def _check_gateway():
    if not current_app.config.get("PAYSTACK_SECRET_KEY"):
        return {"status": "error", "error": "PAYSTACK_SECRET_KEY not set"}
    return {"status": "ok", "base_url": current_app.config.get("PAYSTACK_BASE_URL")}


def _check_fulfillment():
    if not current_app.config.get("FULFILLMENT_ENABLED"):
        return {"status": "skipped", "reason": "FULFILLMENT_ENABLED is off"}
    return {"status": "ok"}


def run_health_checks():
    """
    Liveness checks. None of them call out to the gateway or the broker.
    """
    checks = {
        "storage": _check_storage(),
        "gateway": _check_gateway(),
        "fulfillment": _check_fulfillment(),
    }

    overall = "ok"
    for c in checks.values():
        if c["status"] == "error":
            overall = "degraded"

    return {
        "status": overall,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
    }
