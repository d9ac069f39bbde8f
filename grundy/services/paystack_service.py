import hashlib
import hmac
import logging
from urllib.parse import quote

import requests

from grundy.errors import ConfigurationError, GatewayError

PAYSTACK_BASE_URL = "https://api.paystack.co"

logger = logging.getLogger(__name__)


class PaystackClient:
    """
    Thin adapter over the Paystack REST API.

    Amounts passed in and out are in minor units (kobo). Every call is a
    single synchronous request with a bounded timeout and no retry; any
    transport failure, non-2xx response or ``status: false`` body raises
    GatewayError.
    """

    def __init__(self, secret_key, base_url=PAYSTACK_BASE_URL, timeout=30,
                 session=None, metrics=None):
        if not secret_key:
            raise ConfigurationError("PAYSTACK_SECRET_KEY is not configured")

        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.metrics = metrics

    @classmethod
    def from_config(cls, config, metrics=None):
        return cls(
            secret_key=config.get("PAYSTACK_SECRET_KEY"),
            base_url=config.get("PAYSTACK_BASE_URL", PAYSTACK_BASE_URL),
            timeout=config.get("PAYSTACK_TIMEOUT", 30),
            metrics=metrics,
        )

    # ---------- API calls ----------
    def initialize_transaction(self, amount, email, reference, callback_url,
                               metadata=None, channels=None):
        payload = {
            "amount": int(amount),
            "email": email,
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata or {},
        }
        if channels:
            payload["channels"] = list(channels)

        data = self._request("initialize", "POST", "/transaction/initialize", payload)

        if not data.get("authorization_url"):
            self._record("initialize", "error")
            raise GatewayError("Payment gateway did not return an authorization URL")
        return data

    def verify_transaction(self, reference):
        return self._request(
            "verify", "GET", f"/transaction/verify/{quote(str(reference), safe='')}"
        )

    def charge_authorization(self, authorization_code, email, amount):
        payload = {
            "authorization_code": authorization_code,
            "email": email,
            "amount": int(amount),
        }
        return self._request(
            "charge_authorization", "POST", "/transaction/charge_authorization", payload
        )

    # ---------- Webhooks ----------
    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        if not signature:
            return False
        computed = hmac.new(
            self.secret_key.encode(),
            payload,
            hashlib.sha512
        ).hexdigest()
        return hmac.compare_digest(computed, signature)

    # ---------- Internals ----------
    def _headers(self):
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _record(self, operation, outcome):
        if self.metrics is not None:
            self.metrics.record_gateway_call(operation, outcome)

    def _request(self, operation, method, endpoint, payload=None):
        url = f"{self.base_url}{endpoint}"
        logger.debug("Paystack request", extra={"operation": operation, "url": url})

        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self._record(operation, "error")
            logger.error(
                "Paystack request failed",
                extra={"operation": operation, "error": str(exc)},
            )
            raise GatewayError(f"Payment gateway unreachable: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.ok:
            self._record(operation, "error")
            message = body.get("message") or response.reason or "request failed"
            logger.error(
                "Paystack returned an error",
                extra={"operation": operation, "http_status": response.status_code,
                       "upstream_message": message},
            )
            raise GatewayError(
                f"Payment gateway returned HTTP {response.status_code}: {message}",
                upstream_status=response.status_code,
            )

        data = body.get("data")
        if body.get("status") is not True or not isinstance(data, dict):
            self._record(operation, "error")
            raise GatewayError(
                body.get("message") or "Payment gateway rejected the request",
                upstream_status=response.status_code,
            )

        self._record(operation, "ok")
        return data
