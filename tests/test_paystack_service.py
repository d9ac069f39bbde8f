import hashlib
import hmac
import json
from unittest.mock import MagicMock, Mock

import pytest
import requests

from grundy.errors import ConfigurationError, GatewayError
from grundy.observability.metrics import MetricsManager
from grundy.services.paystack_service import PaystackClient

SECRET = "sk_test_secret"


def make_response(body, status_code=200):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Bad Request"
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def paystack(session):
    return PaystackClient(SECRET, base_url="https://api.paystack.test/", timeout=5, session=session)


def sent(session):
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


def test_missing_secret_key_fails_fast():
    with pytest.raises(ConfigurationError):
        PaystackClient("")


def test_from_config_reads_flask_settings():
    client = PaystackClient.from_config({
        "PAYSTACK_SECRET_KEY": SECRET,
        "PAYSTACK_BASE_URL": "https://api.paystack.test",
        "PAYSTACK_TIMEOUT": 7,
    })

    assert client.base_url == "https://api.paystack.test"
    assert client.timeout == 7


@pytest.mark.payment
def test_initialize_transaction_sends_minor_units_and_card_channel(paystack, session):
    session.request.return_value = make_response({
        "status": True,
        "message": "Authorization URL created",
        "data": {"authorization_url": "https://checkout.paystack.com/x", "access_code": "x",
                 "reference": "order_1"},
    })

    data = paystack.initialize_transaction(
        amount=17000,
        email="ada@example.com",
        reference="order_1",
        callback_url="https://shop.test/callback",
        metadata={"orderId": "order_1"},
        channels=["card"],
    )

    method, url, kwargs = sent(session)
    assert method == "POST"
    assert url == "https://api.paystack.test/transaction/initialize"
    assert kwargs["json"] == {
        "amount": 17000,
        "email": "ada@example.com",
        "reference": "order_1",
        "callback_url": "https://shop.test/callback",
        "metadata": {"orderId": "order_1"},
        "channels": ["card"],
    }
    assert kwargs["headers"]["Authorization"] == f"Bearer {SECRET}"
    assert kwargs["timeout"] == 5
    assert data["authorization_url"] == "https://checkout.paystack.com/x"


def test_initialize_without_channels_leaves_them_out(paystack, session):
    session.request.return_value = make_response({
        "status": True, "data": {"authorization_url": "https://checkout.paystack.com/x"},
    })

    paystack.initialize_transaction(17000, "ada@example.com", "order_1", "https://shop.test/callback")

    assert "channels" not in sent(session)[2]["json"]


def test_initialize_without_authorization_url_is_a_gateway_error(paystack, session):
    session.request.return_value = make_response({"status": True, "data": {}})

    with pytest.raises(GatewayError, match="authorization URL"):
        paystack.initialize_transaction(17000, "ada@example.com", "order_1", "https://shop.test/cb")


def test_verify_transaction_quotes_reference(paystack, session):
    session.request.return_value = make_response({
        "status": True, "data": {"status": "success", "amount": 17000},
    })

    data = paystack.verify_transaction("order/1")

    method, url, _ = sent(session)
    assert method == "GET"
    assert url == "https://api.paystack.test/transaction/verify/order%2F1"
    assert data["status"] == "success"


def test_charge_authorization_payload(paystack, session):
    session.request.return_value = make_response({
        "status": True, "data": {"status": "success", "amount": 17000},
    })

    paystack.charge_authorization("AUTH_abc", "ada@example.com", 17000)

    method, url, kwargs = sent(session)
    assert url.endswith("/transaction/charge_authorization")
    assert kwargs["json"] == {
        "authorization_code": "AUTH_abc", "email": "ada@example.com", "amount": 17000,
    }


def test_network_failure_becomes_gateway_error(paystack, session):
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(GatewayError, match="unreachable"):
        paystack.verify_transaction("order_1")


def test_non_2xx_response_carries_upstream_detail(paystack, session):
    session.request.return_value = make_response(
        {"status": False, "message": "Invalid key"}, status_code=401
    )

    with pytest.raises(GatewayError) as exc_info:
        paystack.verify_transaction("order_1")

    assert exc_info.value.upstream_status == 401
    assert "Invalid key" in exc_info.value.message


def test_non_json_error_body(paystack, session):
    session.request.return_value = make_response(ValueError("no json"), status_code=502)

    with pytest.raises(GatewayError, match="HTTP 502"):
        paystack.verify_transaction("order_1")


def test_status_false_body_is_a_gateway_error(paystack, session):
    session.request.return_value = make_response({"status": False, "message": "Transaction not found"})

    with pytest.raises(GatewayError, match="Transaction not found"):
        paystack.verify_transaction("order_1")


def test_gateway_calls_are_counted():
    session = MagicMock(spec=requests.Session)
    metrics = Mock(spec=MetricsManager)
    client = PaystackClient(SECRET, session=session, metrics=metrics)
    session.request.return_value = make_response({"status": True, "data": {"status": "success"}})

    client.verify_transaction("order_1")

    metrics.record_gateway_call.assert_called_once_with("verify", "ok")


def test_webhook_signature_verification(paystack):
    payload = json.dumps({"event": "charge.success"}).encode()
    signature = hmac.new(SECRET.encode(), payload, hashlib.sha512).hexdigest()

    assert paystack.verify_webhook_signature(payload, signature) is True
    assert paystack.verify_webhook_signature(payload, "0" * 128) is False
    assert paystack.verify_webhook_signature(payload, None) is False
