import pytest
from unittest.mock import Mock
from faker import Faker

from grundy import create_app
from grundy.services.fulfillment import FulfillmentTrigger
from grundy.services.paystack_service import PaystackClient

# Initialize Faker for generating test data
fake = Faker()

AUTHORIZATION_URL = "https://checkout.paystack.com/0peioxfhpn"


# Custom pytest marks for organizing tests
def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "payment: mark test as payment-related"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as exercising the HTTP surface"
    )


@pytest.fixture
def gateway():
    """Stand-in for the Paystack client; every test decides what it answers."""
    gateway = Mock(spec=PaystackClient)
    gateway.initialize_transaction.return_value = {
        "authorization_url": AUTHORIZATION_URL,
        "access_code": "0peioxfhpn",
        "reference": "ignored-by-service",
    }
    gateway.charge_authorization.return_value = {"status": "success", "amount": 17000}
    gateway.verify_webhook_signature.return_value = True
    return gateway


@pytest.fixture
def dispatched():
    """Fulfillment hand-offs recorded by the fake dispatcher."""
    return []


@pytest.fixture
def fulfillment(dispatched):
    return FulfillmentTrigger(dispatch=lambda *args: dispatched.append(args))


@pytest.fixture
def app(gateway, fulfillment):
    """Create application for testing with a fake gateway and dispatcher"""
    app = create_app("testing", gateway=gateway, fulfillment=fulfillment)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return app.extensions["grundy"]


@pytest.fixture
def customer_info():
    """Fixture for checkout customer data with Faker"""
    return {
        "name": fake.name(),
        "email": fake.email(),
        "phone": fake.phone_number(),
        "address": fake.address(),
    }


@pytest.fixture
def sample_cart():
    """25 x 2 + 120 x 1 = 170"""
    return [
        {"id": "1", "name": "Jollof Rice", "price": 25, "quantity": 2},
        {"id": "2", "name": "Suya Platter", "price": 120, "quantity": 1},
    ]


@pytest.fixture
def verification():
    """Factory for Paystack /transaction/verify data payloads."""

    def _verification(reference, amount=17000, status="success", **extra):
        data = {
            "status": status,
            "reference": reference,
            "amount": amount,
            "created_at": "2024-05-01T10:00:00.000Z",
            "customer": {
                "first_name": "Ada",
                "last_name": "Obi",
                "email": "ada@example.com",
            },
            "metadata": {},
        }
        data.update(extra)
        return data

    return _verification


@pytest.fixture
def place_order(service, sample_cart, customer_info):
    """Run checkout and return the created order's reference."""

    def _place_order(method="standard", cart=None):
        result = service.checkout(cart or sample_cart, customer_info, method)
        return result.reference

    return _place_order


@pytest.fixture
def authorization_url():
    return AUTHORIZATION_URL
