from flask import current_app
from flask_cors import CORS

cors = CORS()

EXTENSION_KEY = "grundy"


def checkout_service():
    """The CheckoutService owned by the current app."""
    return current_app.extensions[EXTENSION_KEY]
