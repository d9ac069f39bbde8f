import re
import uuid

from flask import g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"

# Ids end up in every log line; anything else is replaced
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def get_request_id(default="-"):
    if not has_request_context():
        return default
    return g.get("request_id", default)


def _incoming_request_id():
    candidate = request.headers.get(REQUEST_ID_HEADER, "")
    return candidate if _VALID_REQUEST_ID.match(candidate) else None


def init_request_id_middleware(app):
    """
    Tag every request with a correlation id and echo it in the response.

    A well-formed X-Request-ID from the caller (a proxy or the storefront)
    is kept; otherwise a uuid4 is minted.
    """

    @app.before_request
    def bind_request_id():
        g.request_id = _incoming_request_id() or uuid.uuid4().hex

    @app.after_request
    def echo_request_id(response):
        request_id = get_request_id(default=None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response
