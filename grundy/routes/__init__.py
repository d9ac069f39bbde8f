from .checkout import checkout_bp
from .orders import orders_bp
from .webhooks import webhooks_bp


def register_blueprints(app):
    app.register_blueprint(checkout_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(webhooks_bp)
