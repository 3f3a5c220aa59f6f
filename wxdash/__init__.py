"""Weather dashboard: Flask proxy application and client core."""

from flask import Flask
from .blueprint import create_blueprint


def create_app(config=None):
    app = Flask(__name__)
    bp_config = {**(config or {})}
    url_prefix = bp_config.pop("url_prefix", "/")
    app.register_blueprint(create_blueprint(config=bp_config), url_prefix=url_prefix)
    return app
