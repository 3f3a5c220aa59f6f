"""Flask Blueprint exposing the weather proxy routes."""

import logging

from flask import Blueprint, jsonify, request

from . import proxy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "session": None,
}

ROUTES = {
    "/weather": proxy.weather,
    "/day": proxy.day,
    "/geocode": proxy.geocode,
    "/reverse-geocode": proxy.reverse_geocode,
    "/air": proxy.air,
    "/alerts": proxy.alerts,
    "/radar/frames": proxy.radar_frames,
}


def create_blueprint(name="wxdash", config=None):
    """Create and return the proxy Blueprint.

    Args:
        name: Blueprint name (used for url_for namespacing).
        config: Optional dict overriding DEFAULT_CONFIG keys.
            - session (requests.Session): Session used for upstream calls;
              a fresh one per request when None.

    Returns:
        A Flask Blueprint with one GET route per proxy handler.
    """
    cfg = {**DEFAULT_CONFIG, **(config or {})}
    bp = Blueprint(name, __name__)

    def make_view(handler):
        def view():
            body, status = handler(request.args, session=cfg["session"])
            if status >= 400:
                logger.info("[Proxy] %s -> %s", request.full_path, status)
            response = jsonify(body)
            response.status_code = status
            response.headers["Cache-Control"] = "no-store"
            return response

        view.__name__ = handler.__name__
        return view

    for rule, handler in ROUTES.items():
        bp.add_url_rule(rule, view_func=make_view(handler), methods=["GET"])

    return bp
