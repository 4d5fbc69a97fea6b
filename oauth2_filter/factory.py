"""Provides an app factory for the OAuth2 filter service."""

from typing import Any, Mapping, Optional

from flask import Flask, Response, jsonify
from werkzeug.exceptions import BadGateway, BadRequest, GatewayTimeout, \
    HTTPException, NotFound

from . import routes
from .domain import FilterConfig
from .logging import setup_logger
from .middleware import OAuth2FilterMiddleware


def jsonify_exception(error: HTTPException) -> Response:
    exc_resp = error.get_response()
    response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Initialize an instance of the OAuth2 filter service.

    Parameters
    ----------
    config : mapping
        Overrides for the values loaded from ``config.py``.

    """
    app = Flask('oauth2_filter')
    app.config.from_pyfile('config.py')
    if config:
        app.config.update(config)
    setup_logger()

    app.register_blueprint(routes.blueprint)
    app.errorhandler(NotFound)(jsonify_exception)
    app.errorhandler(BadRequest)(jsonify_exception)
    app.errorhandler(BadGateway)(jsonify_exception)
    app.errorhandler(GatewayTimeout)(jsonify_exception)

    app.wsgi_app = OAuth2FilterMiddleware(  # type: ignore
        app.wsgi_app, FilterConfig.from_mapping(app.config)
    )
    return app
