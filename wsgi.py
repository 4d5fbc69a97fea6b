"""Web Server Gateway Interface entry-point."""

import os

from oauth2_filter.factory import create_app

__flask_app__ = None


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    for key, value in environ.items():
        # Only plain strings: uWSGI also passes in file objects and such.
        if isinstance(value, str):
            os.environ[key] = value

    global __flask_app__
    if __flask_app__ is None:
        __flask_app__ = create_app()
    return __flask_app__(environ, start_response)
