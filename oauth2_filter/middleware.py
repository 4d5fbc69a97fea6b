"""WSGI middleware that puts the filter in front of an application."""

from typing import Callable, Iterable, List, Tuple

from werkzeug.http import dump_cookie
from werkzeug.utils import redirect
from werkzeug.wrappers import Response

from .context import RequestContext
from .domain import Continue, Cookie, FilterConfig, Redirect, Result
from .filter import authenticate
from .logging import getLogger
from .services import provider

logger = getLogger(__name__)

Headers = List[Tuple[str, str]]


def _environ_key(header: str) -> str:
    return 'HTTP_' + header.upper().replace('-', '_')


class OAuth2FilterMiddleware(object):
    """
    Enforce OAuth2 login before requests reach ``wsgi_app``.

    Requests that pass carry the identity headers (raw access token,
    ``X-Userinfo`` and ``X-Oauth-<key>``) in the WSGI environ, exactly as if
    the client had sent them. Any such headers that the client did send are
    dropped first. Requests that do not pass get a redirect or an error
    response, and ``wsgi_app`` is never called.
    """

    def __init__(self, wsgi_app: Callable, config: FilterConfig) -> None:
        """Wrap ``wsgi_app``."""
        self.wsgi_app = wsgi_app
        self.config = config

    def __call__(self, environ: dict,
                 start_response: Callable) -> Iterable[bytes]:
        """Authenticate the request, then forward or answer it."""
        context = RequestContext.from_environ(environ)
        with provider.get_session(self.config) as idp:
            result = authenticate(context, self.config, idp)

        if not isinstance(result, Continue):
            return self.render(result)(environ, start_response)

        self._strip_identity_headers(environ)
        for name, value in result.upstream_headers.items():
            environ[_environ_key(name)] = value

        extra: Headers = list(result.response_headers.items())
        extra += [('Set-Cookie', self.dump(cookie))
                  for cookie in result.cookies]

        def _start_response(status: str, headers: Headers,
                            exc_info=None):     # type: ignore
            return start_response(status, list(headers) + extra, exc_info)

        return self.wsgi_app(environ, _start_response)

    def _strip_identity_headers(self, environ: dict) -> None:
        prefix = _environ_key(self.config.user_header_prefix)
        names = {_environ_key(self.config.upstream_token_header),
                 _environ_key(self.config.user_info_header)}
        for key in list(environ):
            if key in names or key.startswith(prefix):
                logger.debug('Dropping client-supplied %s', key)
                del environ[key]

    def dump(self, cookie: Cookie) -> str:
        """Serialize a cookie as a ``Set-Cookie`` header value."""
        return dump_cookie(cookie.name, cookie.value, max_age=cookie.max_age,
                           path=cookie.path, httponly=cookie.http_only,
                           secure=self.config.cookie_secure,
                           samesite=self.config.cookie_samesite)

    def render(self, result: Result) -> Response:
        """Build the response for a request that does not pass."""
        if isinstance(result, Redirect):
            response = redirect(result.location, code=302)
        else:
            response = Response(result.body, status=result.status,
                                mimetype='text/plain')
        for cookie in result.cookies:
            response.headers.add('Set-Cookie', self.dump(cookie))
        return response
