"""Per-request view of the inbound request and the filter's outbound writes."""

from typing import Dict, List, Mapping, Optional, Tuple

from werkzeug.datastructures import EnvironHeaders, ImmutableMultiDict
from werkzeug.wrappers import Request

from .domain import Continue, Cookie

DEFAULT_PORTS = {'http': '80', 'https': '443'}


def _first(value: Optional[str]) -> Optional[str]:
    """First entry of a comma-separated forwarded header."""
    if not value:
        return None
    return value.split(',')[0].strip() or None


def _split_host(host: str) -> Tuple[str, Optional[str]]:
    if host.startswith('['):    # IPv6 literal.
        address, _, rest = host.partition(']')
        port = rest[1:] if rest.startswith(':') else None
        return address + ']', port or None
    if host.count(':') == 1:
        name, port = host.split(':')
        return name, port or None
    return host, None


class RequestContext(object):
    """
    Explicit request context handed to every component of the filter.

    Gives read access to the inbound cookies, headers and query, and
    collects the upstream headers, client response headers and cookies that
    are written while the request is on its way to the upstream.
    """

    def __init__(self, request: Request) -> None:
        """Wrap a werkzeug request."""
        self.request = request
        self.upstream_headers: Dict[str, str] = {}
        self.response_headers: Dict[str, str] = {}
        self.cookies: List[Cookie] = []

    @classmethod
    def from_environ(cls, environ: dict) -> 'RequestContext':
        """Build a context from a WSGI environ."""
        return cls(Request(environ, shallow=True))

    @property
    def inbound_cookies(self) -> Mapping[str, str]:
        return self.request.cookies

    @property
    def headers(self) -> EnvironHeaders:
        return self.request.headers

    @property
    def args(self) -> ImmutableMultiDict:
        return self.request.args

    @property
    def request_uri(self) -> str:
        """Path and query string, as requested by the client."""
        path = self.request.script_root + self.request.path
        query = self.request.query_string.decode('latin-1')
        return f'{path}?{query}' if query else path

    @property
    def scheme(self) -> str:
        """Forwarded scheme if present, otherwise the request's own."""
        forwarded = _first(self.headers.get('X-Forwarded-Proto'))
        return (forwarded or self.request.scheme).lower()

    @property
    def host(self) -> str:
        """Forwarded host if present, otherwise the request's own."""
        forwarded = _first(self.headers.get('X-Forwarded-Host'))
        return _split_host(forwarded or self.request.host)[0]

    @property
    def port(self) -> str:
        """
        Forwarded port if present, otherwise the request's own.

        A forwarded host or scheme without a forwarded port implies the
        port of the forwarded host, or the default port of the scheme.
        """
        forwarded = _first(self.headers.get('X-Forwarded-Port'))
        if forwarded:
            return forwarded
        forwarded_host = _first(self.headers.get('X-Forwarded-Host'))
        if forwarded_host:
            _, port = _split_host(forwarded_host)
            if port:
                return port
        if forwarded_host or self.headers.get('X-Forwarded-Proto'):
            return DEFAULT_PORTS.get(self.scheme, '80')
        return str(self.request.environ.get('SERVER_PORT')
                   or DEFAULT_PORTS.get(self.scheme, '80'))

    def set_cookie(self, cookie: Cookie) -> None:
        """Set a cookie on the client response, replacing one of that name."""
        self.cookies = [c for c in self.cookies if c.name != cookie.name]
        self.cookies.append(cookie)

    def set_upstream_header(self, name: str, value: str) -> None:
        self.upstream_headers[name] = value

    def set_response_header(self, name: str, value: str) -> None:
        self.response_headers[name] = value

    def proceed(self) -> Continue:
        """Let the request through with everything written so far."""
        return Continue(dict(self.upstream_headers),
                        dict(self.response_headers),
                        list(self.cookies))
