"""Defines the core data structures for the OAuth2 filter."""

import base64
import binascii
import json
from collections import OrderedDict
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple, \
    Union

from .exceptions import ConfigurationError

REQUIRED = ['AUTHORIZE_URL', 'TOKEN_URL', 'USER_URL', 'CLIENT_ID',
            'CLIENT_SECRET']


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ('', '0', 'false', 'no', 'off')
    return bool(value)


def _as_keys(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(key.strip() for key in value.split(',') if key.strip())
    return tuple(value)


def _header_value(value: Any) -> str:
    """UTF-8 bytes carried in a latin-1 string, as PEP 3333 headers are."""
    return str(value).encode('utf-8').decode('latin-1')


class FilterConfig(NamedTuple):
    """Read-only configuration of the filter."""

    authorize_url: str
    token_url: str
    user_url: str
    client_id: str
    client_secret: str
    scope: str = ''
    path_prefix: str = ''

    hosted_domain: str = ''
    """If set, the ``email_key`` claim must end with this suffix."""

    email_key: str = 'email'
    """Claim that identifies the principal, e.g. ``email``."""

    user_keys: Tuple[str, ...] = ('username', 'email')
    """Claims propagated upstream as ``X-Oauth-<key>`` headers."""

    user_info_periodic_check: int = 60
    """Lifetime of the user-info cookie, in seconds."""

    session_lifetime: int = 3000
    redirect_back_lifetime: int = 120
    landing_path: str = '/'
    ssl_verify: bool = True
    timeout: float = 10.0

    token_cookie: str = 'EOAuthToken'
    user_info_cookie: str = 'EOAuthUserInfo'
    redirect_back_cookie: str = 'EOAuthRedirectBack'
    token_header: str = 'EOAuthToken'
    upstream_token_header: str = 'X-Access-Token'
    user_info_header: str = 'X-Userinfo'
    user_header_prefix: str = 'X-Oauth-'
    cookie_secure: bool = False
    cookie_samesite: Optional[str] = 'Lax'

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'FilterConfig':
        """
        Build a :class:`.FilterConfig` from upper-case configuration keys.

        Parameters
        ----------
        config : mapping
            Usually ``app.config`` of a Flask application.

        Raises
        ------
        :class:`.ConfigurationError`
            If an endpoint or the client credentials are missing.

        """
        missing = [key for key in REQUIRED if not config.get(key)]
        if missing:
            raise ConfigurationError(f'Missing configuration: {missing}')
        return cls(
            authorize_url=config['AUTHORIZE_URL'],
            token_url=config['TOKEN_URL'],
            user_url=config['USER_URL'],
            client_id=config['CLIENT_ID'],
            client_secret=config['CLIENT_SECRET'],
            scope=config.get('SCOPE') or '',
            path_prefix=(config.get('PATH_PREFIX') or '').rstrip('/'),
            hosted_domain=config.get('HOSTED_DOMAIN') or '',
            email_key=config.get('EMAIL_KEY') or 'email',
            user_keys=_as_keys(config.get('USER_KEYS', ())),
            user_info_periodic_check=int(
                config.get('USER_INFO_PERIODIC_CHECK', 60)
            ),
            session_lifetime=int(config.get('SESSION_LIFETIME', 3000)),
            redirect_back_lifetime=int(
                config.get('REDIRECT_BACK_LIFETIME', 120)
            ),
            landing_path=config.get('LANDING_PATH') or '/',
            ssl_verify=_as_bool(config.get('SSL_VERIFY', True)),
            timeout=float(config.get('PROVIDER_TIMEOUT', 10)),
            cookie_secure=_as_bool(config.get('COOKIE_SECURE', False)),
            cookie_samesite=config.get('COOKIE_SAMESITE') or None
        )


class UserInfo(OrderedDict):
    """
    Identity claims about the authenticated user.

    The mapping always holds ``id`` (the provider's ``sub``) and
    ``username`` (the principal identifier); configured keys follow in
    order.
    """

    @property
    def subject(self) -> Optional[str]:
        """The subject id assigned by the provider."""
        return self.get('id')

    @property
    def principal(self) -> Optional[str]:
        """The principal identifier, e.g. an email address."""
        return self.get('username')

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any],
                    config: FilterConfig) -> 'UserInfo':
        """Select the propagated claims from a user-info response."""
        info = cls()
        info['id'] = claims.get('sub')
        info['username'] = claims.get(config.email_key or 'email')
        for key in config.user_keys:
            # A configured key overrides the default ``id`` or ``username``.
            if key in claims:
                info[key] = claims[key]
        return info

    def headers(self, config: FilterConfig) -> Dict[str, str]:
        """
        Per-claim headers for the configured ``user_keys``.

        Values are UTF-8 encoded and carried as latin-1 strings, so that any
        claim can be put into a WSGI environ or an outbound request.
        """
        return {f'{config.user_header_prefix}{key}': _header_value(self[key])
                for key in config.user_keys
                if self.get(key) is not None}

    def encode(self) -> str:
        """Encode as base64 JSON, for the cookie and upstream header."""
        return base64.b64encode(json.dumps(self).encode('utf-8')) \
            .decode('ascii')

    @classmethod
    def decode(cls, encoded: str) -> Optional['UserInfo']:
        """Decode a value produced by :meth:`.encode`, or None if garbled."""
        try:
            data = json.loads(base64.b64decode(encoded, validate=True))
        except (binascii.Error, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        return cls(data)


class Cookie(NamedTuple):
    """A cookie to set on the client response."""

    name: str
    value: str
    max_age: int
    http_only: bool = True
    path: str = '/'


class Continue(NamedTuple):
    """Let the request through to the upstream."""

    upstream_headers: Dict[str, str]
    response_headers: Dict[str, str]
    cookies: List[Cookie]


class Respond(NamedTuple):
    """Answer the client directly; the upstream is not reached."""

    status: int
    body: str
    cookies: List[Cookie]


class Redirect(NamedTuple):
    """Send the client elsewhere; the upstream is not reached."""

    location: str
    cookies: List[Cookie]


Result = Union[Continue, Respond, Redirect]
