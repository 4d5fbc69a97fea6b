"""Flask configuration for the OAuth2 filter service."""

import os

AUTHORIZE_URL = os.environ.get('AUTHORIZE_URL')
"""Authorization endpoint the browser is sent to for login."""

TOKEN_URL = os.environ.get('TOKEN_URL')
"""Token endpoint used to exchange authorization codes."""

USER_URL = os.environ.get('USER_URL')
"""User-info endpoint, called with the access token as a bearer token."""

CLIENT_ID = os.environ.get('CLIENT_ID')
CLIENT_SECRET = os.environ.get('CLIENT_SECRET')
"""Also used to derive the session cookie encryption key."""

SCOPE = os.environ.get('SCOPE', '')
PATH_PREFIX = os.environ.get('PATH_PREFIX', '')
"""Prefix of the ``/oauth2/callback`` path, e.g. when mounted below ``/app``."""

HOSTED_DOMAIN = os.environ.get('HOSTED_DOMAIN', '')
EMAIL_KEY = os.environ.get('EMAIL_KEY', 'email')
USER_KEYS = os.environ.get('USER_KEYS', 'username,email')
"""Comma-separated user-info claims propagated as ``X-Oauth-<key>``."""

USER_INFO_PERIODIC_CHECK = os.environ.get('USER_INFO_PERIODIC_CHECK', '60')
SESSION_LIFETIME = os.environ.get('SESSION_LIFETIME', '3000')
REDIRECT_BACK_LIFETIME = os.environ.get('REDIRECT_BACK_LIFETIME', '120')
LANDING_PATH = os.environ.get('LANDING_PATH', '/')

SSL_VERIFY = os.environ.get('SSL_VERIFY', '1')
PROVIDER_TIMEOUT = os.environ.get('PROVIDER_TIMEOUT', '10')

COOKIE_SECURE = os.environ.get('COOKIE_SECURE', '0')
COOKIE_SAMESITE = os.environ.get('COOKIE_SAMESITE', 'Lax')

UPSTREAM_URL = os.environ.get('UPSTREAM_URL', 'http://localhost:8000')
"""Base URL of the protected service."""

UPSTREAM_TIMEOUT = os.environ.get('UPSTREAM_TIMEOUT', '30')

LOGLEVEL = os.environ.get('LOGLEVEL', 20)
