"""Sending the browser to the authorization server."""

from urllib.parse import urlencode

from .context import RequestContext
from .domain import Cookie, FilterConfig, Redirect
from .logging import getLogger

logger = getLogger(__name__)

CALLBACK_PATH = '/oauth2/callback'


def callback_url(context: RequestContext, config: FilterConfig) -> str:
    """
    Build the ``redirect_uri`` registered with the provider.

    The scheme, host and port take any ``X-Forwarded-*`` headers into
    account, so that the URL is the one the browser can reach.
    """
    return (f'{context.scheme}://{context.host}:{context.port}'
            f'{config.path_prefix}{CALLBACK_PATH}')


def authorize_url(context: RequestContext, config: FilterConfig) -> str:
    """The provider's authorize endpoint with the code-flow parameters."""
    query = urlencode({
        'response_type': 'code',
        'client_id': config.client_id,
        'redirect_uri': callback_url(context, config),
        'scope': config.scope
    })
    separator = '&' if '?' in config.authorize_url else '?'
    return f'{config.authorize_url}{separator}{query}'


def redirect_to_auth(context: RequestContext,
                     config: FilterConfig) -> Redirect:
    """
    Send the browser to the authorization server to log in.

    The current request URI is remembered in a short-lived cookie, so that
    the callback can send the user back where they were going.
    """
    redirect_back = Cookie(config.redirect_back_cookie, context.request_uri,
                           max_age=config.redirect_back_lifetime,
                           http_only=False)
    logger.debug('Redirecting to authorize; will return to %s',
                 context.request_uri)
    return Redirect(authorize_url(context, config), [redirect_back])
