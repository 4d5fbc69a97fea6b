"""Handles the authorization server redirecting the browser back to us."""

from http import HTTPStatus

from . import tokens
from .authorize import callback_url
from .context import RequestContext
from .domain import Cookie, FilterConfig, Redirect, Respond, Result
from .exceptions import AccessDenied, ProviderRejected, TransportError
from .logging import getLogger
from .services.provider import ProviderSession

logger = getLogger(__name__)


def _redirect_back(context: RequestContext, config: FilterConfig) -> str:
    target = context.inbound_cookies.get(config.redirect_back_cookie)
    # Only paths on this origin.
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return config.landing_path


def handle_callback(context: RequestContext, config: FilterConfig,
                    idp: ProviderSession) -> Result:
    """
    Complete the login started by :func:`.authorize.redirect_to_auth`.

    The authorization code is exchanged for an access token, which is
    stored encrypted in the session cookie. The browser is then sent back to
    the page it originally asked for.

    Parameters
    ----------
    context : :class:`.RequestContext`
    config : :class:`.FilterConfig`
    idp : :class:`.ProviderSession`

    Returns
    -------
    :class:`.Redirect`
        With the session cookie, if the exchange succeeded.
    :class:`.Respond`
        401 if the user denied access, 400 if the provider refused the
        code, 500 if the provider could not be reached.

    """
    code = context.args.get('code')
    if not code:
        denied = AccessDenied('User has denied access to the resources.')
        logger.warning('No authorization code in callback: %s',
                       context.args.get('error', 'no error given'))
        return Respond(HTTPStatus.UNAUTHORIZED, str(denied), [])

    logger.debug('Exchanging authorization code')
    try:
        access_token = idp.exchange_code(code, callback_url(context, config))
    except TransportError as e:
        return Respond(HTTPStatus.INTERNAL_SERVER_ERROR,
                       f'failed to request: {e}', [])
    except ProviderRejected as e:
        return Respond(HTTPStatus.BAD_REQUEST, str(e), [])

    session_cookie = Cookie(config.token_cookie,
                            tokens.encode(access_token, config.client_secret),
                            max_age=config.session_lifetime)
    target = _redirect_back(context, config)
    logger.info('Authorization code exchanged; redirecting to %s', target)
    return Redirect(target, [session_cookie])
