"""Resolving the authentication state of a request for a protected resource."""

from http import HTTPStatus
from typing import Optional

from . import tokens
from .authorize import redirect_to_auth
from .context import RequestContext
from .domain import Cookie, FilterConfig, Respond, Result, UserInfo
from .exceptions import CorruptToken, DomainMismatch, TransportError, \
    UserInfoFetchFailed
from .logging import getLogger
from .services.provider import ProviderSession

logger = getLogger(__name__)


def _session_token(context: RequestContext,
                   config: FilterConfig) -> Optional[str]:
    """The encrypted token from the cookie, or else from the fallback header."""
    token = context.inbound_cookies.get(config.token_cookie)
    if not token:
        token = context.headers.get(config.token_header)
    return token or None


def _cached_user_info(context: RequestContext,
                      config: FilterConfig) -> Optional[UserInfo]:
    cached = context.inbound_cookies.get(config.user_info_cookie)
    if not cached:
        return None
    user_info = UserInfo.decode(cached)
    if user_info is None:
        logger.debug('Ignoring garbled user info cookie')
    return user_info


def resolve(context: RequestContext, config: FilterConfig,
            idp: ProviderSession) -> Result:
    """
    Decide what happens to a request for a protected resource.

    Parameters
    ----------
    context : :class:`.RequestContext`
    config : :class:`.FilterConfig`
    idp : :class:`.ProviderSession`
        Used only if the user info is not cached in a cookie.

    Returns
    -------
    :class:`.Continue`
        With identity headers for the upstream, if the user is logged in.
    :class:`.Redirect`
        To the authorization server, if there is no usable session.
    :class:`.Respond`
        If the provider could not be reached or the identity is outside of
        the hosted domain.

    """
    encrypted = _session_token(context, config)
    if encrypted is None:
        logger.debug('No session token')
        return redirect_to_auth(context, config)

    access_token = tokens.decode(encrypted, config.client_secret)
    if isinstance(access_token, CorruptToken):
        logger.debug('Broken session token; starting over')
        return redirect_to_auth(context, config)

    context.set_cookie(Cookie(config.token_cookie, encrypted,
                              max_age=config.session_lifetime))
    context.set_upstream_header(config.upstream_token_header, access_token)

    user_info = _cached_user_info(context, config)
    if user_info is None:
        try:
            claims = idp.fetch_user_info(access_token)
        except UserInfoFetchFailed as e:
            logger.debug('Token no longer accepted (%s); re-authenticating', e)
            return redirect_to_auth(context, config)
        except TransportError as e:
            return Respond(HTTPStatus.INTERNAL_SERVER_ERROR, str(e), [])
        except DomainMismatch as e:
            return Respond(HTTPStatus.UNAUTHORIZED, str(e), [])
        user_info = UserInfo.from_claims(claims, config)
        context.set_cookie(Cookie(config.user_info_cookie, user_info.encode(),
                                  max_age=config.user_info_periodic_check))
        logger.debug('Fetched user info for subject %s', user_info.subject)

    # A cached user info cookie is not signed, so these are only as
    # trustworthy as the client for up to ``user_info_periodic_check``.
    for name, value in user_info.headers(config).items():
        context.set_upstream_header(name, value)
        context.set_response_header(name, value)
    context.set_upstream_header(config.user_info_header, user_info.encode())
    return context.proceed()
