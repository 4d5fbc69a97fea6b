"""
Entry point of the filter: one decision per inbound request.

A request moves through the following states:

``Unauthenticated``
    No usable session token. The browser is redirected to the authorize
    endpoint (``AwaitingProviderRedirect``).
``CallbackPending``
    The provider sent the browser back to ``<prefix>/oauth2/callback``.
    The code is exchanged and the session cookie set (``Authenticated``),
    or the request ends with an error (``Denied``).
``Authenticated``
    Every later request is checked by :func:`.session.resolve`; a token
    that no longer decrypts demotes the request to ``Unauthenticated``.
"""

import re
from typing import Pattern

from .authorize import CALLBACK_PATH
from .callback import handle_callback
from .context import RequestContext
from .domain import FilterConfig, Result
from .logging import getLogger
from .services.provider import ProviderSession
from .session import resolve

logger = getLogger(__name__)


def callback_pattern(path_prefix: str) -> Pattern:
    """Matches the callback URI, optionally with a trailing slash and query."""
    return re.compile(rf'^{re.escape(path_prefix)}{CALLBACK_PATH}/?(\?\S*)?$')


def is_callback(request_uri: str, path_prefix: str) -> bool:
    return callback_pattern(path_prefix).match(request_uri) is not None


def authenticate(context: RequestContext, config: FilterConfig,
                 idp: ProviderSession) -> Result:
    """
    Authenticate a request, or handle the OAuth2 callback.

    Parameters
    ----------
    context : :class:`.RequestContext`
    config : :class:`.FilterConfig`
    idp : :class:`.ProviderSession`

    Returns
    -------
    :class:`.Continue`, :class:`.Redirect` or :class:`.Respond`
        Only :class:`.Continue` lets the request reach the upstream.

    """
    if is_callback(context.request_uri, config.path_prefix):
        logger.debug('Callback request: %s', context.request.path)
        return handle_callback(context, config, idp)
    return resolve(context, config, idp)
