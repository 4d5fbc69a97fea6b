"""Forwards authenticated requests to the upstream service."""

from typing import List, Tuple

import requests
from flask import Blueprint, Response, current_app, request
from werkzeug.exceptions import BadGateway, GatewayTimeout

from .logging import getLogger

logger = getLogger(__name__)

blueprint = Blueprint('proxy', __name__, url_prefix='')

METHODS = ['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']

# Hop-by-hop headers (RFC 7230) are not forwarded, nor are those that no
# longer hold once ``requests`` has decoded the body.
HOP_BY_HOP = {'connection', 'keep-alive', 'proxy-authenticate',
              'proxy-authorization', 'te', 'trailer', 'trailers',
              'transfer-encoding', 'upgrade', 'host', 'content-length',
              'content-encoding'}


def _end_to_end(headers: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
    return [(name, value) for name, value in headers
            if name.lower() not in HOP_BY_HOP]


@blueprint.route('/', defaults={'path': ''}, methods=METHODS)
@blueprint.route('/<path:path>', methods=METHODS)
def proxy(path: str) -> Response:
    """Pass the request, identity headers included, to ``UPSTREAM_URL``."""
    url = f"{current_app.config['UPSTREAM_URL'].rstrip('/')}/{path}"
    if request.query_string:
        url = f"{url}?{request.query_string.decode('latin-1')}"
    logger.debug('Forwarding %s %s', request.method, url)
    try:
        upstream = requests.request(
            request.method, url,
            headers=dict(_end_to_end(list(request.headers.items()))),
            data=request.get_data(),
            stream=True,
            allow_redirects=False,
            timeout=float(current_app.config.get('UPSTREAM_TIMEOUT', 30))
        )
    except requests.exceptions.Timeout as e:
        logger.error('Upstream timed out: %s', e)
        raise GatewayTimeout('Upstream did not respond in time') from e
    except requests.exceptions.RequestException as e:
        logger.error('Upstream request failed: %s', e)
        raise BadGateway('Upstream is unavailable') from e

    return Response(upstream.iter_content(chunk_size=8192),
                    status=upstream.status_code,
                    headers=_end_to_end(list(upstream.raw.headers.items())))
