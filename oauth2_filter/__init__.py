"""
Inline OAuth2 login for a reverse-proxied service.

The filter sits in front of an upstream service and makes sure that every
request that reaches it belongs to a user who has logged in with the
OAuth2 Authorization Code flow.

A request without a session is redirected to the provider's authorize
endpoint. The provider sends the browser back to
``<PATH_PREFIX>/oauth2/callback`` with an authorization code, which the
filter exchanges for an access token. The access token is stored encrypted
(see :mod:`oauth2_filter.tokens`) in the ``EOAuthToken`` cookie, so no
session state is kept on the server.

On later requests the token is decrypted and the user's claims are looked
up at the provider's user-info endpoint, or taken from the short-lived
``EOAuthUserInfo`` cookie. The upstream receives the access token in
``X-Access-Token``, the claims as base64 JSON in ``X-Userinfo``, and each
configured claim in its own ``X-Oauth-<key>`` header.

The filter is a WSGI middleware (:class:`.middleware.OAuth2FilterMiddleware`)
and can wrap any WSGI application. :func:`.factory.create_app` builds a
small Flask service that forwards authenticated requests to
``UPSTREAM_URL``.
"""
