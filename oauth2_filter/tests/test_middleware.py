"""Tests for :class:`oauth2_filter.middleware.OAuth2FilterMiddleware`."""

import json
from http import HTTPStatus
from typing import Callable, Iterable
from unittest import TestCase, mock

from werkzeug.test import Client

from oauth2_filter import middleware, tokens
from oauth2_filter.domain import FilterConfig
from oauth2_filter.exceptions import DomainMismatch
from oauth2_filter.services.provider import ProviderSession

CONFIG = FilterConfig(authorize_url='https://idp.example.com/authorize',
                      token_url='https://idp.example.com/token',
                      user_url='https://idp.example.com/userinfo',
                      client_id='fooclient',
                      client_secret='foosecret',
                      hosted_domain='b.com')


def upstream(environ: dict, start_response: Callable) -> Iterable[bytes]:
    """Reports the headers it was called with."""
    seen = {key: value for key, value in environ.items()
            if key.startswith('HTTP_')}
    start_response('200 OK', [('Content-Type', 'application/json'),
                              ('Set-Cookie', 'upstream=1; Path=/')])
    return [json.dumps(seen).encode('utf-8')]


class TestMiddleware(TestCase):
    """The middleware decides whether the upstream app is called."""

    def setUp(self):
        self.upstream = mock.MagicMock(side_effect=upstream)
        self.app = middleware.OAuth2FilterMiddleware(self.upstream, CONFIG)
        self.client = Client(self.app, use_cookies=False)
        self.idp = mock.MagicMock(spec=ProviderSession)
        patcher = mock.patch(f'{middleware.__name__}.provider.get_session')
        mock_get_session = patcher.start()
        mock_get_session.return_value.__enter__.return_value = self.idp
        self.addCleanup(patcher.stop)
        self.token = tokens.encode('tok1', 'foosecret')

    def test_no_session(self):
        """The browser is redirected, and the upstream is not called."""
        response = self.client.get('/foo?bar=1')
        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        self.assertTrue(response.headers['Location'].startswith(
            'https://idp.example.com/authorize?response_type=code'
        ))
        cookies = response.headers.getlist('Set-Cookie')
        self.assertEqual(len(cookies), 1)
        self.assertIn('EOAuthRedirectBack=', cookies[0])
        self.assertIn('Max-Age=120', cookies[0])
        self.upstream.assert_not_called()

    def test_callback(self):
        """The session cookie is set on the callback redirect."""
        self.idp.exchange_code.return_value = 'tok1'
        response = self.client.get(
            '/oauth2/callback?code=abc123',
            headers={'Cookie': 'EOAuthRedirectBack=/foo/bar'}
        )
        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        self.assertTrue(response.headers['Location'].endswith('/foo/bar'))
        cookie = response.headers.getlist('Set-Cookie')[0]
        self.assertTrue(cookie.startswith('EOAuthToken='))
        self.assertIn('HttpOnly', cookie)
        self.assertIn('Max-Age=3000', cookie)
        self.assertIn('Path=/', cookie)
        self.upstream.assert_not_called()

    def test_denied(self):
        """The user denied access."""
        response = self.client.get('/oauth2/callback?error=access_denied')
        self.assertEqual(response.status_code, HTTPStatus.UNAUTHORIZED)
        self.assertEqual(response.get_data(as_text=True),
                         'User has denied access to the resources.')
        self.assertEqual(response.headers.getlist('Set-Cookie'), [])

    def test_authenticated(self):
        """The upstream gets identity headers, the client gets cookies."""
        self.idp.fetch_user_info.return_value = {'sub': 'u1',
                                                 'email': 'a@b.com'}
        response = self.client.get('/foo', headers={
            'Cookie': f'EOAuthToken={self.token}'
        })
        self.assertEqual(response.status_code, HTTPStatus.OK)
        seen = json.loads(response.get_data(as_text=True))
        self.assertEqual(seen['HTTP_X_ACCESS_TOKEN'], 'tok1')
        self.assertEqual(seen['HTTP_X_OAUTH_EMAIL'], 'a@b.com')
        self.assertIn('HTTP_X_USERINFO', seen)

        self.assertEqual(response.headers['X-Oauth-email'], 'a@b.com')
        cookies = response.headers.getlist('Set-Cookie')
        self.assertTrue(any(c.startswith('upstream=') for c in cookies))
        self.assertTrue(any(c.startswith('EOAuthToken=') for c in cookies))
        self.assertTrue(any(c.startswith('EOAuthUserInfo=') and
                            'Max-Age=60' in c for c in cookies))

    def test_spoofed_headers(self):
        """Identity headers sent by the client do not reach the upstream."""
        self.idp.fetch_user_info.return_value = {'sub': 'u1'}
        response = self.client.get('/foo', headers={
            'Cookie': f'EOAuthToken={self.token}',
            'X-Oauth-Role': 'admin',
            'X-Oauth-email': 'boss@b.com',
        })
        seen = json.loads(response.get_data(as_text=True))
        self.assertNotIn('HTTP_X_OAUTH_ROLE', seen)
        self.assertNotIn('HTTP_X_OAUTH_EMAIL', seen)

    def test_domain_mismatch(self):
        """The provider call succeeded but the identity is turned away."""
        self.idp.fetch_user_info.side_effect = \
            DomainMismatch('Hosted domain is not matching')
        response = self.client.get('/foo', headers={
            'Cookie': f'EOAuthToken={self.token}'
        })
        self.assertEqual(response.status_code, HTTPStatus.UNAUTHORIZED)
        self.assertEqual(response.headers.getlist('Set-Cookie'), [])
        self.upstream.assert_not_called()
