"""Tests for the OAuth2 filter service as a whole."""

import json
from http import HTTPStatus
from typing import Any
from unittest import TestCase, mock

import requests

from oauth2_filter import routes, tokens
from oauth2_filter.exceptions import ConfigurationError
from oauth2_filter.factory import create_app
from oauth2_filter.services import provider

CONFIG = {
    'AUTHORIZE_URL': 'https://idp.example.com/authorize',
    'TOKEN_URL': 'https://idp.example.com/token',
    'USER_URL': 'https://idp.example.com/userinfo',
    'CLIENT_ID': 'fooclient',
    'CLIENT_SECRET': 'foosecret',
    'SCOPE': 'openid email',
    'USER_KEYS': 'email',
    'UPSTREAM_URL': 'http://upstream.local:8000/'
}


def _upstream(status_code: int = 200, body: bytes = b'ok') -> mock.MagicMock:
    response = mock.MagicMock(status_code=status_code)
    response.iter_content.return_value = iter([body])
    response.raw.headers.items.return_value = [
        ('Content-Type', 'text/plain'),
        ('Content-Length', str(len(body))),
        ('Connection', 'keep-alive')
    ]
    return response


class TestApplication(TestCase):
    """The filter runs in front of the proxy routes."""

    def setUp(self):
        self.app = create_app(CONFIG)
        self.client = self.app.test_client(use_cookies=False)
        self.token = tokens.encode('tok1', 'foosecret')

    def test_missing_configuration(self):
        """The app cannot be created without client credentials."""
        with self.assertRaises(ConfigurationError):
            create_app(dict(CONFIG, CLIENT_SECRET=None))

    @mock.patch(f'{routes.__name__}.requests.request')
    def test_login_required(self, mock_request: Any) -> None:
        """Unauthenticated requests never reach the upstream."""
        response = self.client.get('/private/page')
        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        self.assertIn('scope=openid+email', response.headers['Location'])
        mock_request.assert_not_called()

    @mock.patch(f'{provider.__name__}.requests.Session')
    @mock.patch(f'{routes.__name__}.requests.request')
    def test_proxy(self, mock_request: Any, mock_session: Any) -> None:
        """Authenticated requests are forwarded with identity headers."""
        user_info = mock.MagicMock(status_code=200)
        user_info.json.return_value = {'sub': 'u1', 'email': 'a@b.com'}
        mock_session.return_value.get.return_value = user_info
        mock_request.return_value = _upstream(body=b'hello')

        response = self.client.post('/api/things?page=2', data=b'{"a": 1}',
                                    headers={
                                        'Cookie': f'EOAuthToken={self.token}',
                                        'Content-Type': 'application/json'
                                    })
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertEqual(response.data, b'hello')
        self.assertNotIn('Connection', response.headers)
        self.assertEqual(response.headers['X-Oauth-email'], 'a@b.com')

        args, kwargs = mock_request.call_args
        self.assertEqual(args, ('POST',
                                'http://upstream.local:8000/api/things?page=2'))
        self.assertEqual(kwargs['data'], b'{"a": 1}')
        self.assertFalse(kwargs['allow_redirects'])
        self.assertEqual(kwargs['headers']['X-Access-Token'], 'tok1')
        self.assertEqual(kwargs['headers']['X-Oauth-Email'], 'a@b.com')
        self.assertIn('X-Userinfo', kwargs['headers'])
        self.assertNotIn('Host', kwargs['headers'])

    @mock.patch(f'{provider.__name__}.requests.Session')
    @mock.patch(f'{routes.__name__}.requests.request')
    def test_upstream_unavailable(self, mock_request: Any,
                                  mock_session: Any) -> None:
        """A failed upstream request is a bad gateway."""
        user_info = mock.MagicMock(status_code=200)
        user_info.json.return_value = {'sub': 'u1', 'email': 'a@b.com'}
        mock_session.return_value.get.return_value = user_info
        mock_request.side_effect = requests.exceptions.ConnectionError('nope')

        response = self.client.get('/', headers={
            'Cookie': f'EOAuthToken={self.token}'
        })
        self.assertEqual(response.status_code, HTTPStatus.BAD_GATEWAY)
        self.assertIn('reason', json.loads(response.data))

    @mock.patch(f'{provider.__name__}.requests.Session')
    @mock.patch(f'{routes.__name__}.requests.request')
    def test_upstream_timeout(self, mock_request: Any,
                              mock_session: Any) -> None:
        """A slow upstream is a gateway timeout."""
        user_info = mock.MagicMock(status_code=200)
        user_info.json.return_value = {'sub': 'u1', 'email': 'a@b.com'}
        mock_session.return_value.get.return_value = user_info
        mock_request.side_effect = requests.exceptions.ReadTimeout('slow')

        response = self.client.get('/foo', headers={
            'Cookie': f'EOAuthToken={self.token}'
        })
        self.assertEqual(response.status_code, HTTPStatus.GATEWAY_TIMEOUT)

    @mock.patch(f'{provider.__name__}.requests.Session')
    @mock.patch(f'{routes.__name__}.requests.request')
    def test_non_ascii_claim(self, mock_request: Any,
                             mock_session: Any) -> None:
        """Claims outside of latin-1 reach the upstream as UTF-8 bytes."""
        user_info = mock.MagicMock(status_code=200)
        user_info.json.return_value = {'sub': 'u1', 'email': '山田@b.com'}
        mock_session.return_value.get.return_value = user_info
        mock_request.return_value = _upstream()

        response = self.client.get('/', headers={
            'Cookie': f'EOAuthToken={self.token}'
        })
        self.assertEqual(response.status_code, HTTPStatus.OK)
        _, kwargs = mock_request.call_args
        value = kwargs['headers']['X-Oauth-Email']
        self.assertEqual(value.encode('latin-1'), '山田@b.com'.encode('utf-8'))
