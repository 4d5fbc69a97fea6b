"""
Service integration with the OAuth2 authorization server.

Two back-channel calls are made: exchanging an authorization code for an
access token, and looking up the user behind an access token. Neither is
retried; authorization codes are single-use.
"""

from typing import Any, Dict

import requests

from ..domain import FilterConfig
from ..exceptions import DomainMismatch, ProviderRejected, TransportError, \
    UserInfoFetchFailed
from ..logging import getLogger

logger = getLogger(__name__)


class ProviderSession(object):
    """HTTP session with the authorization server for one request."""

    def __init__(self, config: FilterConfig) -> None:
        """Create a new HTTP session."""
        self.config = config
        self._session = requests.Session()
        self._session.verify = config.ssl_verify
        if not config.ssl_verify:
            logger.warning('Certificate validation toward %s is disabled',
                           config.token_url)

    def __enter__(self) -> 'ProviderSession':
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def exchange_code(self, code: str, redirect_url: str) -> str:
        """
        Exchange an authorization code for an access token.

        Parameters
        ----------
        code : str
            Authorization code delivered to the callback.
        redirect_url : str
            Must match the ``redirect_uri`` of the authorize request.

        Returns
        -------
        str
            The access token.

        Raises
        ------
        :class:`.TransportError`
            If the token endpoint could not be reached.
        :class:`.ProviderRejected`
            If the provider did not issue an access token.

        """
        payload = {
            'grant_type': 'authorization_code',
            'client_id': self.config.client_id,
            'client_secret': self.config.client_secret,
            'code': code,
            'redirect_uri': redirect_url
        }
        try:
            response = self._session.post(
                self.config.token_url,
                data=payload,
                headers={'Accept': 'application/json'},
                timeout=self.config.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error('Token request failed: %s', e)
            raise TransportError(str(e)) from e

        data = self._json(response)
        access_token = data.get('access_token')
        if response.status_code != requests.codes.ok or not access_token:
            description = data.get('error_description') \
                or data.get('error') \
                or f'Token endpoint responded with {response.status_code}'
            logger.warning('Token exchange rejected (%i): %s',
                           response.status_code, description)
            raise ProviderRejected(description)
        return str(access_token)

    def fetch_user_info(self, access_token: str) -> Dict[str, Any]:
        """
        Get the claims about the user behind ``access_token``.

        Raises
        ------
        :class:`.TransportError`
            If the user-info endpoint could not be reached.
        :class:`.UserInfoFetchFailed`
            If the endpoint did not respond 200 with a JSON object.
        :class:`.DomainMismatch`
            If a hosted domain is configured and the identifier claim is
            outside of it.

        """
        try:
            response = self._session.get(
                self.config.user_url,
                headers={'Authorization': f'Bearer {access_token}'},
                timeout=self.config.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error('User info request failed: %s', e)
            raise TransportError(str(e)) from e

        if response.status_code != requests.codes.ok:
            logger.debug('User info responded with status %i',
                         response.status_code)
            raise UserInfoFetchFailed(
                f'User info endpoint responded with {response.status_code}'
            )
        claims = self._json(response)
        if not claims:
            raise UserInfoFetchFailed('User info response is not usable')
        self._check_hosted_domain(claims)
        return claims

    def _check_hosted_domain(self, claims: Dict[str, Any]) -> None:
        domain, key = self.config.hosted_domain, self.config.email_key
        if not domain or not key:
            return
        identifier = claims.get(key)
        if not isinstance(identifier, str) or not identifier.endswith(domain):
            logger.warning('Identity outside of hosted domain %s', domain)
            raise DomainMismatch('Hosted domain is not matching')

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            logger.debug('Response could not be decoded')
            return {}
        if not isinstance(data, dict):
            return {}
        return data


def get_session(config: FilterConfig) -> ProviderSession:
    """
    Create a new provider session.

    Parameters
    ----------
    config : :class:`.FilterConfig`

    Return
    ------
    :class:`.ProviderSession`

    """
    return ProviderSession(config)
