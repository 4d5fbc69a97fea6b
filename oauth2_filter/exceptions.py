"""Exceptions."""


class ConfigurationError(RuntimeError):
    """The filter is missing a required configuration parameter."""


class FilterError(RuntimeError):
    """Base class for failures that end the current request."""


class TransportError(FilterError):
    """A call to the authorization server failed at the network layer."""


class ProviderRejected(FilterError):
    """The token endpoint did not hand out an access token."""


class AccessDenied(FilterError):
    """The provider redirected back without an authorization code."""


class CorruptToken(FilterError):
    """The session token could not be decrypted."""


class UserInfoFetchFailed(FilterError):
    """The user-info endpoint did not return usable claims."""


class DomainMismatch(FilterError):
    """The identity does not belong to the hosted domain."""
