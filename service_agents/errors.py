"""Exception hierarchy for service agent client construction."""


class ServiceAgentError(RuntimeError):
    """Base class for failures raised while building service agent clients."""


class InsecureTransportError(ServiceAgentError):
    """Raised when credentials would be sent in clear text over plain http."""

    def __init__(self, scheme: str, host: str, path: str) -> None:
        self.scheme = scheme
        self.host = host
        self.path = path
        super().__init__(
            f"Basic authentication requires https; service {host}/{path} is configured with {scheme}."
        )


class UnsupportedAuthSchemeError(ServiceAgentError):
    """Raised for an auth scheme the client factory does not know how to apply."""


class ServiceNotConfiguredError(ServiceAgentError):
    """Raised when a service name has no entry in the settings."""


class TokenRetrievalError(ServiceAgentError):
    """Raised when an OAuth access token could not be obtained."""
