"""Error types for the consent flow.

Two families:
- GatewayError and subclasses: failures talking to the Kong Provider
- ConsentFlowError and subclasses: what a request handler surfaces to the caller

A Provider *decline* (an OAuth2 error inside redirect_uri) is not an error here.
"""


class GatewayError(Exception):
    """Base class for failures of an outbound call to the Provider."""


class ApplicationNotFound(GatewayError):
    """No OAuth 2.0 credential is registered for the client_id."""


class ProtocolError(GatewayError):
    """The Provider answered, but not with the expected body."""


class TransportError(GatewayError):
    """The call to the Provider could not be completed (connect, timeout)."""


class AuthenticationError(Exception):
    """Credentials were rejected by the authenticator."""


class ConsentFlowError(Exception):
    """Base class for errors surfaced to the caller as a plain-text response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ConsentFlowError):
    """Missing or malformed query/form fields."""

    status_code = 400


class UpstreamLookupError(ConsentFlowError):
    """The application name could not be resolved from the Provider."""


class UpstreamIssuanceError(ConsentFlowError):
    """The authorization code request could not be completed or decoded."""
