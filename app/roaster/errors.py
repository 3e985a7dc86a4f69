"""
Error taxonomy for the roaster.

Every per-request failure is a RoasterError carrying a category and a
message that is safe to show to the user. Request handlers catch these at
the boundary and turn them into a redirect or a JSON error body.
"""

from enum import Enum
from typing import Optional


GENERIC_ERROR_MESSAGE = "Something went wrong while roasting you. Please try again."


class ErrorCategory(str, Enum):
    """Categories of failure a roast request can end in"""
    MISSING_CONFIGURATION = "missing-configuration"
    OAUTH_DENIED = "oauth-denied"
    OAUTH_EXCHANGE_FAILED = "oauth-exchange-failed"
    UPSTREAM_AUTHORIZATION_DENIED = "upstream-authorization-denied"
    INSUFFICIENT_DATA = "insufficient-data"
    GENERATION_DEGRADED = "generation-degraded"
    TRANSPORT_DECODE_FAILED = "transport-decode-failed"
    INVALID_REQUEST = "invalid-request"
    INTERNAL = "internal"


class RoasterError(Exception):
    """Base class for errors that end a roast request"""

    category = ErrorCategory.INTERNAL
    status_code = 500

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __repr__(self):
        return f"{type(self).__name__}(category={self.category.value}, message={self.message!r})"


class MissingConfigurationError(RoasterError):
    category = ErrorCategory.MISSING_CONFIGURATION
    status_code = 503


class OAuthDeniedError(RoasterError):
    """User declined the authorization, or the provider redirected back with an error code."""
    category = ErrorCategory.OAUTH_DENIED
    status_code = 401


class OAuthExchangeFailedError(RoasterError):
    category = ErrorCategory.OAUTH_EXCHANGE_FAILED
    status_code = 401


class UpstreamAuthorizationDeniedError(RoasterError):
    """Most of the data API calls came back 403; the account lacks scope or allowlisting."""
    category = ErrorCategory.UPSTREAM_AUTHORIZATION_DENIED
    status_code = 403


class InsufficientDataError(RoasterError):
    category = ErrorCategory.INSUFFICIENT_DATA
    status_code = 422


class TransportDecodeError(RoasterError):
    category = ErrorCategory.TRANSPORT_DECODE_FAILED
    status_code = 400


class InternalError(RoasterError):
    """Unexpected failure; the message is generic and details stay in the log."""
    category = ErrorCategory.INTERNAL
    status_code = 500


class InvalidRequestError(RoasterError):
    category = ErrorCategory.INVALID_REQUEST
    status_code = 422
