"""Error taxonomy for the compliance analysis engine.

Only ``InvalidInput`` and ``BackendUnavailable`` escape a batch analysis.
Every other error is absorbed per question into a degraded result.
"""


class ComplianceError(Exception):
    """Base class for compliance analysis errors."""


class InvalidInput(ComplianceError):
    """Required batch inputs are missing or empty."""


class BackendUnavailable(ComplianceError):
    """Backend credentials or configuration are not set."""


class BackendError(ComplianceError):
    """A single backend exchange failed."""


class BackendRequestFailed(BackendError):
    """The backend call did not complete successfully or timed out."""


class BackendEmptyReply(BackendError):
    """The backend call succeeded but returned no text."""


class MalformedResponse(ComplianceError):
    """The backend reply does not contain a decodable verdict payload."""
