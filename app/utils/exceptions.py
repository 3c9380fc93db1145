"""
Exception handling utilities.

Defines the reward engine error taxonomy. Each error carries the HTTP
status it maps to at the API boundary and whether a caller may retry.
"""

from datetime import datetime

from sqlalchemy.exc import OperationalError
from web3.exceptions import Web3Exception


class RewardEngineError(Exception):
    """Base class for all reward engine errors."""

    http_status: int = 500
    retryable: bool = False
    code: str = "engine_error"

    def __init__(self, message: str, **details: object) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, object]:
        """Serialize for API responses."""
        payload: dict[str, object] = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }
        payload.update(self.details)
        return payload


class ValidationError(RewardEngineError):
    """Malformed address or amount."""

    http_status = 400
    code = "validation_error"


class UpstreamDataError(RewardEngineError):
    """RPC or indexer failure. Never used as grounds for signing."""

    http_status = 502
    retryable = True
    code = "upstream_unavailable"


class InsufficientRewardsError(RewardEngineError):
    """Nothing left to claim."""

    http_status = 400
    code = "insufficient_rewards"


class CalculatorUnavailableError(RewardEngineError):
    """Signing key not configured; the claim path is degraded."""

    http_status = 503
    code = "calculator_unavailable"

    def __init__(
        self,
        message: str = "Claim signing is unavailable",
        remediation: str = (
            "Set CALCULATOR_PRIVATE_KEY to a key authorized as calculator "
            "on the claim contract and restart the service."
        ),
    ) -> None:
        super().__init__(message, remediation=remediation)
        self.remediation = remediation


class ContractStateError(RewardEngineError):
    """Contract paused or claim above the absolute cap."""

    http_status = 409
    code = "contract_state"


class ClaimLockedError(RewardEngineError):
    """Lock period since the last on-chain claim has not elapsed."""

    http_status = 429
    retryable = True
    code = "claim_locked"

    def __init__(self, message: str, next_claim_at: datetime) -> None:
        super().__init__(message, nextClaimDate=next_claim_at.isoformat())
        self.next_claim_at = next_claim_at


class ClaimInProgressError(RewardEngineError):
    """A voucher for the current nonce is outstanding."""

    http_status = 409
    retryable = True
    code = "claim_in_progress"


# Exception categories based on handling strategy

# Must log but can continue - non-critical failures in batch passes
MUST_LOG = (
    OperationalError,  # Database errors
    Web3Exception,     # Blockchain RPC errors
    UpstreamDataError,
)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged and the batch continued.

    Args:
        exc: Exception to check

    Returns:
        True if exception is recoverable within a batch pass
    """
    return isinstance(exc, MUST_LOG)
