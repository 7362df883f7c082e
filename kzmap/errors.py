"""
kzmap Error Hierarchy

Unified exception hierarchy for the mapping layer. All custom exceptions
inherit from KZeroError so callers (search, self-play workers, trainers) can
catch and filter them in one place.

Usage:
    from kzmap.errors import IllegalActionError, ConfigurationMismatchError

    try:
        action = mapper.index_to_action(index, state)
    except IllegalActionError as e:
        logger.error(f"Search selected an illegal slot: {e.message}")
        raise

Only DegenerateDistributionError is recovered locally (by the policy codec,
which falls back to a uniform distribution). Every other error here is a
programmer or integration error and must reach the caller.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    # Base error
    "KZeroError",
    # Action mapping errors
    "MappingError",
    "UnmappableActionError",
    "IndexOutOfRangeError",
    "IllegalActionError",
    # Policy errors
    "PolicyError",
    "NoLegalActionsError",
    "DegenerateDistributionError",
    # Sequencing errors
    "InvalidCallStateError",
    # Validation errors
    "ValidationError",
    "ConfigurationError",
    "ConfigurationMismatchError",
    "DataLoadError",
    # Aliases
    "UnmappableAction",
    "IndexOutOfRange",
    "IllegalAction",
    "NoLegalActions",
    "DegenerateDistribution",
    "InvalidCallState",
    "ConfigurationMismatch",
]


class KZeroError(Exception):
    """Base exception for all mapping layer errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "KZERO_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Action Mapping Errors
# =============================================================================


class MappingError(KZeroError):
    """Base class for action <-> index translation errors."""
    code: str = "MAPPING_ERROR"

    def __init__(
        self,
        message: str,
        game: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if game:
            self.context["game"] = game


class UnmappableActionError(MappingError):
    """Action outside the game's fixed action vocabulary.

    Raised for malformed actions or actions from a newer, extended
    vocabulary that the current action space has no slot for.
    """
    code: str = "UNMAPPABLE_ACTION"


class IndexOutOfRangeError(MappingError):
    """Policy index outside [0, action_space_size)."""
    code: str = "INDEX_OUT_OF_RANGE"

    def __init__(
        self,
        message: str,
        index: int | None = None,
        action_space_size: int | None = None,
        game: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, game=game, context=context)
        if index is not None:
            self.context["index"] = index
        if action_space_size is not None:
            self.context["action_space_size"] = action_space_size


class IllegalActionError(MappingError):
    """Index resolves to an action that is not legal in the given state."""
    code: str = "ILLEGAL_ACTION"

    def __init__(
        self,
        message: str,
        index: int | None = None,
        game: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, game=game, context=context)
        if index is not None:
            self.context["index"] = index


# =============================================================================
# Policy Errors
# =============================================================================


class PolicyError(KZeroError):
    """Base class for policy vector decoding/packing errors."""
    code: str = "POLICY_ERROR"


class NoLegalActionsError(PolicyError):
    """Masking requested with an empty legal set.

    Terminal states must be filtered by the search before they reach the
    policy codec.
    """
    code: str = "NO_LEGAL_ACTIONS"


class DegenerateDistributionError(PolicyError):
    """All probability mass vanished after masking (or no visits to pack).

    The policy codec recovers from this locally by falling back to a
    uniform distribution over the legal indices.
    """
    code: str = "DEGENERATE_DISTRIBUTION"

    def __init__(
        self,
        message: str,
        legal_count: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if legal_count is not None:
            self.context["legal_count"] = legal_count


# =============================================================================
# Sequencing Errors
# =============================================================================


class InvalidCallStateError(KZeroError):
    """Mapping layer called in a state where the call makes no sense.

    Raised when a further action is requested on a terminal state, or when
    process-wide configuration is used in the wrong lifecycle phase.
    """
    code: str = "INVALID_CALL_STATE"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(KZeroError):
    """Base class for validation errors."""
    code: str = "VALIDATION_ERROR"


class ConfigurationError(ValidationError):
    """Invalid configuration."""
    code: str = "CONFIGURATION_ERROR"


class ConfigurationMismatchError(ConfigurationError):
    """Tensor shape or action-space size disagree between producer and consumer.

    Fatal: detected at process startup (or when loading samples/checkpoints)
    before any game is played.

    Attributes:
        expected_fingerprint: Fingerprint of the active configuration
        actual_fingerprint: Fingerprint found on the other side
    """
    code: str = "CONFIGURATION_MISMATCH"

    def __init__(
        self,
        message: str,
        expected_fingerprint: str | None = None,
        actual_fingerprint: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if expected_fingerprint:
            self.context["expected_fingerprint"] = expected_fingerprint
        if actual_fingerprint:
            self.context["actual_fingerprint"] = actual_fingerprint


class DataLoadError(ValidationError):
    """Training sample file is missing pieces or cannot be parsed."""
    code: str = "DATA_LOAD_ERROR"

    def __init__(
        self,
        message: str,
        path: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if path:
            self.context["path"] = path


# =============================================================================
# Aliases
# =============================================================================

UnmappableAction = UnmappableActionError
IndexOutOfRange = IndexOutOfRangeError
IllegalAction = IllegalActionError
NoLegalActions = NoLegalActionsError
DegenerateDistribution = DegenerateDistributionError
InvalidCallState = InvalidCallStateError
ConfigurationMismatch = ConfigurationMismatchError
