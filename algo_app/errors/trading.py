"""Configuration and risk errors raised around algorithm lifecycle operations."""

from typing import Any, Dict, Optional


class ConfigurationError(Exception):
    """Unknown algorithm type or malformed parameters, raised at creation time."""

    def __init__(self, message: str, errors: Optional[list] = None,
                 algorithm_type: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.errors = errors or []
        self.algorithm_type = algorithm_type
        self.context = context or {}
        self.recoverable = False


class RiskLimitExceeded(Exception):
    """A signal breached a configured risk limit and was rejected pre-execution."""

    def __init__(self, message: str, limit_name: Optional[str] = None,
                 value: Optional[float] = None, threshold: Optional[float] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.limit_name = limit_name
        self.value = value
        self.threshold = threshold
        self.context = context or {}
        self.recoverable = True


class AlgorithmNotFoundError(Exception):
    """No algorithm configuration exists for the requested id."""

    def __init__(self, algorithm_id: str):
        super().__init__(f"Algorithm not found: {algorithm_id}")
        self.algorithm_id = algorithm_id
        self.recoverable = False


class AlgorithmUnavailableError(Exception):
    """The algorithm exists but cannot run (inactive or paused)."""

    def __init__(self, algorithm_id: str, reason: str):
        super().__init__(f"Algorithm {algorithm_id} is not available: {reason}")
        self.algorithm_id = algorithm_id
        self.reason = reason
        self.recoverable = True
