"""
Structured error classification for the trading core.

Data quality problems are recoverable and local to a single calculation,
system failures are unrecoverable for the operation that raised them, and
trading errors cover configuration and risk-limit rejections.
"""

from .data_quality import (
    DataQualityError,
    InsufficientDataError,
    MalformedDataError,
    MissingDataError,
)
from .system_failures import (
    ExecutionGatewayError,
    PersistenceError,
    StateTransitionError,
    SystemFailureError,
)
from .trading import (
    AlgorithmNotFoundError,
    AlgorithmUnavailableError,
    ConfigurationError,
    RiskLimitExceeded,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "InsufficientDataError",
    "MalformedDataError",
    "MissingDataError",
    # System Failures
    "SystemFailureError",
    "ExecutionGatewayError",
    "StateTransitionError",
    "PersistenceError",
    # Trading Errors
    "ConfigurationError",
    "RiskLimitExceeded",
    "AlgorithmNotFoundError",
    "AlgorithmUnavailableError",
]
