"""Execution gateway contract and the simulated paper gateway."""

from .base import ExecutionGateway
from .paper import PaperExecutionGateway

__all__ = ["ExecutionGateway", "PaperExecutionGateway"]
