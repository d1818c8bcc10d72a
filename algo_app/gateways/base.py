"""Execution gateway contract."""

from abc import ABC, abstractmethod
from typing import Optional

from ..data.models import AccountInfo, GatewayResult, OrderRequest, OrderResult, Position


class ExecutionGateway(ABC):
    """
    Order routing collaborator.

    Implementations raise ExecutionGatewayError for I/O failures; a rejected
    close or modify is reported through GatewayResult.success instead.
    """

    @abstractmethod
    async def place_order(self, request: OrderRequest) -> OrderResult:
        """Submit a market order. The returned order id doubles as the position ticket."""

    @abstractmethod
    async def close_position(self, ticket: int) -> GatewayResult:
        """Close an open position by ticket."""

    @abstractmethod
    async def modify_position(self, ticket: int, sl: Optional[float] = None,
                              tp: Optional[float] = None) -> GatewayResult:
        """Change stop-loss and/or take-profit of an open position."""

    @abstractmethod
    async def get_positions(self) -> list[Position]:
        """All open positions."""

    @abstractmethod
    async def get_account_info(self) -> AccountInfo:
        """Current balance, equity, margin and floating profit."""
