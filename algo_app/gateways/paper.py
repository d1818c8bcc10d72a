"""In-memory simulated execution gateway."""

import asyncio
import itertools
from dataclasses import replace
from typing import Callable, Optional

import structlog

from ..data.models import AccountInfo, GatewayResult, OrderRequest, OrderResult, Position
from ..errors import ExecutionGatewayError
from .base import ExecutionGateway

logger = structlog.get_logger(__name__)

PriceSource = Callable[[str], Optional[float]]


class PaperExecutionGateway(ExecutionGateway):
    """
    Fills market orders immediately at the requested or marked price.

    Profit is marked to the latest price set with mark_price. Closing a
    position realizes its profit into the balance.
    """

    def __init__(
        self,
        balance: float = 10000.0,
        price_source: Optional[PriceSource] = None,
        contract_size: float = 1.0,
        margin_rate: float = 0.01
    ):
        self.balance = balance
        self.price_source = price_source
        self.contract_size = contract_size
        self.margin_rate = margin_rate
        self._positions: dict[int, Position] = {}
        self._marks: dict[str, float] = {}
        self._tickets = itertools.count(1)
        self._lock = asyncio.Lock()

    def mark_price(self, symbol: str, price: float) -> None:
        """Set the current price for a symbol and re-mark its open positions."""
        self._marks[symbol] = price
        for ticket, position in list(self._positions.items()):
            if position.symbol == symbol:
                self._positions[ticket] = self._marked(position, price)

    def _marked(self, position: Position, price: float) -> Position:
        profit = (price - position.price_open) * position.volume * self.contract_size * position.side.direction
        return replace(position, price_current=price, profit=profit)

    def _current_price(self, symbol: str) -> Optional[float]:
        if symbol in self._marks:
            return self._marks[symbol]
        if self.price_source is not None:
            return self.price_source(symbol)
        return None

    async def place_order(self, request: OrderRequest) -> OrderResult:
        if request.volume <= 0:
            raise ExecutionGatewayError(
                f"Invalid order volume {request.volume}",
                operation="place_order",
                symbol=request.symbol,
            )

        price = request.price if request.price is not None else self._current_price(request.symbol)
        if price is None or price <= 0:
            raise ExecutionGatewayError(
                f"No price available for {request.symbol}",
                operation="place_order",
                symbol=request.symbol,
            )

        async with self._lock:
            ticket = next(self._tickets)
            position = Position(
                ticket=ticket,
                symbol=request.symbol,
                side=request.side,
                volume=request.volume,
                price_open=price,
                price_current=price,
                sl=request.sl or 0.0,
                tp=request.tp or 0.0,
                comment=request.comment,
            )
            self._positions[ticket] = position

        logger.info("Paper order filled", ticket=ticket, symbol=request.symbol,
                    side=request.side.value, volume=request.volume, price=price)
        return OrderResult(order=ticket, deal=ticket, price=price)

    async def close_position(self, ticket: int) -> GatewayResult:
        async with self._lock:
            position = self._positions.pop(ticket, None)
            if position is None:
                raise ExecutionGatewayError(
                    f"Unknown position ticket {ticket}",
                    operation="close_position",
                    ticket=ticket,
                )
            price = self._current_price(position.symbol)
            if price is not None:
                position = self._marked(position, price)
            self.balance += position.profit

        logger.info("Paper position closed", ticket=ticket, symbol=position.symbol, profit=position.profit)
        return GatewayResult(success=True, ticket=ticket, profit=position.profit)

    async def modify_position(self, ticket: int, sl: Optional[float] = None,
                              tp: Optional[float] = None) -> GatewayResult:
        async with self._lock:
            position = self._positions.get(ticket)
            if position is None:
                raise ExecutionGatewayError(
                    f"Unknown position ticket {ticket}",
                    operation="modify_position",
                    ticket=ticket,
                )
            self._positions[ticket] = replace(
                position,
                sl=sl if sl is not None else position.sl,
                tp=tp if tp is not None else position.tp,
            )
        return GatewayResult(success=True, ticket=ticket)

    async def get_positions(self) -> list[Position]:
        return list(self._positions.values())

    async def get_account_info(self) -> AccountInfo:
        floating = sum(p.profit for p in self._positions.values())
        margin = sum(p.notional * self.contract_size for p in self._positions.values()) * self.margin_rate
        return AccountInfo(
            balance=self.balance,
            equity=self.balance + floating,
            margin=margin,
            profit=floating,
        )

