"""
Algo App - Algorithmic Trading Simulation and Execution Core

Deterministic historical backtesting, pluggable trading-strategy algorithms,
an asynchronous execution coordinator that drives live strategy instances
through analyze/signal/validate/size/risk/execute cycles, and a risk engine
scoring exposure, drawdown, correlation and value-at-risk.
"""

__version__ = "0.1.0"
__author__ = "Algo App Team"
