"""
退出策略模块

- ReturnTarget: 收益率目标（达到目标为成功）
- GuardTarget: 止损守护（N 天内不被止损为成功）
"""

from .base import ExitPolicy, ExitReason, TradeOutcome, simulate_exit
from .return_target import ReturnTarget
from .guard_target import GuardTarget

__all__ = [
    "ExitPolicy",
    "ExitReason",
    "TradeOutcome",
    "simulate_exit",
    "ReturnTarget",
    "GuardTarget",
]
