"""
止损守护目标

在 N 天内未触发止损即视为成功，不设收益目标。
"""

from dataclasses import replace
from typing import Optional
import logging

from ..data_loader.bars import PriceSeries
from .base import (
    ExitReason,
    TradeOutcome,
    format_pct,
    simulate_exit,
    validate_policy_params,
)

logger = logging.getLogger(__name__)


class GuardTarget:
    """
    止损守护退出策略

    与 ReturnTarget 使用相同的跳空/止损判定规则，但不检查目标收益，
    持有到期（未被止损）的交易计为成功。

    Parameters
    ----------
    stop_loss : float
        止损比例
    in_days : int
        守护天数
    """

    target_return = 0.0

    def __init__(self, stop_loss: float, in_days: int) -> None:
        validate_policy_params(stop_loss, in_days)
        self.stop_loss = stop_loss
        self.in_days = in_days

    @property
    def name(self) -> str:
        return f"{self.in_days}天内不触发{format_pct(self.stop_loss)}%止损"

    def simulate(
        self,
        series: PriceSeries,
        buy_price: float,
        offset: int,
        symbol: str = "",
    ) -> Optional[TradeOutcome]:
        outcome = simulate_exit(
            series,
            buy_price,
            offset,
            target_return=None,
            stop_loss_pct=self.stop_loss,
            horizon_days=self.in_days,
            symbol=symbol,
        )
        if outcome is None:
            return None
        survived = outcome.exit_reason is ExitReason.TIME_EXPIRED
        if not survived:
            logger.debug(f"{symbol} 第{outcome.hold_days}天触发止损 ({outcome.exit_reason.label})")
        return replace(outcome, is_win=survived)

    def __repr__(self) -> str:
        return f"GuardTarget(stop_loss={self.stop_loss}, in_days={self.in_days})"


__all__ = ["GuardTarget"]
