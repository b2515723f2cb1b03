"""
收益率目标

在持仓期内收盘收益率达到目标即视为成功，否则按止损/到期规则退出。
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


class ReturnTarget:
    """
    收益率目标退出策略

    Parameters
    ----------
    target_return : float
        目标收益率，如 0.05 表示 5%
    stop_loss : float
        止损比例，如 0.03 表示 3%
    in_days : int
        最长持仓天数

    Examples
    --------
    >>> target = ReturnTarget(target_return=0.05, stop_loss=0.03, in_days=3)
    >>> target.name
    '收益率目标 5% / 3天'
    >>> outcome = target.simulate(series, buy_price=10.0, offset=5)
    """

    def __init__(self, target_return: float, stop_loss: float, in_days: int) -> None:
        validate_policy_params(stop_loss, in_days)
        self.target_return = target_return
        self.stop_loss = stop_loss
        self.in_days = in_days

    @property
    def name(self) -> str:
        return f"收益率目标 {format_pct(self.target_return)}% / {self.in_days}天"

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
            target_return=self.target_return,
            stop_loss_pct=self.stop_loss,
            horizon_days=self.in_days,
            symbol=symbol,
        )
        if outcome is None:
            return None
        return replace(outcome, is_win=outcome.exit_reason is ExitReason.TARGET_REACHED)

    def __repr__(self) -> str:
        return (
            f"ReturnTarget(target_return={self.target_return}, "
            f"stop_loss={self.stop_loss}, in_days={self.in_days})"
        )


__all__ = ["ReturnTarget"]
