"""
价格类买入信号

受 T+1 约束，决策日收盘后才确定买入，成交发生在次一交易日。
"""

from dataclasses import dataclass

from ..data_loader.bars import PriceSeries
from .base import next_day_index


class OpenPriceSignal:
    """次日开盘价买入"""

    name = "开盘价信号"

    def price(self, symbol: str, series: PriceSeries, offset: int) -> float:
        idx = next_day_index(series, offset)
        if idx < 0:
            return 0.0
        return float(series.open[idx])


class ClosePriceSignal:
    """次日收盘价买入"""

    name = "收盘价信号"

    def price(self, symbol: str, series: PriceSeries, offset: int) -> float:
        idx = next_day_index(series, offset)
        if idx < 0:
            return 0.0
        return float(series.close[idx])


@dataclass
class LimitPriceSignal:
    """
    次日限价买入

    限价 = 决策日收盘价 * (1 - discount)。次日最低价触及限价才成交，
    成交价为 min(限价, 次日开盘价)，未成交返回 0。
    """
    discount: float = 0.01

    def __post_init__(self) -> None:
        if not 0 <= self.discount < 1:
            raise ValueError(f"discount 必须在 [0, 1) 之间, 当前为 {self.discount}")

    @property
    def name(self) -> str:
        return f"限价{self.discount * 100:g}%信号"

    def price(self, symbol: str, series: PriceSeries, offset: int) -> float:
        idx = next_day_index(series, offset)
        if idx < 0:
            return 0.0

        limit = float(series.close[offset]) * (1 - self.discount)
        if series.low[idx] > limit:
            return 0.0
        return min(limit, float(series.open[idx]))


__all__ = ["OpenPriceSignal", "ClosePriceSignal", "LimitPriceSignal"]
