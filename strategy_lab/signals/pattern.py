"""
K线形态买入信号
"""

from dataclasses import dataclass
import logging

from ..data_loader.bars import PriceSeries
from .base import next_day_index

logger = logging.getLogger(__name__)


@dataclass
class BottomReverseSignal:
    """
    地包天买入信号

    形态：决策日开盘低于前一日最低价、收盘高于前一日最高价；
    或决策日收阳且成交量低于前一日的 90%（地量企稳）。
    满足任一条件时以次日开盘价上浮 price_buffer_percent% 买入。
    """
    price_buffer_percent: float = 1.0
    volume_shrink_ratio: float = 0.9

    @property
    def name(self) -> str:
        return "地包天买入信号"

    def price(self, symbol: str, series: PriceSeries, offset: int) -> float:
        idx = next_day_index(series, offset)
        if idx < 0 or len(series) <= offset + 1:
            return 0.0

        today = series[offset]
        yesterday = series[offset + 1]

        is_bottom_reverse = today.open < yesterday.low and today.close > yesterday.high
        is_volume_low = today.volume < yesterday.volume * self.volume_shrink_ratio

        if is_bottom_reverse or (today.close > today.open and is_volume_low):
            buy_price = float(series.open[idx]) * (1 + self.price_buffer_percent / 100)
            logger.debug(f"生成买入信号: {symbol}, 买入价={buy_price:.2f}")
            return buy_price
        return 0.0


__all__ = ["BottomReverseSignal"]
