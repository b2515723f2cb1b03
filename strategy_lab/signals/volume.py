"""
成交量类买入信号

满足条件时以决策日收盘价买入。
"""

from dataclasses import dataclass

from ..data_loader.bars import PriceSeries


@dataclass
class VolumeSurgeSignal:
    """
    放量突破信号

    决策日成交量 >= 前 avg_days 日均量 * volume_ratio，
    启用 price_filter 时还要求收盘价高于前一日。
    """
    volume_ratio: float = 2.0
    price_filter: bool = True
    avg_days: int = 5

    @property
    def name(self) -> str:
        return "成交量突破信号"

    def price(self, symbol: str, series: PriceSeries, offset: int) -> float:
        if len(series) <= offset + self.avg_days:
            return 0.0

        avg_volume = series.volume[offset + 1:offset + 1 + self.avg_days].mean()
        if series.volume[offset] < avg_volume * self.volume_ratio:
            return 0.0
        if self.price_filter and series.close[offset] <= series.close[offset + 1]:
            return 0.0
        return float(series.close[offset])


@dataclass
class VolumeDeclineSignal:
    """
    缩量企稳信号

    连续 min_consecutive_days 天成交量不超过前一日的 decline_ratio 倍，
    启用 price_filter 时还要求收盘价不低于缩量开始前。
    """
    min_consecutive_days: int = 3
    decline_ratio: float = 0.8
    price_filter: bool = True

    @property
    def name(self) -> str:
        return "成交量萎缩信号"

    def price(self, symbol: str, series: PriceSeries, offset: int) -> float:
        n = self.min_consecutive_days
        if len(series) <= offset + n:
            return 0.0

        for i in range(n):
            if series.volume[offset + i] > series.volume[offset + i + 1] * self.decline_ratio:
                return 0.0

        if self.price_filter and series.close[offset] < series.close[offset + n]:
            return 0.0
        return float(series.close[offset])


__all__ = ["VolumeSurgeSignal", "VolumeDeclineSignal"]
