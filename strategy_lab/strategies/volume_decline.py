"""
成交量萎缩选股策略

筛选连续缩量、价格靠近支撑位的股票，按距离压力位的空间排序。
"""

from dataclasses import dataclass
from typing import List, Optional

from ..data_loader.bars import PriceSeries
from .base import Candidate, Panel, rank_candidates, validate_top_n


@dataclass
class VolumeDecliningSelector:
    """
    成交量萎缩选股策略

    Parameters
    ----------
    top_n : int
        选出股票数
    lookback_days : int
        回看天数
    min_consecutive_decline_days : int
        最少连续缩量天数
    min_volume_decline_ratio : float
        单日最小缩量比例，如 0.05 表示成交量至少比前一日减少 5%
    price_period : int
        支撑位 / 压力位计算周期
    check_support_level : bool
        是否要求价格靠近支撑位
    max_support_ratio : float
        收盘价距离支撑位的最大比例
    """
    top_n: int = 10
    lookback_days: int = 30
    min_consecutive_decline_days: int = 3
    min_volume_decline_ratio: float = 0.1
    price_period: int = 20
    check_support_level: bool = True
    max_support_ratio: float = 0.05

    def __post_init__(self) -> None:
        validate_top_n(self.top_n)

    @property
    def name(self) -> str:
        return "成交量萎缩策略"

    def select(self, panel: Panel, offset: int) -> List[Candidate]:
        return rank_candidates(panel, offset, self.score, self.top_n)

    def score(self, symbol: str, series: PriceSeries, offset: int) -> Optional[float]:
        if len(series) <= offset + max(self.lookback_days, self.price_period):
            return None
        if not self.has_volume_decline(series, offset):
            return None
        if self.check_support_level and not self.near_support(series, offset):
            return None
        return self.resistance_ratio(series, offset)

    def has_volume_decline(self, series: PriceSeries, offset: int) -> bool:
        """从决策日往前数，是否连续缩量达到要求天数"""
        threshold = 1.0 - self.min_volume_decline_ratio
        consecutive = 0
        for i in range(self.lookback_days - 1):
            current = float(series.volume[offset + i])
            previous = float(series.volume[offset + i + 1])
            if previous > 0 and current / previous <= threshold:
                consecutive += 1
                if consecutive >= self.min_consecutive_decline_days:
                    return True
            else:
                break
        return False

    def near_support(self, series: PriceSeries, offset: int) -> bool:
        """收盘价与近期最低价的距离是否在允许范围内"""
        support = series.low[offset:offset + self.price_period].min()
        price = series.close[offset]
        if price <= 0:
            return False
        return (price - support) / price <= self.max_support_ratio

    def resistance_ratio(self, series: PriceSeries, offset: int) -> float:
        """距离近期最高价的上涨空间，越大越好"""
        resistance = series.high[offset:offset + self.price_period].max()
        price = series.close[offset]
        if price <= 0 or resistance <= price:
            return 0.0
        return float((resistance - price) / price)


__all__ = ["VolumeDecliningSelector"]
