"""
突破回踩选股策略

寻找近期放量突破、随后缩量小幅回踩的股票。
"""

from dataclasses import dataclass
from typing import List, Optional

from ..data_loader.bars import PriceSeries
from .base import Candidate, Panel, rank_candidates, validate_top_n


@dataclass
class BreakthroughPullbackSelector:
    """
    突破回踩选股策略

    Parameters
    ----------
    top_n : int
        选出股票数
    lookback_days : int
        寻找突破的回看天数
    min_breakthrough_percent : float
        突破日最小涨幅（百分数）
    max_pullback_percent : float
        回踩最大跌幅（百分数）
    volume_decline_ratio : float
        决策日成交量不超过突破日成交量的比例
    """
    top_n: int = 10
    lookback_days: int = 10
    min_breakthrough_percent: float = 5.0
    max_pullback_percent: float = 5.0
    volume_decline_ratio: float = 0.7

    def __post_init__(self) -> None:
        validate_top_n(self.top_n)

    @property
    def name(self) -> str:
        return "突破回踩策略"

    def select(self, panel: Panel, offset: int) -> List[Candidate]:
        return rank_candidates(panel, offset, self.score, self.top_n)

    def score(self, symbol: str, series: PriceSeries, offset: int) -> Optional[float]:
        if len(series) <= offset + self.lookback_days:
            return None

        idx = self.find_breakthrough(series, offset)
        if idx is None:
            return None

        pullback = self.pullback_percent(series, offset, idx)
        if pullback is None:
            return None
        # 突破越强、回踩越浅越好
        return self.breakthrough_percent(series, idx) - pullback

    def breakthrough_percent(self, series: PriceSeries, idx: int) -> float:
        prev_close = series.close[idx + 1]
        if prev_close <= 0:
            return 0.0
        return float((series.close[idx] - prev_close) / prev_close * 100.0)

    def find_breakthrough(self, series: PriceSeries, offset: int) -> Optional[int]:
        """决策日之前最近一次放量突破的索引"""
        for i in range(1, self.lookback_days):
            idx = offset + i
            if idx + 1 >= len(series):
                break
            if (
                self.breakthrough_percent(series, idx) >= self.min_breakthrough_percent
                and series.volume[idx] > series.volume[idx + 1]
            ):
                return idx
        return None

    def pullback_percent(self, series: PriceSeries, offset: int, idx: int) -> Optional[float]:
        """回踩幅度（百分数），不满足回踩条件时返回 None"""
        breakthrough_price = series.close[idx]
        if breakthrough_price <= 0:
            return None

        pullback = (breakthrough_price - series.close[offset]) / breakthrough_price * 100.0
        if not 0.0 < pullback <= self.max_pullback_percent:
            return None

        if series.volume[offset] > series.volume[idx] * self.volume_decline_ratio:
            return None
        return float(pullback)


__all__ = ["BreakthroughPullbackSelector"]
