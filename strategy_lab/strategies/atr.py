"""
ATR 选股策略

综合波动率、量比与趋势三项得分加权排序。
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ..data_loader.bars import PriceSeries
from ..features.numba_utils import calculate_atr_numba
from .base import Candidate, Panel, rank_candidates, validate_top_n


@dataclass
class AtrSelectorWeights:
    """ATR 选股各项得分权重"""
    atr_weight: float = 0.4
    volume_weight: float = 0.3
    trend_weight: float = 0.3


@dataclass
class AtrSelector:
    """
    基于 ATR 的选股策略

    Parameters
    ----------
    top_n : int
        选出股票数
    lookback_days : int
        回看天数
    score_weights : AtrSelectorWeights
        得分权重
    """
    top_n: int = 10
    lookback_days: int = 100
    score_weights: AtrSelectorWeights = field(default_factory=AtrSelectorWeights)

    def __post_init__(self) -> None:
        validate_top_n(self.top_n)
        if self.lookback_days < 2:
            raise ValueError(f"lookback_days 必须 >= 2, 当前为 {self.lookback_days}")

    @property
    def name(self) -> str:
        return "ATR选股策略"

    def select(self, panel: Panel, offset: int) -> List[Candidate]:
        return rank_candidates(panel, offset, self.score, self.top_n)

    def score(self, symbol: str, series: PriceSeries, offset: int) -> Optional[float]:
        if len(series) <= offset + self.lookback_days:
            return None

        w = self.score_weights
        return (
            self.atr_score(series, offset) * w.atr_weight
            + self.volume_score(series, offset) * w.volume_weight
            + self.trend_score(series, offset) * w.trend_weight
        )

    def atr_score(self, series: PriceSeries, offset: int) -> float:
        """ATR 相对决策日收盘价的比例"""
        end = offset + self.lookback_days + 1
        high = series.high[offset:end][::-1]
        low = series.low[offset:end][::-1]
        close = series.close[offset:end][::-1]

        atr = calculate_atr_numba(
            np.ascontiguousarray(high),
            np.ascontiguousarray(low),
            np.ascontiguousarray(close),
            self.lookback_days,
        )[-1]

        price = series.close[offset]
        if price <= 0 or np.isnan(atr):
            return 0.0
        return float(atr / price)

    def volume_score(self, series: PriceSeries, offset: int) -> float:
        """决策日成交量 / 回看期平均成交量"""
        avg_volume = series.volume[offset:offset + self.lookback_days].mean()
        if avg_volume <= 0:
            return 0.0
        return float(series.volume[offset] / avg_volume)

    def trend_score(self, series: PriceSeries, offset: int) -> float:
        """回看期价格变化率"""
        start_price = series.close[offset + self.lookback_days - 1]
        if start_price <= 0:
            return 0.0
        return float((series.close[offset] - start_price) / start_price)


__all__ = ["AtrSelector", "AtrSelectorWeights"]
