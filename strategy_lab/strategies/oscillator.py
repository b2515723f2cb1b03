"""
振荡指标选股策略

- RsiSelector: RSI 超卖区拐头
- MacdSelector: MACD 柱由负转正或加速上行

指标在决策日及之前的窗口上按时间正序计算。
"""

from dataclasses import dataclass
from typing import List, Optional

from ..data_loader.bars import PriceSeries
from ..features.technical import TechnicalFeatures
from .base import Candidate, Panel, rank_candidates, validate_top_n


@dataclass
class RsiSelector:
    """
    RSI 选股策略

    前一日 RSI 处于超卖区且当日拐头向上得分最高；
    仍在超卖区得分次之；其余不入选。
    """
    top_n: int = 10
    period: int = 14
    oversold_threshold: float = 30.0

    def __post_init__(self) -> None:
        validate_top_n(self.top_n)

    @property
    def name(self) -> str:
        return f"RSI({self.period})选股策略"

    def select(self, panel: Panel, offset: int) -> List[Candidate]:
        return rank_candidates(panel, offset, self.score, self.top_n)

    def score(self, symbol: str, series: PriceSeries, offset: int) -> Optional[float]:
        length = self.period * 3 + 2
        if len(series) < offset + length:
            return None

        rsi = TechnicalFeatures.rsi(TechnicalFeatures.history(series, offset, length), self.period)
        current, previous = float(rsi.iloc[-1]), float(rsi.iloc[-2])

        if previous < self.oversold_threshold and current > previous:
            return 100.0 - current + (current - previous) * 5.0
        if current < self.oversold_threshold:
            return 50.0 - current
        return None


@dataclass
class MacdSelector:
    """
    MACD 选股策略

    MACD 柱由负转正得 100 分；柱值上升得 50 + 10 * 增量；其余不入选。
    """
    top_n: int = 10
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9

    def __post_init__(self) -> None:
        validate_top_n(self.top_n)

    @property
    def name(self) -> str:
        return "MACD选股策略"

    def select(self, panel: Panel, offset: int) -> List[Candidate]:
        return rank_candidates(panel, offset, self.score, self.top_n)

    def score(self, symbol: str, series: PriceSeries, offset: int) -> Optional[float]:
        length = self.slow_period * 3
        if len(series) < offset + length:
            return None

        _, _, histogram = TechnicalFeatures.macd(
            TechnicalFeatures.history(series, offset, length),
            self.fast_period,
            self.slow_period,
            self.signal_period,
        )
        current, previous = float(histogram.iloc[-1]), float(histogram.iloc[-2])

        if previous < 0 < current:
            return 100.0
        if current > previous:
            return 50.0 + (current - previous) * 10.0
        return None


__all__ = ["RsiSelector", "MacdSelector"]
