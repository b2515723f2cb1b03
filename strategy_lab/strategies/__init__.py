"""
选股策略模块

- AtrSelector: 波动率 + 量比 + 趋势加权
- VolumeDecliningSelector: 连续缩量靠近支撑
- BreakthroughPullbackSelector: 放量突破后缩量回踩
- RsiSelector / MacdSelector: 振荡指标拐点
"""

from .base import Candidate, Panel, StockSelector, rank_candidates
from .atr import AtrSelector, AtrSelectorWeights
from .volume_decline import VolumeDecliningSelector
from .breakthrough_pullback import BreakthroughPullbackSelector
from .oscillator import RsiSelector, MacdSelector

__all__ = [
    "Candidate",
    "Panel",
    "StockSelector",
    "rank_candidates",
    "AtrSelector",
    "AtrSelectorWeights",
    "VolumeDecliningSelector",
    "BreakthroughPullbackSelector",
    "RsiSelector",
    "MacdSelector",
]
