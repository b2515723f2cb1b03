"""
买入信号模块

- 价格类: OpenPriceSignal, ClosePriceSignal, LimitPriceSignal
- 形态类: BottomReverseSignal
- 成交量类: VolumeSurgeSignal, VolumeDeclineSignal
"""

from .base import EntryRule, Signal, generate_signals
from .price import OpenPriceSignal, ClosePriceSignal, LimitPriceSignal
from .pattern import BottomReverseSignal
from .volume import VolumeSurgeSignal, VolumeDeclineSignal

__all__ = [
    "EntryRule",
    "Signal",
    "generate_signals",
    "OpenPriceSignal",
    "ClosePriceSignal",
    "LimitPriceSignal",
    "BottomReverseSignal",
    "VolumeSurgeSignal",
    "VolumeDeclineSignal",
]
