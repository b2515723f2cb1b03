"""
技术指标模块

- technical: 均线、MACD、RSI、ATR、布林带等指标
- numba_utils: Numba 加速的底层递推函数
"""

from .technical import BollingerBands, MacdLines, TechnicalFeatures
from .numba_utils import (
    calculate_atr_numba,
    calculate_rsi_numba,
    rolling_mean_1d,
    true_range_numba,
)

__all__ = [
    "TechnicalFeatures",
    "MacdLines",
    "BollingerBands",
    "calculate_rsi_numba",
    "calculate_atr_numba",
    "rolling_mean_1d",
    "true_range_numba",
]
