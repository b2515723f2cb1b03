"""
技术指标

选股策略使用的均线、MACD、RSI、ATR、布林带与波动率。
指标函数接收时间正序的 pd.Series；``history`` 负责从最新在前的
PriceSeries 中截取决策日及之前的窗口，保证打分不会读到未来数据。
"""

from typing import NamedTuple
import logging

import numpy as np
import pandas as pd

from ..data_loader.bars import PriceSeries
from .numba_utils import calculate_atr_numba, calculate_rsi_numba

logger = logging.getLogger(__name__)


class MacdLines(NamedTuple):
    """MACD 三线：DIF、DEA 与柱 ``2 * (DIF - DEA)``"""
    dif: pd.Series
    dea: pd.Series
    histogram: pd.Series


class BollingerBands(NamedTuple):
    upper: pd.Series
    middle: pd.Series
    lower: pd.Series


def _as_float_array(series: pd.Series) -> np.ndarray:
    return np.ascontiguousarray(series.to_numpy(dtype=np.float64))


class TechnicalFeatures:
    """
    技术指标计算器（全部为静态方法）

    Examples
    --------
    >>> closes = TechnicalFeatures.history(series, offset=3, length=44)
    >>> rsi = TechnicalFeatures.rsi(closes, 14)
    >>> dif, dea, hist = TechnicalFeatures.macd(closes)
    """

    @staticmethod
    def history(
        series: PriceSeries,
        offset: int,
        length: int,
        field: str = "close"
    ) -> pd.Series:
        """
        决策日及之前 length 根K线的某个字段，时间正序

        Parameters
        ----------
        series : PriceSeries
            最新在前的日线序列
        offset : int
            决策日索引
        length : int
            窗口长度（序列不足时返回的更短）
        field : str, optional
            open / high / low / close / volume，默认 close

        Returns
        -------
        pd.Series
            以日期为索引，最后一个元素为决策日
        """
        end = offset + length
        values = getattr(series, field)[offset:end][::-1]
        dates = pd.to_datetime(series.date[offset:end][::-1].astype(str), format="%Y%m%d")
        return pd.Series(values, index=dates, name=field, dtype=np.float64)

    @staticmethod
    def sma(series: pd.Series, period: int) -> pd.Series:
        """简单移动平均，前 period-1 天按已有数据平均"""
        return series.rolling(window=period, min_periods=1).mean()

    @staticmethod
    def ema(series: pd.Series, period: int) -> pd.Series:
        return series.ewm(span=period, adjust=False).mean()

    @staticmethod
    def rsi(series: pd.Series, period: int = 14) -> pd.Series:
        """RSI（Wilder 平滑，Numba 内核），前 period 个值为 NaN"""
        return pd.Series(calculate_rsi_numba(_as_float_array(series), period), index=series.index)

    @staticmethod
    def macd(
        series: pd.Series,
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9
    ) -> MacdLines:
        """
        MACD

        Returns
        -------
        MacdLines
            (dif, dea, histogram)，柱值按 A 股行情软件惯例乘 2
        """
        dif = TechnicalFeatures.ema(series, fast_period) - TechnicalFeatures.ema(series, slow_period)
        dea = TechnicalFeatures.ema(dif, signal_period)
        return MacdLines(dif, dea, 2 * (dif - dea))

    @staticmethod
    def bollinger_bands(
        series: pd.Series,
        period: int = 20,
        std_dev: float = 2.0
    ) -> BollingerBands:
        """布林带，标准差使用总体标准差"""
        window = series.rolling(window=period, min_periods=1)
        middle = window.mean()
        width = std_dev * window.std(ddof=0)
        return BollingerBands(middle + width, middle, middle - width)

    @staticmethod
    def atr(
        high: pd.Series,
        low: pd.Series,
        close: pd.Series,
        period: int = 14
    ) -> pd.Series:
        """ATR（真实波幅的简单滚动均值，Numba 内核）"""
        values = calculate_atr_numba(
            _as_float_array(high),
            _as_float_array(low),
            _as_float_array(close),
            period,
        )
        return pd.Series(values, index=close.index)

    @staticmethod
    def volatility(series: pd.Series) -> float:
        """总体标准差，少于两个点时为 0"""
        if len(series) <= 1:
            return 0.0
        return float(series.std(ddof=0))


__all__ = ["TechnicalFeatures", "MacdLines", "BollingerBands"]
