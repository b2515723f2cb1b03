"""
Numba 加速的指标内核

RSI、ATR 这类逐日递推的指标在选股打分时会对每只股票、每个决策日
反复计算，使用 Numba JIT 编译。输入数组均为时间正序（最早在前）。
"""

import numpy as np
from numba import jit


@jit(nopython=True, cache=True)
def rolling_mean_1d(arr: np.ndarray, window: int, min_periods: int) -> np.ndarray:
    """
    滚动均值（窗口内 NaN 不计入）

    维护窗口和与有效计数，单次遍历完成。

    Parameters
    ----------
    arr : np.ndarray
        输入数组
    window : int
        窗口长度
    min_periods : int
        窗口内至少需要的有效值个数，不足时输出 NaN

    Returns
    -------
    np.ndarray
        与输入等长的滚动均值
    """
    n = len(arr)
    out = np.full(n, np.nan)
    window_sum = 0.0
    valid = 0

    for i in range(n):
        x = arr[i]
        if not np.isnan(x):
            window_sum += x
            valid += 1

        if i >= window:
            dropped = arr[i - window]
            if not np.isnan(dropped):
                window_sum -= dropped
                valid -= 1

        if valid >= min_periods and valid > 0:
            out[i] = window_sum / valid

    return out


@jit(nopython=True, cache=True)
def calculate_rsi_numba(close: np.ndarray, period: int) -> np.ndarray:
    """
    RSI（Wilder 平滑）

    首个值取前 period 个涨跌幅的简单平均，之后按
    ``avg = (avg * (period - 1) + x) / period`` 递推。

    Parameters
    ----------
    close : np.ndarray
        收盘价
    period : int
        周期

    Returns
    -------
    np.ndarray
        0-100 的 RSI，前 period 个位置为 NaN；涨跌均为 0 时取 50
    """
    n = len(close)
    out = np.full(n, np.nan)
    if n <= period:
        return out

    avg_up = 0.0
    avg_down = 0.0
    for i in range(1, n):
        change = close[i] - close[i - 1]
        up = change if change > 0 else 0.0
        down = -change if change < 0 else 0.0

        if i <= period:
            avg_up += up / period
            avg_down += down / period
            if i < period:
                continue
        else:
            avg_up = (avg_up * (period - 1) + up) / period
            avg_down = (avg_down * (period - 1) + down) / period

        if avg_down == 0:
            out[i] = 50.0 if avg_up == 0 else 100.0
        else:
            out[i] = 100.0 - 100.0 / (1.0 + avg_up / avg_down)

    return out


@jit(nopython=True, cache=True)
def true_range_numba(high: np.ndarray, low: np.ndarray, close: np.ndarray) -> np.ndarray:
    """真实波幅，首日为当日振幅"""
    n = len(close)
    tr = np.empty(n)
    for i in range(n):
        span = high[i] - low[i]
        if i > 0:
            prev = close[i - 1]
            span = max(span, abs(high[i] - prev), abs(low[i] - prev))
        tr[i] = span
    return tr


@jit(nopython=True, cache=True)
def calculate_atr_numba(
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    period: int
) -> np.ndarray:
    """
    ATR = 真实波幅的简单滚动均值（不足 period 天时按已有天数平均）

    少于两根K线时返回全 NaN。
    """
    if len(close) < 2:
        return np.full(len(close), np.nan)
    return rolling_mean_1d(true_range_numba(high, low, close), period, 1)


__all__ = [
    "rolling_mean_1d",
    "calculate_rsi_numba",
    "true_range_numba",
    "calculate_atr_numba",
]
