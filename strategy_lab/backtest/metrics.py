"""
绩效指标函数

基于逐笔交易收益率列表计算的统计指标。输入均为收益率（小数），
计算均使用 numpy，空输入和零方差都有明确的回退值。
"""

from typing import Sequence

import numpy as np


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def sharpe_ratio(returns: Sequence[float], risk_free_rate: float = 0.0) -> float:
    """
    夏普比率 = (均值 - 无风险利率) / 总体标准差

    空序列或标准差为 0 时返回 0.0。不做年化。
    """
    arr = _as_array(returns)
    if arr.size == 0:
        return 0.0
    std = arr.std(ddof=0)
    if std == 0:
        return 0.0
    return float((arr.mean() - risk_free_rate) / std)


def sortino_ratio(returns: Sequence[float], risk_free_rate: float = 0.0) -> float:
    """
    索提诺比率，只使用负收益计算下行偏差

    没有负收益时返回 +inf，空序列返回 0.0。
    """
    arr = _as_array(returns)
    if arr.size == 0:
        return 0.0
    negative = arr[arr < 0]
    if negative.size == 0:
        return float("inf")
    downside = np.sqrt(np.mean(negative ** 2))
    if downside == 0:
        return 0.0
    return float((arr.mean() - risk_free_rate) / downside)


def max_drawdown(values: Sequence[float]) -> float:
    """
    资产价值序列的最大回撤

    Parameters
    ----------
    values : Sequence[float]
        净值序列

    Returns
    -------
    float
        最大回撤比例 (>= 0)，少于两个点时为 0.0
    """
    arr = _as_array(values)
    if arr.size <= 1:
        return 0.0
    peak = np.maximum.accumulate(arr)
    drawdown = (peak - arr) / peak
    return float(drawdown.max())


def drawdown_from_returns(returns: Sequence[float]) -> float:
    """
    按给定顺序复利累乘收益率 (cum *= 1 + r)，计算累计值的最大回撤

    峰值从第一笔交易后的累计值开始跟踪。结果依赖交易产生的顺序，
    而非日历顺序。
    """
    arr = _as_array(returns)
    if arr.size == 0:
        return 0.0
    cumulative = np.cumprod(1.0 + arr)
    peak = np.maximum.accumulate(cumulative)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdown = np.where(peak > 0, (peak - cumulative) / peak, 0.0)
    return float(max(drawdown.max(), 0.0))


def calmar_ratio(
    returns: Sequence[float],
    values: Sequence[float],
    risk_free_rate: float = 0.0
) -> float:
    """卡尔马比率 = 超额平均收益 / 最大回撤，无回撤时返回 +inf"""
    arr = _as_array(returns)
    if arr.size == 0 or len(values) <= 1:
        return 0.0
    mdd = max_drawdown(values)
    if mdd == 0:
        return float("inf")
    return float((arr.mean() - risk_free_rate) / mdd)


def win_rate(returns: Sequence[float]) -> float:
    """正收益交易占比"""
    arr = _as_array(returns)
    if arr.size == 0:
        return 0.0
    return float(np.count_nonzero(arr > 0) / arr.size)


def profit_factor(returns: Sequence[float]) -> float:
    """
    常规盈亏比 = 总盈利 / 总亏损

    没有亏损时返回 +inf。
    """
    arr = _as_array(returns)
    profits = arr[arr > 0].sum()
    losses = np.abs(arr[arr < 0]).sum()
    if losses == 0:
        return float("inf")
    return float(profits / losses)


def expected_return(returns: Sequence[float]) -> float:
    """期望收益 = 胜率 * 平均盈利 + (1 - 胜率) * 平均亏损"""
    arr = _as_array(returns)
    if arr.size == 0:
        return 0.0
    rate = win_rate(arr)
    wins = arr[arr > 0]
    losses = arr[arr < 0]
    avg_win = wins.sum() / max(wins.size, 1)
    avg_loss = losses.sum() / max(losses.size, 1)
    return float(rate * avg_win + (1 - rate) * avg_loss)


__all__ = [
    "sharpe_ratio",
    "sortino_ratio",
    "max_drawdown",
    "drawdown_from_returns",
    "calmar_ratio",
    "win_rate",
    "profit_factor",
    "expected_return",
]
