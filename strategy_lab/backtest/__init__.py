"""
回测模块

主要组件:
    - BacktestEngine: 单组合滚动回测
    - BacktestResult: 回测结果与合并
    - PerformanceAnalyzer: 绩效分析
    - metrics: 逐笔收益率指标函数
"""

from .engine import BacktestEngine
from .result import BacktestResult
from .analyzer import PerformanceAnalyzer
from . import metrics

__all__ = [
    'BacktestEngine',
    'BacktestResult',
    'PerformanceAnalyzer',
    'metrics',
]
