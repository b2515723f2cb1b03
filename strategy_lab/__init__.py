"""
strategy_lab - A股选股策略回测评分卡

对 (退出策略 x 选股策略 x 买入信号) 的全部组合做滚动回测，
比较各组合的胜率、止损情况与收益指标，并生成最新推荐。

模块结构:
    - data_loader: 日线数据结构、数据源与带缓存的数据仓库
    - features: 技术指标
    - strategies: 选股策略
    - signals: 买入信号
    - targets: 退出策略（逐日持仓模拟）
    - backtest: 回测引擎、结果汇总与绩效分析
    - scorecard: 全组合评分卡
    - registry: 按名称构建组件
    - report: 推荐与 JSON 导出
"""

from .data_loader import (
    Bar,
    PriceSeries,
    DataHandler,
    DataSourceError,
    MockDataHandler,
    StockRepository,
)
from .targets import ExitReason, TradeOutcome, ReturnTarget, GuardTarget, simulate_exit
from .backtest import BacktestEngine, BacktestResult, PerformanceAnalyzer
from .scorecard import Scorecard
from .registry import build_from_config, default_config
from .report import Recommendation, export_results_to_json

__version__ = "0.1.0"

__all__ = [
    "Bar",
    "PriceSeries",
    "DataHandler",
    "DataSourceError",
    "MockDataHandler",
    "StockRepository",
    "ExitReason",
    "TradeOutcome",
    "ReturnTarget",
    "GuardTarget",
    "simulate_exit",
    "BacktestEngine",
    "BacktestResult",
    "PerformanceAnalyzer",
    "Scorecard",
    "build_from_config",
    "default_config",
    "Recommendation",
    "export_results_to_json",
]
