"""
回测引擎模块

对单个 (选股策略, 买入信号, 退出策略) 组合执行 选股 -> 定价 -> 模拟退出 流程，
并在多个历史决策日上滚动重复 (walk-forward)。
"""

from typing import Dict, List, Mapping, Optional, Sequence
import logging

import numpy as np

from ..data_loader.bars import PriceSeries
from ..data_loader.repository import StockRepository
from ..signals.base import EntryRule, generate_signals
from ..strategies.base import StockSelector
from ..targets.base import ExitPolicy, TradeOutcome
from .result import BacktestResult

logger = logging.getLogger(__name__)


class BacktestEngine:
    """
    回测引擎

    面板数据在构建后只读，可被多个线程同时使用。

    Parameters
    ----------
    panel : Mapping[str, PriceSeries]
        股票代码 -> 日线序列（最新在前）
    collect_trade_details : bool, optional
        是否在 BacktestResult 中保留逐笔交易明细，默认 False。
        关闭时所有数值统计不受影响。

    Examples
    --------
    >>> engine = BacktestEngine(panel)
    >>> score = engine.run_backtest(selector, signal, target, back_days=20)
    >>> result = engine.run_detailed(selector, signal, target, back_days=20)
    >>> print(result.format_report())
    """

    def __init__(
        self,
        panel: Mapping[str, PriceSeries],
        collect_trade_details: bool = False
    ) -> None:
        self.panel: Dict[str, PriceSeries] = dict(panel)
        self.collect_trade_details = collect_trade_details
        logger.info(f"回测引擎初始化: {len(self.panel)} 只股票, 交易明细={'开启' if collect_trade_details else '关闭'}")

    @classmethod
    def from_repository(
        cls,
        repository: StockRepository,
        symbols: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        collect_trade_details: bool = False
    ) -> "BacktestEngine":
        """从数据仓库加载面板并构建引擎"""
        panel = repository.load_panel(symbols=symbols, limit=limit)
        return cls(panel, collect_trade_details=collect_trade_details)

    @staticmethod
    def walk_forward_offsets(policy: ExitPolicy, back_days: int) -> range:
        """
        滚动回测的决策日索引

        第 s 步 (s = 1 ... back_days) 对应决策日 ``in_days + s - 1``，
        保证每一步都有完整的持仓窗口。
        """
        if back_days < 1:
            raise ValueError(f"back_days 必须 >= 1, 当前为 {back_days}")
        return range(policy.in_days, policy.in_days + back_days)

    def evaluate_offset(
        self,
        selector: StockSelector,
        rule: EntryRule,
        policy: ExitPolicy,
        offset: int
    ) -> List[TradeOutcome]:
        """在单个决策日上执行完整流程，返回有效交易结果"""
        candidates = selector.select(self.panel, offset)
        signals = generate_signals(rule, candidates, offset)

        outcomes = []
        for signal in signals:
            outcome = policy.simulate(signal.series, signal.buy_price, offset, symbol=signal.symbol)
            if outcome is not None:
                outcomes.append(outcome)

        logger.debug(
            f"[{selector.name} | {rule.name} | {policy.name}] offset={offset}: "
            f"候选 {len(candidates)}, 信号 {len(signals)}, 有效交易 {len(outcomes)}"
        )
        return outcomes

    def run_detailed_test(
        self,
        selector: StockSelector,
        rule: EntryRule,
        policy: ExitPolicy,
        offset: int
    ) -> BacktestResult:
        """单个决策日的完整统计"""
        outcomes = self.evaluate_offset(selector, rule, policy, offset)
        return BacktestResult.from_outcomes(outcomes, collect_details=self.collect_trade_details)

    def run_single_test(
        self,
        selector: StockSelector,
        rule: EntryRule,
        policy: ExitPolicy,
        offset: int
    ) -> float:
        """单个决策日的胜率，无有效交易时为 0.0"""
        return self.run_detailed_test(selector, rule, policy, offset).win_rate

    def run_backtest(
        self,
        selector: StockSelector,
        rule: EntryRule,
        policy: ExitPolicy,
        back_days: int
    ) -> float:
        """
        滚动回测得分

        Returns
        -------
        float
            各决策日胜率的算术平均；每个决策日权重相同，
            没有有效交易的决策日计为 0.0
        """
        rates = [
            self.run_single_test(selector, rule, policy, offset)
            for offset in self.walk_forward_offsets(policy, back_days)
        ]
        return float(np.mean(rates))

    def run_detailed(
        self,
        selector: StockSelector,
        rule: EntryRule,
        policy: ExitPolicy,
        back_days: int
    ) -> BacktestResult:
        """
        滚动回测完整统计

        各决策日结果按交易数加权合并。
        """
        results = [
            self.run_detailed_test(selector, rule, policy, offset)
            for offset in self.walk_forward_offsets(policy, back_days)
        ]
        merged = BacktestResult.merge(results)
        logger.info(
            f"[{selector.name} | {rule.name} | {policy.name}] "
            f"{back_days}个决策日, 交易 {merged.total_trades} 笔, 胜率 {merged.win_rate:.2%}"
        )
        return merged


__all__ = ["BacktestEngine"]
