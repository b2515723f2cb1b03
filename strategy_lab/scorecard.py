"""
策略评分卡

对 (退出策略 x 选股策略 x 买入信号) 的全部组合并行执行滚动回测，
得分存入三维矩阵 [target][selector][signal]，并提供最佳组合查询与推荐。
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np
from tqdm import tqdm

from .backtest.engine import BacktestEngine
from .backtest.result import BacktestResult
from .report import Recommendation
from .signals.base import EntryRule, generate_signals
from .strategies.base import StockSelector
from .targets.base import ExitPolicy

logger = logging.getLogger(__name__)

Combination = Tuple[int, int, int]
ScoredCombination = Tuple[int, int, int, float]

# 推荐使用的决策日：最近一个可以计算次日买入价的交易日
RECOMMEND_OFFSET = 1


class Scorecard:
    """
    策略评分卡

    Parameters
    ----------
    engine : BacktestEngine
        回测引擎（持有只读面板数据）
    back_days : int
        每个组合滚动回测的决策日数量
    selectors : Sequence[StockSelector]
        选股策略列表
    signals : Sequence[EntryRule]
        买入信号列表
    targets : Sequence[ExitPolicy]
        退出策略列表
    max_workers : int, optional
        并行线程数，默认 4
    show_progress : bool, optional
        是否显示进度条，默认 True

    Raises
    ------
    ValueError
        任一维度为空或 back_days < 1 时

    Examples
    --------
    >>> scorecard = Scorecard(engine, 20, selectors, signals, targets)
    >>> matrix = scorecard.run()
    >>> t, s, g, score = scorecard.find_best_combination(matrix)
    """

    def __init__(
        self,
        engine: BacktestEngine,
        back_days: int,
        selectors: Sequence[StockSelector],
        signals: Sequence[EntryRule],
        targets: Sequence[ExitPolicy],
        max_workers: int = 4,
        show_progress: bool = True
    ) -> None:
        if back_days < 1:
            raise ValueError(f"back_days 必须 >= 1, 当前为 {back_days}")
        for label, items in (("选股策略", selectors), ("买入信号", signals), ("退出策略", targets)):
            if not items:
                raise ValueError(f"{label}列表不能为空")

        self.engine = engine
        self.back_days = back_days
        self.selectors = list(selectors)
        self.signals = list(signals)
        self.targets = list(targets)
        self.max_workers = max_workers
        self.show_progress = show_progress

    @property
    def shape(self) -> Tuple[int, int, int]:
        return len(self.targets), len(self.selectors), len(self.signals)

    def combinations(self) -> List[Combination]:
        """全部组合坐标，顺序为 target -> selector -> signal（外层到内层）"""
        n_t, n_s, n_g = self.shape
        return [(t, s, g) for t in range(n_t) for s in range(n_s) for g in range(n_g)]

    def combination_names(self, t: int, s: int, g: int) -> Tuple[str, str, str]:
        """返回 (选股策略名, 买入信号名, 退出策略名)"""
        return self.selectors[s].name, self.signals[g].name, self.targets[t].name

    def _score(self, t: int, s: int, g: int) -> float:
        selector, signal, target = self.selectors[s], self.signals[g], self.targets[t]
        logger.info(f"评估组合: 策略={selector.name}, 信号={signal.name}, 目标={target.name}")
        return self.engine.run_backtest(selector, signal, target, self.back_days)

    def run(self) -> np.ndarray:
        """
        运行评分卡

        每个组合独立提交到线程池，结果按自身坐标写入矩阵，
        与完成顺序无关。

        Returns
        -------
        np.ndarray
            形状 (targets, selectors, signals) 的得分矩阵
        """
        combos = self.combinations()
        matrix = np.zeros(self.shape, dtype=np.float64)
        logger.info(f"运行评分卡: {len(combos)} 个组合, 回测 {self.back_days} 个决策日")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_combo = {
                executor.submit(self._score, t, s, g): (t, s, g)
                for t, s, g in combos
            }

            with tqdm(total=len(combos), desc="评分卡", unit="组合", disable=not self.show_progress) as pbar:
                for future in as_completed(future_to_combo):
                    matrix[future_to_combo[future]] = future.result()
                    pbar.update(1)

        return matrix

    def find_best_combination(self, matrix: np.ndarray) -> ScoredCombination:
        """
        找出得分最高的组合

        严格大于才替换，得分相同时保留遍历顺序中先出现的组合。

        Returns
        -------
        ScoredCombination
            (target 索引, selector 索引, signal 索引, 得分)

        Raises
        ------
        ValueError
            矩阵为空时
        """
        matrix = np.asarray(matrix)
        if matrix.size == 0:
            raise ValueError("得分矩阵为空")

        best = (0, 0, 0, float(matrix[0, 0, 0]))
        n_t, n_s, n_g = matrix.shape
        for t in range(n_t):
            for s in range(n_s):
                for g in range(n_g):
                    score = float(matrix[t, s, g])
                    if score > best[3]:
                        best = (t, s, g, score)
        return best

    def ranked_combinations(
        self,
        matrix: np.ndarray,
        top_k: Optional[int] = None
    ) -> List[ScoredCombination]:
        """按得分降序排列的组合，得分相同时保持遍历顺序"""
        matrix = np.asarray(matrix)
        scored = [(t, s, g, float(matrix[t, s, g])) for t, s, g in np.ndindex(*matrix.shape)]
        scored.sort(key=lambda item: -item[3])
        return scored if top_k is None else scored[:top_k]

    def format_results(self, matrix: np.ndarray) -> str:
        """格式化全部组合得分"""
        separator = "=" * 59
        lines = ["评分卡结果:", separator]
        n_t, n_s, n_g = np.asarray(matrix).shape
        for t in range(n_t):
            lines.append(f"\n目标: {self.targets[t].name}")
            for s in range(n_s):
                lines.append(f"  策略: {self.selectors[s].name}")
                for g in range(n_g):
                    lines.append(f"    信号: {self.signals[g].name}, 得分: {matrix[t][s][g] * 100:.2f}%")
        lines.append(separator)
        return "\n".join(lines)

    def format_best_combination(self, matrix: np.ndarray) -> str:
        """格式化最佳组合"""
        t, s, g, score = self.find_best_combination(matrix)
        separator = "=" * 59
        return "\n".join([
            "\n最佳组合:",
            separator,
            f"策略: {self.selectors[s].name}",
            f"信号: {self.signals[g].name}",
            f"目标: {self.targets[t].name}",
            f"得分: {score * 100:.2f}%",
            separator,
        ])

    def run_detailed(self, t: int, s: int, g: int) -> BacktestResult:
        """对单个组合执行带完整统计的滚动回测"""
        return self.engine.run_detailed(
            self.selectors[s], self.signals[g], self.targets[t], self.back_days
        )

    def recommend(self, t: int, s: int, g: int, limit: int = 5) -> List[Recommendation]:
        """
        用指定组合在最近的决策日生成推荐

        Parameters
        ----------
        t, s, g : int
            组合坐标
        limit : int, optional
            最多推荐数量，默认 5

        Returns
        -------
        List[Recommendation]
            按选股得分排序的推荐列表
        """
        selector, signal, target = self.selectors[s], self.signals[g], self.targets[t]
        candidates = selector.select(self.engine.panel, RECOMMEND_OFFSET)
        valid = generate_signals(signal, candidates, RECOMMEND_OFFSET)

        recommendations = [
            Recommendation.from_signal(
                item.symbol,
                item.buy_price,
                target.target_return,
                target.stop_loss,
                previous_close=float(item.series.close[RECOMMEND_OFFSET]),
            )
            for item in valid[:limit]
        ]
        logger.info(f"[{selector.name} | {signal.name} | {target.name}] 生成 {len(recommendations)} 条推荐")
        return recommendations


__all__ = ["Scorecard", "RECOMMEND_OFFSET"]
