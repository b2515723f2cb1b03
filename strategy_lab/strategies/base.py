"""
选股策略接口与通用排序工具
"""

from typing import Callable, List, Mapping, Optional, Protocol, Tuple, runtime_checkable
import logging
import math

from ..data_loader.bars import PriceSeries

logger = logging.getLogger(__name__)

Panel = Mapping[str, PriceSeries]
Candidate = Tuple[str, PriceSeries]
ScoreFn = Callable[[str, PriceSeries, int], Optional[float]]


@runtime_checkable
class StockSelector(Protocol):
    """
    选股策略接口

    ``select`` 只能使用决策日 (索引 offset) 及更早的数据，
    返回按得分从高到低排序、不超过 top_n 个的候选股票。
    """
    name: str
    top_n: int

    def select(self, panel: Panel, offset: int) -> List[Candidate]:
        ...


def rank_candidates(
    panel: Panel,
    offset: int,
    score_fn: ScoreFn,
    top_n: int,
) -> List[Candidate]:
    """
    对面板中每只股票打分并取前 top_n 名

    Parameters
    ----------
    panel : Panel
        股票代码 -> 日线序列
    offset : int
        决策日索引
    score_fn : ScoreFn
        打分函数，返回 None 或非有限值表示剔除
    top_n : int
        最多返回的股票数

    Returns
    -------
    List[Candidate]
        按得分降序排列，得分相同时按股票代码升序
    """
    scored = []
    for symbol, series in panel.items():
        score = score_fn(symbol, series, offset)
        if score is None or not math.isfinite(score):
            continue
        scored.append((float(score), symbol, series))

    scored.sort(key=lambda item: (-item[0], item[1]))
    selected = [(symbol, series) for _, symbol, series in scored[:top_n]]
    logger.debug(f"offset={offset}: {len(scored)} 只股票入围, 选出 {len(selected)} 只")
    return selected


def validate_top_n(top_n: int) -> None:
    if top_n < 1:
        raise ValueError(f"top_n 必须 >= 1, 当前为 {top_n}")


__all__ = ["Panel", "Candidate", "StockSelector", "rank_candidates", "validate_top_n"]
