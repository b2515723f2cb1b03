"""
买入信号接口

EntryRule 根据候选股票的日线和决策日索引给出买入价格，
价格 <= 0 表示不买入。
"""

from dataclasses import dataclass
from typing import Iterable, List, Protocol, runtime_checkable
import logging

from ..data_loader.bars import PriceSeries
from ..strategies.base import Candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signal:
    """
    买入信号

    Attributes
    ----------
    symbol : str
        股票代码
    series : PriceSeries
        日线序列
    buy_price : float
        买入价格，<= 0 表示不交易
    """
    symbol: str
    series: PriceSeries
    buy_price: float

    @property
    def is_valid(self) -> bool:
        return self.buy_price > 0


@runtime_checkable
class EntryRule(Protocol):
    """买入价格规则接口"""
    name: str

    def price(self, symbol: str, series: PriceSeries, offset: int) -> float:
        ...


def generate_signals(
    rule: EntryRule,
    candidates: Iterable[Candidate],
    offset: int,
) -> List[Signal]:
    """
    对候选股票逐一计算买入价，只保留有效信号

    Parameters
    ----------
    rule : EntryRule
        买入价格规则
    candidates : Iterable[Candidate]
        选股结果
    offset : int
        决策日索引

    Returns
    -------
    List[Signal]
        买入价为正的信号，保持候选顺序
    """
    signals = []
    for symbol, series in candidates:
        signal = Signal(symbol, series, float(rule.price(symbol, series, offset)))
        if signal.is_valid:
            signals.append(signal)
        else:
            logger.debug(f"{symbol} offset={offset} 无买入信号 ({rule.name})")
    return signals


def next_day_index(series: PriceSeries, offset: int) -> int:
    """决策日次一交易日的索引，不存在时返回 -1"""
    idx = offset - 1
    if idx < 0 or offset >= len(series):
        return -1
    return idx


__all__ = ["Signal", "EntryRule", "generate_signals", "next_day_index"]
