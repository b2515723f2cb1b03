"""
退出策略基础定义

定义交易结果类型 (TradeOutcome)、退出原因枚举 (ExitReason)、
退出策略接口 (ExitPolicy)，以及逐日模拟持仓的状态机 ``simulate_exit``。

索引约定
--------
PriceSeries 为最新在前。决策日为索引 ``offset``，
持仓第 k 天 (k = 1 ... horizon_days) 对应索引 ``offset - k``。
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional, Protocol, runtime_checkable
import logging

from ..data_loader.bars import PriceSeries

logger = logging.getLogger(__name__)


class ExitReason(Enum):
    """退出原因枚举（互斥且完备）"""
    TARGET_REACHED = "TargetReached"
    STOP_LOSS = "StopLoss"
    STOP_LOSS_FAILED = "StopLossFailed"
    TIME_EXPIRED = "TimeExpired"

    @property
    def label(self) -> str:
        return _EXIT_REASON_LABELS[self]


_EXIT_REASON_LABELS = {
    ExitReason.TARGET_REACHED: "达到目标",
    ExitReason.STOP_LOSS: "止损",
    ExitReason.STOP_LOSS_FAILED: "止损失败",
    ExitReason.TIME_EXPIRED: "到期",
}


@dataclass(frozen=True)
class TradeOutcome:
    """
    单笔模拟交易结果

    Attributes
    ----------
    symbol : str
        股票代码
    entry_date : int
        决策日日期 (YYYYMMDD)
    entry_price : float
        买入价格
    exit_date : int
        卖出日期 (YYYYMMDD)
    exit_price : float
        卖出价格
    return_pct : float
        收益率（小数）
    hold_days : int
        持仓天数，从 1 开始计
    exit_reason : ExitReason
        退出原因
    is_win : bool
        是否计为成功交易，由具体退出策略判定
    """
    symbol: str
    entry_date: int
    entry_price: float
    exit_date: int
    exit_price: float
    return_pct: float
    hold_days: int
    exit_reason: ExitReason
    is_win: bool = False

    def to_dict(self) -> Dict[str, Any]:
        record = asdict(self)
        record["exit_reason"] = self.exit_reason.value
        return record


@runtime_checkable
class ExitPolicy(Protocol):
    """
    退出策略接口

    具体实现无需继承，只要提供下列属性与方法即可。
    """
    name: str
    target_return: float
    stop_loss: float
    in_days: int

    def simulate(
        self,
        series: PriceSeries,
        buy_price: float,
        offset: int,
        symbol: str = "",
    ) -> Optional[TradeOutcome]:
        ...


def validate_policy_params(stop_loss: float, in_days: int) -> None:
    """校验退出策略参数"""
    if in_days < 1:
        raise ValueError(f"持仓天数必须 >= 1, 当前为 {in_days}")
    if stop_loss < 0:
        raise ValueError(f"止损比例不能为负, 当前为 {stop_loss}")


def has_holding_window(series: PriceSeries, offset: int, horizon_days: int) -> bool:
    """决策日及其后 horizon_days 个交易日是否都存在"""
    return 0 <= horizon_days <= offset < len(series)


def simulate_exit(
    series: PriceSeries,
    buy_price: float,
    offset: int,
    target_return: Optional[float],
    stop_loss_pct: float,
    horizon_days: int,
    symbol: str = "",
) -> Optional[TradeOutcome]:
    """
    逐日模拟持仓并判定退出原因

    Parameters
    ----------
    series : PriceSeries
        日线序列（最新在前）
    buy_price : float
        买入价格，<= 0 表示不交易
    offset : int
        决策日索引
    target_return : Optional[float]
        目标收益率；为 None 时不检查目标（仅做止损守护）
    stop_loss_pct : float
        止损比例
    horizon_days : int
        最长持仓天数
    symbol : str, optional
        股票代码，写入结果

    Returns
    -------
    Optional[TradeOutcome]
        无法模拟（价格无效或未来数据不足）时返回 None，由调用方排除出统计

    Notes
    -----
    判定顺序：

    1. 第 1 天开盘价低于止损价 -> 止损失败，立即结束
    2. 逐日检查（最早满足条件的一天生效）：
       a. 收盘收益率 >= 目标 -> 达到目标（同日优先于止损）
       b. 第 2 天起开盘价低于止损价 -> 止损失败，按开盘价成交
       c. 最低价 <= 止损价 <= 开盘价 -> 止损，按止损价成交
    3. 均未触发 -> 到期，按最后一天收盘价成交
    4. 持仓 1 天时，到期后再检查当日是否触及止损价
    """
    if buy_price <= 0:
        logger.debug(f"{symbol} 买入价无效 ({buy_price}), 跳过")
        return None

    if not has_holding_window(series, offset, horizon_days):
        logger.debug(
            f"{symbol} 未来数据不足: offset={offset}, 持仓{horizon_days}天, 序列长度{len(series)}"
        )
        return None

    stop_price = buy_price * (1 - stop_loss_pct)
    entry_date = int(series.date[offset])

    def _outcome(k: int, price: float, reason: ExitReason, ret: Optional[float] = None) -> TradeOutcome:
        idx = offset - k
        return TradeOutcome(
            symbol=symbol,
            entry_date=entry_date,
            entry_price=buy_price,
            exit_date=int(series.date[idx]),
            exit_price=price,
            return_pct=(price - buy_price) / buy_price if ret is None else ret,
            hold_days=k,
            exit_reason=reason,
        )

    first_open = float(series.open[offset - 1])
    if first_open < stop_price:
        return _outcome(1, first_open, ExitReason.STOP_LOSS_FAILED)

    max_return = float("-inf")
    for k in range(1, horizon_days + 1):
        idx = offset - k
        day_open = float(series.open[idx])
        day_low = float(series.low[idx])
        day_close = float(series.close[idx])

        current_return = (day_close - buy_price) / buy_price
        if target_return is not None and current_return >= target_return:
            return _outcome(k, day_close, ExitReason.TARGET_REACHED)

        if k > 1 and day_open < stop_price:
            return _outcome(k, day_open, ExitReason.STOP_LOSS_FAILED)

        if day_low <= stop_price <= day_open:
            return _outcome(k, stop_price, ExitReason.STOP_LOSS, ret=-stop_loss_pct)

        max_return = max(max_return, current_return)

    last_idx = offset - horizon_days
    outcome = _outcome(horizon_days, float(series.close[last_idx]), ExitReason.TIME_EXPIRED)

    # 单日持有的止损复核：前面的跳空与止损判断已覆盖该情形，保留以与约定的退出规则一致
    if horizon_days == 1 and float(series.low[last_idx]) <= stop_price:
        if float(series.open[last_idx]) >= stop_price:
            outcome = _outcome(1, stop_price, ExitReason.STOP_LOSS, ret=-stop_loss_pct)
        else:
            outcome = _outcome(1, float(series.open[last_idx]), ExitReason.STOP_LOSS_FAILED)

    logger.debug(f"{symbol} 持有到期, 期间最高收益 {max_return:.2%}, 到期收益 {outcome.return_pct:.2%}")
    return outcome


def format_pct(value: float) -> str:
    """格式化百分比数值，去掉多余的小数位，如 0.05 -> '5'，0.025 -> '2.5'"""
    return f"{value * 100:.4f}".rstrip("0").rstrip(".")


__all__ = [
    "ExitReason",
    "TradeOutcome",
    "ExitPolicy",
    "simulate_exit",
    "has_holding_window",
    "validate_policy_params",
    "format_pct",
]
