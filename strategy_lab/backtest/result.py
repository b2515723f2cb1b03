"""
回测结果数据类

将逐笔交易结果 (TradeOutcome) 汇总为统计指标，并支持多个结果按交易数加权合并。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

import numpy as np

from ..targets.base import ExitReason, TradeOutcome
from . import metrics

logger = logging.getLogger(__name__)

# 盈亏比分母下限，避免最大亏损为 0 时除零
PROFIT_FACTOR_EPSILON = 0.001


@dataclass
class BacktestResult:
    """
    回测结果

    所有数值统计都由逐笔收益率列表 ``returns`` 计算，与是否保留
    逐笔交易明细 (``trade_details``) 无关。

    Attributes
    ----------
    total_trades : int
        有效交易数（买入价有效且未来数据充足）
    winning_trades : int
        成功交易数，由退出策略判定
    losing_trades : int
        失败交易数
    stop_loss_trades : int
        正常止损交易数
    stop_loss_fail_trades : int
        跳空止损失败交易数
    target_reached_trades : int
        达到目标交易数
    time_expired_trades : int
        持有到期交易数
    win_rate, stop_loss_rate, stop_loss_fail_rate : float
        对应计数 / 总交易数，无交易时为 0.0
    avg_return, max_return, max_loss : float
        平均 / 最大 / 最小单笔收益率
    avg_hold_days : float
        平均持仓天数
    sharpe_ratio : float
        逐笔收益率夏普比率（无风险利率为 0）
    max_drawdown : float
        按交易顺序复利的最大回撤
    profit_factor : float
        盈亏比 = (成功数 * max(平均收益, 0)) / (失败数 * max(|最大亏损|, 0.001))
    gross_profit_factor : float
        常规盈亏比 = 总盈利 / 总亏损
    sortino_ratio : float
        索提诺比率
    returns : List[float]
        逐笔收益率，按交易产生顺序
    trade_details : Optional[List[TradeOutcome]]
        逐笔交易明细，关闭明细收集时为 None
    """
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    stop_loss_trades: int = 0
    stop_loss_fail_trades: int = 0
    target_reached_trades: int = 0
    time_expired_trades: int = 0

    win_rate: float = 0.0
    stop_loss_rate: float = 0.0
    stop_loss_fail_rate: float = 0.0

    avg_return: float = 0.0
    max_return: float = 0.0
    max_loss: float = 0.0
    avg_hold_days: float = 0.0

    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    profit_factor: float = 0.0
    gross_profit_factor: float = 0.0
    sortino_ratio: float = 0.0

    returns: List[float] = field(default_factory=list, repr=False)
    trade_details: Optional[List[TradeOutcome]] = field(default=None, repr=False)

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Iterable[TradeOutcome],
        collect_details: bool = True
    ) -> "BacktestResult":
        """
        由逐笔交易结果构建

        Parameters
        ----------
        outcomes : Iterable[TradeOutcome]
            交易结果（已排除无效交易）
        collect_details : bool, optional
            是否保留逐笔明细，默认 True

        Returns
        -------
        BacktestResult
        """
        outcomes = list(outcomes)
        result = cls(trade_details=list(outcomes) if collect_details else None)

        n = len(outcomes)
        result.total_trades = n
        if n == 0:
            result.calculate_advanced_metrics([])
            return result

        reasons = [o.exit_reason for o in outcomes]
        result.winning_trades = sum(1 for o in outcomes if o.is_win)
        result.losing_trades = n - result.winning_trades
        result.stop_loss_trades = reasons.count(ExitReason.STOP_LOSS)
        result.stop_loss_fail_trades = reasons.count(ExitReason.STOP_LOSS_FAILED)
        result.target_reached_trades = reasons.count(ExitReason.TARGET_REACHED)
        result.time_expired_trades = reasons.count(ExitReason.TIME_EXPIRED)

        returns = np.array([o.return_pct for o in outcomes], dtype=np.float64)
        result.returns = returns.tolist()
        result.avg_return = float(returns.mean())
        result.max_return = float(returns.max())
        result.max_loss = float(returns.min())
        result.avg_hold_days = float(np.mean([o.hold_days for o in outcomes]))

        result._update_rates()
        result.calculate_advanced_metrics(result.returns)
        return result

    @classmethod
    def merge(cls, results: Sequence["BacktestResult"]) -> "BacktestResult":
        """
        合并多个回测结果

        计数字段求和；平均值按交易数加权；最大收益取最大、最大亏损取最小；
        收益率列表与交易明细按输入顺序拼接；比率与高级指标由拼接后的
        收益率列表重新计算。

        Parameters
        ----------
        results : Sequence[BacktestResult]
            待合并结果，空列表返回空结果

        Returns
        -------
        BacktestResult
        """
        merged = cls()
        if not results:
            merged.calculate_advanced_metrics([])
            return merged

        count_fields = (
            "total_trades",
            "winning_trades",
            "losing_trades",
            "stop_loss_trades",
            "stop_loss_fail_trades",
            "target_reached_trades",
            "time_expired_trades",
        )
        for name in count_fields:
            setattr(merged, name, sum(getattr(r, name) for r in results))

        active = [r for r in results if r.total_trades > 0]
        total = merged.total_trades
        if total > 0:
            merged.avg_return = sum(r.avg_return * r.total_trades for r in active) / total
            merged.avg_hold_days = sum(r.avg_hold_days * r.total_trades for r in active) / total
            merged.max_return = max(r.max_return for r in active)
            merged.max_loss = min(r.max_loss for r in active)

        for r in results:
            merged.returns.extend(r.returns)

        if any(r.trade_details is not None for r in results):
            merged.trade_details = []
            for r in results:
                if r.trade_details:
                    merged.trade_details.extend(r.trade_details)

        merged._update_rates()
        merged.calculate_advanced_metrics(merged.returns)
        return merged

    def _update_rates(self) -> None:
        if self.total_trades > 0:
            self.win_rate = self.winning_trades / self.total_trades
            self.stop_loss_rate = self.stop_loss_trades / self.total_trades
            self.stop_loss_fail_rate = self.stop_loss_fail_trades / self.total_trades
        else:
            self.win_rate = 0.0
            self.stop_loss_rate = 0.0
            self.stop_loss_fail_rate = 0.0

    def calculate_advanced_metrics(self, returns: Sequence[float]) -> None:
        """
        由逐笔收益率计算夏普比率、最大回撤与盈亏比

        无交易时所有高级指标为 0.0；有交易但无失败交易时盈亏比为 +inf。
        """
        self.sharpe_ratio = metrics.sharpe_ratio(returns)
        self.max_drawdown = metrics.drawdown_from_returns(returns)

        if self.total_trades == 0:
            self.profit_factor = 0.0
            self.gross_profit_factor = 0.0
            self.sortino_ratio = 0.0
            return

        if self.losing_trades > 0:
            self.profit_factor = (
                self.winning_trades * max(self.avg_return, 0.0)
            ) / (
                self.losing_trades * max(abs(self.max_loss), PROFIT_FACTOR_EPSILON)
            )
        else:
            self.profit_factor = float("inf")

        self.gross_profit_factor = metrics.profit_factor(returns)
        self.sortino_ratio = metrics.sortino_ratio(returns)

    @property
    def exit_reason_counts(self) -> Dict[str, int]:
        return {
            ExitReason.TARGET_REACHED.value: self.target_reached_trades,
            ExitReason.STOP_LOSS.value: self.stop_loss_trades,
            ExitReason.STOP_LOSS_FAILED.value: self.stop_loss_fail_trades,
            ExitReason.TIME_EXPIRED.value: self.time_expired_trades,
        }

    def to_record(self) -> Dict[str, Any]:
        """转换为扁平字典（不含收益率列表和交易明细）"""
        return {
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "stop_loss_trades": self.stop_loss_trades,
            "stop_loss_fail_trades": self.stop_loss_fail_trades,
            "target_reached_trades": self.target_reached_trades,
            "time_expired_trades": self.time_expired_trades,
            "win_rate": self.win_rate,
            "stop_loss_rate": self.stop_loss_rate,
            "stop_loss_fail_rate": self.stop_loss_fail_rate,
            "avg_return": self.avg_return,
            "max_return": self.max_return,
            "max_loss": self.max_loss,
            "avg_hold_days": self.avg_hold_days,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "profit_factor": self.profit_factor,
            "gross_profit_factor": self.gross_profit_factor,
            "sortino_ratio": self.sortino_ratio,
        }

    def format_report(self) -> str:
        """格式化为可读报告"""
        lines = [
            f"总交易次数: {self.total_trades}",
            f"胜率: {self.win_rate:.2%}",
            f"止损率: {self.stop_loss_rate:.2%}",
            f"止损失败率: {self.stop_loss_fail_rate:.2%}",
            f"平均收益率: {self.avg_return:.2%}",
            f"最大收益率: {self.max_return:.2%}",
            f"最大亏损率: {self.max_loss:.2%}",
            f"平均持有天数: {self.avg_hold_days:.1f}天",
            f"夏普比率: {self.sharpe_ratio:.2f}",
            f"最大回撤: {self.max_drawdown:.2%}",
            f"盈亏比: {self.profit_factor:.2f}",
        ]
        return "\n".join(lines) + "\n"


__all__ = ["BacktestResult", "PROFIT_FACTOR_EPSILON"]
