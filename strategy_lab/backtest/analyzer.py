"""
绩效分析器

将 BacktestResult 转换为便于展示的摘要字典和 pandas 表格。
"""

from typing import Any, Dict

import pandas as pd

from ..targets.base import ExitReason
from .result import BacktestResult


class PerformanceAnalyzer:
    """
    绩效分析器

    Examples
    --------
    >>> analyzer = PerformanceAnalyzer(result)
    >>> print(analyzer.summary())
    >>> analyzer.exit_reason_breakdown()
    """

    TRADE_COLUMNS = [
        "symbol",
        "entry_date",
        "entry_price",
        "exit_date",
        "exit_price",
        "return_pct",
        "hold_days",
        "exit_reason",
        "is_win",
    ]

    def __init__(self, result: BacktestResult) -> None:
        self.result = result

    def summary(self) -> Dict[str, Any]:
        """
        生成绩效摘要

        Returns
        -------
        Dict[str, Any]
            中文键名的格式化指标
        """
        return {
            "总交易次数": self.result.total_trades,
            "胜率": f"{self.result.win_rate:.2%}",
            "止损率": f"{self.result.stop_loss_rate:.2%}",
            "止损失败率": f"{self.result.stop_loss_fail_rate:.2%}",
            "平均收益率": f"{self.result.avg_return:.2%}",
            "平均持有天数": f"{self.result.avg_hold_days:.1f}",
            "夏普比率": f"{self.result.sharpe_ratio:.2f}",
            "最大回撤": f"{self.result.max_drawdown:.2%}",
            "盈亏比": f"{self.result.profit_factor:.2f}",
            "索提诺比率": f"{self.result.sortino_ratio:.2f}",
        }

    def exit_reason_breakdown(self) -> pd.DataFrame:
        """
        退出原因分布

        Returns
        -------
        pd.DataFrame
            索引为退出原因中文标签，列为 count 与 ratio
        """
        counts = self.result.exit_reason_counts
        total = self.result.total_trades
        rows = []
        for reason in ExitReason:
            count = counts[reason.value]
            rows.append({
                "reason": reason.label,
                "count": count,
                "ratio": count / total if total > 0 else 0.0,
            })
        return pd.DataFrame(rows).set_index("reason")

    def trades_frame(self) -> pd.DataFrame:
        """逐笔交易明细表，未收集明细时返回空表"""
        details = self.result.trade_details or []
        if not details:
            return pd.DataFrame(columns=self.TRADE_COLUMNS)
        return pd.DataFrame([d.to_dict() for d in details], columns=self.TRADE_COLUMNS)

    def returns_by_symbol(self) -> pd.DataFrame:
        """按股票汇总交易次数、胜率与平均收益"""
        trades = self.trades_frame()
        if trades.empty:
            return pd.DataFrame(columns=["trades", "win_rate", "avg_return"])
        grouped = trades.groupby("symbol")
        return pd.DataFrame({
            "trades": grouped.size(),
            "win_rate": grouped["is_win"].mean(),
            "avg_return": grouped["return_pct"].mean(),
        }).sort_values("avg_return", ascending=False)


__all__ = ["PerformanceAnalyzer"]
