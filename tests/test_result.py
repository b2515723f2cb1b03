"""
回测结果汇总与合并单元测试
"""

import math

import numpy as np
import pytest

from strategy_lab.backtest import BacktestResult, PerformanceAnalyzer
from strategy_lab.backtest import metrics
from strategy_lab.targets import ExitReason, TradeOutcome


def _outcome(ret: float, reason: ExitReason, is_win: bool, hold_days: int = 1, symbol: str = "600000"):
    return TradeOutcome(
        symbol=symbol,
        entry_date=20240102,
        entry_price=10.0,
        exit_date=20240103,
        exit_price=10.0 * (1 + ret),
        return_pct=ret,
        hold_days=hold_days,
        exit_reason=reason,
        is_win=is_win,
    )


@pytest.fixture
def result_a() -> BacktestResult:
    return BacktestResult.from_outcomes([
        _outcome(0.06, ExitReason.TARGET_REACHED, True, 1),
        _outcome(-0.05, ExitReason.STOP_LOSS, False, 2),
        _outcome(0.01, ExitReason.TIME_EXPIRED, False, 3),
    ])


@pytest.fixture
def result_b() -> BacktestResult:
    return BacktestResult.from_outcomes([
        _outcome(-0.10, ExitReason.STOP_LOSS_FAILED, False, 1),
        _outcome(0.05, ExitReason.TARGET_REACHED, True, 2),
    ])


@pytest.fixture
def result_c() -> BacktestResult:
    return BacktestResult.from_outcomes([
        _outcome(0.02, ExitReason.TARGET_REACHED, True, 1),
    ])


COUNT_FIELDS = (
    "total_trades",
    "winning_trades",
    "losing_trades",
    "stop_loss_trades",
    "stop_loss_fail_trades",
    "target_reached_trades",
    "time_expired_trades",
)


def _counts(result: BacktestResult):
    return tuple(getattr(result, name) for name in COUNT_FIELDS)


class TestFromOutcomes:
    """逐笔结果汇总测试类"""

    def test_counts_and_rates(self, result_a):
        """测试计数与比率"""
        assert result_a.total_trades == 3
        assert result_a.winning_trades == 1
        assert result_a.losing_trades == 2
        assert result_a.stop_loss_trades == 1
        assert result_a.win_rate == pytest.approx(1 / 3)
        assert result_a.stop_loss_rate == pytest.approx(1 / 3)
        assert result_a.stop_loss_fail_rate == 0.0

    def test_reason_counts_sum_to_total(self, result_a, result_b):
        """测试四种退出原因计数之和等于总交易数"""
        for result in (result_a, result_b):
            assert sum(result.exit_reason_counts.values()) == result.total_trades

    def test_return_statistics(self, result_a):
        """测试收益统计"""
        assert result_a.avg_return == pytest.approx((0.06 - 0.05 + 0.01) / 3)
        assert result_a.max_return == pytest.approx(0.06)
        assert result_a.max_loss == pytest.approx(-0.05)
        assert result_a.avg_hold_days == pytest.approx(2.0)

    def test_empty(self):
        """测试无交易时的回退值"""
        result = BacktestResult.from_outcomes([])

        assert result.total_trades == 0
        assert result.win_rate == 0.0
        assert result.stop_loss_rate == 0.0
        assert result.sharpe_ratio == 0.0
        assert result.max_drawdown == 0.0
        assert result.profit_factor == 0.0

    def test_profit_factor_formula(self, result_a):
        """测试盈亏比公式"""
        expected = (1 * max(result_a.avg_return, 0)) / (2 * max(abs(-0.05), 0.001))
        assert result_a.profit_factor == pytest.approx(expected)

    def test_profit_factor_infinite_without_losers(self, result_c):
        """测试没有失败交易时盈亏比为无穷大"""
        assert math.isinf(result_c.profit_factor)
        assert math.isinf(result_c.gross_profit_factor)
        assert math.isinf(result_c.sortino_ratio)

    def test_details_flag_does_not_change_aggregates(self):
        """测试关闭明细收集不影响数值统计"""
        outcomes = [
            _outcome(0.03, ExitReason.TARGET_REACHED, True),
            _outcome(-0.02, ExitReason.STOP_LOSS, False),
        ]
        with_details = BacktestResult.from_outcomes(outcomes, collect_details=True)
        without_details = BacktestResult.from_outcomes(outcomes, collect_details=False)

        assert len(with_details.trade_details) == 2
        assert without_details.trade_details is None
        assert with_details.to_record() == without_details.to_record()

    def test_to_record_is_flat(self, result_a):
        """测试扁平记录不含列表"""
        record = result_a.to_record()
        assert "returns" not in record
        assert "trade_details" not in record
        assert all(not isinstance(v, (list, dict)) for v in record.values())

    def test_format_report(self, result_a):
        """测试文本报告"""
        report = result_a.format_report()
        assert "总交易次数: 3" in report
        assert "胜率: 33.33%" in report


class TestMerge:
    """结果合并测试类"""

    def test_counts_additive(self, result_a, result_b):
        """测试计数字段求和"""
        merged = BacktestResult.merge([result_a, result_b])
        assert merged.total_trades == result_a.total_trades + result_b.total_trades
        assert merged.stop_loss_fail_trades == 1

    def test_commutative(self, result_a, result_b):
        """测试合并顺序不影响计数"""
        ab = BacktestResult.merge([result_a, result_b])
        ba = BacktestResult.merge([result_b, result_a])
        assert _counts(ab) == _counts(ba)

    def test_associative(self, result_a, result_b, result_c):
        """测试合并分组方式不影响计数"""
        left = BacktestResult.merge([BacktestResult.merge([result_a, result_b]), result_c])
        right = BacktestResult.merge([result_a, BacktestResult.merge([result_b, result_c])])
        assert _counts(left) == _counts(right)

    def test_weighted_average(self, result_a, result_b):
        """测试平均值按交易数加权"""
        merged = BacktestResult.merge([result_a, result_b])
        all_returns = [0.06, -0.05, 0.01, -0.10, 0.05]
        assert merged.avg_return == pytest.approx(np.mean(all_returns))
        assert merged.avg_hold_days == pytest.approx(np.mean([1, 2, 3, 1, 2]))
        assert merged.max_return == pytest.approx(0.06)
        assert merged.max_loss == pytest.approx(-0.10)

    def test_metrics_recomputed_from_returns(self, result_a, result_b):
        """测试高级指标由拼接后的收益率重新计算"""
        merged = BacktestResult.merge([result_a, result_b])
        assert merged.returns == result_a.returns + result_b.returns
        assert merged.sharpe_ratio == pytest.approx(metrics.sharpe_ratio(merged.returns))
        assert merged.max_drawdown == pytest.approx(metrics.drawdown_from_returns(merged.returns))

    def test_merge_with_self(self, result_a):
        """测试与自身合并：交易数翻倍，比率不变"""
        merged = BacktestResult.merge([result_a, result_a])
        assert merged.total_trades == 2 * result_a.total_trades
        assert merged.win_rate == pytest.approx(result_a.win_rate)
        assert merged.stop_loss_rate == pytest.approx(result_a.stop_loss_rate)

    def test_merge_empty_list(self):
        """测试合并空列表"""
        merged = BacktestResult.merge([])
        assert merged.total_trades == 0
        assert merged.win_rate == 0.0

    def test_empty_results_do_not_affect_extremes(self, result_a):
        """测试空结果不影响最大收益 / 最大亏损"""
        merged = BacktestResult.merge([BacktestResult.from_outcomes([]), result_a])
        assert merged.max_return == pytest.approx(result_a.max_return)
        assert merged.max_loss == pytest.approx(result_a.max_loss)

    def test_details_concatenated(self, result_a, result_b):
        """测试交易明细按顺序拼接"""
        merged = BacktestResult.merge([result_a, result_b])
        assert len(merged.trade_details) == 5

        no_details = BacktestResult.from_outcomes(result_a.trade_details, collect_details=False)
        assert BacktestResult.merge([no_details, no_details]).trade_details is None


class TestMetrics:
    """指标函数测试类"""

    def test_sharpe(self):
        """测试夏普比率为均值 / 总体标准差"""
        returns = [0.01, 0.02, -0.01, 0.03]
        expected = np.mean(returns) / np.std(returns)
        assert metrics.sharpe_ratio(returns) == pytest.approx(expected)

    def test_sharpe_degenerate(self):
        """测试空序列和零方差"""
        assert metrics.sharpe_ratio([]) == 0.0
        assert metrics.sharpe_ratio([0.01, 0.01]) == 0.0

    def test_drawdown_order_dependent(self):
        """测试回撤依赖收益顺序"""
        # 1.1 -> 0.99 -> 1.089: 回撤 (1.1 - 0.99) / 1.1 = 0.1
        assert metrics.drawdown_from_returns([0.1, -0.1, 0.1]) == pytest.approx(0.1)
        assert metrics.drawdown_from_returns([0.1, 0.1, -0.1]) == pytest.approx(0.1)
        assert metrics.drawdown_from_returns([-0.1, 0.1, 0.1]) == pytest.approx(0.0)

    def test_max_drawdown_of_values(self):
        """测试净值序列回撤"""
        assert metrics.max_drawdown([1.0, 1.2, 0.9, 1.3]) == pytest.approx(0.25)
        assert metrics.max_drawdown([1.0]) == 0.0

    def test_gross_profit_factor(self):
        """测试常规盈亏比"""
        assert metrics.profit_factor([0.1, -0.05, 0.05]) == pytest.approx(3.0)
        assert math.isinf(metrics.profit_factor([0.1]))

    def test_sortino(self):
        """测试索提诺比率"""
        returns = [0.02, -0.01, 0.03, -0.02]
        downside = np.sqrt(np.mean(np.array([-0.01, -0.02]) ** 2))
        assert metrics.sortino_ratio(returns) == pytest.approx(np.mean(returns) / downside)

    def test_calmar(self):
        """测试卡尔马比率"""
        assert metrics.calmar_ratio([0.1], [1.0, 0.8]) == pytest.approx(0.1 / 0.2)
        assert math.isinf(metrics.calmar_ratio([0.1], [1.0, 1.1]))

    def test_win_rate_and_expected_return(self):
        """测试胜率与期望收益"""
        returns = [0.1, -0.05, 0.05, -0.05]
        assert metrics.win_rate(returns) == pytest.approx(0.5)
        assert metrics.expected_return(returns) == pytest.approx(0.5 * 0.075 + 0.5 * -0.05)


class TestPerformanceAnalyzer:
    """绩效分析器测试类"""

    def test_exit_reason_breakdown(self, result_a):
        """测试退出原因分布"""
        breakdown = PerformanceAnalyzer(result_a).exit_reason_breakdown()
        assert breakdown["count"].sum() == result_a.total_trades
        assert breakdown.loc["止损", "count"] == 1
        assert breakdown["ratio"].sum() == pytest.approx(1.0)

    def test_trades_frame(self, result_a):
        """测试交易明细表"""
        trades = PerformanceAnalyzer(result_a).trades_frame()
        assert len(trades) == 3
        assert set(trades["exit_reason"]) == {"TargetReached", "StopLoss", "TimeExpired"}

    def test_trades_frame_without_details(self, result_a):
        """测试未收集明细时返回空表"""
        result = BacktestResult.merge([])
        assert PerformanceAnalyzer(result).trades_frame().empty

    def test_summary_keys(self, result_a):
        """测试摘要字段"""
        summary = PerformanceAnalyzer(result_a).summary()
        assert summary["总交易次数"] == 3
        assert summary["胜率"] == "33.33%"

    def test_returns_by_symbol(self):
        """测试按股票汇总并按平均收益降序"""
        result = BacktestResult.from_outcomes([
            _outcome(0.06, ExitReason.TARGET_REACHED, True, symbol="600001"),
            _outcome(-0.02, ExitReason.STOP_LOSS, False, symbol="600001"),
            _outcome(-0.05, ExitReason.STOP_LOSS, False, symbol="600002"),
        ])
        table = PerformanceAnalyzer(result).returns_by_symbol()

        assert list(table.index) == ["600001", "600002"]
        assert table.loc["600001", "trades"] == 2
        assert table.loc["600001", "win_rate"] == pytest.approx(0.5)
        assert table.loc["600001", "avg_return"] == pytest.approx(0.02)
        assert table.loc["600002", "avg_return"] == pytest.approx(-0.05)

    def test_returns_by_symbol_without_details(self):
        """测试未收集明细时返回空表"""
        assert PerformanceAnalyzer(BacktestResult.merge([])).returns_by_symbol().empty
