"""
策略评分卡单元测试
"""

import random
import time

import numpy as np
import pytest

from strategy_lab.backtest import BacktestEngine
from strategy_lab.scorecard import RECOMMEND_OFFSET, Scorecard
from strategy_lab.signals import BottomReverseSignal, ClosePriceSignal, OpenPriceSignal
from strategy_lab.strategies import AtrSelector, VolumeDecliningSelector
from strategy_lab.targets import GuardTarget, ReturnTarget


class JitterSelector:
    """包装选股策略，每次选股随机休眠，打乱组合完成顺序"""

    def __init__(self, inner, seed):
        self.inner = inner
        self.name = inner.name
        self.top_n = inner.top_n
        self._rng = random.Random(seed)

    def select(self, panel, offset):
        time.sleep(self._rng.uniform(0, 0.004))
        return self.inner.select(panel, offset)


@pytest.fixture
def components():
    selectors = [
        AtrSelector(top_n=5, lookback_days=20),
        VolumeDecliningSelector(top_n=5, min_volume_decline_ratio=0.0, check_support_level=False),
    ]
    signals = [ClosePriceSignal(), OpenPriceSignal(), BottomReverseSignal()]
    targets = [
        ReturnTarget(0.02, 0.01, 1),
        ReturnTarget(0.03, 0.02, 3),
        GuardTarget(0.03, 2),
    ]
    return selectors, signals, targets


@pytest.fixture
def scorecard(mock_panel, components) -> Scorecard:
    selectors, signals, targets = components
    return Scorecard(
        BacktestEngine(mock_panel),
        back_days=5,
        selectors=selectors,
        signals=signals,
        targets=targets,
        max_workers=4,
        show_progress=False,
    )


class TestScorecardRun:
    """评分卡运行测试类"""

    def test_matrix_shape(self, scorecard):
        """测试矩阵维度为 [target][selector][signal]"""
        matrix = scorecard.run()
        assert matrix.shape == (3, 2, 3)
        assert ((matrix >= 0) & (matrix <= 1)).all()

    def test_cells_match_direct_backtest(self, scorecard):
        """测试每个单元格等于对应组合的直接回测结果"""
        matrix = scorecard.run()
        for t, s, g in scorecard.combinations():
            expected = scorecard.engine.run_backtest(
                scorecard.selectors[s], scorecard.signals[g], scorecard.targets[t], scorecard.back_days
            )
            assert matrix[t, s, g] == expected

    def test_deterministic_across_workers(self, mock_panel, components):
        """测试不同并发度下结果完全一致"""
        selectors, signals, targets = components
        matrices = []
        for workers in (1, 3, 8):
            card = Scorecard(
                BacktestEngine(mock_panel), 5, selectors, signals, targets,
                max_workers=workers, show_progress=False,
            )
            matrices.append(card.run())

        for other in matrices[1:]:
            assert np.array_equal(matrices[0], other)

    def test_deterministic_under_out_of_order_completion(self, mock_panel, components):
        """测试组合完成顺序被随机打乱时结果仍按坐标写入"""
        selectors, signals, targets = components
        baseline = Scorecard(
            BacktestEngine(mock_panel), 5, selectors, signals, targets,
            max_workers=1, show_progress=False,
        ).run()

        for seed in (1, 2):
            jittered = [JitterSelector(sel, seed * 10 + i) for i, sel in enumerate(selectors)]
            card = Scorecard(
                BacktestEngine(mock_panel), 5, jittered, signals, targets,
                max_workers=8, show_progress=False,
            )
            assert np.array_equal(card.run(), baseline)

    @pytest.mark.parametrize("dimension", ["selectors", "signals", "targets"])
    def test_empty_dimension(self, mock_panel, components, dimension):
        """测试任一维度为空时报错"""
        selectors, signals, targets = components
        kwargs = {"selectors": selectors, "signals": signals, "targets": targets}
        kwargs[dimension] = []
        with pytest.raises(ValueError):
            Scorecard(BacktestEngine(mock_panel), 5, **kwargs)

    def test_format_results(self, scorecard):
        """测试结果文本包含全部组件名称"""
        matrix = scorecard.run()
        text = scorecard.format_results(matrix)
        for component in scorecard.selectors + scorecard.signals + scorecard.targets:
            assert component.name in text


class TestBestCombination:
    """最佳组合测试类"""

    def test_strict_maximum(self, scorecard):
        """测试找出唯一最大值"""
        matrix = np.zeros((3, 2, 3))
        matrix[1, 0, 2] = 0.8
        matrix[2, 1, 1] = 0.5
        assert scorecard.find_best_combination(matrix) == (1, 0, 2, 0.8)

    def test_first_seen_wins_on_tie(self, scorecard):
        """测试得分相同时保留遍历顺序中先出现的组合"""
        matrix = np.zeros((3, 2, 3))
        matrix[2, 0, 0] = 0.7
        matrix[0, 1, 2] = 0.7
        matrix[1, 1, 0] = 0.7
        assert scorecard.find_best_combination(matrix) == (0, 1, 2, 0.7)

    def test_all_zero(self, scorecard):
        """测试全部为 0 时返回第一个组合"""
        assert scorecard.find_best_combination(np.zeros((3, 2, 3))) == (0, 0, 0, 0.0)

    def test_empty_matrix(self, scorecard):
        """测试空矩阵报错"""
        with pytest.raises(ValueError):
            scorecard.find_best_combination(np.zeros((0, 2, 3)))

    def test_ranked_combinations(self, scorecard):
        """测试排序稳定：同分按遍历顺序"""
        matrix = np.zeros((3, 2, 3))
        matrix[0, 0, 1] = 0.3
        matrix[2, 1, 2] = 0.9
        matrix[1, 0, 0] = 0.3

        ranked = scorecard.ranked_combinations(matrix, top_k=3)
        assert [r[:3] for r in ranked] == [(2, 1, 2), (0, 0, 1), (1, 0, 0)]

    def test_format_best_combination(self, scorecard):
        """测试最佳组合文本"""
        matrix = np.zeros((3, 2, 3))
        matrix[1, 1, 0] = 0.5
        text = scorecard.format_best_combination(matrix)
        assert scorecard.targets[1].name in text
        assert "得分: 50.00%" in text


class TestRecommend:
    """推荐测试类"""

    def test_price_arithmetic(self, scorecard):
        """测试目标价和止损价计算"""
        t, s, g = 1, 0, 0
        recommendations = scorecard.recommend(t, s, g, limit=3)
        target = scorecard.targets[t]

        assert 0 < len(recommendations) <= 3
        for r in recommendations:
            series = scorecard.engine.panel[r.symbol]
            assert r.buy_price == pytest.approx(float(series.close[RECOMMEND_OFFSET - 1]))
            assert r.target_price == pytest.approx(r.buy_price * (1 + target.target_return))
            assert r.stop_loss_price == pytest.approx(r.buy_price * (1 - target.stop_loss))
            assert r.previous_close == pytest.approx(float(series.close[RECOMMEND_OFFSET]))

    def test_follows_selector_order(self, scorecard):
        """测试推荐顺序与选股结果一致"""
        selected = scorecard.selectors[0].select(scorecard.engine.panel, RECOMMEND_OFFSET)
        recommendations = scorecard.recommend(0, 0, 0, limit=5)
        assert [r.symbol for r in recommendations] == [symbol for symbol, _ in selected][:5]

    def test_run_detailed(self, scorecard):
        """测试单组合完整统计"""
        result = scorecard.run_detailed(0, 0, 0)
        matrix_score = scorecard.engine.run_backtest(
            scorecard.selectors[0], scorecard.signals[0], scorecard.targets[0], scorecard.back_days
        )
        assert result.total_trades > 0
        assert 0.0 <= matrix_score <= 1.0
