"""
选股策略单元测试
"""

import math

import pytest

from strategy_lab.strategies import (
    AtrSelector,
    AtrSelectorWeights,
    BreakthroughPullbackSelector,
    MacdSelector,
    RsiSelector,
    VolumeDecliningSelector,
    rank_candidates,
)


class TestRankCandidates:
    """候选排序测试类"""

    def test_sorted_by_score_then_symbol(self, mock_panel):
        """测试按得分降序、同分按代码升序"""
        scores = {"600003": 2.0, "600001": 5.0, "600002": 2.0, "600000": 1.0}
        panel = {symbol: mock_panel[symbol] for symbol in scores}

        selected = rank_candidates(panel, 0, lambda symbol, series, offset: scores[symbol], top_n=3)
        assert [symbol for symbol, _ in selected] == ["600001", "600002", "600003"]

    def test_excludes_none_and_non_finite(self, mock_panel):
        """测试得分为 None 或非有限值的股票被剔除"""
        scores = {"600000": None, "600001": math.nan, "600002": math.inf, "600003": 0.0}
        panel = {symbol: mock_panel[symbol] for symbol in scores}

        selected = rank_candidates(panel, 0, lambda symbol, series, offset: scores[symbol], top_n=10)
        assert [symbol for symbol, _ in selected] == ["600003"]

    def test_top_n(self, mock_panel):
        """测试返回数量不超过 top_n"""
        selected = rank_candidates(mock_panel, 0, lambda symbol, series, offset: 1.0, top_n=4)
        assert len(selected) == 4

    @pytest.mark.parametrize("selector_cls", [
        AtrSelector, VolumeDecliningSelector, BreakthroughPullbackSelector, RsiSelector, MacdSelector,
    ])
    def test_invalid_top_n(self, selector_cls):
        """测试 top_n < 1 时报错"""
        with pytest.raises(ValueError):
            selector_cls(top_n=0)


@pytest.mark.parametrize("selector", [
    AtrSelector(top_n=5, lookback_days=30),
    VolumeDecliningSelector(top_n=5, min_volume_decline_ratio=0.0, check_support_level=False),
    BreakthroughPullbackSelector(top_n=5, min_breakthrough_percent=2.0),
    RsiSelector(top_n=5, oversold_threshold=50.0),
    MacdSelector(top_n=5),
], ids=lambda s: type(s).__name__)
class TestNoLookahead:
    """选股不使用决策日之后的数据"""

    def test_score_ignores_future_bars(self, mock_panel, selector):
        """测试截掉决策日之后的K线不影响得分"""
        offset = 7
        for symbol, series in mock_panel.items():
            truncated = series.window(offset, len(series) - offset)
            assert selector.score(symbol, series, offset) == selector.score(symbol, truncated, 0)

    def test_select_ordering(self, mock_panel, selector):
        """测试选股结果不超过 top_n 且无重复"""
        selected = selector.select(mock_panel, 5)
        symbols = [symbol for symbol, _ in selected]
        assert len(symbols) <= selector.top_n
        assert len(set(symbols)) == len(symbols)


class TestAtrSelector:
    """ATR 选股测试类"""

    def test_insufficient_history(self, mock_panel):
        """测试历史不足时剔除"""
        selector = AtrSelector(lookback_days=100)
        series = mock_panel["600000"]
        assert selector.score("600000", series, len(series) - 100) is None
        assert selector.score("600000", series, len(series) - 101) is not None

    def test_weighted_score(self, mock_panel):
        """测试总分为三项得分的加权和"""
        weights = AtrSelectorWeights(atr_weight=1.0, volume_weight=0.0, trend_weight=0.0)
        selector = AtrSelector(lookback_days=20, score_weights=weights)
        series = mock_panel["600001"]

        assert selector.score("600001", series, 3) == pytest.approx(selector.atr_score(series, 3))

    def test_invalid_lookback(self):
        """测试回看天数过小"""
        with pytest.raises(ValueError):
            AtrSelector(lookback_days=1)


class TestVolumeDecliningSelector:
    """成交量萎缩选股测试类"""

    ROWS = [
        (10.5, 11.0, 10.4, 10.8, 1000),
        (10.8, 10.9, 10.3, 10.5, 1000),
        (10.5, 10.6, 10.1, 10.3, 1000),
        (10.3, 10.4, 10.0, 10.1, 800),
        (10.1, 10.2, 9.8, 10.0, 600),
        (10.0, 10.1, 9.9, 10.0, 400),
    ]

    @pytest.fixture
    def selector(self) -> VolumeDecliningSelector:
        return VolumeDecliningSelector(
            lookback_days=5,
            min_consecutive_decline_days=3,
            min_volume_decline_ratio=0.1,
            price_period=5,
            max_support_ratio=0.05,
        )

    def test_declining_near_support(self, make_series, selector):
        """测试连续缩量且靠近支撑位时按上涨空间打分"""
        series = make_series(self.ROWS)
        assert selector.score("600000", series, 0) == pytest.approx((10.9 - 10.0) / 10.0)

    def test_volume_not_declining(self, make_series, selector):
        """测试决策日未缩量时剔除"""
        rows = self.ROWS[:-1] + [(10.0, 10.1, 9.9, 10.0, 700)]
        assert selector.score("600000", make_series(rows), 0) is None

    def test_far_from_support(self, make_series, selector):
        """测试价格远离支撑位时剔除"""
        rows = self.ROWS[:-2] + [(10.1, 10.2, 9.0, 10.0, 600), (10.0, 10.1, 9.9, 10.0, 400)]
        assert selector.score("600000", make_series(rows), 0) is None


class TestBreakthroughPullbackSelector:
    """突破回踩选股测试类"""

    BASE = [(10.0, 10.1, 9.9, 10.0, 1000)] * 4
    BREAKTHROUGH = (10.0, 10.7, 10.0, 10.6, 2000)

    def test_breakthrough_then_pullback(self, make_series):
        """测试放量突破后缩量回踩"""
        series = make_series(self.BASE + [self.BREAKTHROUGH, (10.5, 10.5, 10.2, 10.3, 1000)])
        selector = BreakthroughPullbackSelector(lookback_days=5)

        expected = 6.0 - (10.6 - 10.3) / 10.6 * 100.0
        assert selector.score("600000", series, 0) == pytest.approx(expected)

    def test_pullback_volume_too_high(self, make_series):
        """测试回踩日成交量过大时剔除"""
        series = make_series(self.BASE + [self.BREAKTHROUGH, (10.5, 10.5, 10.2, 10.3, 1500)])
        assert BreakthroughPullbackSelector(lookback_days=5).score("600000", series, 0) is None

    def test_no_pullback(self, make_series):
        """测试突破后继续上涨不算回踩"""
        series = make_series(self.BASE + [self.BREAKTHROUGH, (10.6, 10.9, 10.6, 10.8, 1000)])
        assert BreakthroughPullbackSelector(lookback_days=5).score("600000", series, 0) is None


class TestOscillatorSelectors:
    """振荡指标选股测试类"""

    @staticmethod
    def _declining_rows(count: int, start: float = 20.0, step: float = 0.2):
        rows = []
        price = start
        for _ in range(count):
            rows.append((price, price + 0.05, price - 0.25, price - step))
            price -= step
        return rows

    def test_rsi_oversold_turning_up(self, make_series):
        """测试 RSI 超卖区拐头入选"""
        rows = self._declining_rows(50)
        last = rows[-1][3]
        rows.append((last, last + 0.6, last, last + 0.5))

        score = RsiSelector(period=14).score("600000", make_series(rows), 0)
        assert score is not None
        assert score > 50.0

    def test_rsi_not_oversold(self, make_series):
        """测试持续上涨的股票不入选"""
        rows = [(10.0 + i * 0.1, 10.2 + i * 0.1, 9.9 + i * 0.1, 10.1 + i * 0.1) for i in range(50)]
        assert RsiSelector(period=14).score("600000", make_series(rows), 0) is None

    def test_rsi_name(self):
        """测试名称包含周期"""
        assert RsiSelector(period=6).name == "RSI(6)选股策略"

    def test_macd_rally_after_decline(self, make_series):
        """测试长期下跌后急涨，MACD 柱上升"""
        rows = self._declining_rows(80)
        price = rows[-1][3]
        for _ in range(3):
            rows.append((price, price + 0.9, price, price + 0.8))
            price += 0.8

        score = MacdSelector().score("600000", make_series(rows), 0)
        assert score is not None
        assert score >= 50.0

    def test_macd_insufficient_history(self, make_series):
        """测试历史不足时剔除"""
        assert MacdSelector().score("600000", make_series(self._declining_rows(40)), 0) is None
