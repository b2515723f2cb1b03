"""
推荐与 JSON 导出单元测试
"""

import json
import math

import numpy as np
import pytest

from strategy_lab.backtest import BacktestEngine
from strategy_lab.report import Recommendation, build_export_data, export_results_to_json
from strategy_lab.scorecard import Scorecard
from strategy_lab.signals import ClosePriceSignal, OpenPriceSignal
from strategy_lab.strategies import AtrSelector
from strategy_lab.targets import ReturnTarget


@pytest.fixture
def scorecard(mock_panel) -> Scorecard:
    return Scorecard(
        BacktestEngine(mock_panel),
        back_days=4,
        selectors=[AtrSelector(top_n=4, lookback_days=20)],
        signals=[ClosePriceSignal(), OpenPriceSignal()],
        targets=[ReturnTarget(0.02, 0.01, 1), ReturnTarget(0.03, 0.02, 2)],
        show_progress=False,
    )


class TestRecommendation:
    """推荐价格测试类"""

    def test_from_signal(self):
        """测试目标价与止损价"""
        r = Recommendation.from_signal("600000", 10.0, 0.05, 0.03, previous_close=9.9)
        assert r.target_price == pytest.approx(10.5)
        assert r.stop_loss_price == pytest.approx(9.7)
        assert r.to_dict() == {
            "symbol": "600000",
            "buy_price": 10.0,
            "target_price": r.target_price,
            "stop_loss_price": r.stop_loss_price,
            "previous_close": 9.9,
        }


class TestExport:
    """JSON 导出测试类"""

    def test_only_positive_scores(self, scorecard):
        """测试只导出得分 > 0 的组合"""
        matrix = np.zeros(scorecard.shape)
        matrix[0, 0, 1] = 0.4
        matrix[1, 0, 0] = 0.6

        data = build_export_data(scorecard, matrix, update_date="2024-12-31")

        assert data["update_date"] == "2024-12-31"
        assert [s["score"] for s in data["strategies"]] == [0.4, 0.6]
        # 排名第一的是第二个导出项
        assert data["best_combinations"] == [1, 0]
        assert data["best_strategy"] == "ATR选股策略 + 收盘价信号 + 收益率目标 3% / 2天"

    def test_entry_fields(self, scorecard):
        """测试每个组合的字段"""
        matrix = np.zeros(scorecard.shape)
        matrix[0, 0, 0] = 0.5

        entry = build_export_data(scorecard, matrix, recommend_limit=2)["strategies"][0]

        assert entry["strategy_name"] == "ATR选股策略"
        assert entry["signal_name"] == "收盘价信号"
        assert entry["target_name"] == "收益率目标 2% / 1天"
        assert entry["performance"]["success_rate"] == 0.5
        assert entry["performance"]["total_trades"] > 0
        assert len(entry["recommendations"]) <= 2

    def test_all_zero(self, scorecard):
        """测试全部为 0 时导出空列表"""
        data = build_export_data(scorecard, np.zeros(scorecard.shape))
        assert data["strategies"] == []
        assert data["best_combinations"] == []
        assert data["best_strategy"] is None

    def test_top_k(self, scorecard):
        """测试 best_combinations 只列出前 top_k 个"""
        matrix = np.full(scorecard.shape, 0.3)
        data = build_export_data(scorecard, matrix, top_k=2)
        assert len(data["strategies"]) == 4
        assert data["best_combinations"] == [0, 1]

    def test_write_json(self, scorecard, tmp_path):
        """测试写出合法 JSON 且非有限值替换为 null"""
        matrix = scorecard.run()
        output = export_results_to_json(scorecard, matrix, output_path=tmp_path / "data" / "stocks.json")

        text = output.read_text(encoding="utf-8")
        assert "NaN" not in text
        assert "Infinity" not in text

        data = json.loads(text)
        assert set(data) == {"update_date", "best_combinations", "strategies", "best_strategy"}
        for entry in data["strategies"]:
            assert entry["score"] > 0
            for value in entry["performance"].values():
                assert value is None or not isinstance(value, float) or math.isfinite(value)
