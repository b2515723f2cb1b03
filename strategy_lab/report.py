"""
推荐与结果导出

- Recommendation: 单只股票的买入 / 目标 / 止损价格
- export_results_to_json: 将评分卡结果导出为网页使用的 JSON
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
import json
import logging
import math

import numpy as np

if TYPE_CHECKING:
    from .scorecard import Scorecard

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = Path("docs/data/stocks.json")


@dataclass(frozen=True)
class Recommendation:
    """
    推荐股票

    Attributes
    ----------
    symbol : str
        股票代码
    buy_price : float
        买入价
    target_price : float
        目标价 = 买入价 * (1 + 目标收益率)
    stop_loss_price : float
        止损价 = 买入价 * (1 - 止损比例)
    previous_close : Optional[float]
        决策日收盘价
    """
    symbol: str
    buy_price: float
    target_price: float
    stop_loss_price: float
    previous_close: Optional[float] = None

    @classmethod
    def from_signal(
        cls,
        symbol: str,
        buy_price: float,
        target_return: float,
        stop_loss: float,
        previous_close: Optional[float] = None
    ) -> "Recommendation":
        return cls(
            symbol=symbol,
            buy_price=buy_price,
            target_price=buy_price * (1 + target_return),
            stop_loss_price=buy_price * (1 - stop_loss),
            previous_close=previous_close,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _clean_floats(value: Any) -> Any:
    """递归地将 NaN / inf 替换为 None，numpy 标量转为 Python 类型"""
    if isinstance(value, dict):
        return {k: _clean_floats(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_clean_floats(v) for v in value]
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def build_export_data(
    scorecard: "Scorecard",
    matrix: np.ndarray,
    top_k: int = 2,
    recommend_limit: int = 5,
    update_date: Optional[str] = None
) -> Dict[str, Any]:
    """
    组装导出数据

    只导出得分 > 0 的组合；每个组合附带完整回测统计与推荐列表。

    Parameters
    ----------
    scorecard : Scorecard
        已构建的评分卡
    matrix : np.ndarray
        ``scorecard.run()`` 的得分矩阵
    top_k : int, optional
        ``best_combinations`` 中列出的组合数，默认 2
    recommend_limit : int, optional
        每个组合的推荐数量上限，默认 5
    update_date : Optional[str]
        更新日期，默认今天 (YYYY-MM-DD)

    Returns
    -------
    Dict[str, Any]
        可直接 JSON 序列化的字典（非有限浮点数已替换为 None）
    """
    strategies: List[Dict[str, Any]] = []
    index_of: Dict[tuple, int] = {}

    for t, s, g in scorecard.combinations():
        score = float(matrix[t, s, g])
        if score <= 0:
            continue

        strategy_name, signal_name, target_name = scorecard.combination_names(t, s, g)
        detailed = scorecard.run_detailed(t, s, g)
        performance = {"success_rate": score}
        performance.update(detailed.to_record())

        index_of[(t, s, g)] = len(strategies)
        strategies.append({
            "strategy_name": strategy_name,
            "signal_name": signal_name,
            "target_name": target_name,
            "score": score,
            "performance": performance,
            "recommendations": [r.to_dict() for r in scorecard.recommend(t, s, g, limit=recommend_limit)],
        })

    best_combinations = [
        index_of[(t, s, g)]
        for t, s, g, _ in scorecard.ranked_combinations(matrix)
        if (t, s, g) in index_of
    ][:top_k]

    best_strategy = None
    if best_combinations:
        best = strategies[best_combinations[0]]
        best_strategy = f"{best['strategy_name']} + {best['signal_name']} + {best['target_name']}"

    data = {
        "update_date": update_date or datetime.now().strftime("%Y-%m-%d"),
        "best_combinations": best_combinations,
        "strategies": strategies,
        "best_strategy": best_strategy,
    }
    return _clean_floats(data)


def export_results_to_json(
    scorecard: "Scorecard",
    matrix: np.ndarray,
    output_path: Union[str, Path] = DEFAULT_OUTPUT_PATH,
    top_k: int = 2,
    recommend_limit: int = 5
) -> Path:
    """
    导出评分卡结果到 JSON 文件

    Returns
    -------
    Path
        写入的文件路径
    """
    logger.info("导出结果到JSON...")
    data = build_export_data(scorecard, matrix, top_k=top_k, recommend_limit=recommend_limit)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    logger.info(f"结果已导出到 {output_path} ({len(data['strategies'])} 个组合)")
    return output_path


__all__ = [
    "Recommendation",
    "build_export_data",
    "export_results_to_json",
    "DEFAULT_OUTPUT_PATH",
]
