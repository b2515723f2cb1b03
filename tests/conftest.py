"""
测试公共夹具
"""

from typing import Callable, Sequence, Tuple

import pandas as pd
import pytest

from strategy_lab.data_loader.bars import PriceSeries
from strategy_lab.data_loader.mock import create_mock_daily_bars


def series_from_rows(
    rows: Sequence[Tuple[float, ...]],
    end_date: str = "2024-06-28",
) -> PriceSeries:
    """
    由时间正序的 (open, high, low, close[, volume]) 行构建日线序列

    返回的序列为最新在前，rows[0] 对应最大索引。
    """
    dates = pd.bdate_range(end=end_date, periods=len(rows))
    records = []
    for date, row in zip(dates, rows):
        open_, high, low, close = row[:4]
        volume = row[4] if len(row) > 4 else 1_000_000
        records.append({
            "date": date,
            "open": open_,
            "high": high,
            "low": low,
            "close": close,
            "volume": volume,
        })
    return PriceSeries.from_frame(pd.DataFrame(records))


@pytest.fixture
def make_series() -> Callable[..., PriceSeries]:
    """构建日线序列的工厂"""
    return series_from_rows


@pytest.fixture
def mock_panel():
    """20 只股票、200 根K线的模拟面板"""
    return {
        f"6000{i:02d}": create_mock_daily_bars(200, seed=i)
        for i in range(20)
    }
