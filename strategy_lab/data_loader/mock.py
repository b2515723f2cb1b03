"""
模拟数据源

生成可复现的随机游走日线数据，用于离线演示和单元测试。
"""

from typing import Optional, List, Dict, Any
import logging
import zlib

import numpy as np
import pandas as pd

from .base import DataHandler
from .bars import PriceSeries

logger = logging.getLogger(__name__)


def create_mock_daily_bars(
    count: int,
    seed: int = 42,
    start_price: float = 10.0,
    end_date: str = "2024-12-31",
) -> PriceSeries:
    """
    创建模拟的日线数据

    Parameters
    ----------
    count : int
        K线数量
    seed : int, optional
        随机种子，默认 42
    start_price : float, optional
        起始价格，默认 10.0
    end_date : str, optional
        最后一个交易日，默认 '2024-12-31'

    Returns
    -------
    PriceSeries
        最新在前的日线序列
    """
    rng = np.random.RandomState(seed)

    # 随机游走收盘价，日收益率限制在 ±10% 涨跌停内
    daily_returns = np.clip(rng.normal(0.0005, 0.025, count), -0.1, 0.1)
    close = start_price * np.cumprod(1 + daily_returns)
    prev_close = np.concatenate([[start_price], close[:-1]])

    open_price = prev_close * (1 + np.clip(rng.normal(0, 0.01, count), -0.05, 0.05))
    high = np.maximum(open_price, close) * (1 + np.abs(rng.normal(0, 0.01, count)))
    low = np.minimum(open_price, close) * (1 - np.abs(rng.normal(0, 0.01, count)))
    volume = rng.randint(100000, 5000000, count)
    amount = (volume * close).astype(np.int64)

    dates = pd.bdate_range(end=end_date, periods=count)
    df = pd.DataFrame({
        "open": np.round(open_price, 2),
        "high": np.round(high, 2),
        "low": np.round(low, 2),
        "close": np.round(close, 2),
        "volume": volume,
        "amount": amount,
    }, index=dates)

    return PriceSeries.from_frame(df)


class MockDataHandler(DataHandler):
    """
    模拟数据源

    每只股票的随机种子由代码确定，多次获取结果完全一致。

    Examples
    --------
    >>> handler = MockDataHandler({"data_source": {"mock_symbols": 50}})
    >>> series = handler.fetch_daily_bars("600000")
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(config)
        source_cfg = self.config.get("data_source", {})
        self._n_symbols = source_cfg.get("mock_symbols", 50)
        self._n_bars = source_cfg.get("mock_bars", 250)
        self._end_date = source_cfg.get("mock_end_date", "2024-12-31")
        logger.info(f"模拟数据源初始化: {self._n_symbols} 只股票, 每只 {self._n_bars} 根K线")

    def get_stock_list(self) -> List[str]:
        """沪深主板风格的模拟代码"""
        half = self._n_symbols // 2
        sh = [f"{600000 + i:06d}" for i in range(self._n_symbols - half)]
        sz = [f"{1 + i:06d}" for i in range(half)]
        return sh + sz

    def fetch_daily_bars(self, symbol: str) -> Optional[PriceSeries]:
        seed = zlib.crc32(symbol.encode("utf-8")) % (2 ** 31)
        start_price = 5.0 + seed % 4500 / 100.0
        return create_mock_daily_bars(
            self._n_bars,
            seed=seed,
            start_price=start_price,
            end_date=self._end_date,
        )


__all__ = ['MockDataHandler', 'create_mock_daily_bars']
