"""
AkShare 日线数据源

使用 AkShare 从东方财富获取 A 股前复权日线数据，
转换为最新在前的 PriceSeries。
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, List, Dict, Any
import json
import logging
import socket

import akshare as ak
import pandas as pd

from .base import DataHandler, DataSourceError
from .bars import PriceSeries

logger = logging.getLogger(__name__)


class AkshareDataLoader(DataHandler):
    """
    基于AkShare的数据加载器

    Examples
    --------
    >>> config = {"data_source": {"retry_times": 3, "history_days": 365}}
    >>> loader = AkshareDataLoader(config)
    >>> series = loader.fetch_daily_bars("000001")
    >>> print(series[0].close)
    """

    COLUMN_MAPPING = {
        "日期": "date",
        "开盘": "open",
        "收盘": "close",
        "最高": "high",
        "最低": "low",
        "成交量": "volume",
        "成交额": "amount",
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        初始化AkShare数据加载器

        Parameters
        ----------
        config : Optional[Dict[str, Any]]
            数据配置字典
        """
        super().__init__(config)
        source_cfg = self.config.get("data_source", {})
        self._history_days = source_cfg.get("history_days", 365)
        self._adjust = source_cfg.get("adjust", "qfq")
        self._cache_dir = Path(source_cfg.get("cache_dir", "data/cache"))

        socket.setdefaulttimeout(self._timeout)
        logger.info(
            f"AkShare数据加载器初始化完成: 历史窗口={self._history_days}天, 复权={self._adjust}"
        )

    def fetch_daily_bars(self, symbol: str) -> Optional[PriceSeries]:
        """
        获取股票日线数据

        Parameters
        ----------
        symbol : str
            股票代码，如 '000001'

        Returns
        -------
        Optional[PriceSeries]
            日线序列（最新在前），无数据时返回 None
        """
        end = datetime.now()
        start = end - timedelta(days=self._history_days)

        def _fetch():
            return ak.stock_zh_a_hist(
                symbol=symbol,
                period="daily",
                start_date=start.strftime("%Y%m%d"),
                end_date=end.strftime("%Y%m%d"),
                adjust=self._adjust,
            )

        df = self._retry_request(_fetch)

        if df is None or df.empty:
            logger.warning(f"股票 {symbol} 在指定日期范围内无数据")
            return None

        df = self._standardize_columns(df)
        series = PriceSeries.from_frame(df)
        logger.debug(f"获取 {symbol} 日线数据成功，共 {len(series)} 条记录")
        return series

    def get_stock_list(self) -> List[str]:
        """
        获取全部A股代码（网络失败时降级到本地缓存）

        Returns
        -------
        List[str]
            股票代码列表

        Raises
        ------
        DataSourceError
            网络和缓存均不可用时
        """
        def _fetch():
            df = ak.stock_zh_a_spot_em()
            return df["代码"].astype(str).tolist()

        try:
            symbols = self._retry_request(_fetch)
        except Exception as e:
            logger.error(f"网络获取股票列表失败: {e}")
            cached = self._read_symbol_cache()
            if cached is None:
                raise DataSourceError(f"无法获取股票列表: {e}") from e
            return cached

        if symbols:
            self._write_symbol_cache(symbols)
        logger.info(f"获取股票列表成功: {len(symbols)} 只")
        return symbols

    @property
    def _symbol_cache_file(self) -> Path:
        return self._cache_dir / "stock_list_all.json"

    def _read_symbol_cache(self) -> Optional[List[str]]:
        path = self._symbol_cache_file
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"股票列表缓存不可读 {path}: {e}")
            return None
        symbols = payload.get("stock_list", [])
        logger.warning(f"改用本地缓存的股票列表: {len(symbols)} 只, 缓存时间 {payload.get('updated_at', '未知')}")
        return symbols

    def _write_symbol_cache(self, symbols: List[str]) -> None:
        path = self._symbol_cache_file
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"updated_at": datetime.now().isoformat(), "stock_list": symbols}
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        logger.debug(f"股票列表已写入缓存: {path}")

    def _standardize_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """中文列名转换为标准列名"""
        df = df.rename(columns=self.COLUMN_MAPPING)
        return df[[c for c in ("date", "open", "high", "low", "close", "volume", "amount") if c in df.columns]]


__all__ = ['AkshareDataLoader']
