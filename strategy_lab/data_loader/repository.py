"""
股票数据仓库

封装数据源，提供线程安全的按需加载缓存，以及多线程批量加载面板数据。

缓存约定：每只股票最多从数据源获取一次。锁只保护缓存字典本身，
真正的网络请求在锁外执行，不同股票的获取互不阻塞；同一只股票的
并发请求会等待第一个请求的结果。
"""

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Optional, List, Dict, Any, Sequence
import logging
import threading

from tqdm import tqdm

from .base import DataHandler, DataSourceError
from .bars import PriceSeries

logger = logging.getLogger(__name__)


class StockRepository:
    """
    股票数据仓库

    Parameters
    ----------
    handler : DataHandler
        底层数据源
    config : Optional[Dict[str, Any]]
        配置字典，读取 ``data_source`` 节点：
        - max_workers: 并发线程数，默认 8
        - min_bars: 最少K线数量，不足的股票不进入面板，默认 120
        - exclude_prefixes: 排除的代码前缀（科创板、创业板）
        - show_progress: 是否显示进度条，默认 True

    Examples
    --------
    >>> repo = StockRepository(AkshareDataLoader(config), config)
    >>> panel = repo.load_panel(limit=200)
    >>> print(len(panel))
    """

    DEFAULT_EXCLUDE_PREFIXES = ("688", "300", "301", "302")

    def __init__(
        self,
        handler: DataHandler,
        config: Optional[Dict[str, Any]] = None
    ) -> None:
        self.handler = handler
        self.config = config or {}
        source_cfg = self.config.get("data_source", {})
        self.max_workers = source_cfg.get("max_workers", 8)
        self.min_bars = source_cfg.get("min_bars", 120)
        self.exclude_prefixes = tuple(
            source_cfg.get("exclude_prefixes", self.DEFAULT_EXCLUDE_PREFIXES)
        )
        self.show_progress = source_cfg.get("show_progress", True)

        self._cache: Dict[str, Future] = {}
        self._cache_lock = threading.Lock()
        self._fetch_count = 0

    @property
    def fetch_count(self) -> int:
        """实际向数据源发起的获取次数"""
        return self._fetch_count

    def get_series(self, symbol: str) -> Optional[PriceSeries]:
        """
        获取单只股票日线（带缓存，每只股票最多获取一次）

        Parameters
        ----------
        symbol : str
            股票代码

        Returns
        -------
        Optional[PriceSeries]
            日线序列；数据源无数据或获取失败时返回 None（同样被缓存）
        """
        with self._cache_lock:
            future = self._cache.get(symbol)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._cache[symbol] = future
                self._fetch_count += 1

        if is_owner:
            try:
                series = self.handler.fetch_daily_bars(symbol)
            except Exception as e:
                logger.warning(f"{symbol} 数据获取失败: {e}，跳过")
                series = None
            except BaseException as e:
                # 等待同一代码的线程随之收到该异常，不会永久阻塞
                future.set_exception(e)
                raise
            future.set_result(series)

        return future.result()

    def filter_stocks(self, symbols: Sequence[str]) -> List[str]:
        """排除科创板(688)、创业板(300/301/302)等"""
        return [s for s in symbols if not s.startswith(self.exclude_prefixes)]

    def load_panel(
        self,
        symbols: Optional[Sequence[str]] = None,
        limit: Optional[int] = None
    ) -> Dict[str, PriceSeries]:
        """
        多线程批量加载面板数据

        Parameters
        ----------
        symbols : Optional[Sequence[str]]
            股票代码列表，为 None 时从数据源获取全部股票并过滤
        limit : Optional[int]
            只加载前 N 只股票（调试用）

        Returns
        -------
        Dict[str, PriceSeries]
            股票代码 -> 日线序列，按代码排序

        Raises
        ------
        DataSourceError
            没有任何股票满足最少K线数量要求时
        """
        if symbols is None:
            symbols = self.filter_stocks(self.handler.get_stock_list())
        symbols = sorted(set(symbols))
        if limit is not None:
            symbols = symbols[:limit]

        total = len(symbols)
        logger.info(f"开始加载 {total} 只股票数据, 并发线程={self.max_workers}")

        loaded: Dict[str, PriceSeries] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_symbol = {
                executor.submit(self.get_series, symbol): symbol
                for symbol in symbols
            }

            with tqdm(total=total, desc="加载数据", unit="只", disable=not self.show_progress) as pbar:
                for future in as_completed(future_to_symbol):
                    symbol = future_to_symbol[future]
                    series = future.result()
                    if series is not None and len(series) >= self.min_bars:
                        loaded[symbol] = series
                    else:
                        logger.debug(f"{symbol} 历史数据不足 {self.min_bars} 条，已排除")
                    pbar.update(1)

        if not loaded:
            raise DataSourceError(f"没有股票满足最少 {self.min_bars} 条K线的要求")

        panel = {symbol: loaded[symbol] for symbol in sorted(loaded)}
        logger.info(f"数据加载完成: {len(panel)}/{total} 只股票")
        return panel


__all__ = ['StockRepository']
