"""
数据源抽象基类

定义日线数据获取的标准接口，所有数据源实现类必须继承此类。
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Callable
import logging
import time
import random

from .bars import PriceSeries

logger = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """数据源不可用（股票列表获取失败、加载结果为空等）"""
    pass


class DataHandler(ABC):
    """
    数据源抽象基类

    Attributes
    ----------
    config : Dict[str, Any]
        数据配置字典，读取 ``data_source`` 节点

    Methods
    -------
    fetch_daily_bars(symbol)
        获取单只股票的日线序列（最新在前）
    get_stock_list()
        获取股票代码列表
    """

    # 出现在异常信息中即视为可恢复的网络问题
    TRANSIENT_ERROR_MARKERS = (
        "ssl", "timeout", "timed out", "connection", "reset", "eof",
        "refused", "aborted", "10054", "10060",
    )
    MAX_BACKOFF_SECONDS = 60

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        初始化数据源

        Parameters
        ----------
        config : Optional[Dict[str, Any]]
            数据配置字典，包含重试次数、重试间隔等
        """
        self.config = config or {}
        source_cfg = self.config.get("data_source", {})
        self._retry_times = source_cfg.get("retry_times", 3)
        self._retry_delay = source_cfg.get("retry_delay", 5)
        self._timeout = source_cfg.get("timeout", 30)

    @abstractmethod
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
            日线序列，无数据时返回 None
        """
        pass

    @abstractmethod
    def get_stock_list(self) -> List[str]:
        """
        获取股票列表

        Returns
        -------
        List[str]
            股票代码列表

        Raises
        ------
        DataSourceError
            数据源不可达时
        """
        pass

    @classmethod
    def _is_transient(cls, error: Exception) -> bool:
        if isinstance(error, (ConnectionError, TimeoutError)):
            return True
        message = str(error).lower()
        return any(marker in message for marker in cls.TRANSIENT_ERROR_MARKERS)

    def _backoff_delay(self, attempt: int, transient: bool) -> float:
        """网络错误指数退避（上限 60 秒），其他错误线性退避；均加随机抖动"""
        if transient:
            delay = min(self._retry_delay * 2 ** attempt, self.MAX_BACKOFF_SECONDS)
            return delay * random.uniform(0.5, 1.5)
        return self._retry_delay * (attempt + 1) * random.uniform(0.8, 1.2)

    def _retry_request(self, func: Callable, *args, **kwargs) -> Any:
        """
        带重试的数据源调用

        Parameters
        ----------
        func : Callable
            实际发起请求的函数
        *args, **kwargs
            透传给 func

        Returns
        -------
        Any
            func 的返回值

        Raises
        ------
        Exception
            重试次数用尽后抛出最后一次异常
        """
        attempts = max(self._retry_times, 1)
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                transient = self._is_transient(e)
                logger.warning(
                    f"请求失败 ({attempt}/{attempts}) "
                    f"[{'网络错误' if transient else '一般错误'}]: {e}"
                )
                if attempt == attempts:
                    logger.error(f"重试 {attempts} 次后仍失败: {e}")
                    raise
                wait = self._backoff_delay(attempt - 1, transient)
                logger.info(f"{wait:.1f} 秒后重试...")
                time.sleep(wait)


__all__ = ['DataHandler', 'DataSourceError']
