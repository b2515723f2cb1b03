"""
计时器工具模块

提供上下文管理器形式的计时器。
"""

import logging
import time

logger = logging.getLogger(__name__)


class Timer:
    """
    计时器上下文管理器

    Examples
    --------
    >>> with Timer("评分卡回测") as timer:
    ...     matrix = scorecard.run()
    >>> timer.elapsed
    """

    def __init__(self, name: str = "操作") -> None:
        self.name = name
        self.elapsed = 0.0
        self._start_time = None

    def __enter__(self) -> "Timer":
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed = time.perf_counter() - self._start_time
        logger.info(f"{self.name} 耗时: {self.elapsed:.2f}秒")


__all__ = ["Timer"]
