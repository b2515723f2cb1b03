"""
通用工具模块

- config: 日志和配置文件管理
- timer: 计时器工具
"""

from .config import setup_logging, load_config, save_config, merge_config
from .timer import Timer

__all__ = [
    "setup_logging",
    "load_config",
    "save_config",
    "merge_config",
    "Timer",
]
