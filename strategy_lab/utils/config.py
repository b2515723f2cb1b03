"""
日志与配置文件工具

- setup_logging: 控制台 + 可选文件日志
- load_config / save_config: YAML 配置读写
- merge_config: 用户配置覆盖内置默认配置
"""

from copy import deepcopy
from typing import Optional, Dict, Any, Iterable, Mapping, Union
from pathlib import Path
import logging
import sys

import yaml

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

# DEBUG 级别下这些库的日志会淹没回测输出
NOISY_LOGGERS = ("numba", "urllib3", "akshare")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS
) -> logging.Logger:
    """
    配置根日志器

    Parameters
    ----------
    level : int, optional
        日志级别，默认 INFO
    log_file : Optional[Union[str, Path]]
        日志文件，父目录不存在时自动创建；为 None 时只输出到控制台
    format_string : Optional[str]
        日志格式，默认 ``LOG_FORMAT``
    quiet_loggers : Iterable[str]
        级别固定为 WARNING 的第三方日志器

    Returns
    -------
    logging.Logger
        根日志器

    Examples
    --------
    >>> setup_logging(logging.DEBUG, "logs/strategy_lab_20240628.log")
    """
    formatter = logging.Formatter(format_string or LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root_logger


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    读取 YAML 配置

    Returns
    -------
    Dict[str, Any]
        配置字典，空文件返回 {}

    Raises
    ------
    FileNotFoundError
        文件不存在时
    yaml.YAMLError
        YAML 解析失败时
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"配置文件不存在: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"配置文件加载成功: {config_path}")
    return config


def save_config(config: Dict[str, Any], config_path: Union[str, Path]) -> None:
    """写出 YAML 配置，保持键的原有顺序"""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, allow_unicode=True, default_flow_style=False, sort_keys=False)

    logger.info(f"配置文件保存成功: {config_path}")


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    递归合并配置

    两侧都是字典的键逐层合并，其余（包括列表）由 override 整体替换。
    不修改输入。

    Examples
    --------
    >>> merge_config({"backtest": {"back_days": 12, "max_workers": 4}},
    ...              {"backtest": {"back_days": 20}})
    {'backtest': {'back_days': 20, 'max_workers': 4}}
    """
    merged = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["setup_logging", "load_config", "save_config", "merge_config"]
