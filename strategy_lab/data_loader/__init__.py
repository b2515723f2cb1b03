"""
数据获取模块

主要组件:
    - Bar / PriceSeries: 日线数据结构（最新在前）
    - DataHandler: 数据源抽象基类
    - MockDataHandler: 模拟数据源
    - StockRepository: 带缓存的数据仓库，多线程加载面板数据

AkShare 数据源位于 ``akshare_loader`` 子模块，按需导入：

    from strategy_lab.data_loader.akshare_loader import AkshareDataLoader
"""

from .bars import Bar, PriceSeries
from .base import DataHandler, DataSourceError
from .mock import MockDataHandler, create_mock_daily_bars
from .repository import StockRepository

__all__ = [
    'Bar',
    'PriceSeries',
    'DataHandler',
    'DataSourceError',
    'MockDataHandler',
    'create_mock_daily_bars',
    'StockRepository',
]
