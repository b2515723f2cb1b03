"""
日线数据结构

定义单根日K线 (Bar) 和单只股票的日线序列 (PriceSeries)。

PriceSeries 按时间倒序存放：索引 0 为最新交易日，索引越大日期越早。
底层使用只读 numpy 数组，可在多线程之间安全共享。
"""

from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Bar:
    """
    日K线

    Attributes
    ----------
    date : int
        交易日期，格式 YYYYMMDD
    open, high, low, close : float
        开高低收价格
    volume : int
        成交量
    amount : int
        成交额
    """
    date: int
    open: float
    high: float
    low: float
    close: float
    volume: int
    amount: int


class PriceSeries:
    """
    单只股票的日线序列（最新在前）

    Parameters
    ----------
    dates : array-like
        交易日期 (YYYYMMDD 整数)，必须严格递减
    open, high, low, close : array-like
        价格数组
    volume, amount : array-like
        成交量、成交额数组

    Raises
    ------
    ValueError
        数组长度不一致或日期未严格递减时

    Examples
    --------
    >>> series = PriceSeries.from_bars(bars)
    >>> latest = series[0]
    >>> print(latest.date, latest.close)
    """

    FIELDS = ("date", "open", "high", "low", "close", "volume", "amount")

    def __init__(
        self,
        dates: Sequence[int],
        open: Sequence[float],
        high: Sequence[float],
        low: Sequence[float],
        close: Sequence[float],
        volume: Sequence[int],
        amount: Sequence[int],
    ) -> None:
        self.date = self._freeze(dates, np.int64)
        self.open = self._freeze(open, np.float64)
        self.high = self._freeze(high, np.float64)
        self.low = self._freeze(low, np.float64)
        self.close = self._freeze(close, np.float64)
        self.volume = self._freeze(volume, np.int64)
        self.amount = self._freeze(amount, np.int64)

        n = len(self.date)
        for field in self.FIELDS[1:]:
            if len(getattr(self, field)) != n:
                raise ValueError(f"字段 {field} 长度与日期不一致: {len(getattr(self, field))} != {n}")

        if n > 1 and not np.all(np.diff(self.date) < 0):
            raise ValueError("日线序列日期必须严格递减（最新在前）")

    @staticmethod
    def _freeze(values: Sequence, dtype) -> np.ndarray:
        arr = np.array(values, dtype=dtype)
        arr.setflags(write=False)
        return arr

    @classmethod
    def from_bars(cls, bars: Sequence[Bar]) -> "PriceSeries":
        """从 Bar 列表构建（列表需已按最新在前排序）"""
        return cls(
            dates=[b.date for b in bars],
            open=[b.open for b in bars],
            high=[b.high for b in bars],
            low=[b.low for b in bars],
            close=[b.close for b in bars],
            volume=[b.volume for b in bars],
            amount=[b.amount for b in bars],
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "PriceSeries":
        """
        从 DataFrame 构建

        Parameters
        ----------
        df : pd.DataFrame
            包含 open, high, low, close, volume 列的日线数据，
            索引为 DatetimeIndex 或包含 'date' 列，顺序不限

        Returns
        -------
        PriceSeries
            按日期倒序排列的序列
        """
        frame = df.copy()
        if "date" in frame.columns:
            frame = frame.set_index("date")
        frame.index = pd.to_datetime(frame.index)
        frame = frame[~frame.index.duplicated(keep="last")].sort_index(ascending=False)

        if "amount" not in frame.columns:
            frame["amount"] = 0

        dates = frame.index.strftime("%Y%m%d").astype(np.int64)
        return cls(
            dates=dates,
            open=frame["open"].to_numpy(),
            high=frame["high"].to_numpy(),
            low=frame["low"].to_numpy(),
            close=frame["close"].to_numpy(),
            volume=frame["volume"].fillna(0).to_numpy(),
            amount=frame["amount"].fillna(0).to_numpy(),
        )

    def to_frame(self, chronological: bool = True) -> pd.DataFrame:
        """
        转换为 DataFrame

        Parameters
        ----------
        chronological : bool, optional
            为 True 时按时间正序（指标计算使用），默认 True

        Returns
        -------
        pd.DataFrame
            索引为 DatetimeIndex 的 OHLCV 数据
        """
        df = pd.DataFrame(
            {field: getattr(self, field) for field in self.FIELDS[1:]},
            index=pd.to_datetime(self.date.astype(str), format="%Y%m%d"),
        )
        df.index.name = "date"
        if chronological:
            df = df.iloc[::-1]
        return df

    def window(self, start: int, length: int) -> "PriceSeries":
        """截取 [start, start+length) 区间（仍为最新在前）"""
        end = start + length
        return PriceSeries(
            dates=self.date[start:end],
            open=self.open[start:end],
            high=self.high[start:end],
            low=self.low[start:end],
            close=self.close[start:end],
            volume=self.volume[start:end],
            amount=self.amount[start:end],
        )

    def __len__(self) -> int:
        return len(self.date)

    def __getitem__(self, idx: int) -> Bar:
        return Bar(
            date=int(self.date[idx]),
            open=float(self.open[idx]),
            high=float(self.high[idx]),
            low=float(self.low[idx]),
            close=float(self.close[idx]),
            volume=int(self.volume[idx]),
            amount=int(self.amount[idx]),
        )

    def __iter__(self) -> Iterator[Bar]:
        for idx in range(len(self)):
            yield self[idx]

    def __repr__(self) -> str:
        if len(self) == 0:
            return "PriceSeries(empty)"
        return f"PriceSeries({len(self)} bars, {self.date[-1]}~{self.date[0]})"


__all__ = ["Bar", "PriceSeries"]
