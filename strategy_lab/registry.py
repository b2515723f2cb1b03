"""
组件注册表

将配置中的名称映射到选股策略、买入信号与退出策略的构造函数，
根据配置构建评分卡的三个维度。

配置格式（每一项可以是名称字符串，或带 params 的字典）::

    scorecard:
      selectors:
        - name: atr
          params: {top_n: 10, lookback_days: 100}
      signals:
        - close
        - open
      targets:
        - name: return
          params: {target_return: 0.02, stop_loss: 0.01, in_days: 1}
"""

from copy import deepcopy
from typing import Any, Callable, Dict, List, Mapping, Tuple, Union
import logging

from .signals import (
    BottomReverseSignal,
    ClosePriceSignal,
    EntryRule,
    LimitPriceSignal,
    OpenPriceSignal,
    VolumeDeclineSignal,
    VolumeSurgeSignal,
)
from .strategies import (
    AtrSelector,
    AtrSelectorWeights,
    BreakthroughPullbackSelector,
    MacdSelector,
    RsiSelector,
    StockSelector,
    VolumeDecliningSelector,
)
from .targets import ExitPolicy, GuardTarget, ReturnTarget

logger = logging.getLogger(__name__)

ComponentSpec = Union[str, Mapping[str, Any]]


def _build_atr_selector(**params: Any) -> AtrSelector:
    weights = params.pop("score_weights", None)
    if isinstance(weights, Mapping):
        params["score_weights"] = AtrSelectorWeights(**weights)
    return AtrSelector(**params)


SELECTOR_REGISTRY: Dict[str, Callable[..., StockSelector]] = {
    "atr": _build_atr_selector,
    "volume_decline": VolumeDecliningSelector,
    "breakthrough_pullback": BreakthroughPullbackSelector,
    "rsi": RsiSelector,
    "macd": MacdSelector,
}

SIGNAL_REGISTRY: Dict[str, Callable[..., EntryRule]] = {
    "open": OpenPriceSignal,
    "close": ClosePriceSignal,
    "limit": LimitPriceSignal,
    "bottom_reverse": BottomReverseSignal,
    "volume_surge": VolumeSurgeSignal,
    "volume_decline": VolumeDeclineSignal,
}

TARGET_REGISTRY: Dict[str, Callable[..., ExitPolicy]] = {
    "return": ReturnTarget,
    "guard": GuardTarget,
}


DEFAULT_CONFIG: Dict[str, Any] = {
    "data_source": {
        "history_days": 365,
        "max_workers": 8,
        "min_bars": 120,
        "exclude_prefixes": ["688", "300", "301", "302"],
        "retry_times": 3,
        "retry_delay": 5,
        "show_progress": True,
    },
    "backtest": {
        "back_days": 12,
        "max_workers": 4,
        "collect_trade_details": False,
        "recommend_limit": 5,
        "top_combinations": 2,
        "output": "docs/data/stocks.json",
    },
    "scorecard": {
        "selectors": [
            {"name": "atr", "params": {"top_n": 10, "lookback_days": 100}},
            {"name": "volume_decline", "params": {
                "top_n": 10,
                "lookback_days": 30,
                "min_consecutive_decline_days": 3,
                "min_volume_decline_ratio": 0.05,
                "price_period": 20,
                "check_support_level": True,
                "max_support_ratio": 0.18,
            }},
            {"name": "breakthrough_pullback", "params": {
                "top_n": 10,
                "lookback_days": 10,
                "min_breakthrough_percent": 5.0,
                "max_pullback_percent": 5.0,
                "volume_decline_ratio": 0.7,
            }},
        ],
        "signals": ["close", "open", "bottom_reverse"],
        "targets": [
            {"name": "return", "params": {"target_return": 0.02, "stop_loss": 0.01, "in_days": 1}},
            {"name": "return", "params": {"target_return": 0.06, "stop_loss": 0.01, "in_days": 3}},
            {"name": "return", "params": {"target_return": 0.01, "stop_loss": 0.01, "in_days": 5}},
        ],
    },
}


def default_config() -> Dict[str, Any]:
    """返回默认配置的深拷贝"""
    return deepcopy(DEFAULT_CONFIG)


def build_component(
    registry: Mapping[str, Callable[..., Any]],
    spec: ComponentSpec,
    kind: str = "组件"
) -> Any:
    """
    根据名称和参数构建组件

    Parameters
    ----------
    registry : Mapping[str, Callable]
        名称 -> 构造函数
    spec : ComponentSpec
        名称字符串，或 ``{"name": ..., "params": {...}}``
    kind : str
        组件类别，用于错误信息

    Raises
    ------
    KeyError
        名称未注册时，错误信息列出可选名称
    """
    if isinstance(spec, str):
        name, params = spec, {}
    else:
        name = spec["name"]
        params = dict(spec.get("params") or {})

    if name not in registry:
        raise KeyError(f"未知的{kind} '{name}', 可选: {sorted(registry)}")

    return registry[name](**params)


def build_from_config(
    config: Mapping[str, Any]
) -> Tuple[List[StockSelector], List[EntryRule], List[ExitPolicy]]:
    """
    从配置构建评分卡的三个维度

    缺少 ``scorecard`` 节点或其中某一项时使用默认配置。

    Returns
    -------
    Tuple[List[StockSelector], List[EntryRule], List[ExitPolicy]]
        (选股策略, 买入信号, 退出策略)
    """
    section = config.get("scorecard") or {}
    defaults = DEFAULT_CONFIG["scorecard"]

    selectors = [
        build_component(SELECTOR_REGISTRY, spec, "选股策略")
        for spec in section.get("selectors", defaults["selectors"])
    ]
    signals = [
        build_component(SIGNAL_REGISTRY, spec, "买入信号")
        for spec in section.get("signals", defaults["signals"])
    ]
    targets = [
        build_component(TARGET_REGISTRY, spec, "退出策略")
        for spec in section.get("targets", defaults["targets"])
    ]

    logger.info(f"组件构建完成: {len(selectors)} 个选股策略, {len(signals)} 个买入信号, {len(targets)} 个退出策略")
    return selectors, signals, targets


__all__ = [
    "SELECTOR_REGISTRY",
    "SIGNAL_REGISTRY",
    "TARGET_REGISTRY",
    "DEFAULT_CONFIG",
    "default_config",
    "build_component",
    "build_from_config",
]
