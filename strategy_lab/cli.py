#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
策略评分卡 - 命令行入口

Usage
-----
    # 全组合评分并导出 JSON
    strategy-lab --config config/scorecard.yaml

    # 使用模拟数据（50 只股票）离线运行
    strategy-lab --mock 50 --days 10

    # 只回测单个组合（索引对应配置中的顺序）
    strategy-lab single --strategy 0 --signal 1 --target 2
"""
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .backtest import BacktestEngine, PerformanceAnalyzer
from .data_loader import DataSourceError, MockDataHandler, StockRepository
from .registry import build_from_config, default_config
from .report import export_results_to_json
from .scorecard import Scorecard
from .utils import Timer, load_config, merge_config, setup_logging

DEFAULT_CONFIG_PATH = Path("config/scorecard.yaml")
LOGS_PATH = Path("logs")

logger = logging.getLogger(__name__)


def _load_config_or_default(config_path: Path) -> Dict[str, Any]:
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        logger.warning(f"配置文件不存在: {config_path}，使用内置默认配置")
        return default_config()
    return merge_config(default_config(), config)


def _build_repository(config: Dict[str, Any], mock_symbols: Optional[int]) -> StockRepository:
    if mock_symbols:
        config["data_source"]["mock_symbols"] = mock_symbols
        logger.info(f"使用模拟数据源: {mock_symbols} 只股票")
        handler = MockDataHandler(config)
    else:
        from .data_loader.akshare_loader import AkshareDataLoader
        handler = AkshareDataLoader(config)
    return StockRepository(handler, config)


def build_scorecard(config: Dict[str, Any], args: argparse.Namespace) -> Scorecard:
    """根据配置和命令行参数加载数据并构建评分卡"""
    backtest_cfg = config["backtest"]
    selectors, signals, targets = build_from_config(config)

    repository = _build_repository(config, args.mock)
    with Timer("加载数据"):
        engine = BacktestEngine.from_repository(
            repository,
            limit=args.limit,
            collect_trade_details=backtest_cfg.get("collect_trade_details", False),
        )

    return Scorecard(
        engine,
        back_days=args.days or backtest_cfg.get("back_days", 12),
        selectors=selectors,
        signals=signals,
        targets=targets,
        max_workers=backtest_cfg.get("max_workers", 4),
        show_progress=config["data_source"].get("show_progress", True),
    )


def run_full_sweep(scorecard: Scorecard, config: Dict[str, Any], output: Optional[str]) -> None:
    """运行全部组合，打印结果并导出 JSON"""
    backtest_cfg = config["backtest"]

    with Timer("评分卡回测"):
        matrix = scorecard.run()

    print(scorecard.format_results(matrix))
    print(scorecard.format_best_combination(matrix))

    export_results_to_json(
        scorecard,
        matrix,
        output_path=output or backtest_cfg.get("output", "docs/data/stocks.json"),
        top_k=backtest_cfg.get("top_combinations", 2),
        recommend_limit=backtest_cfg.get("recommend_limit", 5),
    )


def run_single(scorecard: Scorecard, t: int, s: int, g: int) -> None:
    """回测单个组合并打印详细报告"""
    n_t, n_s, n_g = scorecard.shape
    for label, idx, size in (("strategy", s, n_s), ("signal", g, n_g), ("target", t, n_t)):
        if not 0 <= idx < size:
            raise IndexError(f"--{label} 索引 {idx} 超出范围 [0, {size})")

    strategy_name, signal_name, target_name = scorecard.combination_names(t, s, g)
    logger.info(f"单组合回测: 策略={strategy_name}, 信号={signal_name}, 目标={target_name}")

    with Timer("单组合回测"):
        result = scorecard.run_detailed(t, s, g)

    print(f"策略: {strategy_name}\n信号: {signal_name}\n目标: {target_name}")
    print(result.format_report())
    analyzer = PerformanceAnalyzer(result)
    print(analyzer.exit_reason_breakdown().to_string())

    by_symbol = analyzer.returns_by_symbol()
    if not by_symbol.empty:
        print("\n分股票统计:")
        print(by_symbol.to_string())

    recommendations = scorecard.recommend(t, s, g)
    if recommendations:
        print("\n推荐股票:")
        for r in recommendations:
            print(
                f"  {r.symbol}: 买入 {r.buy_price:.2f}, 目标 {r.target_price:.2f}, "
                f"止损 {r.stop_loss_price:.2f}"
            )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strategy-lab",
        description="A股选股策略回测评分卡",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
    strategy-lab                                  # 全组合评分（AkShare 数据）
    strategy-lab --mock 50 --days 10              # 模拟数据离线运行
    strategy-lab --limit 200 --output out.json    # 只加载前 200 只股票
    strategy-lab single --strategy 0 --signal 0 --target 1
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="配置文件路径"
    )

    parser.add_argument(
        "--days", "-d",
        type=int,
        default=None,
        help="滚动回测的决策日数量（覆盖配置中的 back_days）"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="JSON 输出路径"
    )

    parser.add_argument(
        "--mock",
        type=int,
        default=None,
        metavar="N",
        help="使用 N 只股票的模拟数据"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        metavar="N",
        help="只加载前 N 只股票（调试用）"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别"
    )

    subparsers = parser.add_subparsers(dest="command")
    single = subparsers.add_parser("single", help="只回测单个组合")
    single.add_argument("--strategy", type=int, default=0, help="选股策略索引")
    single.add_argument("--signal", type=int, default=0, help="买入信号索引")
    single.add_argument("--target", type=int, default=0, help="退出策略索引")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """主函数"""
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = getattr(logging, args.log_level)
    log_file = LOGS_PATH / f"strategy_lab_{datetime.now().strftime('%Y%m%d')}.log"
    setup_logging(level=log_level, log_file=log_file)

    logger.info("策略评分卡启动")
    config = _load_config_or_default(args.config)

    try:
        scorecard = build_scorecard(config, args)
    except DataSourceError as e:
        logger.error(f"数据加载失败: {e}")
        return 1

    if args.command == "single":
        run_single(scorecard, args.target, args.strategy, args.signal)
    else:
        run_full_sweep(scorecard, config, args.output)

    logger.info("评分卡运行完成")
    return 0


if __name__ == "__main__":
    sys.exit(main())
