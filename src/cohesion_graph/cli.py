"""Command line entry point for extract-class recommendations."""

import argparse
import asyncio
import dataclasses
import sys
from typing import List, Optional

from .analyzer import ExtractClassAnalyzer
from .config import COMMUNITY_ALGORITHMS, LOG_LEVELS, CohesionGraphConfig
from .errors import GraphStoreError
from .logger import get_logger, set_log_level
from .report import render_text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cohesion-graph",
        description="Recommend cohesive member groups for extract-class refactoring",
    )
    parser.add_argument("paths", nargs="+", help="Python source files to analyze")
    parser.add_argument("--class", "-c", dest="class_names", action="append",
                        help="Only analyze this class (repeatable)")
    parser.add_argument("--store", "-s", dest="store_path",
                        help="JSON graph store to load and update (in-memory when omitted)")
    parser.add_argument("--reset", action="store_true",
                        help="Wipe the graph store before analyzing")
    parser.add_argument("--algorithm", choices=COMMUNITY_ALGORITHMS,
                        help="Community detection algorithm")
    parser.add_argument("--resolution", type=float, help="Community detection resolution")
    parser.add_argument("--seed", type=int, help="Community detection seed")
    parser.add_argument("--format", "-f", choices=("text", "json"), default="text",
                        help="Report format")
    parser.add_argument("--log-level", choices=LOG_LEVELS,
                        help="Logging level")
    return parser


def config_from_args(args: argparse.Namespace, base: CohesionGraphConfig) -> CohesionGraphConfig:
    overrides = {}
    if args.store_path:
        overrides["store_path"] = args.store_path
    if args.reset:
        overrides["reset_store"] = True
    if args.algorithm:
        overrides["community_algorithm"] = args.algorithm
    if args.resolution is not None:
        overrides["community_resolution"] = args.resolution
    if args.seed is not None:
        overrides["community_seed"] = args.seed
    if args.log_level:
        overrides["log_level"] = args.log_level
    return dataclasses.replace(base, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args, CohesionGraphConfig.from_env())
    except ValueError as e:
        parser.error(str(e))

    set_log_level(config.log_level)
    analyzer = ExtractClassAnalyzer(config)

    try:
        report = asyncio.run(analyzer.analyze_paths(args.paths, args.class_names))
    except GraphStoreError as e:
        get_logger().error(f"Graph store failure: {e}")
        return 1

    if args.format == "json":
        print(report.model_dump_json(indent=2))
    else:
        print(render_text(report))
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
