"""
Main entry point for dataroom.

This module provides the command line interface: serving the HTTP API,
analyzing a CSV file and generating a dataset from a description.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from dataroom.components.config import ConfigManager, load_config_file
from dataroom.llm import prompts
from dataroom.llm.provider import CompletionProvider
from dataroom.llm.synth import generate_csv_fallback
from dataroom.system import SystemManager, params_from_config
from dataroom.utils.csv_io import read_csv
from dataroom.utils.report import build_report
from dataroom.workspace import analyze

logger = logging.getLogger(__name__)


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_features(value: str) -> List[int]:
    """Comma-separated column indices, e.g. ``0,2``."""
    try:
        return [int(v) for v in value.split(',') if v.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid feature list: {value}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='Dataroom: build datasets, analyze, ask')

    parser.add_argument(
        '--config',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level'
    )

    subparsers = parser.add_subparsers(dest='command')

    serve = subparsers.add_parser('serve', help='Run the HTTP API')
    serve.add_argument('--host', help='Server host')
    serve.add_argument('--port', type=int, help='Server port')

    analyze_parser = subparsers.add_parser('analyze', help='Analyze a CSV file')
    analyze_parser.add_argument('csv', help='Path to the CSV file')
    analyze_parser.add_argument('--x', type=int, default=0, help='Regression X column index')
    analyze_parser.add_argument('--y', type=int, default=1, help='Regression Y column index')
    analyze_parser.add_argument('--features', type=parse_features, default=[0, 1],
                                help='Clustering feature column indices, comma-separated')
    analyze_parser.add_argument('--k', type=int, help='Number of clusters')
    analyze_parser.add_argument('--seed', type=int, help='Clustering seed')
    analyze_parser.add_argument('--max-iters', type=int, help='Clustering iteration cap')
    analyze_parser.add_argument('--report', help='Write the Markdown report to this path')
    analyze_parser.add_argument('--json', action='store_true', help='Print the analysis as JSON')

    generate = subparsers.add_parser('generate', help='Generate a CSV dataset')
    generate.add_argument('prompt', help='Dataset description')
    generate.add_argument('--rows', type=int, help='Approximate row count')
    generate.add_argument('--offline', action='store_true',
                          help='Use the synthetic generator without calling the model')
    generate.add_argument('--seed', type=int, help='Synthetic generator seed')
    generate.add_argument('--output', help='Write the CSV to this path')

    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Collect configuration overrides from the file and the command line.
    """
    overrides: Dict[str, Any] = {}

    # Load configuration from file if provided
    if args.config:
        overrides.update(load_config_file(args.config))

    if getattr(args, 'port', None):
        overrides.setdefault('server', {})['port'] = args.port

    if getattr(args, 'host', None):
        overrides.setdefault('server', {})['host'] = args.host

    overrides.setdefault('logging', {})['level'] = args.log_level.lower()

    return overrides


def run_serve() -> int:
    config = ConfigManager.get_config()

    # Start system
    system = SystemManager.start(config)

    # Wait for shutdown
    try:
        system.wait_for_shutdown()
    except KeyboardInterrupt:
        pass
    finally:
        SystemManager.stop()
    return 0


def run_analyze(args: argparse.Namespace) -> int:
    """
    Analyze a CSV file and print the report (or JSON).
    """
    config = ConfigManager.get_config()

    dataset = read_csv(args.csv)
    if dataset is None:
        logger.error(f"No rows in {args.csv}")
        return 1

    params = params_from_config(config).update(
        x_col=args.x,
        y_col=args.y,
        features=args.features,
        k=args.k,
        seed=args.seed,
        max_iters=args.max_iters
    )
    result = analyze(dataset, params)
    report = build_report(dataset, result.summary, result.regression, result.clusters)

    if args.report:
        with open(args.report, 'w') as f:
            f.write(report)
        logger.info(f"Report written to {args.report}")

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif not args.report:
        print(report)
    return 0


def run_generate(args: argparse.Namespace) -> int:
    """
    Generate a CSV dataset from a description.
    """
    config = ConfigManager.get_config()
    provider = CompletionProvider.from_config(config)

    if args.offline:
        rows = prompts.clamp_rows(args.rows, provider.default_rows, provider.min_rows, provider.max_rows)
        seed = provider.fallback_seed if args.seed is None else args.seed
        csv_text = generate_csv_fallback(args.prompt, rows, seed)
    else:
        csv_text = provider.generate_csv(args.prompt, args.rows, args.seed)

    if args.output:
        with open(args.output, 'w', newline='') as f:
            f.write(csv_text + "\n")
        logger.info(f"CSV written to {args.output}")
    else:
        print(csv_text)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.
    """
    # Parse arguments
    args = parse_args(argv)

    # Set up logging
    setup_logging(args.log_level)

    # Initialize configuration
    ConfigManager.get_config(build_overrides(args))

    if args.command == 'analyze':
        return run_analyze(args)
    if args.command == 'generate':
        return run_generate(args)
    return run_serve()


if __name__ == '__main__':
    sys.exit(main())
