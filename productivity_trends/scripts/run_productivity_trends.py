#!/usr/bin/env python3
"""
Forest productivity trends script.

Command-line interface for computing per-forest productivity change across
the configured sample years. This is a thin wrapper around the core
ForestProductivityPipeline class.

Usage:
    python run_productivity_trends.py [OPTIONS]

Examples:
    # Run with the component configuration
    python run_productivity_trends.py

    # Custom inputs and years, without saving the CSV
    python run_productivity_trends.py --input-dir exports/ --years 1986 1991 1996 --no-save
"""

import argparse
import sys
from typing import List, Optional

from productivity_trends.core.exceptions import ProductivityDataError
from productivity_trends.core.productivity_pipeline import ForestProductivityPipeline
from shared_utils import load_config


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute longitudinal productivity change for national forests",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file (default: component config.yaml)'
    )
    parser.add_argument(
        '--input-dir',
        type=str,
        help='Directory with the per-year exports (overrides data.input_dir)'
    )
    parser.add_argument(
        '--years',
        type=int,
        nargs='+',
        help='Sample years to analyse (overrides sample_years)'
    )
    parser.add_argument(
        '--no-save',
        action='store_true',
        help='Do not write the result CSV'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (overrides logging.level)'
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    """Load the configuration and apply command-line overrides."""
    config = load_config(args.config, component_name="productivity_trends")

    if args.input_dir:
        config.setdefault('data', {})['input_dir'] = args.input_dir
    if args.years:
        config['sample_years'] = {'years': args.years}
    if args.no_save:
        config.setdefault('output', {})['save_results'] = False
    if args.log_level:
        config.setdefault('logging', {})['level'] = args.log_level

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the productivity trends script.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    args = parse_arguments(argv)

    try:
        pipeline = ForestProductivityPipeline(build_config(args))
    except (FileNotFoundError, ValueError) as e:
        print(f"Error initializing pipeline: {e}", file=sys.stderr)
        return 1

    try:
        table = pipeline.run()
    except ProductivityDataError as e:
        pipeline.logger.error(f"Error during analysis: {e}")
        return 1

    pipeline.print_summary(table)

    if pipeline.config.get('output', {}).get('save_results', True):
        pipeline.save_results(table)

    pipeline.logger.info("Productivity trends analysis complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
