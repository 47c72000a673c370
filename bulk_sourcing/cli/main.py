#!/usr/bin/env python3
"""
Shopify Bulk Sourcing CLI

Command-line interface that runs one bulk export job against a Shopify
store and writes the resulting nodes to a JSON Lines file.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from rich.logging import RichHandler

from ..adapters.config import EnvironmentConfigAdapter
from ..adapters.factories import (
    UnknownJobTypeError, create_orchestrator, get_supported_job_types, make_job_creator
)
from ..adapters.host.local import JsonFileCache, LocalHost
from ..adapters.host.reporter import LoggingReporter
from ..core.domain import SourcingRun
from ..core.validation import InvalidConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_FILE = ".cache/bulk-sourcing-cache.json"


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging once for the process"""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    if sys.stdout.isatty():
        logging.basicConfig(
            level=level,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(rich_tracebacks=verbose, show_path=verbose)]
        )
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser"""
    parser = argparse.ArgumentParser(
        prog='bulk-source',
        description='Shopify Bulk Sourcing - Run a bulk export job and write its records as nodes',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Export all products to a JSON Lines file
  bulk-source products -o products.jsonl

  # Export products and download their images
  bulk-source products -o products.jsonl --download-images --images-dir images/

  # Wait for a running job instead of canceling it
  bulk-source orders -o orders.jsonl --wait-for-previous

  # Check configuration only
  bulk-source products --check-config
        '''
    )

    parser.add_argument(
        'job_type',
        help=f"Bulk query to run: {', '.join(get_supported_job_types())}"
    )

    parser.add_argument(
        '-o', '--output',
        default='nodes.jsonl',
        help='Output JSON Lines file (default: nodes.jsonl)'
    )

    parser.add_argument(
        '--download-images',
        action='store_true',
        default=None,
        help='Download product images and attach localFile references (overrides SHOPIFY_DOWNLOAD_IMAGES)'
    )

    parser.add_argument(
        '--images-dir',
        default=None,
        help='Directory for downloaded images (default: .cache/shopify-images)'
    )

    parser.add_argument(
        '--wait-for-previous',
        action='store_true',
        help='Wait for a running bulk operation to finish instead of canceling it'
    )

    parser.add_argument(
        '--cache-file',
        default=DEFAULT_CACHE_FILE,
        help=f'JSON file used as the host cache (default: {DEFAULT_CACHE_FILE})'
    )

    parser.add_argument(
        '--env-file',
        default=None,
        help='Load environment variables from this file (default: .env lookup)'
    )

    parser.add_argument(
        '--progress-type',
        choices=['auto', 'rich', 'simple', 'silent'],
        default='auto',
        help='Type of progress display (default: auto)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Suppress non-essential output'
    )

    parser.add_argument(
        '--check-config',
        action='store_true',
        help='Validate configuration with detailed feedback and exit'
    )

    return parser


def check_config(config_adapter: EnvironmentConfigAdapter) -> int:
    """Print detailed configuration feedback and return the exit code"""
    result = config_adapter.validate_config_detailed()
    if result.valid:
        print("✅ Configuration is valid")
        for warning in result.warnings:
            print(f"⚠️  {warning}")
        return 0

    print("❌ Configuration is invalid")
    print(result.get_error_summary())
    return 1


def print_run_results(run: SourcingRun, output: str, quiet: bool = False) -> None:
    """Print the outcome of a sourcing run"""
    if run.success:
        if quiet:
            return
        print(f"✅ Sourcing {run.name} completed")
        print(f"📊 Nodes: {run.nodes_emitted}")
        print(f"   ⏱️  Time: {run.elapsed_seconds:.2f}s")
        print(f"   📁 Output: {output}")
        if run.restarts:
            print(f"   🔁 Restarts: {run.restarts}")
        if run.has_warnings:
            print(f"   ⚠️  {len(run.warnings)} warnings")
        if run.has_record_errors:
            print(f"   🚨 {len(run.record_errors)} record errors")
            for error in run.record_errors:
                print(f"      • {error}")
        return

    print(f"❌ Sourcing {run.name} failed")
    if run.plugin_error:
        print(f"   [{run.plugin_error.code}] {run.plugin_error.context_message}")


async def run_sourcing(args: argparse.Namespace, config_adapter: EnvironmentConfigAdapter) -> SourcingRun:
    options = config_adapter.get_options(
        download_images=args.download_images,
        cancel_in_progress=False if args.wait_for_previous else None
    )

    progress_type = "silent" if args.quiet else args.progress_type
    host = LocalHost(
        args.output,
        reporter=LoggingReporter(progress_type=progress_type),
        cache=JsonFileCache(args.cache_file)
    )
    orchestrator = create_orchestrator(options, host, images_dir=args.images_dir)
    create_job = make_job_creator(orchestrator.client, args.job_type)

    return await orchestrator.source(create_job, name=args.job_type)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    config_adapter = EnvironmentConfigAdapter(env_file=args.env_file)

    if args.check_config:
        return check_config(config_adapter)

    if args.job_type not in get_supported_job_types():
        print(f"❌ Error: {UnknownJobTypeError(args.job_type, get_supported_job_types())}")
        return 1

    try:
        run = asyncio.run(run_sourcing(args, config_adapter))
    except InvalidConfigurationError as e:
        print("❌ Configuration validation failed:")
        print(e.validation_result.get_error_summary())
        if not args.verbose:
            print("\n💡 Use --check-config for details on each setting")
        return 1
    except KeyboardInterrupt:
        print("\n🛑 Sourcing cancelled by user")
        return 130

    print_run_results(run, args.output, quiet=args.quiet)
    return 0 if run.success else 1


if __name__ == "__main__":
    sys.exit(main())
