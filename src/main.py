# src/main.py — v2
"""CLI entry point — generate and plan commands.

Usage:
    repodoc generate <directory> [-o README.md] [--provider P --model M] [--stream]
    repodoc plan <directory>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from repodoc.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from pydantic import ValidationError

    from repodoc.config.settings import ConfigurationError, Settings

    try:
        settings = Settings(**_overrides(args))
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def cli() -> None:
    """Console-script wrapper."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="repodoc",
        description=f"repodoc v{__version__} - README generator for source repositories",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- generate ---
    p_generate = subparsers.add_parser(
        "generate", help="Generate a README for a local checkout",
    )
    p_generate.add_argument("directory", type=Path, help="Repository root")
    p_generate.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the README here (default: stdout)",
    )
    p_generate.add_argument("--provider", default=None, help="LLM provider override")
    p_generate.add_argument("--model", default=None, help="LLM model override")
    p_generate.add_argument(
        "--max-tokens", type=int, default=None, dest="chunk_max_tokens",
        help="Per-batch token budget",
    )
    p_generate.add_argument(
        "--stream", action="store_true",
        help="Also stream per-batch analysis text before the README",
    )
    p_generate.set_defaults(func=_cmd_generate)

    # --- plan ---
    p_plan = subparsers.add_parser(
        "plan", help="Show how a checkout would be split into batches",
    )
    p_plan.add_argument("directory", type=Path, help="Repository root")
    p_plan.add_argument(
        "--max-tokens", type=int, default=None, dest="chunk_max_tokens",
        help="Per-batch token budget",
    )
    p_plan.set_defaults(func=_cmd_plan)

    return parser


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if getattr(args, "provider", None):
        overrides["llm_default_provider"] = args.provider
    if getattr(args, "model", None):
        overrides["llm_default_model"] = args.model
    if getattr(args, "chunk_max_tokens", None):
        overrides["chunk_max_tokens"] = args.chunk_max_tokens
    if getattr(args, "stream", False):
        overrides["stream_batch_analysis"] = True
    return overrides


async def _cmd_generate(args: argparse.Namespace, settings) -> int:
    """Read the checkout, run the pipeline, write the README."""
    from repodoc.api.facade import stream_to
    from repodoc.pipeline.driver import PipelineDriver
    from repodoc.pipeline.observer import PipelineObserver
    from repodoc.readers.local_reader import LocalRepositoryReader

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    files = LocalRepositoryReader(settings).list_files(str(directory))
    observer = PipelineObserver(
        on_batch_start=lambda i, total: logger.info("Analyzing batch %d/%d", i + 1, total),
        on_progress=lambda pct: logger.info("Progress: %.0f%%", pct),
    )
    driver = PipelineDriver(settings=settings, observer=observer)

    if args.output is None:
        await stream_to(driver.run(files), sys.stdout)
        sys.stdout.write("\n")
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with args.output.open("w", encoding="utf-8") as sink:
            written = await stream_to(driver.run(files), sink)
        logger.info("Wrote %d chars to %s", written, args.output)

    run = driver.last_run
    if run is not None and run.degraded_batches:
        logger.warning(
            "%d of %d batches were degraded: %s",
            len(run.degraded_batches), run.total_batches, run.degraded_batches,
        )
    return 0


async def _cmd_plan(args: argparse.Namespace, settings) -> int:
    """Print the batch partition without calling a backend."""
    from repodoc.chunking.file_splitter import chunk_files
    from repodoc.chunking.packer import pack_chunks
    from repodoc.llm.config import resolve_all
    from repodoc.readers.local_reader import LocalRepositoryReader

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    files = LocalRepositoryReader(settings).list_files(str(directory))
    chunks = chunk_files(
        files,
        max_tokens=settings.chunk_max_tokens,
        chars_per_token=settings.chars_per_token,
    )
    batches = pack_chunks(chunks, max_tokens=settings.chunk_max_tokens)

    print(f"\n{len(files)} entries, {len(chunks)} chunks, {len(batches)} batches:")
    for i, batch in enumerate(batches, start=1):
        flag = "  (overflow)" if batch.is_overflow else ""
        print(f"  Batch {i}: {len(batch.files)} files, ~{batch.total_estimated_tokens} tokens{flag}")
        for chunk in batch.files:
            print(f"    - {chunk.path} ({chunk.estimated_tokens})")

    print("\nLLM routing:")
    for component, assignment in resolve_all(settings).items():
        print(f"  {component:<15} {assignment.key} ({assignment.source})")
    return 0


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from repodoc.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
