"""Command-line interface for the evaluation harness."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .config import Settings, load_eval_config
from .core.runner import LoopLimits, run_all_evals
from .core.session import ServerSpec
from .core.types import EvalResult
from .observability import ToolCallInstrumentation, enable_metrics, enable_tracing
from .utils.exceptions import ConfigError
from .utils.io import to_json

logger = logging.getLogger(__name__)

USAGE = "Usage: mcp-evals <path to evals> <path to server>"


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mcp-evals",
        description="Score how well a model uses the tools of an MCP server",
    )
    p.add_argument("evals_path", nargs="?", help="Evaluation config (.py module or .yaml document)")
    p.add_argument("server_path", nargs="?", help="MCP server entry point (.py, .js or .ts)")
    p.add_argument("--concurrency", type=int, default=settings.concurrency,
                   help="Evaluations (and server processes) to run at once")
    p.add_argument("--timeout", type=float, default=settings.eval_timeout_s,
                   help="Per-evaluation budget in seconds")
    p.add_argument("--log-level", default=settings.log_level,
                   choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                   help="Logging level")
    p.add_argument("--metrics-port", type=int, default=settings.metrics_port,
                   help="Serve tool-call metrics for Prometheus on this port")
    p.add_argument("--json", action="store_true",
                   help="Print all results as a single JSON document")
    return p


def print_results(results: Dict[str, EvalResult], as_document: bool = False) -> None:
    if as_document:
        print(to_json({name: result.to_dict() for name, result in results.items()}))
        return
    print("\nEvaluation Results:")
    for name, result in results.items():
        print(f"\n{name}:")
        print(to_json(result.to_dict()))


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    args = build_parser(settings).parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.evals_path or not args.server_path:
        print(USAGE, file=sys.stderr)
        return 1

    server_path = Path(args.server_path)
    if not server_path.exists():
        print(f"Server not found: {server_path}", file=sys.stderr)
        return 1

    limits = LoopLimits(max_iterations=settings.max_iterations, time_limit_s=settings.loop_timeout_s)
    try:
        config = load_eval_config(args.evals_path, limits=limits)
    except ConfigError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1

    tracing = enable_tracing(
        service_name=settings.otel_service_name,
        otlp_endpoint=settings.otel_endpoint,
        enabled=settings.otel_enabled,
    )
    if args.metrics_port:
        enable_metrics(args.metrics_port, service_name=settings.otel_service_name)
    instrumentation = ToolCallInstrumentation() if tracing or args.metrics_port else None

    server = ServerSpec.from_path(server_path, startup_timeout_s=settings.startup_timeout_s)
    logger.info("Running all evaluations against %s", server.display)
    try:
        results = asyncio.run(
            run_all_evals(
                config,
                server,
                concurrency=args.concurrency,
                eval_timeout_s=args.timeout,
                instrumentation=instrumentation,
            )
        )
    except Exception as e:
        logger.exception("Error running evaluations")
        print(f"Error running evaluations: {e}", file=sys.stderr)
        return 1

    print_results(results, as_document=args.json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
