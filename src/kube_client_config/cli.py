"""Command-line entry point: resolve a client configuration and print a redacted summary."""

from __future__ import annotations

import argparse
import json
import sys
import time
from collections.abc import Sequence

import structlog

from kube_client_config.config import ClientConfig, get_settings, load_kubeconfig
from kube_client_config.resolvers import from_kubeconfig, from_service_account, resolve_default

log = structlog.get_logger()


def configure_logging(verbose: bool = False) -> None:
    """Send structlog output to stderr: console format on a TTY, JSON otherwise."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if verbose else 30),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kube-client-config",
        description="Resolve a Kubernetes client configuration and print it without secrets.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--kubeconfig", help="Kubeconfig file to read (default: $KUBECONFIG or ~/.kube/config).")
    source.add_argument("--in-cluster", action="store_true", help="Use the pod service account only.")
    parser.add_argument("--context", help="Context name to use instead of current-context.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug detail to stderr.")
    return parser


def _resolve(args: argparse.Namespace) -> ClientConfig | None:
    if args.in_cluster:
        return from_service_account()
    if args.kubeconfig or args.context:
        path = args.kubeconfig or get_settings().kubeconfig_path
        return from_kubeconfig(load_kubeconfig(path), context=args.context)
    return resolve_default()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.in_cluster and args.context:
        parser.error("--context cannot be combined with --in-cluster")
    configure_logging(args.verbose)

    start = time.monotonic()
    try:
        config = _resolve(args)
    except (OSError, ValueError) as e:
        log.error("kubeconfig_load_failed", error=str(e))
        return 1

    latency_ms = round((time.monotonic() - start) * 1000, 1)
    if config is None:
        log.error("no_configuration_resolved", latency_ms=latency_ms)
        return 1

    log.info("configuration_resolved", server=config.server_url, latency_ms=latency_ms)
    print(json.dumps(config.describe(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
