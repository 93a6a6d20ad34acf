#!/usr/bin/env python3
"""
Compare JSON-RPC query results between two Ethereum execution nodes.

This script:
1. Waits until rpc1 is synced and caught up with rpc2 (unless a range is given)
2. Fetches each block of the range, plus its transactions and receipts, from the truth node
3. Calls every method of the probe catalog on rpc1 and rpc2 concurrently
4. Compares the responses structurally and prints a diff for every mismatch
5. Optionally stores the report in $output_dir/$start-$end/report.json
"""

import argparse
import os
import signal
import sys
from pathlib import Path

from rpc_tester.config import BlockRange, RunConfig
from rpc_tester.endpoints import (
    DEFAULT_TIMEOUT, ROLE_A, ROLE_B, EndpointSet, RpcEndpoint, parse_headers, resolve_truth,
)
from rpc_tester.equality import RpcTester
from rpc_tester.errors import TesterError
from rpc_tester.readiness import wait_for_readiness
from rpc_tester.report import render, save_report

EXIT_FAILED = 1
EXIT_ERROR = 2
EXIT_INTERRUPTED = 130

# Global state
_shutdown_requested = False


def _signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    global _shutdown_requested
    sig_name = signal.Signals(signum).name
    if _shutdown_requested:
        print(f"\n\nForced exit (received {sig_name} again)", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    print(f"\n\nShutdown requested ({sig_name}), finishing current step...", file=sys.stderr)
    _shutdown_requested = True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Shows a diff of RPC results between two nodes over a series of calls within a block range")
    parser.add_argument("--rpc1", type=str, default=os.getenv("RPC_URL_1"),
                        help="RPC URL of endpoint A (env: RPC_URL_1)")
    parser.add_argument("--rpc2", type=str, default=os.getenv("RPC_URL_2"),
                        help="RPC URL of endpoint B (env: RPC_URL_2)")
    parser.add_argument("--truth", type=str, default=os.getenv("TRUTH_RPC_URL", "a"),
                        help="Source of canonical block data: 'a', 'b' or an RPC URL (default: a)")
    parser.add_argument("--from-block", type=int, default=None, help="First block of the range to test")
    parser.add_argument("--to-block", type=int, default=None, help="Last block of the range to test")
    parser.add_argument("--num-blocks", type=int, default=32,
                        help="Number of blocks to test from the tip when no range is given (default: 32)")
    parser.add_argument("--use-reth", action="store_true", help="Also query the reth namespace")
    parser.add_argument("--use-tracing", action="store_true", help="Also query tracing methods")
    parser.add_argument("--use-all-txes", action="store_true",
                        help="Call transaction methods for every transaction, not just the first of each block")
    parser.add_argument("--workers", type=int, default=None, help="Number of parallel request workers, at least 2 (default: sized to one block's probes)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT})")
    parser.add_argument("--poll-interval", type=float, default=5.0,
                        help="Seconds between readiness polls (default: 5)")
    parser.add_argument("--output-dir", type=str, default=None, help="Directory to save the JSON report to")
    parser.add_argument("--header", "-H", action="append", metavar="NAME:VALUE",
                        help="HTTP header to include in requests (can be specified multiple times)")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.rpc1 or not args.rpc2:
        parser.error("Both --rpc1 and --rpc2 endpoints are required for comparison")
    if (args.from_block is None) != (args.to_block is None):
        parser.error("--from-block and --to-block must be given together")
    if args.num_blocks < 0:
        parser.error("--num-blocks must not be negative")
    if args.workers is not None and args.workers < 2:
        parser.error("--workers must be at least 2 so both endpoints are queried concurrently")

    try:
        headers = parse_headers(args.header)
    except ValueError as e:
        parser.error(str(e))

    block_range = None
    if args.from_block is not None:
        try:
            block_range = BlockRange(args.from_block, args.to_block)
        except ValueError as e:
            parser.error(str(e))

    # Register signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    rpc1 = RpcEndpoint(ROLE_A, args.rpc1, headers=headers, timeout=args.timeout)
    rpc2 = RpcEndpoint(ROLE_B, args.rpc2, headers=headers, timeout=args.timeout)
    try:
        truth = resolve_truth(args.truth, rpc1, rpc2, headers=headers, timeout=args.timeout)
    except ValueError as e:
        parser.error(str(e))
    endpoints = EndpointSet(rpc1, rpc2, truth)

    try:
        if block_range is None:
            print("Waiting for endpoints to be ready...", file=sys.stderr)
            block_range = wait_for_readiness(rpc1, rpc2, args.num_blocks, args.poll_interval,
                                             should_stop=lambda: _shutdown_requested)
            if block_range is None:
                print("Stopped while waiting for endpoints", file=sys.stderr)
                return EXIT_INTERRUPTED

        config = RunConfig(
            enable_trace=args.use_tracing,
            enable_extended_namespace=args.use_reth,
            use_all_transactions=args.use_all_txes,
            block_range=block_range,
            truth=args.truth,
        )
        print(f"Testing {block_range} (truth: {endpoints.truth_role}, "
              f"categories: {', '.join(sorted(c.value for c in config.enabled_categories))})",
              file=sys.stderr)

        tester = RpcTester(endpoints, config, workers=args.workers,
                           should_stop=lambda: _shutdown_requested)
        report = tester.test_equality()
    except TesterError as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(render(report), end="")

    if args.output_dir:
        path = save_report(Path(args.output_dir), block_range, report)
        print(f"Report written to {path.absolute()}", file=sys.stderr)

    if report.interrupted:
        return EXIT_INTERRUPTED
    return 0 if report.passed else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
