"""
Command-line interface for tonvanity.

Usage:
    python -m tonvanity ton
    python -m tonvanity Cafe --workers auto --contract v3r2
    python -m tonvanity A_ --save --output wallets/a.txt
    python -m tonvanity xyz --timeout 600
"""

import argparse
import logging
import sys
import threading

from tonvanity import __version__
from tonvanity.cancel import CancellationToken
from tonvanity.core import ContractVersion, DEFAULT_CONTRACT_VERSION
from tonvanity.errors import SearchAborted, SearchFailed, ValidationError
from tonvanity.export import DEFAULT_RESULT_FILE, ResultSink
from tonvanity.matcher import estimate_difficulty
from tonvanity.search import AUTO_WORKERS, SearchConfig, SearchCoordinator, SearchStats, find_wallet
from tonvanity.verify import verify_outcome


def workers_arg(value: str):
    if value == AUTO_WORKERS:
        return value
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f'invalid workers value: {value!r} (use a number or "{AUTO_WORKERS}")'
        ) from None


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tonvanity",
        description="TON Wallet Vanity Address Finder",
        epilog=(
            "Examples:\n"
            "  tonvanity ton\n"
            "  tonvanity Cafe --workers auto\n"
            "  tonvanity A_ --contract v3r2 --save\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"tonvanity {__version__}"
    )
    parser.add_argument(
        "suffix", metavar="ENDING",
        help="Find a wallet address ending with this string ([A-Za-z0-9_-])",
    )
    parser.add_argument(
        "--workers", "-w", type=workers_arg, default=1,
        help=f'Number of worker processes, or "{AUTO_WORKERS}" for all cores (default: 1)',
    )
    parser.add_argument(
        "--contract", "-c", default=DEFAULT_CONTRACT_VERSION.value,
        choices=[v.value for v in ContractVersion],
        help=f"Wallet contract version (default: {DEFAULT_CONTRACT_VERSION.value})",
    )
    parser.add_argument(
        "--trace", action="store_true",
        help="Log every address tried",
    )
    parser.add_argument(
        "--no-show", action="store_true",
        help="Do not log the found credentials",
    )
    parser.add_argument(
        "--save", "-s", action="store_true",
        help=f"Save the credentials to a text file (default: ./{DEFAULT_RESULT_FILE})",
    )
    parser.add_argument(
        "--output", "-o", metavar="PATH",
        help="Output file path (implies --save)",
    )
    parser.add_argument(
        "--timeout", "-t", type=float, metavar="SECONDS",
        help="Give up after this many seconds",
    )
    parser.add_argument(
        "--no-verify", action="store_true",
        help="Skip verification of the found wallet",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Show difficulty estimate without searching",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true",
        help="Minimal output (just the result address)",
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    return parser


# (upper bound, divisor, unit) for durations; the last unit has no bound.
_TIME_UNITS = ((60, 1, "s"), (3600, 60, "m"), (86400, 3600, "h"))


def format_time(seconds: float) -> str:
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    for bound, divisor, unit in _TIME_UNITS:
        if seconds < bound:
            return f"{seconds / divisor:.1f}{unit}"
    return f"{seconds / 86400:.1f}d"


def format_rate(rate: float) -> str:
    for divisor, suffix, digits in ((1e6, "M", 2), (1e3, "K", 1)):
        if rate >= divisor:
            return f"{rate / divisor:.{digits}f}{suffix}"
    return f"{rate:.1f}"


def progress_callback(stats: SearchStats, quiet: bool = False) -> None:
    """Redraw the one-line status on stderr."""
    if quiet:
        return
    line = "  ".join(
        (
            f"{stats.total_checked:,} addresses",
            f"{format_rate(stats.rate)}/sec on {stats.workers} worker(s)",
            f"{format_time(stats.elapsed)} elapsed",
        )
    )
    print(f"\r  {line}  ", end="", file=sys.stderr, flush=True)


def main(argv: list[str] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else getattr(logging, args.log_level),
        format="%(message)s",
    )

    try:
        config = SearchConfig(
            target_pattern=args.suffix,
            workers=args.workers,
            contract_version=args.contract,
            verbose_trace=args.trace,
        )
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    difficulty = estimate_difficulty(config.target_pattern)

    if not args.quiet:
        print(f"tonvanity v{__version__}")
        print(f"  Ending:     '{config.target_pattern}'")
        print(f"  Contract:   {config.contract_version.value}")
        print(f"  Workers:    {config.resolve_workers()}")
        print(f"  Expected:   ~{difficulty['expected_attempts']:,} attempts")
        print(f"  Difficulty: {difficulty['difficulty_description']}")
        print()

    if args.dry_run:
        return 0

    save_path = args.output or (DEFAULT_RESULT_FILE if args.save else None)
    sink = ResultSink(show_result=not args.no_show, save_path=save_path)

    coordinator = SearchCoordinator()
    if not args.trace:
        coordinator.on_progress = lambda stats: progress_callback(stats, args.quiet)

    token = CancellationToken()
    timer = None
    if args.timeout:
        timer = threading.Timer(
            args.timeout, token.cancel, args=(f"Timed out after {format_time(args.timeout)}",)
        )
        timer.daemon = True
        timer.start()

    if not args.quiet:
        print("Searching...")

    try:
        outcome = find_wallet(config, token, coordinator=coordinator)
    except KeyboardInterrupt:
        token.cancel("Interrupted")
        print("\nNo results found (search was interrupted).", file=sys.stderr)
        return 1
    except SearchAborted as e:
        print(f"\nSearch aborted: {e}", file=sys.stderr)
        return 1
    except SearchFailed as e:
        print(f"\n{e}", file=sys.stderr)
        return 1
    finally:
        if timer is not None:
            timer.cancel()

    if not args.quiet:
        sys.stderr.write("\n")
        print(f"\n{'=' * 60}")
        print("  MATCH FOUND")
        print(f"  Wallet:         {outcome.address}")
        print(f"  Time:           {format_time(outcome.elapsed)}")
        print(f"  Checked:        {outcome.total_checked:,}")
        print(f"  Rate:           {format_rate(outcome.rate)}/sec")
        print(f"{'=' * 60}")

    sink.consume(outcome)

    if not args.no_verify:
        v = verify_outcome(outcome)
        if not args.quiet:
            if v["error"]:
                print(f"\n  Verification failed to run ({v['error']})")
            else:
                print("\n  Verification:")
                for key, label in (
                    ("public_key_match", "Key pair:"),
                    ("mnemonic_match", "Mnemonic:"),
                    ("address_match", "Address: "),
                ):
                    print(f"    {label} {'PASS' if v[key] else 'FAIL'}")

    if args.quiet:
        print(outcome.address)

    return 0
