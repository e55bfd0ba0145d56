"""Command-line interface for citizenmatch."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .. import __version__
from ..config import MatchConfig
from ..matching.presenter import MatchDetail, MatchPage
from ..service import DuplicateCheckService, ScanResult
from ..store.adapter import CitizenStore, StoreError


def print_summary(result: ScanResult) -> None:
    """Print the totals of a scan.

    Args:
        result: Completed scan result
    """
    stats = result.statistics

    print("\n" + "=" * 60)
    print("DUPLICATE SCAN")
    print("=" * 60)
    print(f"Minimum Confidence:     {result.config.min_confidence}%")
    print(f"Total Records:          {stats.total_records:,}")
    print(f"Pending (Encoded):      {stats.pending_count:,}")
    print(f"Reference:              {stats.reference_count:,}")
    if stats.excluded_count:
        print(f"Excluded (bad data):    {stats.excluded_count:,}")
    print(f"Comparisons:            {stats.comparisons:,}")
    print(f"Potential Duplicates:   {stats.match_count:,}")
    print("=" * 60 + "\n")

    for warning in result.warnings:
        print(f"Warning: {warning}")


def print_page(page: MatchPage) -> None:
    """Print one page of matches.

    Args:
        page: Page of enriched matches
    """
    if not page.total_items:
        print("No potential duplicate records found.")
        return

    print("-" * 60)
    for detail in page.items:
        scores = detail.candidate.field_scores
        print(f"{detail.confidence_score:3d}% {detail.confidence_label:<9} "
              f"#{detail.pending.id} {detail.pending.display_name} ({detail.pending.birth_date})")
        print(f"{'':14}#{detail.reference.id} {detail.reference.display_name} "
              f"({detail.reference.birth_date})")
        print(f"{'':14}Names: {scores.name_score}%  Birth: {scores.birth_date_score}%")
    print("-" * 60)

    if page.items:
        print(f"Showing {page.start_index} to {page.end_index} of {page.total_items} "
              f"potential duplicates (page {page.page} of {page.total_pages})")
    else:
        print(f"Page {page.page} is past the last page ({page.total_pages})")


def print_detail(detail: MatchDetail) -> None:
    """Print the field breakdown of a match.

    Args:
        detail: Enriched match
    """
    print(f"\nConfidence: {detail.confidence_score}% ({detail.confidence_label})\n")
    for label, view in (('Pending', detail.pending), ('Reference', detail.reference)):
        print(f"{label:<10} #{view.id} {view.display_name}")
        print(f"{'':11}Born {view.birth_date}, status {view.status}")
        print(f"{'':11}{view.location}, {view.province}")

    scores = detail.candidate.field_scores
    print()
    print(f"Last name:      {scores.last_name}%")
    print(f"First name:     {scores.first_name}%")
    print(f"Middle name:    {scores.middle_name}%")
    print(f"Extension:      {scores.extension_name}%")
    print(f"Birth month:    {'match' if scores.birth_month_match else 'differs'}")
    print(f"Birth day:      {'match' if scores.birth_day_match else 'differs'}")
    print(f"Birth year:     {'match' if scores.birth_year_match else 'differs'}")


def _open_service(args: argparse.Namespace) -> DuplicateCheckService:
    config = MatchConfig(
        database_path=Path(args.database),
        min_confidence=args.min_confidence,
        use_blocking=not getattr(args, 'no_blocking', False),
        max_workers=getattr(args, 'workers', 1),
        page_size=getattr(args, 'page_size', MatchConfig.page_size),
    )
    store = CitizenStore(config.database_path, page_size=config.address_page_size)
    return DuplicateCheckService(store, config)


def scan_command(args: argparse.Namespace) -> int:
    """Execute the scan command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        service = _open_service(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        result = service.scan()
        if not result.ok:
            print(f"Error: scan {result.status.value}: {result.error}", file=sys.stderr)
            return 1

        print_summary(result)
        print_page(service.get_page(args.page))
        return 0
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        service.store.close()


def show_command(args: argparse.Namespace) -> int:
    """Execute the show command."""
    try:
        service = _open_service(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        result = service.scan()
        if not result.ok:
            print(f"Error: scan {result.status.value}: {result.error}", file=sys.stderr)
            return 1

        try:
            detail = service.get_match(args.pending_id, args.reference_id)
        except KeyError:
            print(f"No match between #{args.pending_id} and #{args.reference_id} "
                  f"at {args.min_confidence}% confidence", file=sys.stderr)
            return 1

        print_detail(detail)
        return 0
    finally:
        service.store.close()


def stats_command(args: argparse.Namespace) -> int:
    """Execute the stats command."""
    try:
        with CitizenStore(args.database) as store:
            stats = store.get_stats()
    except (FileNotFoundError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for name, count in stats.items():
        print(f"{name:<12} {count:,}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='citizenmatch',
        description='Find likely duplicate citizen records awaiting verification.',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands'
    )

    def add_scan_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            'database',
            help='Path to the registry SQLite database'
        )
        sub.add_argument(
            '-c', '--min-confidence',
            type=int,
            default=MatchConfig.min_confidence,
            help='Minimum confidence, 50-95 in steps of 5 (default: 70)'
        )

    scan_parser = subparsers.add_parser(
        'scan',
        help='Scan pending records for likely duplicates'
    )
    add_scan_options(scan_parser)
    scan_parser.add_argument(
        '-p', '--page',
        type=int,
        default=1,
        help='Page of results to show (default: 1)'
    )
    scan_parser.add_argument(
        '--page-size',
        type=int,
        default=MatchConfig.page_size,
        help='Matches per page (default: 15)'
    )
    scan_parser.add_argument(
        '--no-blocking',
        action='store_true',
        help='Score every pending/reference pair'
    )
    scan_parser.add_argument(
        '--workers',
        type=int,
        default=1,
        help='Processes used for scoring (default: 1)'
    )

    show_parser = subparsers.add_parser(
        'show',
        help='Show the field breakdown of one match'
    )
    add_scan_options(show_parser)
    show_parser.add_argument('pending_id', type=int, help='Pending record id')
    show_parser.add_argument('reference_id', type=int, help='Reference record id')

    stats_parser = subparsers.add_parser(
        'stats',
        help='Show registry record counts'
    )
    stats_parser.add_argument(
        'database',
        help='Path to the registry SQLite database'
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if not args.command:
        parser.print_help()
        return 0

    if args.command == 'scan':
        return scan_command(args)
    elif args.command == 'show':
        return show_command(args)
    elif args.command == 'stats':
        return stats_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
