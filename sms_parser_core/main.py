import argparse
import sys

from .config import load_settings
from .errors import ConfigurationError, StoreError
from .extractor import TransactionExtractor
from .log import configure_logging
from .persistence import PersistenceBridge
from .pipeline import TransactionPipeline
from .scanner import InboxScanner, ScanResult
from .sources import CsvMessageSource
from .stores import SqlTransactionStore


def format_scan_report(result: ScanResult) -> str:
    report = []
    report.append("=" * 60)
    report.append("  SMS TRANSACTION SCAN")
    report.append("=" * 60)
    report.append(f"  - Messages scanned   : {result.scanned}")
    report.append(f"  - Transactional      : {result.transactional}")
    report.append(f"  - Noise (OTP/promo)  : {result.noise}")
    report.append(f"  - Parsed             : {result.parsed}")
    report.append(f"  - Unparsable         : {result.unparsed}")
    report.append("-" * 60)
    report.append(f"  - Saved              : {result.saved}")
    report.append(f"  - Duplicates skipped : {result.duplicates}")
    report.append(f"  - Failed             : {result.failed}")
    for error in result.errors:
        report.append(f"      {error['id']}: {error['reason']}")
    report.append("=" * 60)
    return "\n".join(report)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scan an SMS inbox export for bank transactions and store them without duplicates."
    )
    parser.add_argument("--input", required=True, help="SMS inbox CSV (_id, address, body, date in ms)")
    parser.add_argument("--owner", required=True, help="Owner id the transactions are stored under")
    parser.add_argument("--days", type=int, default=None, help="Lookback window in days (0 scans everything)")
    parser.add_argument("--db", default=None, help="SQLAlchemy database URL")
    parser.add_argument("--output", default=None, help="Optional CSV path for the parsed transactions")
    parser.add_argument("--log-level", default=None, help="Logging level (default from SMS_PARSER_LOG_LEVEL)")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(database_url=args.db, log_level=args.log_level)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level, settings.log_json)

    print(f"Reading from {args.input}")
    try:
        source = CsvMessageSource(args.input)
    except (OSError, ValueError) as e:
        print(f"Could not read {args.input}: {e}", file=sys.stderr)
        return 1

    try:
        store = SqlTransactionStore(settings.database_url)
    except StoreError as e:
        print(f"Could not open the transaction store: {e}", file=sys.stderr)
        return 1

    pipeline = TransactionPipeline(extractor=TransactionExtractor(currency=settings.currency))
    scanner = InboxScanner(source, bridge=PersistenceBridge(store), pipeline=pipeline, settings=settings)
    result = scanner.scan(args.owner, lookback_days=args.days)
    if not result.success:
        print(f"Scan failed: {result.message}", file=sys.stderr)
        return 1

    print(format_scan_report(result))

    if args.output:
        result.to_frame().to_csv(args.output, index=False)
        print(f"Parsed transactions written to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
