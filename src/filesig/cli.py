#!/usr/bin/env python3
"""
filesig CLI — Command line interface for file signature computation and verification.
Runs the same command layer as the library API and writes schema-union CSV or JSON.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import signal
import sys
import os
import time
import threading
from typing import Any, Dict, List, Optional, NoReturn
import logging

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    import requests  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("requests")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from filesig.commands import LookupCommand, SignatureCommand, VerifyCommand
from filesig.core.config import SignatureConfig
from filesig.core.errors import FileSignatureError, ReferenceFormatError
from filesig.core.matcher import ReferenceMatcher
from filesig.core.models import LookupParams, RunStats, SignatureParams, SignatureRecord
from filesig.services.export_service import ExportService, ReferenceLoader
from filesig.utils.convert_utils import ConvertUtils
from filesig.aliases import (
    ALGORITHM_ALIASES, ALGORITHM_CHOICES, ALGORITHM_HELP_TEXT,
    LOOKUP_ALGORITHM_HELP_TEXT, OUTPUT_FORMAT_CHOICES, EPILOG_TEXT
)


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self._stop_event = threading.Event()
        self._partial: bool = False

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse and validate command-line arguments."""
        output_options = argparse.ArgumentParser(add_help=False)
        output_options.add_argument(
            "--format", "-f",
            choices=OUTPUT_FORMAT_CHOICES,
            default="csv",
            help="Output format. Default: csv"
        )
        output_options.add_argument(
            "--output", "-o",
            type=str,
            default=None,
            metavar='FILE',
            help="Write results to FILE instead of stdout"
        )
        output_options.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress warnings and non-essential output"
        )
        output_options.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show progress, debug logging and run statistics"
        )

        hash_options = argparse.ArgumentParser(add_help=False)
        hash_options.add_argument(
            "paths",
            nargs="+",
            help="Files or directories to hash"
        )
        hash_options.add_argument(
            "--recurse", "-r",
            action="store_true",
            help="Descend into subdirectories"
        )
        hash_options.add_argument(
            "--force-hidden",
            action="store_true",
            dest="include_hidden_and_system",
            help="Include hidden and system files and directories"
        )
        hash_options.add_argument(
            "--version-data",
            action="store_true",
            dest="include_version_data",
            help="Attach version resource fields (requires a version info provider)"
        )
        hash_options.add_argument(
            "--certificate-data",
            action="store_true",
            dest="include_certificate_data",
            help="Attach signing certificate fields (requires a certificate info provider)"
        )
        hash_options.add_argument(
            "--include-root-path",
            action="store_true",
            help="Disclose the FullPath column (omitted by default)"
        )
        hash_options.add_argument(
            "--algorithms", "-a",
            nargs="+",
            choices=ALGORITHM_CHOICES,
            default=None,
            metavar='ALGO',
            help=ALGORITHM_HELP_TEXT
        )
        hash_options.add_argument(
            "--workers", "-w",
            type=int,
            default=None,
            metavar='N',
            help="Number of files hashed concurrently. Default: min(8, CPUs + 4)"
        )

        parser = argparse.ArgumentParser(
            prog="filesig",
            description="filesig — Multi-digest file signatures with reference and repository verification",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        subparsers.add_parser(
            "hash",
            parents=[hash_options, output_options],
            formatter_class=argparse.RawTextHelpFormatter,
            help="Compute signatures"
        )

        verify_parser = subparsers.add_parser(
            "verify",
            parents=[hash_options, output_options],
            formatter_class=argparse.RawTextHelpFormatter,
            help="Compute signatures and compare them with reference data"
        )
        verify_parser.add_argument(
            "--reference",
            required=True,
            type=str,
            metavar='FILE',
            help="Reference signatures (CSV, or JSON by .json extension)"
        )
        verify_parser.add_argument(
            "--placeholder",
            type=str,
            default=SignatureConfig.DEFAULT_MISSING_PLACEHOLDER,
            help="Value written when no reference digest exists. Default: N/A"
        )
        verify_parser.add_argument(
            "--ignore-filename-case",
            action="store_true",
            help="Match reference filenames case-insensitively"
        )

        lookup_parser = subparsers.add_parser(
            "lookup",
            parents=[hash_options, output_options],
            formatter_class=argparse.RawTextHelpFormatter,
            help="Compute signatures and look them up in the signature repository"
        )
        lookup_parser.add_argument(
            "--uri",
            type=str,
            default=SignatureConfig.DEFAULT_REPOSITORY_URI,
            help=f"Repository root URI; the digest is appended. Default: {SignatureConfig.DEFAULT_REPOSITORY_URI}"
        )
        lookup_parser.add_argument(
            "--lookup-algorithms",
            nargs="+",
            choices=ALGORITHM_CHOICES,
            default=["md5"],
            metavar='ALGO',
            help=LOOKUP_ALGORITHM_HELP_TEXT
        )
        lookup_parser.add_argument(
            "--timeout",
            type=float,
            default=SignatureConfig.REQUEST_TIMEOUT,
            help=f"Per-request timeout in seconds. Default: {SignatureConfig.REQUEST_TIMEOUT:g}"
        )

        subparsers.add_parser(
            "template",
            parents=[output_options],
            help="Print an empty reference record (the expected reference columns)"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.verbose and args.quiet:
            self.error_exit("--verbose and --quiet cannot be used together")

        if getattr(args, "workers", None) is not None and args.workers < 1:
            self.error_exit("--workers must be at least 1")

        if args.command == "verify" and not os.path.isfile(args.reference):
            self.error_exit(f"Reference file not found: {args.reference}")

        if args.command == "lookup" and args.timeout <= 0:
            self.error_exit("--timeout must be positive")

        for path in getattr(args, "paths", []):
            if not os.path.exists(path):
                self.warning(f"Path not found: {path}")

    def configure_logging(self) -> None:
        level = logging.WARNING
        if self.verbose:
            level = logging.DEBUG
        elif self.quiet:
            level = logging.ERROR
        logging.getLogger().setLevel(level)

    def create_signature_params(self, args: argparse.Namespace) -> SignatureParams:
        """Create SignatureParams from CLI arguments."""
        algorithms = None
        if args.algorithms:
            algorithms = [ALGORITHM_ALIASES[name] for name in args.algorithms]
        try:
            return SignatureParams(
                paths=args.paths,
                recurse=args.recurse,
                include_hidden_and_system=args.include_hidden_and_system,
                include_version_data=args.include_version_data,
                include_certificate_data=args.include_certificate_data,
                include_root_path=args.include_root_path,
                algorithms=algorithms,
                max_workers=args.workers
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def create_lookup_params(self, args: argparse.Namespace) -> LookupParams:
        """Create LookupParams from CLI arguments."""
        try:
            return LookupParams(
                root_uri=args.uri,
                algorithms=[ALGORITHM_ALIASES[name] for name in args.lookup_algorithms],
                timeout=args.timeout,
                max_workers=args.workers
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def progress_callback(self, stage: str, current: float, total: Optional[float]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(f"\r  [{stage}] {percent:.1f}%")
        else:
            sys.stderr.write(f"\r  [{stage}] {current:g} processed...")
        sys.stderr.flush()

    def stopped_flag(self) -> bool:
        """True once the user pressed Ctrl+C (first press stops gracefully)."""
        return self._stop_event.is_set()

    def _handle_sigint(self, signum, frame) -> None:
        if self._stop_event.is_set():
            raise KeyboardInterrupt
        self._stop_event.set()
        sys.stderr.write("\n⚠️  Stopping after in-flight files (press Ctrl+C again to abort)\n")

    def _report_stats(self, title: str, stats: RunStats) -> None:
        if stats.partial:
            self._partial = True
        if self.verbose:
            sys.stderr.write("\n")
            print(f"\n{title}", file=sys.stderr)
            print(stats.print_summary(), file=sys.stderr)

    def run_signatures(self, params: SignatureParams) -> List[SignatureRecord]:
        """Execute the hashing workflow."""
        command = SignatureCommand()
        try:
            records, stats = command.execute(
                params,
                progress_callback=self.progress_callback if self.verbose else None,
                stopped_flag=self.stopped_flag
            )
        except FileSignatureError as e:
            self.error_exit(str(e))

        self._report_stats("Hashing Statistics:", stats)
        if self.verbose:
            total_bytes = sum(record.size_bytes for record in records)
            print(f"Hashed {len(records)} files ({ConvertUtils.bytes_to_human(total_bytes)})", file=sys.stderr)
        return records

    def build_rows(self, args: argparse.Namespace) -> List[Dict[str, Any]]:
        """Run the requested workflow and return output rows."""
        if args.command == "template":
            return [ReferenceMatcher.template().to_row()]

        # Everything that can be rejected is resolved before any file is hashed
        params = self.create_signature_params(args)
        references = None
        lookup_params = None
        if args.command == "verify":
            try:
                references = ReferenceLoader.load(args.reference)
            except ReferenceFormatError as e:
                self.error_exit(str(e))
        elif args.command == "lookup":
            lookup_params = self.create_lookup_params(args)

        records = self.run_signatures(params)

        if args.command == "hash":
            return ExportService.to_rows(records)

        if args.command == "verify":
            command = VerifyCommand(
                missing_placeholder=args.placeholder,
                case_sensitive=not args.ignore_filename_case
            )
            return ExportService.to_rows(command.execute(records, references))

        merged, stats = LookupCommand().execute(
            records,
            lookup_params,
            progress_callback=self.progress_callback if self.verbose else None,
            stopped_flag=self.stopped_flag
        )
        self._report_stats("Repository Lookup Statistics:", stats)
        return ExportService.to_rows(merged)

    def write_output(self, rows: List[Dict[str, Any]], args: argparse.Namespace) -> None:
        if args.output:
            try:
                with open(args.output, "w", encoding="utf-8", newline="") as f:
                    ExportService.write(rows, f, args.format)
            except OSError as e:
                self.error_exit(f"Cannot write output file: {e}")
            if not self.quiet:
                print(f"Wrote {len(rows)} rows to {args.output}", file=sys.stderr)
        else:
            ExportService.write(rows, sys.stdout, args.format)

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Main entry point."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.configure_logging()
        self.validate_args(args)

        handler_installed = threading.current_thread() is threading.main_thread()
        if handler_installed:
            previous_handler = signal.signal(signal.SIGINT, self._handle_sigint)
        try:
            rows = self.build_rows(args)
        finally:
            if handler_installed:
                signal.signal(signal.SIGINT, previous_handler or signal.default_int_handler)

        self.write_output(rows, args)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds", file=sys.stderr)

        if self._partial:
            self.warning("Run was cancelled: output is partial")
            sys.exit(130)


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
