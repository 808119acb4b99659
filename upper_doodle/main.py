#!/usr/bin/env python3
"""
upper-doodle CLI - Compile a diagram document into N-Triples and Turtle.

Usage:
    python -m upper_doodle.main --help
    python -m upper_doodle.main movies.json
    python -m upper_doodle.main movies.yaml --format turtle --output ./rdf
"""

import argparse
import logging
import sys
from pathlib import Path

import pyfiglet
from dotenv import load_dotenv

from upper_doodle import __version__
from upper_doodle.config.settings import get_settings, load_config, set_settings
from upper_doodle.loaders import DocumentError
from upper_doodle.pipeline import DoodlePipeline, PipelineResult
from upper_doodle.triples import NTriplesSyntaxError
from upper_doodle.utils.logging import setup_colored_logging

# Load environment variables
load_dotenv()


def setup_logging(verbose: bool = False, debug: bool = False, log_file: str | Path | None = None) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    setup_colored_logging(level=level, log_file=log_file)


def print_banner() -> None:
    """Print the application banner."""

    banner_text = pyfiglet.figlet_format("upper-doodle", font="slant", width=100)
    print("".center(80, "*"))
    print(banner_text)
    print(" diagram → RDF compiler ".center(80, "*"))


def print_config_summary(settings, args: argparse.Namespace) -> None:
    """Print configuration summary."""
    print("\n📋 Configuration:")
    print("─" * 40)
    print(f"  Document: {args.document}")
    print(f"  Output dir: {settings.paths.output_dir}")
    print(f"  Output format: {settings.output.format}")
    print(f"  Turtle cache size: {settings.serializer.cache_size or 'unbounded'}")

    if args.skip_validation or not settings.validation.enabled:
        print("  Validation: ⏭️  skipped")
    else:
        shapes = settings.paths.shapes_file
        print(f"  Validation: ✅ rdflib{' + SHACL (' + str(shapes) + ')' if shapes else ''}")

    print("─" * 40)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="upper-doodle",
        description="upper-doodle - Compile ontology diagrams to RDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compile a document, writing .nt, .ttl and a report into ./output
  upper-doodle movies.json

  # Only Turtle, into a custom directory
  upper-doodle movies.yaml --format turtle --output ./rdf

  # Validate against SHACL shapes
  upper-doodle movies.json --shapes shapes.ttl

  # Verbose output for debugging
  upper-doodle movies.json --debug
        """,
    )

    parser.add_argument(
        "document",
        type=str,
        help="Diagram document (JSON or YAML) with prefixes, domain, elements and nTriples",
    )

    # Output options
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Output directory for generated files (default: ./output)",
    )

    parser.add_argument(
        "--format",
        "-f",
        type=str,
        choices=["turtle", "ntriples", "both"],
        default=None,
        help="Output format (default: from config)",
    )

    # Validation
    parser.add_argument(
        "--skip-validation",
        action="store_true",
        help="Skip RDF validation step",
    )

    parser.add_argument(
        "--shapes",
        type=str,
        default=None,
        help="SHACL shapes file (.ttl) to validate against",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="YAML configuration file (default: upper_doodle/config/config.yaml)",
    )

    # Logging
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output (very verbose)",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress all output except errors",
    )

    # Misc
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def apply_cli_overrides(settings, args: argparse.Namespace) -> None:
    """Apply CLI arguments to settings."""
    if args.output:
        settings.paths.output_dir = Path(args.output)

    if args.format:
        settings.output.format = args.format

    if args.shapes:
        settings.paths.shapes_file = Path(args.shapes)

    if args.skip_validation:
        settings.validation.enabled = False


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load and configure settings
    try:
        if args.config:
            set_settings(load_config(args.config))
        settings = get_settings()
        apply_cli_overrides(settings, args)
    except Exception as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    # Setup logging
    if args.quiet:
        setup_logging(verbose=False, debug=False)
        logging.disable(logging.CRITICAL)
    else:
        verbose = args.verbose or settings.logging.level in ("DEBUG", "INFO")
        setup_logging(
            verbose=verbose,
            debug=args.debug or settings.logging.level == "DEBUG",
            log_file=settings.logging.log_file,
        )

    # Print banner unless quiet
    if not args.quiet:
        print_banner()
        print_config_summary(settings, args)

    pipeline = DoodlePipeline(settings=settings)

    try:
        result: PipelineResult = pipeline.execute(
            args.document,
            output_format=args.format,
            skip_validation=args.skip_validation,
        )

        # Print summary
        if not args.quiet:
            result.print_summary()

        # Return code based on result
        if result.validation_errors:
            return 2  # Validation errors

        return 0  # Success

    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user")
        return 130

    except DocumentError as e:
        print(f"\n❌ Document error: {e}", file=sys.stderr)
        return 1

    except NTriplesSyntaxError as e:
        print(f"\n❌ N-Triples error: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logging.exception("Pipeline failed")
        print(f"\n❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
