"""
Doodle Pipeline - Compiles a diagram document into RDF files.

Orchestrates the entire flow: document loading → triple generation →
Turtle serialization → validation → output files.
"""

import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from upper_doodle.config.settings import Settings, get_settings
from upper_doodle.loaders import Document, load_document
from upper_doodle.triples import (
    GenerationResult,
    TripleGenerator,
    TripleValidator,
    TurtleSerializer,
    ValidationResult,
    external_elements,
)
from upper_doodle.utils.logging import add_file_handler, remove_file_handler

logger = logging.getLogger(__name__)


# =============================================================================
# PIPELINE RESULT
# =============================================================================


@dataclass
class PipelineResult:
    """Result from a complete pipeline execution."""

    # Timing
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    duration_seconds: float = 0.0

    # Document
    document_path: str | None = None
    domain: str = ""
    elements_loaded: int = 0

    # Classification
    used_prefixes: dict[str, str] = field(default_factory=dict)
    ignored: list[str] = field(default_factory=list)
    raw: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)
    keyed: list[str] = field(default_factory=list)
    external: list[str] = field(default_factory=list)

    # Triples
    triples_generated: int = 0

    # Validation
    validation_errors: list[str] = field(default_factory=list)
    validation_warnings: list[str] = field(default_factory=list)

    # Output
    output_files: list[str] = field(default_factory=list)

    def finalize(self) -> None:
        """Mark pipeline as complete and calculate duration."""
        self.completed_at = datetime.now()
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "timing": {
                "started_at": self.started_at.isoformat(),
                "completed_at": self.completed_at.isoformat() if self.completed_at else None,
                "duration_seconds": round(self.duration_seconds, 2),
            },
            "document": {
                "path": self.document_path,
                "domain": self.domain,
                "elements": self.elements_loaded,
            },
            "classification": {
                "ignored": self.ignored,
                "raw": self.raw,
                "invalid": self.invalid,
                "keyed": self.keyed,
                "external": self.external,
            },
            "prefixes": self.used_prefixes,
            "triples": {
                "total": self.triples_generated,
            },
            "validation": {
                "errors": len(self.validation_errors),
                "warnings": len(self.validation_warnings),
                "error_details": self.validation_errors[:10],  # First 10
                "warning_details": self.validation_warnings[:10],
            },
            "output": {
                "files": self.output_files,
            },
        }

    def print_summary(self) -> None:
        """Print a summary of the pipeline execution."""
        print("\n" + "=" * 60)
        print("📊 DIAGRAM COMPILATION SUMMARY")
        print("=" * 60)

        print(f"\n⏱️  Duration: {self.duration_seconds:.2f}s")
        print(f"📁 Document: {self.document_path} (domain '{self.domain}')")
        print(f"   • Elements: {self.elements_loaded}")

        print(f"\n🔗 Triples: {self.triples_generated} generated")
        print(f"   • Prefixes used: {', '.join(sorted(self.used_prefixes)) or '-'}")

        print("\n🏷️  Elements:")
        print(f"   • Ignored: {len(self.ignored)}")
        print(f"   • Raw: {len(self.raw)}")
        print(f"   • Keyed: {len(self.keyed)}")
        print(f"   • External: {len(self.external)}")
        if self.invalid:
            print(f"   ⚠️  Invalid: {len(self.invalid)} ({', '.join(self.invalid[:5])})")

        if self.validation_errors:
            print(f"\n❌ Validation Errors: {len(self.validation_errors)}")
            for error in self.validation_errors[:5]:
                print(f"   • {error}")
        if self.validation_warnings:
            print(f"⚠️  Validation Warnings: {len(self.validation_warnings)}")

        print(f"\n📤 Output Files: {len(self.output_files)}")
        for f in self.output_files:
            print(f"   • {f}")

        print("=" * 60)


# =============================================================================
# PIPELINE
# =============================================================================


class DoodlePipeline:
    """
    upper-doodle Pipeline

    Orchestrates:
    1. Loading the diagram document (JSON or YAML)
    2. Generating canonical N-Triples and element classification
    3. Rendering Turtle
    4. Validating output
    5. Writing .nt/.ttl files and a JSON report

    Usage:
        pipeline = DoodlePipeline()
        result = pipeline.execute("movies.json")
        result.print_summary()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        output_dir: str | Path | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Configuration settings (uses default if None)
            output_dir: Override directory for output files
        """
        self.settings = settings or get_settings()
        self.output_dir = Path(output_dir) if output_dir else self.settings.paths.output_dir

        # Components (lazy initialization)
        self._triple_generator: TripleGenerator | None = None
        self._serializer: TurtleSerializer | None = None
        self._validator: TripleValidator | None = None

        # State
        self._document: Document | None = None
        self._generation: GenerationResult | None = None
        self._turtle: str | None = None

        logger.info("Pipeline initialized")
        logger.info("  Output dir: %s", self.output_dir)

    # =========================================================================
    # COMPONENT INITIALIZATION
    # =========================================================================

    @property
    def triple_generator(self) -> TripleGenerator:
        """Get or create triple generator."""
        if self._triple_generator is None:
            self._triple_generator = TripleGenerator()
        return self._triple_generator

    @property
    def serializer(self) -> TurtleSerializer:
        """Get or create serializer."""
        if self._serializer is None:
            self._serializer = TurtleSerializer(cache_size=self.settings.serializer.cache_size)
        return self._serializer

    @property
    def validator(self) -> TripleValidator:
        """Get or create validator."""
        if self._validator is None:
            shapes_path = self.settings.paths.shapes_file
            upper = self._document.prefixes.get("upper") if self._document else None
            self._validator = TripleValidator(
                shapes_path=shapes_path if shapes_path and Path(shapes_path).exists() else None,
                upper_namespace=upper,
                round_trip=self.settings.validation.round_trip,
            )
        return self._validator

    # =========================================================================
    # PIPELINE STAGES
    # =========================================================================

    def load_document(self, document_path: str | Path) -> Document:
        """
        Load the diagram document.

        Args:
            document_path: JSON or YAML document

        Returns:
            Parsed Document
        """
        self._document = load_document(document_path)
        # The validator depends on the document's upper namespace
        self._validator = None
        return self._document

    def generate_triples(self, document: Document | None = None) -> GenerationResult:
        """
        Generate N-Triples from the loaded document.

        Returns:
            GenerationResult with N-Triples and element classification
        """
        document = document or self._document
        if document is None:
            raise ValueError("No document to compile. Call load_document() first.")

        self._generation = self.triple_generator.generate(
            document.domain,
            document.prefixes,
            document.elements,
            document.n_triples,
        )
        if self._generation.invalid:
            logger.warning(
                "%d element(s) have invalid labels: %s",
                len(self._generation.invalid),
                ", ".join(sorted(self._generation.invalid)),
            )
        return self._generation

    def render_turtle(self) -> str:
        """Render the generated N-Triples as Turtle."""
        if self._generation is None:
            raise ValueError("No triples generated. Call generate_triples() first.")
        self._turtle = self.serializer.generate(self._generation.used_prefixes, self._generation.n_triples)
        return self._turtle

    def validate(self) -> ValidationResult:
        """
        Validate the generated N-Triples and Turtle.

        Returns:
            ValidationResult with errors and warnings
        """
        if self._generation is None:
            raise ValueError("No triples to validate. Call generate_triples() first.")

        validation = self.validator.validate(self._generation.n_triples, self._turtle)
        if validation.errors:
            logger.warning("Validation found %d errors", len(validation.errors))
        for warning in validation.warnings:
            logger.warning("Validation: %s", warning)
        return validation

    def _write_outputs(self, stem: str, output_format: str, result: PipelineResult) -> None:
        """Write N-Triples and/or Turtle files."""
        generation = self._generation
        self.output_dir.mkdir(parents=True, exist_ok=True)

        if output_format in ("ntriples", "both"):
            nt_path = self.output_dir / f"{stem}.nt"
            self.serializer.to_file(generation.used_prefixes, generation.n_triples, nt_path, format="nt")
            result.output_files.append(str(nt_path))

        if output_format in ("turtle", "both"):
            ttl_path = self.output_dir / f"{stem}.ttl"
            ttl_path.write_text(self._turtle or self.render_turtle(), encoding="utf-8")
            logger.info("Saved turtle: %s", ttl_path)
            result.output_files.append(str(ttl_path))

    def _save_report(self, stem: str, result: PipelineResult) -> str:
        """Save the classification and validation report as JSON."""
        report_path = self.output_dir / f"{stem}.report.json"
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info("Saved report: %s", report_path)
        return str(report_path)

    def execute(
        self,
        document_path: str | Path,
        output_format: str | None = None,
        skip_validation: bool = False,
        enable_file_logging: bool = False,
    ) -> PipelineResult:
        """
        Execute the complete pipeline.

        Args:
            document_path: Diagram document (JSON or YAML)
            output_format: Override output format (turtle, ntriples, both)
            skip_validation: Skip validation step
            enable_file_logging: Save execution log next to the outputs

        Returns:
            PipelineResult with execution summary
        """
        result = PipelineResult(document_path=str(document_path))
        stem = Path(document_path).stem
        log_path = self.output_dir / f"{stem}.log"

        try:
            if enable_file_logging:
                add_file_handler(log_path)

            # Stage 1: Load document
            logger.info("--- STAGE 1: Loading document ---")
            document = self.load_document(document_path)
            result.domain = document.domain
            result.elements_loaded = len(document.elements)

            # Stage 2: Generate triples
            logger.info("--- STAGE 2: Generating N-Triples ---")
            generation = self.generate_triples()
            result.triples_generated = generation.triple_count
            result.used_prefixes = dict(generation.used_prefixes)
            result.ignored = sorted(generation.ignored)
            result.raw = sorted(generation.raw)
            result.invalid = sorted(generation.invalid)
            result.keyed = sorted(generation.keyed)
            result.external = sorted(external_elements(document.domain, document.elements))

            # Stage 3: Render Turtle
            logger.info("--- STAGE 3: Rendering Turtle ---")
            self.render_turtle()

            # Stage 4: Validate
            if not skip_validation and self.settings.validation.enabled:
                logger.info("--- STAGE 4: Validating output ---")
                validation = self.validate()
                result.validation_errors = validation.errors
                result.validation_warnings = validation.warnings

            # Stage 5: Write files
            logger.info("--- STAGE 5: Writing output files ---")
            fmt = output_format or self.settings.output.format
            self._write_outputs(stem, fmt, result)

        except Exception as e:
            logger.exception("Pipeline execution failed: %s", e)
            raise

        finally:
            result.finalize()

            if enable_file_logging:
                remove_file_handler()
                if log_path.exists():
                    result.output_files.append(str(log_path))

        if self.settings.output.write_report:
            result.output_files.append(self._save_report(stem, result))

        return result


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def run_pipeline(
    document_path: str | Path,
    output_dir: str | Path | None = None,
    output_format: str | None = None,
    verbose: bool = True,
) -> PipelineResult:
    """
    Convenience function to run the complete pipeline.

    Args:
        document_path: Diagram document (JSON or YAML)
        output_dir: Directory for output files
        output_format: Output format (turtle, ntriples, both)
        verbose: Print progress to stdout

    Returns:
        PipelineResult with execution summary
    """
    # Setup logging
    log_level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )

    pipeline = DoodlePipeline(output_dir=output_dir)
    result = pipeline.execute(document_path, output_format=output_format)

    if verbose:
        result.print_summary()

    return result
