"""
Triple Validator - Validates generated N-Triples and Turtle with rdflib.

Performs syntactic checks (both documents must parse), a round-trip
comparison of the two graphs, structural consistency checks over the
upper vocabulary and optional SHACL validation.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pyshacl
from rdflib import Graph, Namespace
from rdflib.compare import isomorphic
from rdflib.namespace import RDF

logger = logging.getLogger(__name__)

# Upper vocabulary namespace
UPPER = Namespace("https://github.com/theengineear/ns/upper#")


# =============================================================================
# VALIDATION RESULT
# =============================================================================


@dataclass
class ValidationResult:
    """Result of triple validation."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    info: dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def summary(self) -> str:
        """Get a summary of the validation result."""
        status = "VALID" if self.is_valid else "INVALID"
        return (
            f"Validation {status}: " f"{len(self.errors)} errors, " f"{len(self.warnings)} warnings"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "info": dict(self.info),
        }


# =============================================================================
# TRIPLE VALIDATOR
# =============================================================================


class TripleValidator:
    """
    Validates generated documents with rdflib.

    Checks performed:
    - N-Triples parse (error)
    - Turtle parse (error) and graph isomorphism with the N-Triples (warning;
      wrapped literals are re-indented on purpose)
    - Every upper:Attribute has an upper:datatype (warning)
    - Every upper:Relationship has an upper:class (warning)
    - Every upper:primaryKey member is an upper:property of its class (warning)
    - SHACL conformance when a shapes file is loaded
    """

    def __init__(
        self,
        shapes_path: Path | str | None = None,
        upper_namespace: str | None = None,
        round_trip: bool = True,
    ):
        """
        Initialize the validator.

        Args:
            shapes_path: Optional path to SHACL shapes file (.ttl)
            upper_namespace: Namespace of the upper vocabulary (defaults to UPPER)
            round_trip: Compare the Turtle graph with the N-Triples graph
        """
        self.shacl_graph = None
        self.upper = Namespace(upper_namespace) if upper_namespace else UPPER
        self.round_trip = round_trip
        if shapes_path:
            self._load_shacl_shapes(shapes_path)

    def _load_shacl_shapes(self, path: Path | str) -> None:
        """Load SHACL shapes from a Turtle file."""
        path = Path(path)
        if path.exists():
            self.shacl_graph = Graph()
            self.shacl_graph.parse(path, format="turtle")
            logger.info("Loaded SHACL shapes from %s (%d triples)", path, len(self.shacl_graph))
        else:
            logger.warning("SHACL shapes file not found: %s", path)

    def validate(self, n_triples: str, turtle: str | None = None) -> ValidationResult:
        """
        Validate an N-Triples document and, optionally, its Turtle rendering.

        Args:
            n_triples: N-Triples document
            turtle: Turtle rendering of the same triples

        Returns:
            ValidationResult with errors and warnings
        """
        result = ValidationResult(is_valid=True)

        logger.info("TripleValidator: Parsing N-Triples...")
        graph = self._parse(n_triples, "nt", result)
        if graph is None:
            logger.info("Validation complete: %s", result.summary())
            return result

        if turtle is not None:
            logger.info("TripleValidator: Parsing Turtle...")
            turtle_graph = self._parse(turtle, "turtle", result)
            if turtle_graph is not None and self.round_trip:
                self._check_round_trip(graph, turtle_graph, result)

        logger.info("TripleValidator: Checking structural consistency...")
        for issue in self.check_consistency(graph):
            result.add_warning(issue)

        # SHACL validation (if shapes are loaded)
        if self.shacl_graph is not None:
            logger.info("TripleValidator: Running SHACL validation...")
            self._check_shacl(graph, result)

        # Gather info
        result.info["triple_count"] = len(graph)
        result.info["subject_count"] = len(set(s for s, _, _ in graph))

        logger.info("Validation complete: %s", result.summary())
        return result

    @staticmethod
    def _parse(data: str, format: str, result: ValidationResult) -> Graph | None:
        graph = Graph()
        try:
            graph.parse(data=data, format=format)
        except Exception as e:
            result.add_error(f"Could not parse {format} output: {e}")
            return None
        return graph

    @staticmethod
    def _check_round_trip(graph: Graph, turtle_graph: Graph, result: ValidationResult) -> None:
        """Compare the N-Triples and Turtle graphs."""
        result.info["round_trip_isomorphic"] = isomorphic(graph, turtle_graph)
        if not result.info["round_trip_isomorphic"]:
            result.add_warning(
                f"Turtle graph differs from N-Triples graph "
                f"({len(turtle_graph)} vs {len(graph)} triples; wrapped literals are re-indented)"
            )

    def _check_shacl(self, graph: Graph, result: ValidationResult) -> None:
        """Run SHACL validation using pyshacl."""
        try:
            conforms, results_graph, _ = pyshacl.validate(
                data_graph=graph,
                shacl_graph=self.shacl_graph,
                inference="none",
                abort_on_first=False,
                allow_infos=True,
                allow_warnings=True,
            )

            # Parse SHACL results
            SH = Namespace("http://www.w3.org/ns/shacl#")
            violations = 0
            warnings_count = 0

            for report in results_graph.subjects(RDF.type, SH.ValidationResult):
                severity = results_graph.value(report, SH.resultSeverity)
                message = results_graph.value(report, SH.resultMessage)
                focus = results_graph.value(report, SH.focusNode)
                path = results_graph.value(report, SH.resultPath)

                detail = f"SHACL: {message}"
                if focus:
                    detail += f" (node: {focus})"
                if path:
                    detail += f" (path: {path})"

                if severity == SH.Violation:
                    result.add_error(detail)
                    violations += 1
                elif severity == SH.Warning:
                    result.add_warning(detail)
                    warnings_count += 1

            result.info["shacl_conforms"] = conforms
            result.info["shacl_violations"] = violations
            result.info["shacl_warnings"] = warnings_count

            if conforms:
                logger.info("SHACL validation: CONFORMS")
            else:
                logger.warning(
                    "SHACL validation: %d violations, %d warnings",
                    violations,
                    warnings_count,
                )

        except Exception as e:
            logger.error("SHACL validation failed with exception: %s", e)
            result.add_warning(f"SHACL validation could not be completed: {e}")

    def check_consistency(self, graph: Graph | str) -> list[str]:
        """
        Check structural consistency of the upper vocabulary.

        Args:
            graph: rdflib Graph or N-Triples text

        Returns:
            List of inconsistency messages
        """
        if isinstance(graph, str):
            data = graph
            graph = Graph()
            graph.parse(data=data, format="nt")

        upper = self.upper
        issues = []

        for attribute in graph.subjects(RDF.type, upper.Attribute):
            if graph.value(attribute, upper.datatype) is None:
                issues.append(f"Attribute {attribute} has no datatype")

        for relationship in graph.subjects(RDF.type, upper.Relationship):
            if graph.value(relationship, upper["class"]) is None:
                issues.append(f"Relationship {relationship} has no class")

        for cls, head in graph.subject_objects(upper.primaryKey):
            properties = set(graph.objects(cls, upper.property))
            for member in graph.items(head):
                if member not in properties:
                    issues.append(f"Primary key member {member} is not a property of {cls}")

        return issues


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_graph(n_triples: str, turtle: str | None = None) -> ValidationResult:
    """Quick function to validate generated documents."""
    return TripleValidator().validate(n_triples, turtle)


def check_consistency(n_triples: Graph | str) -> list[str]:
    """Quick function to check graph consistency."""
    return TripleValidator().check_consistency(n_triples)
