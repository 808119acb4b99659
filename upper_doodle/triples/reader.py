"""
N-Triples Reader - Parses flat N-Triples into structured nodes.

Only the subset of N-Triples the generator produces (and users paste
into supplemental triples) is accepted: one statement per line, URIs,
blank nodes and literals with an optional datatype or language tag.
URIs are shortened to CURIEs against a prefix table; a URI no prefix
covers is an error.
"""

import logging
import re
from dataclasses import dataclass
from typing import Union

from upper_doodle.triples.grammar import unescape_literal

logger = logging.getLogger(__name__)

# =============================================================================
# PATTERNS
# =============================================================================

LINE_PATTERN = re.compile(r"^\s*(?P<subject>\S+)\s+(?P<predicate>\S+)\s+(?P<object>.+)\s+\.\s*$")

SUBJECT_PATTERN = re.compile(r"^(<[^>]+>|_:\S+)$")

PREDICATE_PATTERN = re.compile(r"^<[^>]+>$")

OBJECT_PATTERN = re.compile(
    r'^(<[^>]+>|"(?:[^"\\]|\\.)*?"(?:\^\^<[^>]+>|@[A-Za-z]+(?:-[A-Za-z0-9]+)*)?|_:\S+)$'
)

LITERAL_PATTERN = re.compile(
    r'^"(?P<value>(?:[^"\\]|\\.)*?)"(?:\^\^<(?P<datatype>[^>]+)>|@(?P<language>[A-Za-z]+(?:-[A-Za-z0-9]+)*))?$'
)

EMPTY_LINE_PATTERN = re.compile(r"^\s*$")

COMMENT_LINE_PATTERN = re.compile(r"^\s*#")


class NTriplesSyntaxError(ValueError):
    """Malformed N-Triples, carrying the offending source line."""

    def __init__(self, message: str, source: str):
        self.message = message
        self.source = source
        super().__init__(f"{message}\nSource: {source}")


# =============================================================================
# NODES
# =============================================================================


@dataclass(frozen=True)
class URINode:
    """A ``<uri>`` with its CURIE form."""

    value: str
    curie: str
    key: str

    @property
    def uri(self) -> str:
        return self.value[1:-1]


@dataclass(frozen=True)
class BlankNode:
    """A ``_:id`` blank node."""

    value: str
    key: str


@dataclass(frozen=True)
class LiteralNode:
    """
    A literal. ``value`` is unescaped; ``key`` is the source token.

    ``datatype`` (a full URI) and ``language`` are mutually exclusive.
    """

    value: str
    key: str
    datatype: str | None = None
    language: str | None = None


SubjectNode = Union[URINode, BlankNode]
ObjectNode = Union[URINode, BlankNode, LiteralNode]


@dataclass(frozen=True)
class Triple:
    """One parsed statement and the line it came from."""

    subject: SubjectNode
    predicate: URINode
    object: ObjectNode
    source: str

    @property
    def key(self) -> str:
        return f"{self.subject.key} {self.predicate.key} {self.object.key}"


# =============================================================================
# READER
# =============================================================================


def shorten_uri(prefixes: dict[str, str], uri: str) -> str:
    """
    Shorten a full URI to ``prefix:local`` using the first matching namespace.

    Raises:
        ValueError: If no namespace in ``prefixes`` is a prefix of ``uri``
    """
    for prefix, namespace in prefixes.items():
        if uri.startswith(namespace):
            return f"{prefix}:{uri[len(namespace):]}"
    raise ValueError(f"No prefix found for URI: {uri}")


class NTriplesReader:
    """
    Parses N-Triples text into :class:`Triple` objects.

    Blank lines and ``#`` comment lines are skipped.
    """

    def __init__(self, prefixes: dict[str, str]):
        """
        Initialize the reader.

        Args:
            prefixes: Prefix table used to shorten URIs into CURIEs
        """
        self.prefixes = prefixes

    def parse(self, text: str) -> list[Triple]:
        """
        Parse N-Triples text.

        Args:
            text: N-Triples document

        Returns:
            Triples in document order

        Raises:
            NTriplesSyntaxError: On the first malformed line
        """
        triples = []
        for line in text.split("\n"):
            if EMPTY_LINE_PATTERN.match(line) or COMMENT_LINE_PATTERN.match(line):
                continue
            triples.append(self.parse_line(line))

        logger.debug("Parsed %d N-Triples statements", len(triples))
        return triples

    def parse_line(self, line: str) -> Triple:
        """Parse a single statement line."""
        match = LINE_PATTERN.match(line)
        if not match:
            raise NTriplesSyntaxError(
                "Invalid N-Triples syntax - expected format: <subject> <predicate> <object> .", line
            )

        subject_source = match.group("subject")
        predicate_source = match.group("predicate")
        object_source = match.group("object")

        if not SUBJECT_PATTERN.match(subject_source):
            raise NTriplesSyntaxError("Invalid subject - must be URI or blank node", line)
        if not PREDICATE_PATTERN.match(predicate_source):
            raise NTriplesSyntaxError("Invalid predicate - must be URI", line)
        if not OBJECT_PATTERN.match(object_source):
            raise NTriplesSyntaxError("Invalid object - must be URI, literal, or blank node", line)

        try:
            if subject_source.startswith("_:"):
                subject = BlankNode(value=subject_source, key=subject_source)
            else:
                subject = self._uri_node(subject_source)
        except ValueError as e:
            raise NTriplesSyntaxError(f"Error parsing subject: {e}", line) from e

        try:
            predicate = self._uri_node(predicate_source)
        except ValueError as e:
            raise NTriplesSyntaxError(f"Error parsing predicate: {e}", line) from e

        try:
            obj = self._object_node(object_source)
        except ValueError as e:
            raise NTriplesSyntaxError(f"Error parsing object: {e}", line) from e

        return Triple(subject=subject, predicate=predicate, object=obj, source=line)

    def _uri_node(self, source: str) -> URINode:
        return URINode(value=source, curie=shorten_uri(self.prefixes, source[1:-1]), key=source)

    def _object_node(self, source: str) -> ObjectNode:
        if source.startswith("<") and source.endswith(">"):
            return self._uri_node(source)
        if source.startswith("_:"):
            return BlankNode(value=source, key=source)
        if source.startswith('"'):
            match = LITERAL_PATTERN.match(source)
            if not match:
                raise ValueError(f"Malformed literal: {source}")
            return LiteralNode(
                value=unescape_literal(match.group("value")),
                key=source,
                datatype=match.group("datatype"),
                language=match.group("language"),
            )
        raise ValueError(f"Unknown object type: {source}")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def parse_n_triples(prefixes: dict[str, str], text: str) -> list[Triple]:
    """Parse N-Triples text (convenience function)."""
    return NTriplesReader(prefixes).parse(text)
