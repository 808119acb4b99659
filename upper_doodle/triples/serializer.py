"""
Turtle Serializer - Renders N-Triples as a canonical, human-friendly Turtle document.

The output is stable for a given input: prefixes and subject blocks are
collated, predicates follow a fixed vocabulary order, RDF lists are folded
inline and numeric and boolean literals render bare. Results are memoized
per input in a bounded, thread-safe LRU cache.
"""

import logging
import re
import threading
from collections import Counter, OrderedDict
from functools import cmp_to_key
from pathlib import Path
from typing import Any

from rdflib.namespace import RDF, XSD

from upper_doodle.triples.reader import (
    BlankNode,
    LiteralNode,
    NTriplesReader,
    NTriplesSyntaxError,
    ObjectNode,
    SubjectNode,
    Triple,
    URINode,
    shorten_uri,
)
from upper_doodle.utils.collation import collation_cmp_key, compare

logger = logging.getLogger(__name__)


# =============================================================================
# FORMATTING RULES
# =============================================================================

PREDICATE_ORDER = [
    "rdf:type",
    "upper:domain",
    "upper:label",
    "upper:description",
    "upper:keyedOn",
    "upper:primaryKey",
    "upper:property",
    "upper:class",
    "upper:datatype",
    "upper:minCount",
    "upper:maxCount",
    "upper:comment",
]

# Datatypes whose lexical form may be written without quotes
BARE_LITERALS = {
    str(XSD.integer): re.compile(r"^-?\d+$"),
    str(XSD.decimal): re.compile(r"^-?\d*\.\d+$"),
    str(XSD.double): re.compile(r"^-?\d*\.?\d+[eE][+-]?\d+$"),
    str(XSD.boolean): re.compile(r"^(?:true|false)$"),
}

MAX_LINE_LENGTH = 80
LITERAL_INDENT = " " * 8
PREDICATE_INDENT = " " * 4

RDF_FIRST = f"<{RDF.first}>"
RDF_REST = f"<{RDF.rest}>"
RDF_NIL = f"<{RDF.nil}>"

FORMATS = {
    "turtle": {"extension": ".ttl", "mime": "text/turtle"},
    "ttl": {"extension": ".ttl", "mime": "text/turtle"},
    "nt": {"extension": ".nt", "mime": "application/n-triples"},
    "ntriples": {"extension": ".nt", "mime": "application/n-triples"},
}


class _SubjectGroup:
    """A subject and its ``(predicate, object)`` pairs."""

    __slots__ = ("subject", "predicates")

    def __init__(self, subject: SubjectNode):
        self.subject = subject
        self.predicates: list[tuple[URINode, ObjectNode]] = []

    def find(self, curie: str, value: str) -> ObjectNode | None:
        for predicate, obj in self.predicates:
            if predicate.curie == curie or predicate.value == value:
                return obj
        return None

    @property
    def is_list_node(self) -> bool:
        return (
            isinstance(self.subject, BlankNode)
            and self.find("rdf:first", RDF_FIRST) is not None
            and self.find("rdf:rest", RDF_REST) is not None
        )


def _node_label(node: ObjectNode) -> str:
    if isinstance(node, URINode):
        return node.curie or node.value
    return node.value


def _compare_predicates(a: tuple[URINode, ObjectNode], b: tuple[URINode, ObjectNode]) -> int:
    a_curie, b_curie = a[0].curie, b[0].curie
    a_index = PREDICATE_ORDER.index(a_curie) if a_curie in PREDICATE_ORDER else -1
    b_index = PREDICATE_ORDER.index(b_curie) if b_curie in PREDICATE_ORDER else -1

    if a_index != -1 and b_index != -1:
        return a_index - b_index
    if a_index != -1:
        return -1
    if b_index != -1:
        return 1

    result = compare(a_curie, b_curie)
    if result:
        return result
    return compare(_node_label(a[1]), _node_label(b[1]))


def _wrap_words(value: str) -> list[str]:
    lines = []
    current = ""
    for word in value.split(" "):
        if current and len(f"{current} {word}") > MAX_LINE_LENGTH:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        lines.append(current)
    return lines


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\r", "\\r")


# =============================================================================
# TURTLE SERIALIZER
# =============================================================================


class TurtleSerializer:
    """
    Converts N-Triples into formatted Turtle.

    Output is memoized by input. ``cache_size`` bounds the number of
    remembered documents (least recently used are evicted first); 0 keeps
    every document.
    """

    def __init__(self, cache_size: int | None = None):
        """
        Initialize the serializer.

        Args:
            cache_size: Maximum cached documents (None reads it from settings)
        """
        if cache_size is None:
            from upper_doodle.config import get_settings

            cache_size = get_settings().serializer.cache_size
        if cache_size < 0:
            raise ValueError(f"cache_size must be >= 0, got {cache_size}")
        self.cache_size = cache_size
        self._cache: OrderedDict[tuple, str] = OrderedDict()
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    @staticmethod
    def _cache_key(prefixes: dict[str, str], n_triples: str) -> tuple:
        return (tuple(prefixes.items()), n_triples)

    def _cache_get(self, key: tuple) -> str | None:
        with self._lock:
            turtle = self._cache.get(key)
            if turtle is not None:
                self._cache.move_to_end(key)
            return turtle

    def _cache_put(self, key: tuple, turtle: str) -> None:
        with self._lock:
            self._cache[key] = turtle
            self._cache.move_to_end(key)
            if self.cache_size:
                while len(self._cache) > self.cache_size:
                    self._cache.popitem(last=False)

    def clear_cache(self) -> None:
        """Forget every memoized document."""
        with self._lock:
            self._cache.clear()

    @property
    def cached_documents(self) -> int:
        with self._lock:
            return len(self._cache)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(self, prefixes: dict[str, str], n_triples: str) -> str:
        """
        Render N-Triples as Turtle.

        Args:
            prefixes: Prefix table; every URI must fall under one of its namespaces
            n_triples: N-Triples document

        Returns:
            Turtle document ending in a newline

        Raises:
            NTriplesSyntaxError: If a line is malformed or a URI cannot be shortened
        """
        key = self._cache_key(prefixes, n_triples)
        cached = self._cache_get(key)
        if cached is not None:
            logger.debug("Turtle cache hit")
            return cached

        triples = self._deduplicate(NTriplesReader(prefixes).parse(n_triples))
        groups = self._sort_groups(self._group(triples))

        snippets = []
        prefix_block = self._prefixes_snippet(prefixes)
        if prefix_block:
            snippets.append(prefix_block)
        for group in groups.values():
            if not group.is_list_node:
                snippets.append(self._group_snippet(prefixes, group, groups))
        turtle = "\n\n".join(snippets) + "\n"

        self._cache_put(key, turtle)
        logger.debug("Rendered %d triples in %d subject blocks", len(triples), len(snippets))
        return turtle

    @staticmethod
    def _deduplicate(triples: list[Triple]) -> list[Triple]:
        seen = set()
        unique = []
        for triple in triples:
            if triple.key not in seen:
                seen.add(triple.key)
                unique.append(triple)
        return unique

    @staticmethod
    def _group(triples: list[Triple]) -> dict[str, _SubjectGroup]:
        groups: dict[str, _SubjectGroup] = {}
        for triple in triples:
            group = groups.get(triple.subject.key)
            if group is None:
                group = groups[triple.subject.key] = _SubjectGroup(triple.subject)
            group.predicates.append((triple.predicate, triple.object))
        return groups

    @staticmethod
    def _sort_groups(groups: dict[str, _SubjectGroup]) -> dict[str, _SubjectGroup]:
        ordered = OrderedDict()
        for key in sorted(groups, key=collation_cmp_key):
            group = groups[key]
            group.predicates.sort(key=cmp_to_key(_compare_predicates))
            ordered[key] = group
        return ordered

    # -------------------------------------------------------------------------
    # Snippets
    # -------------------------------------------------------------------------

    @staticmethod
    def _prefixes_snippet(prefixes: dict[str, str]) -> str:
        if not prefixes:
            return ""
        names = sorted(prefixes, key=collation_cmp_key)
        width = max(len(name) for name in names) + 1
        return "\n".join(f"@prefix {(name + ':').ljust(width)} <{prefixes[name]}> ." for name in names)

    def _group_snippet(self, prefixes: dict[str, str], group: _SubjectGroup, groups: dict[str, _SubjectGroup]) -> str:
        labels = ["a" if predicate.curie == "rdf:type" else predicate.curie for predicate, _ in group.predicates]
        width = max((len(label) for label in labels), default=0)

        lines = [_node_label(group.subject)]
        for label, (_, obj) in zip(labels, group.predicates):
            lines.append(f"{PREDICATE_INDENT}{label.ljust(width)} {self._format_object(prefixes, obj, groups)} ;")
        lines.append(".")
        return "\n".join(lines)

    def _format_object(
        self,
        prefixes: dict[str, str],
        obj: ObjectNode,
        groups: dict[str, _SubjectGroup],
        visited: set[str] | None = None,
    ) -> str:
        if isinstance(obj, LiteralNode):
            return self._format_literal(prefixes, obj)
        if isinstance(obj, BlankNode):
            group = groups.get(obj.key)
            if group is not None and group.is_list_node:
                return self._format_list(prefixes, obj, groups, visited or set())
            return obj.value
        if isinstance(obj, URINode):
            return obj.curie or obj.value
        raise ValueError(f"Unknown node kind: {type(obj).__name__}")

    def _format_list(
        self,
        prefixes: dict[str, str],
        head: BlankNode,
        groups: dict[str, _SubjectGroup],
        visited: set[str],
    ) -> str:
        items = []
        node: ObjectNode = head
        while isinstance(node, BlankNode) and node.key not in visited:
            group = groups.get(node.key)
            if group is None:
                break
            visited.add(node.key)

            first = group.find("rdf:first", RDF_FIRST)
            if first is not None:
                items.append(self._format_object(prefixes, first, groups, visited))

            rest = group.find("rdf:rest", RDF_REST)
            if rest is None:
                break
            if isinstance(rest, URINode) and (rest.curie == "rdf:nil" or rest.value == RDF_NIL):
                break
            node = rest

        return f"( {' '.join(items)} )"

    def _format_literal(self, prefixes: dict[str, str], literal: LiteralNode) -> str:
        pattern = BARE_LITERALS.get(literal.datatype or "")
        if pattern is not None and pattern.match(literal.value):
            return literal.value

        value = literal.value
        if "\n" in value:
            body = "\n".join(f"{LITERAL_INDENT}{line}" for line in _escape(value).split("\n"))
            text = f'"""\n{body}\n{LITERAL_INDENT}"""'
        elif len(value) > MAX_LINE_LENGTH:
            wrapped = f"\n{LITERAL_INDENT}".join(_wrap_words(_escape(value)))
            text = f'"""\n{LITERAL_INDENT}{wrapped}\n{LITERAL_INDENT}"""'
        else:
            text = f'"{_escape(value)}"'

        if literal.datatype:
            try:
                text += f"^^{shorten_uri(prefixes, literal.datatype)}"
            except ValueError as e:
                raise NTriplesSyntaxError(f"Error formatting literal: {e}", literal.key) from e
        elif literal.language:
            text += f"@{literal.language}"
        return text

    # -------------------------------------------------------------------------
    # Files and statistics
    # -------------------------------------------------------------------------

    def to_file(
        self,
        prefixes: dict[str, str],
        n_triples: str,
        path: Path | str,
        format: str = "turtle",
    ) -> None:
        """
        Write the document to a file.

        Args:
            prefixes: Prefix table
            n_triples: N-Triples document
            path: Output file path
            format: Output format (turtle, nt)
        """
        path = Path(path)
        format_lower = format.lower()

        if format_lower not in FORMATS:
            raise ValueError(f"Unsupported format: {format}. Supported: {list(FORMATS.keys())}")

        # Ensure directory exists
        path.parent.mkdir(parents=True, exist_ok=True)

        if format_lower in ("turtle", "ttl"):
            content = self.generate(prefixes, n_triples)
        else:
            content = n_triples

        path.write_text(content, encoding="utf-8")
        logger.info("Serialized %s to %s", format_lower, path)

    def get_statistics(self, prefixes: dict[str, str], n_triples: str) -> dict[str, Any]:
        """
        Get statistics about an N-Triples document.

        Args:
            prefixes: Prefix table
            n_triples: N-Triples document

        Returns:
            Dictionary with document statistics
        """
        triples = self._deduplicate(NTriplesReader(prefixes).parse(n_triples))
        predicates = Counter(triple.predicate.curie for triple in triples)
        subjects = {triple.subject.key for triple in triples}
        literals = sum(1 for triple in triples if isinstance(triple.object, LiteralNode))

        return {
            "total_triples": len(triples),
            "unique_subjects": len(subjects),
            "unique_predicates": len(predicates),
            "literals": literals,
            "predicates": dict(predicates.most_common(20)),
            "namespaces": dict(prefixes),
        }


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

_default_serializer: TurtleSerializer | None = None
_default_lock = threading.Lock()


def get_serializer() -> TurtleSerializer:
    """Shared serializer instance, so the memo cache survives between calls."""
    global _default_serializer
    with _default_lock:
        if _default_serializer is None:
            _default_serializer = TurtleSerializer()
        return _default_serializer


def serialize_to_turtle(prefixes: dict[str, str], n_triples: str) -> str:
    """Quick function to render N-Triples as Turtle."""
    return get_serializer().generate(prefixes, n_triples)


def serialize_to_file(prefixes: dict[str, str], n_triples: str, path: Path | str, format: str = "turtle") -> None:
    """Quick function to serialize a document to a file."""
    get_serializer().to_file(prefixes, n_triples, path, format)
