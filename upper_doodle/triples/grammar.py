"""
Grammar Resolver - Matches element labels against the diagram label grammars.

Every diagram element carries a short text label that follows a tiny
grammar depending on its role:

- rectangle: ``CURIE``
- diamond: ``CURIE (DC|SC|E|V)``
- diamond → diamond arrow: ``CURIE (min..max)``
- diamond → rectangle arrow: ``CURIE (min..max[ PK<n>])``
- diamond → text arrow: ``predicate[ @lang]``
- raw text: a CURIE or an RDF literal

Each resolver returns a small frozen dataclass on success and ``None`` when
the label does not match. Malformed labels never raise. The only side
effect is recording the namespaces of resolved CURIEs into the caller's
``used_prefixes`` mapping.
"""

import re
from dataclasses import dataclass
from typing import Literal

# =============================================================================
# VOCABULARY
# =============================================================================

TypeAbbreviation = Literal["DC", "SC", "E", "V"]

TYPE_ABBREVIATIONS: dict[str, str] = {
    "DC": "upper:DirectClass",
    "SC": "upper:SealedClass",
    "E": "upper:Enumeration",
    "V": "upper:EnumValue",
}

DIAMOND_TO_TEXT_PREDICATES = ("upper:label", "upper:description")

DEFAULT_LANGUAGE = "en"

# =============================================================================
# PATTERNS
# =============================================================================

RECTANGLE_TEXT_PATTERN = re.compile(r"^(?P<curie>[^ ]+)$")

DIAMOND_TEXT_PATTERN = re.compile(r"^(?P<curie>[^ ]+) \((?P<abbv>DC|SC|E|V)\)$")

DIAMOND_TO_DIAMOND_ARROW_PATTERN = re.compile(
    r"^(?P<curie>[^ ]+) \((?P<min_count>\d+)\.\.(?P<max_count>n|\d+)\)$"
)

DIAMOND_TO_RECTANGLE_ARROW_PATTERN = re.compile(
    r"^(?P<curie>[^ ]+) \((?P<min_count>\d+)\.\.(?P<max_count>n|\d+)(?: PK(?P<primary_key>\d+))?\)$"
)

DIAMOND_TO_TEXT_ARROW_PATTERN = re.compile(r"^(?P<predicate>[^ ]+)(?: @(?P<language>[a-z]{2,3}))?$")

CURIE_PATTERN = re.compile(r"^(?:(?P<prefix>[0-9A-Za-z._-]*):)?(?P<reference>[0-9A-Za-z._-]+)$")

# Quoted lexical forms: """...""", '''...''', "...", '...'
_QUOTED = r"""(?P<body>\"\"\"[\s\S]*?\"\"\"|'''[\s\S]*?'''|"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')"""

PLAIN_LITERAL_PATTERN = re.compile(rf"^{_QUOTED}$")
LANGUAGE_LITERAL_PATTERN = re.compile(rf"^{_QUOTED}@(?P<language>[a-z]{{2,3}}(?:-[A-Za-z0-9]+)*)$")
DATATYPE_LITERAL_PATTERN = re.compile(rf"^{_QUOTED}\^\^(?P<datatype>.+)$")

_ESCAPE_PATTERN = re.compile(r"\\(u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|.)", re.DOTALL)

_ESCAPES = {
    "t": "\t",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class ResolvedCurie:
    """A CURIE expanded to a full URI."""

    uri: str


@dataclass(frozen=True)
class ResolvedRectangle:
    """A rectangle label resolved to its datatype URI."""

    uri: str


@dataclass(frozen=True)
class ResolvedDiamond:
    """A diamond label resolved to its class URI and type abbreviation."""

    uri: str
    abbv: TypeAbbreviation


@dataclass(frozen=True)
class ResolvedArrow:
    """An attribute or relationship arrow label."""

    uri: str
    min_count: str
    max_count: str | None = None
    primary_key: int | None = None


@dataclass(frozen=True)
class ResolvedTextArrow:
    """A diamond → text arrow label (allow-listed predicate plus language)."""

    predicate: str
    language: str


# =============================================================================
# HELPERS
# =============================================================================


def check_type_abbreviation(abbv: str) -> None:
    """Assert that ``abbv`` is a known type abbreviation."""
    if abbv not in TYPE_ABBREVIATIONS:
        raise ValueError(f"abbv must be one of: {', '.join(TYPE_ABBREVIATIONS)}, got '{abbv}'")


def escape_literal(value: str) -> str:
    """Escape a string for use inside an N-Triples ``"..."`` literal."""
    return (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace('"', '\\"')
    )


def unescape_literal(value: str) -> str:
    """Undo N-Triples/Turtle string escapes in a single pass."""

    def _replace(match: re.Match) -> str:
        escape = match.group(1)
        if escape[0] in "uU" and len(escape) > 1:
            return chr(int(escape[1:], 16))
        # Unknown escapes are kept verbatim
        return _ESCAPES.get(escape, match.group(0))

    return _ESCAPE_PATTERN.sub(_replace, value)


def is_external(text: str | None, domain: str) -> bool:
    """True when ``text`` names a prefix other than ``domain``."""
    text = text or ""
    colon_index = text.find(":")
    if colon_index == -1:
        return False
    return text[:colon_index].strip() != domain


def _record(used_prefixes: dict[str, str], prefix: str, namespace: str) -> None:
    if prefix not in used_prefixes:
        used_prefixes[prefix] = namespace


# =============================================================================
# RESOLVERS
# =============================================================================


def resolve_curie(
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> ResolvedCurie | None:
    """
    Resolve ``[prefix:]reference`` to a full URI.

    Unprefixed references use the domain namespace. An explicit empty
    prefix (``:thing``) never resolves.
    """
    match = CURIE_PATTERN.match(text or "")
    if not match:
        return None

    prefix = match.group("prefix")
    reference = match.group("reference")

    if prefix is None:
        namespace = prefixes.get(domain)
        if not namespace:
            return None
        _record(used_prefixes, domain, namespace)
        return ResolvedCurie(uri=f"{namespace}{reference}")

    if prefix:
        namespace = prefixes.get(prefix)
        if not namespace:
            return None
        _record(used_prefixes, prefix, namespace)
        return ResolvedCurie(uri=f"{namespace}{reference}")

    return None


def resolve_rectangle(
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> ResolvedRectangle | None:
    """Resolve a rectangle label (a single CURIE)."""
    match = RECTANGLE_TEXT_PATTERN.match(text or "")
    if not match:
        return None
    curie = resolve_curie(domain, prefixes, used_prefixes, match.group("curie"))
    if curie is None:
        return None
    return ResolvedRectangle(uri=curie.uri)


def resolve_diamond(
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> ResolvedDiamond | None:
    """Resolve a diamond label ``CURIE (ABBV)``."""
    match = DIAMOND_TEXT_PATTERN.match(text or "")
    if not match:
        return None
    abbv = match.group("abbv")
    check_type_abbreviation(abbv)
    curie = resolve_curie(domain, prefixes, used_prefixes, match.group("curie"))
    if curie is None:
        return None
    return ResolvedDiamond(uri=curie.uri, abbv=abbv)


def _resolve_cardinality_arrow(
    pattern: re.Pattern,
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> ResolvedArrow | None:
    match = pattern.match(text or "")
    if not match:
        return None
    curie = resolve_curie(domain, prefixes, used_prefixes, match.group("curie"))
    if curie is None:
        return None

    groups = match.groupdict()
    max_count = groups["max_count"]
    primary_key = groups.get("primary_key")
    return ResolvedArrow(
        uri=curie.uri,
        min_count=groups["min_count"],
        max_count=None if max_count == "n" else max_count,
        primary_key=int(primary_key) if primary_key is not None else None,
    )


def resolve_diamond_to_diamond_arrow(
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> ResolvedArrow | None:
    """Resolve a relationship label ``CURIE (min..max)``."""
    return _resolve_cardinality_arrow(
        DIAMOND_TO_DIAMOND_ARROW_PATTERN, domain, prefixes, used_prefixes, text
    )


def resolve_diamond_to_rectangle_arrow(
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> ResolvedArrow | None:
    """Resolve an attribute label ``CURIE (min..max[ PK<n>])``."""
    return _resolve_cardinality_arrow(
        DIAMOND_TO_RECTANGLE_ARROW_PATTERN, domain, prefixes, used_prefixes, text
    )


def match_diamond_to_text_arrow(text: str | None) -> bool:
    """True when ``text`` follows the ``predicate[ @lang]`` grammar."""
    return DIAMOND_TO_TEXT_ARROW_PATTERN.match(text or "") is not None


def resolve_diamond_to_text_arrow(
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> ResolvedTextArrow | None:
    """
    Resolve a ``predicate[ @lang]`` label.

    Only allow-listed predicates resolve; anything else is "no match".
    The predicate CURIE itself is resolved later by the generator.
    """
    match = DIAMOND_TO_TEXT_ARROW_PATTERN.match(text or "")
    if not match:
        return None
    predicate = match.group("predicate")
    if predicate not in DIAMOND_TO_TEXT_PREDICATES:
        return None
    return ResolvedTextArrow(
        predicate=predicate,
        language=match.group("language") or DEFAULT_LANGUAGE,
    )


def is_valid_literal(text: str | None) -> bool:
    """True when ``text`` is an RDF literal in any supported quote style."""
    if not text:
        return False
    return bool(
        PLAIN_LITERAL_PATTERN.match(text)
        or LANGUAGE_LITERAL_PATTERN.match(text)
        or DATATYPE_LITERAL_PATTERN.match(text)
    )


def _lexical_value(body: str) -> str:
    if body.startswith('"""') or body.startswith("'''"):
        inner = body[3:-3]
    else:
        inner = body[1:-1]
    return unescape_literal(inner)


def resolve_literal(
    domain: str,
    prefixes: dict[str, str],
    used_prefixes: dict[str, str],
    text: str | None,
) -> str | None:
    """
    Convert a raw literal to its canonical N-Triples form.

    ``'42'^^xsd:integer`` becomes
    ``"42"^^<http://www.w3.org/2001/XMLSchema#integer>``. Datatypes may be
    CURIEs or ``<uri>``; a ``<uri>`` must fall under a declared namespace.
    """
    if not is_valid_literal(text):
        return None

    match = PLAIN_LITERAL_PATTERN.match(text)
    if match:
        return f'"{escape_literal(_lexical_value(match.group("body")))}"'

    match = LANGUAGE_LITERAL_PATTERN.match(text)
    if match:
        value = escape_literal(_lexical_value(match.group("body")))
        return f'"{value}"@{match.group("language")}'

    match = DATATYPE_LITERAL_PATTERN.match(text)
    value = escape_literal(_lexical_value(match.group("body")))
    datatype = match.group("datatype")
    if datatype.startswith("<") and datatype.endswith(">"):
        uri = datatype[1:-1]
        for prefix, namespace in prefixes.items():
            if namespace and uri.startswith(namespace):
                _record(used_prefixes, prefix, namespace)
                return f'"{value}"^^<{uri}>'
        return None

    resolved = resolve_curie(domain, prefixes, used_prefixes, datatype)
    if resolved is None:
        return None
    return f'"{value}"^^<{resolved.uri}>'
