"""
Triple Generator - Converts diagram elements to canonical N-Triples.

Walks the element graph, resolves every label through the grammar
resolver and emits sorted, deduplicated N-Triples. Alongside the text it
classifies each element as used, ignored, raw, invalid or keyed so the
diagram can highlight what did and did not make it into the model.
"""

import logging
import re
from dataclasses import dataclass, field

from rdflib.namespace import XSD

from upper_doodle.loaders.document import Arrow, Diamond, Element, Rectangle, Text, Tree
from upper_doodle.triples.grammar import (
    TYPE_ABBREVIATIONS,
    ResolvedDiamond,
    escape_literal,
    is_external as _is_external_text,
    match_diamond_to_text_arrow,
    resolve_curie,
    resolve_diamond,
    resolve_diamond_to_diamond_arrow,
    resolve_diamond_to_rectangle_arrow,
    resolve_diamond_to_text_arrow,
    resolve_literal,
    resolve_rectangle,
)

logger = logging.getLogger(__name__)

_URI_REFERENCE_PATTERN = re.compile(r"<([^>]+)>")


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class PrimaryKeyEntry:
    """One ``PK<n>`` attribute harvested from a diamond → rectangle arrow."""

    order: int
    attribute_uri: str
    arrow_id: str


@dataclass
class GenerationResult:
    """N-Triples text plus the classification of every element."""

    used_prefixes: dict[str, str] = field(default_factory=dict)
    n_triples: str = "\n"
    ignored: set[str] = field(default_factory=set)
    raw: set[str] = field(default_factory=set)
    invalid: set[str] = field(default_factory=set)
    keyed: set[str] = field(default_factory=set)

    @property
    def triple_count(self) -> int:
        return len([line for line in self.n_triples.split("\n") if line])

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary (sets become sorted lists)."""
        return {
            "used_prefixes": dict(self.used_prefixes),
            "triple_count": self.triple_count,
            "ignored": sorted(self.ignored),
            "raw": sorted(self.raw),
            "invalid": sorted(self.invalid),
            "keyed": sorted(self.keyed),
        }


# =============================================================================
# EXTERNAL ELEMENTS
# =============================================================================


def is_external(element: Element, domain: str) -> bool:
    """
    True when a diamond or rectangle references another domain's prefix.

    External elements never become triple subjects but are not invalid.
    Other element kinds are never external.
    """
    if not isinstance(element, (Diamond, Rectangle)):
        return False
    return _is_external_text(element.text, domain)


def external_elements(domain: str, elements: dict[str, Element]) -> set[str]:
    """Ids of every external element."""
    return {element_id for element_id, element in elements.items() if is_external(element, domain)}


# =============================================================================
# TRIPLE GENERATOR
# =============================================================================


@dataclass
class GenerationState:
    """Accumulators for a single :meth:`TripleGenerator.generate` call."""

    domain: str
    prefixes: dict[str, str]
    elements: dict[str, Element]
    used_prefixes: dict[str, str] = field(default_factory=dict)
    triples: list[str] = field(default_factory=list)
    used: set[str] = field(default_factory=set)
    raw: set[str] = field(default_factory=set)
    invalid: set[str] = field(default_factory=set)
    primary_keys: dict[str, list[PrimaryKeyEntry]] = field(default_factory=dict)

    def curie(self, text: str | None) -> str | None:
        resolved = resolve_curie(self.domain, self.prefixes, self.used_prefixes, text)
        return resolved.uri if resolved else None

    def diamond(self, element: Diamond) -> ResolvedDiamond | None:
        return resolve_diamond(self.domain, self.prefixes, self.used_prefixes, element.text)

    def rectangle(self, element: Rectangle) -> str | None:
        resolved = resolve_rectangle(self.domain, self.prefixes, self.used_prefixes, element.text)
        return resolved.uri if resolved else None

    def emit(self, element_id: str, triples: list[str]) -> bool:
        if not triples:
            return False
        self.triples.extend(triples)
        self.used.add(element_id)
        return True


class TripleGenerator:
    """
    Generates canonical N-Triples from a diagram element graph.

    The generator holds no state of its own: every call builds a fresh
    :class:`GenerationState` and hands it to the helpers, so one instance
    can serve several documents or threads at once.
    """

    def generate(
        self,
        domain: str,
        prefixes: dict[str, str],
        elements: dict[str, Element],
        n_triples: str = "",
    ) -> GenerationResult:
        """
        Generate N-Triples and element classification for a diagram.

        Args:
            domain: Prefix name of the namespace unprefixed CURIEs fall into
            prefixes: Prefix table (name → namespace URI)
            elements: Element graph keyed by element id
            n_triples: Extra N-Triples lines merged into the output

        Returns:
            GenerationResult with sorted, deduplicated N-Triples
        """
        state = GenerationState(domain=domain, prefixes=prefixes, elements=elements)

        logger.debug("Generating triples for %d elements (domain '%s')", len(elements), domain)

        self._add_domain_model(state)

        for element in elements.values():
            if isinstance(element, Diamond):
                self._add_diamond(state, element)
            elif isinstance(element, Tree):
                self._add_tree(state, element)
            elif not isinstance(element, (Rectangle, Arrow, Text)):
                raise ValueError(f"Unknown element kind: {type(element).__name__}")

        for element in elements.values():
            if isinstance(element, Arrow):
                self._add_arrow(state, element)

        ignored = {element_id for element_id in elements if element_id not in state.used}

        self._add_primary_keys(state)
        keyed = self._collect_keyed(state)
        self._merge_n_triples(state, n_triples)

        output = sorted(set(state.triples))
        result = GenerationResult(
            used_prefixes=state.used_prefixes,
            n_triples="\n".join(output) + "\n",
            ignored=ignored,
            raw=state.raw,
            invalid=state.invalid,
            keyed=keyed,
        )

        logger.info(
            "Generated %d triples (%d ignored, %d invalid, %d raw, %d keyed)",
            len(output),
            len(result.ignored),
            len(result.invalid),
            len(result.raw),
            len(result.keyed),
        )
        return result

    # -------------------------------------------------------------------------
    # Domain model
    # -------------------------------------------------------------------------

    def _add_domain_model(self, state: GenerationState) -> None:
        upper = state.prefixes.get("upper")
        rdf = state.prefixes.get("rdf")
        namespace = state.prefixes.get(state.domain) if state.domain else None
        if not (upper and rdf and namespace):
            logger.debug("Skipping domain model triples: 'upper', 'rdf' or domain prefix missing")
            return

        state.used_prefixes.setdefault("upper", upper)
        state.used_prefixes.setdefault("rdf", rdf)
        state.used_prefixes.setdefault(state.domain, namespace)
        state.triples.append(f"<{namespace}> <{rdf}type> <{upper}DomainModel> .")
        state.triples.append(f'<{namespace}> <{upper}domain> "{state.domain}" .')

    # -------------------------------------------------------------------------
    # Classes and hierarchies
    # -------------------------------------------------------------------------

    def _add_diamond(self, state: GenerationState, element: Diamond) -> None:
        if is_external(element, state.domain):
            return

        resolved = state.diamond(element)
        if resolved is None:
            state.invalid.add(element.id)
            return

        rdf_type = state.curie("rdf:type")
        class_type = state.curie(TYPE_ABBREVIATIONS[resolved.abbv])
        if rdf_type and class_type:
            state.emit(element.id, [f"<{resolved.uri}> <{rdf_type}> <{class_type}> ."])

    def _add_tree(self, state: GenerationState, tree: Tree) -> None:
        root = state.elements.get(tree.root)
        resolved_root = state.diamond(root) if isinstance(root, Diamond) else None
        if resolved_root is None:
            state.invalid.add(tree.id)
            return

        if resolved_root.abbv == "E":
            state.emit(tree.id, self._enumeration_triples(state, tree, resolved_root))
        elif resolved_root.abbv == "SC":
            # Sealed class hierarchies are accepted but produce no triples yet
            return
        elif resolved_root.abbv in ("DC", "V"):
            state.invalid.add(tree.id)
        else:
            raise ValueError(f"Unknown type abbreviation: {resolved_root.abbv}")

    def _enumeration_triples(
        self, state: GenerationState, tree: Tree, resolved_root: ResolvedDiamond
    ) -> list[str]:
        if any(item.parent != tree.root for item in tree.items):
            state.invalid.add(tree.id)
            return []

        values = []
        for item in tree.items:
            element = state.elements.get(item.element)
            resolved = state.diamond(element) if isinstance(element, Diamond) else None
            if resolved is None or resolved.abbv != "V":
                state.invalid.add(tree.id)
                return []
            values.append(resolved.uri)

        if not values:
            return []

        one_of = state.curie("upper:oneOf")
        list_nodes = self._list_vocabulary(state)
        if not one_of or list_nodes is None:
            state.invalid.add(tree.id)
            return []

        head = f"_:tree{tree.id}_0"
        return [f"<{resolved_root.uri}> <{one_of}> {head} ."] + self._list_triples(
            f"_:tree{tree.id}", values, list_nodes
        )

    @staticmethod
    def _list_vocabulary(state: GenerationState) -> tuple[str, str, str] | None:
        first = state.curie("rdf:first")
        rest = state.curie("rdf:rest")
        nil = state.curie("rdf:nil")
        if not (first and rest and nil):
            return None
        return first, rest, nil

    @staticmethod
    def _list_triples(label: str, values: list[str], vocabulary: tuple[str, str, str]) -> list[str]:
        """Build an ``rdf:first``/``rdf:rest`` chain over ``{label}_{i}`` blank nodes."""
        first, rest, nil = vocabulary
        triples = []
        for i, value in enumerate(values):
            node = f"{label}_{i}"
            next_node = f"{label}_{i + 1}" if i < len(values) - 1 else f"<{nil}>"
            triples.append(f"{node} <{first}> <{value}> .")
            triples.append(f"{node} <{rest}> {next_node} .")
        return triples

    # -------------------------------------------------------------------------
    # Arrows
    # -------------------------------------------------------------------------

    def _add_arrow(self, state: GenerationState, arrow: Arrow) -> None:
        source = state.elements.get(arrow.source) if arrow.source else None
        target = state.elements.get(arrow.target) if arrow.target else None
        if source is None or target is None:
            return

        if isinstance(source, Text) and isinstance(target, Text):
            self._add_raw_triple(state, arrow, source, target)
            return

        triples: list[str] = []
        if isinstance(source, Diamond):
            if isinstance(target, Rectangle):
                triples = self._attribute_triples(state, arrow, source, target)
            elif isinstance(target, Diamond):
                triples = self._relationship_triples(state, arrow, source, target)
            elif isinstance(target, Text):
                triples = self._text_triples(state, arrow, source, target)
            elif not isinstance(target, (Arrow, Tree)):
                raise ValueError(f"Unknown element kind: {type(target).__name__}")

        if triples:
            state.triples.extend(triples)
            state.used.update((arrow.id, source.id, target.id))
            return

        if (
            isinstance(source, Diamond)
            and source.id not in state.invalid
            and not is_external(source, state.domain)
        ):
            self._flag_empty_bundle(state, arrow, target)

    def _flag_empty_bundle(self, state: GenerationState, arrow: Arrow, target: Element) -> None:
        """Mark the arrow or target invalid when its own label is at fault."""
        if isinstance(target, Rectangle):
            if resolve_diamond_to_rectangle_arrow(state.domain, state.prefixes, state.used_prefixes, arrow.text) is None:
                state.invalid.add(arrow.id)
            if state.rectangle(target) is None and target.id not in state.used:
                state.invalid.add(target.id)
        elif isinstance(target, Diamond):
            if resolve_diamond_to_diamond_arrow(state.domain, state.prefixes, state.used_prefixes, arrow.text) is None:
                state.invalid.add(arrow.id)
        elif isinstance(target, Text):
            if not match_diamond_to_text_arrow(arrow.text):
                state.invalid.add(arrow.id)

    def _bundle(
        self,
        state: GenerationState,
        resolved_arrow,
        kind: str,
        link_predicate: str,
        source_uri: str | None,
        target_uri: str | None,
    ) -> list[str]:
        rdf_type = state.curie("rdf:type")
        kind_uri = state.curie(kind)
        min_count = state.curie("upper:minCount")
        max_count = state.curie("upper:maxCount")
        link = state.curie(link_predicate)
        prop = state.curie("upper:property")

        if not (resolved_arrow and rdf_type and kind_uri and min_count and link and prop and source_uri and target_uri):
            return []

        subject = resolved_arrow.uri
        triples = [
            f"<{subject}> <{rdf_type}> <{kind_uri}> .",
            f'<{subject}> <{min_count}> "{resolved_arrow.min_count}"^^<{XSD.integer}> .',
            f"<{subject}> <{link}> <{target_uri}> .",
            f"<{source_uri}> <{prop}> <{subject}> .",
        ]
        if resolved_arrow.max_count is not None and max_count:
            triples.append(f'<{subject}> <{max_count}> "{resolved_arrow.max_count}"^^<{XSD.integer}> .')
        return triples

    def _attribute_triples(
        self, state: GenerationState, arrow: Arrow, source: Diamond, target: Rectangle
    ) -> list[str]:
        if is_external(source, state.domain):
            return []

        resolved_arrow = resolve_diamond_to_rectangle_arrow(
            state.domain, state.prefixes, state.used_prefixes, arrow.text
        )
        target_uri = state.rectangle(target)
        resolved_source = state.diamond(source)

        if resolved_arrow and resolved_arrow.primary_key is not None and resolved_source:
            state.primary_keys.setdefault(source.id, []).append(
                PrimaryKeyEntry(
                    order=resolved_arrow.primary_key,
                    attribute_uri=resolved_arrow.uri,
                    arrow_id=arrow.id,
                )
            )

        source_uri = resolved_source.uri if resolved_source else None
        return self._bundle(state, resolved_arrow, "upper:Attribute", "upper:datatype", source_uri, target_uri)

    def _relationship_triples(
        self, state: GenerationState, arrow: Arrow, source: Diamond, target: Diamond
    ) -> list[str]:
        if is_external(source, state.domain):
            return []

        resolved_arrow = resolve_diamond_to_diamond_arrow(
            state.domain, state.prefixes, state.used_prefixes, arrow.text
        )
        resolved_target = state.diamond(target)
        resolved_source = state.diamond(source)

        return self._bundle(
            state,
            resolved_arrow,
            "upper:Relationship",
            "upper:class",
            resolved_source.uri if resolved_source else None,
            resolved_target.uri if resolved_target else None,
        )

    def _text_triples(self, state: GenerationState, arrow: Arrow, source: Diamond, target: Text) -> list[str]:
        if is_external(source, state.domain):
            return []

        resolved_arrow = resolve_diamond_to_text_arrow(
            state.domain, state.prefixes, state.used_prefixes, arrow.text
        )
        if resolved_arrow is None:
            return []

        resolved_source = state.diamond(source)
        predicate = state.curie(resolved_arrow.predicate)
        if resolved_source and predicate and target.text:
            literal = escape_literal(target.text)
            return [f'<{resolved_source.uri}> <{predicate}> "{literal}"@{resolved_arrow.language} .']
        return []

    def _add_raw_triple(self, state: GenerationState, arrow: Arrow, source: Text, target: Text) -> None:
        subject = state.curie(source.text)
        if subject is None:
            state.invalid.add(source.id)

        predicate = state.curie(arrow.text)
        if predicate is None:
            state.invalid.add(arrow.id)

        object_text = target.text or ""
        if object_text.startswith(('"', "'")):
            obj = resolve_literal(state.domain, state.prefixes, state.used_prefixes, object_text)
        else:
            uri = state.curie(object_text)
            obj = f"<{uri}>" if uri else None
        if obj is None:
            state.invalid.add(target.id)

        state.raw.update((arrow.id, source.id, target.id))

        if subject and predicate and obj:
            state.triples.append(f"<{subject}> <{predicate}> {obj} .")
            state.used.update((arrow.id, source.id, target.id))

    # -------------------------------------------------------------------------
    # Primary keys
    # -------------------------------------------------------------------------

    def _add_primary_keys(self, state: GenerationState) -> None:
        for diamond_id, entries in state.primary_keys.items():
            if not entries:
                continue
            diamond = state.elements.get(diamond_id)
            if not isinstance(diamond, Diamond):
                continue

            resolved = state.diamond(diamond)
            primary_key = state.curie("upper:primaryKey")
            vocabulary = self._list_vocabulary(state)
            if not (resolved and primary_key and vocabulary):
                continue

            ordered = sorted(entries, key=lambda entry: entry.order)
            for index, entry in enumerate(ordered):
                if entry.order != index + 1:
                    broken = [later.arrow_id for later in ordered[index:]]
                    logger.debug("Primary key sequence of %s breaks at PK%d", diamond_id, entry.order)
                    state.invalid.update(broken)
                    break

            label = f"_:pk{diamond_id}"
            state.triples.append(f"<{resolved.uri}> <{primary_key}> {label}_0 .")
            state.triples.extend(
                self._list_triples(label, [entry.attribute_uri for entry in ordered], vocabulary)
            )

    def _collect_keyed(self, state: GenerationState) -> set[str]:
        keyed_uris = set()
        for diamond_id, entries in state.primary_keys.items():
            diamond = state.elements.get(diamond_id)
            if entries and isinstance(diamond, Diamond):
                resolved = state.diamond(diamond)
                if resolved:
                    keyed_uris.add(resolved.uri)

        keyed = set()
        for element in state.elements.values():
            if isinstance(element, Diamond):
                resolved = state.diamond(element)
                if resolved and resolved.uri in keyed_uris:
                    keyed.add(element.id)
        return keyed

    # -------------------------------------------------------------------------
    # Supplemental N-Triples
    # -------------------------------------------------------------------------

    def _merge_n_triples(self, state: GenerationState, n_triples: str) -> None:
        for line in (n_triples or "").split("\n"):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            state.triples.append(line)
            for uri in _URI_REFERENCE_PATTERN.findall(line):
                for prefix, namespace in state.prefixes.items():
                    if namespace and uri.startswith(namespace):
                        state.used_prefixes.setdefault(prefix, namespace)
                        break


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def generate_triples(
    domain: str,
    prefixes: dict[str, str],
    elements: dict[str, Element],
    n_triples: str = "",
) -> GenerationResult:
    """Generate N-Triples for a diagram (convenience function)."""
    return TripleGenerator().generate(domain, prefixes, elements, n_triples)
