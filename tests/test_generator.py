"""Tests for N-Triples generation and element classification."""

import threading

import pytest

from upper_doodle.loaders.document import Arrow, Diamond, Rectangle, Text, Tree, TreeItem
from upper_doodle.triples.generator import TripleGenerator, external_elements, generate_triples, is_external

from conftest import RDF_NS, TEST_NS, UPPER_NS, XSD_NS

DOMAIN_MODEL = (
    "<https://github.com/theengineear/onto/test#> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#DomainModel> .\n"
    '<https://github.com/theengineear/onto/test#> <https://github.com/theengineear/ns/upper#domain> "test" .\n'
)


def lines(n_triples: str) -> list[str]:
    return [line for line in n_triples.split("\n") if line]


@pytest.fixture
def movie_elements(as_elements):
    return as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Diamond(id="diamond-2", text="test:Person (DC)"),
        Rectangle(id="rectangle-1", text="xsd:string"),
        Arrow(id="arrow-1", text="test:directedBy (1..1)", source="diamond-1", target="diamond-2"),
        Arrow(id="arrow-2", text="test:name (1..1)", source="diamond-2", target="rectangle-1"),
    )


@pytest.fixture
def primary_key_elements(as_elements):
    return as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Rectangle(id="rectangle-1", text="xsd:string"),
        Rectangle(id="rectangle-2", text="xsd:integer"),
        Arrow(id="arrow-1", text="test:title (1..1 PK1)", source="diamond-1", target="rectangle-1"),
        Arrow(id="arrow-2", text="test:year (1..1 PK2)", source="diamond-1", target="rectangle-2"),
    )


# =============================================================================
# EXACT OUTPUT
# =============================================================================


def test_classes_relationships_and_attributes(prefixes, movie_elements):
    result = generate_triples("test", prefixes, movie_elements)

    expected = DOMAIN_MODEL + (
        "<https://github.com/theengineear/onto/test#Movie> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#DirectClass> .\n"
        "<https://github.com/theengineear/onto/test#Movie> <https://github.com/theengineear/ns/upper#property> <https://github.com/theengineear/onto/test#directedBy> .\n"
        "<https://github.com/theengineear/onto/test#Person> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#DirectClass> .\n"
        "<https://github.com/theengineear/onto/test#Person> <https://github.com/theengineear/ns/upper#property> <https://github.com/theengineear/onto/test#name> .\n"
        "<https://github.com/theengineear/onto/test#directedBy> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#Relationship> .\n"
        "<https://github.com/theengineear/onto/test#directedBy> <https://github.com/theengineear/ns/upper#class> <https://github.com/theengineear/onto/test#Person> .\n"
        '<https://github.com/theengineear/onto/test#directedBy> <https://github.com/theengineear/ns/upper#maxCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        '<https://github.com/theengineear/onto/test#directedBy> <https://github.com/theengineear/ns/upper#minCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        "<https://github.com/theengineear/onto/test#name> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#Attribute> .\n"
        "<https://github.com/theengineear/onto/test#name> <https://github.com/theengineear/ns/upper#datatype> <http://www.w3.org/2001/XMLSchema#string> .\n"
        '<https://github.com/theengineear/onto/test#name> <https://github.com/theengineear/ns/upper#maxCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        '<https://github.com/theengineear/onto/test#name> <https://github.com/theengineear/ns/upper#minCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
    )
    assert result.n_triples == expected
    assert result.ignored == set()
    assert result.invalid == set()
    assert result.used_prefixes == prefixes


def test_primary_key_list(prefixes, primary_key_elements):
    result = generate_triples("test", prefixes, primary_key_elements)

    expected = DOMAIN_MODEL + (
        "<https://github.com/theengineear/onto/test#Movie> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#DirectClass> .\n"
        "<https://github.com/theengineear/onto/test#Movie> <https://github.com/theengineear/ns/upper#primaryKey> _:pkdiamond-1_0 .\n"
        "<https://github.com/theengineear/onto/test#Movie> <https://github.com/theengineear/ns/upper#property> <https://github.com/theengineear/onto/test#title> .\n"
        "<https://github.com/theengineear/onto/test#Movie> <https://github.com/theengineear/ns/upper#property> <https://github.com/theengineear/onto/test#year> .\n"
        "<https://github.com/theengineear/onto/test#title> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#Attribute> .\n"
        "<https://github.com/theengineear/onto/test#title> <https://github.com/theengineear/ns/upper#datatype> <http://www.w3.org/2001/XMLSchema#string> .\n"
        '<https://github.com/theengineear/onto/test#title> <https://github.com/theengineear/ns/upper#maxCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        '<https://github.com/theengineear/onto/test#title> <https://github.com/theengineear/ns/upper#minCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        "<https://github.com/theengineear/onto/test#year> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#Attribute> .\n"
        "<https://github.com/theengineear/onto/test#year> <https://github.com/theengineear/ns/upper#datatype> <http://www.w3.org/2001/XMLSchema#integer> .\n"
        '<https://github.com/theengineear/onto/test#year> <https://github.com/theengineear/ns/upper#maxCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        '<https://github.com/theengineear/onto/test#year> <https://github.com/theengineear/ns/upper#minCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        "_:pkdiamond-1_0 <http://www.w3.org/1999/02/22-rdf-syntax-ns#first> <https://github.com/theengineear/onto/test#title> .\n"
        "_:pkdiamond-1_0 <http://www.w3.org/1999/02/22-rdf-syntax-ns#rest> _:pkdiamond-1_1 .\n"
        "_:pkdiamond-1_1 <http://www.w3.org/1999/02/22-rdf-syntax-ns#first> <https://github.com/theengineear/onto/test#year> .\n"
        "_:pkdiamond-1_1 <http://www.w3.org/1999/02/22-rdf-syntax-ns#rest> <http://www.w3.org/1999/02/22-rdf-syntax-ns#nil> .\n"
    )
    assert result.n_triples == expected
    assert result.keyed == {"diamond-1"}
    assert result.invalid == set()


def test_merges_supplemental_n_triples(prefixes, as_elements):
    prefixes = {
        **prefixes,
        "dcterms": "http://purl.org/dc/terms/",
        "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    }
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Rectangle(id="rectangle-1", text="xsd:string"),
        Arrow(id="arrow-1", text="test:title (1..1)", source="diamond-1", target="rectangle-1"),
    )
    extra = (
        '\n<https://github.com/theengineear/onto/test#Movie> <http://purl.org/dc/terms/creator> "John Doe" .\n'
        '<https://github.com/theengineear/onto/test#Movie> <http://www.w3.org/2000/01/rdf-schema#comment> "Represents a movie entity" .\n'
    )
    result = generate_triples("test", prefixes, elements, extra)

    expected = DOMAIN_MODEL + (
        '<https://github.com/theengineear/onto/test#Movie> <http://purl.org/dc/terms/creator> "John Doe" .\n'
        "<https://github.com/theengineear/onto/test#Movie> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#DirectClass> .\n"
        '<https://github.com/theengineear/onto/test#Movie> <http://www.w3.org/2000/01/rdf-schema#comment> "Represents a movie entity" .\n'
        "<https://github.com/theengineear/onto/test#Movie> <https://github.com/theengineear/ns/upper#property> <https://github.com/theengineear/onto/test#title> .\n"
        "<https://github.com/theengineear/onto/test#title> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <https://github.com/theengineear/ns/upper#Attribute> .\n"
        "<https://github.com/theengineear/onto/test#title> <https://github.com/theengineear/ns/upper#datatype> <http://www.w3.org/2001/XMLSchema#string> .\n"
        '<https://github.com/theengineear/onto/test#title> <https://github.com/theengineear/ns/upper#maxCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
        '<https://github.com/theengineear/onto/test#title> <https://github.com/theengineear/ns/upper#minCount> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .\n'
    )
    assert result.n_triples == expected
    assert result.used_prefixes["dcterms"] == "http://purl.org/dc/terms/"
    assert result.used_prefixes["rdfs"] == "http://www.w3.org/2000/01/rdf-schema#"


def test_supplemental_duplicates_collapse(prefixes, as_elements):
    elements = as_elements(Diamond(id="diamond-1", text="test:Person (DC)"))
    duplicate = f"<{TEST_NS}Person> <{RDF_NS}type> <{UPPER_NS}DirectClass> ."
    extra = "\n".join(
        [
            "# comments and blank lines are skipped",
            "",
            duplicate,
            f'<{TEST_NS}Person> <http://www.w3.org/2000/01/rdf-schema#label> "Person Class" .',
        ]
    )
    result = generate_triples("test", prefixes, elements, extra)

    assert lines(result.n_triples).count(duplicate) == 1
    assert f'<{TEST_NS}Person> <http://www.w3.org/2000/01/rdf-schema#label> "Person Class" .' in lines(result.n_triples)
    assert not any(line.startswith("#") for line in lines(result.n_triples))


# =============================================================================
# DOMAIN MODEL
# =============================================================================


def test_empty_diagram_only_describes_domain(prefixes):
    result = generate_triples("test", prefixes, {})
    assert result.n_triples == DOMAIN_MODEL
    assert result.triple_count == 2


def test_no_domain_model_without_upper_prefix(prefixes):
    del prefixes["upper"]
    result = generate_triples("test", prefixes, {})
    assert result.n_triples == "\n"
    assert result.used_prefixes == {}


def test_output_is_sorted_and_deterministic(prefixes, movie_elements):
    first = generate_triples("test", prefixes, movie_elements)
    reordered = dict(reversed(list(movie_elements.items())))
    second = TripleGenerator().generate("test", prefixes, reordered)

    assert first.n_triples == second.n_triples
    assert lines(first.n_triples) == sorted(lines(first.n_triples))


# =============================================================================
# CLASSIFICATION
# =============================================================================


def test_unused_elements_are_ignored(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Rectangle(id="rectangle-1", text="xsd:string"),
        Text(id="text-1", text="just a caption"),
        Arrow(id="arrow-1", text="test:title (1..1)", source="diamond-1", target=None),
    )
    result = generate_triples("test", prefixes, elements)

    assert result.ignored == {"rectangle-1", "text-1", "arrow-1"}
    assert result.invalid == set()


def test_malformed_diamond_is_invalid(prefixes, as_elements):
    elements = as_elements(Diamond(id="diamond-1", text="test:Movie (XX)"))
    result = generate_triples("test", prefixes, elements)
    assert result.invalid == {"diamond-1"}
    assert result.ignored == {"diamond-1"}


def test_invalid_source_does_not_cascade(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="Movie"),
        Rectangle(id="rectangle-1", text="xsd:string"),
        Arrow(id="arrow-1", text="test:title (1..1)", source="diamond-1", target="rectangle-1"),
    )
    result = generate_triples("test", prefixes, elements)
    assert result.invalid == {"diamond-1"}


def test_malformed_arrow_label_is_invalid(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Diamond(id="diamond-2", text="test:Person (DC)"),
        Arrow(id="arrow-1", text="test:directedBy", source="diamond-1", target="diamond-2"),
    )
    result = generate_triples("test", prefixes, elements)
    assert result.invalid == {"arrow-1"}
    assert "arrow-1" in result.ignored


def test_unresolvable_rectangle_is_invalid_and_ignored(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Rectangle(id="rectangle-1", text="movie: Movie"),
        Arrow(id="arrow-1", text="test:title (1..1)", source="diamond-1", target="rectangle-1"),
    )
    result = generate_triples("test", prefixes, elements)
    assert "rectangle-1" in result.invalid
    assert "rectangle-1" in result.ignored
    assert "arrow-1" not in result.invalid


def test_external_diamond_is_ignored_not_invalid(prefixes, as_elements):
    prefixes["other"] = "https://example.com/other#"
    elements = as_elements(
        Diamond(id="diamond-1", text="other:X (DC)"),
        Diamond(id="diamond-2", text="other:Y (ZZ)"),
    )
    result = generate_triples("test", prefixes, elements)

    assert f"<{prefixes['other']}X>" not in result.n_triples
    assert result.ignored == {"diamond-1", "diamond-2"}
    assert result.invalid == set()
    assert external_elements("test", elements) == {"diamond-1", "diamond-2"}


def test_relationship_to_external_class(prefixes, as_elements):
    prefixes["other"] = "https://example.com/other#"
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Diamond(id="diamond-2", text="other:Studio (DC)"),
        Arrow(id="arrow-1", text="test:madeBy (0..1)", source="diamond-1", target="diamond-2"),
    )
    result = generate_triples("test", prefixes, elements)

    assert f"<{TEST_NS}madeBy> <{UPPER_NS}class> <https://example.com/other#Studio> ." in lines(result.n_triples)
    assert result.ignored == set()
    assert result.used_prefixes["other"] == "https://example.com/other#"


def test_arrows_from_external_diamonds_are_skipped(prefixes, as_elements):
    prefixes["other"] = "https://example.com/other#"
    elements = as_elements(
        Diamond(id="diamond-1", text="other:Studio (DC)"),
        Rectangle(id="rectangle-1", text="xsd:string"),
        Arrow(id="arrow-1", text="bad label", source="diamond-1", target="rectangle-1"),
    )
    result = generate_triples("test", prefixes, elements)
    assert result.invalid == set()
    assert result.ignored == {"diamond-1", "rectangle-1", "arrow-1"}


def test_is_external_only_for_shapes():
    assert is_external(Diamond(id="d", text="other:X (DC)"), "test")
    assert is_external(Rectangle(id="r", text="other:X"), "test")
    assert not is_external(Text(id="t", text="other:X"), "test")
    assert not is_external(Arrow(id="a", text="other:x (1..1)"), "test")


def test_unbounded_cardinality_has_no_max_count(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Diamond(id="diamond-2", text="test:Actor (DC)"),
        Arrow(id="arrow-1", text="test:hasActor (1..n)", source="diamond-1", target="diamond-2"),
    )
    result = generate_triples("test", prefixes, elements)
    assert "maxCount" not in result.n_triples
    assert f'<{TEST_NS}hasActor> <{UPPER_NS}minCount> "1"^^<{XSD_NS}integer> .' in lines(result.n_triples)


# =============================================================================
# TEXT ARROWS AND RAW TRIPLES
# =============================================================================


def test_label_and_description(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Text(id="text-1", text="Film"),
        Text(id="text-2", text='A "motion" picture\nwith sound'),
        Arrow(id="arrow-1", text="upper:label @fr", source="diamond-1", target="text-1"),
        Arrow(id="arrow-2", text="upper:description", source="diamond-1", target="text-2"),
    )
    result = generate_triples("test", prefixes, elements)

    assert f'<{TEST_NS}Movie> <{UPPER_NS}label> "Film"@fr .' in lines(result.n_triples)
    assert (
        f'<{TEST_NS}Movie> <{UPPER_NS}description> "A \\"motion\\" picture\\nwith sound"@en .'
        in lines(result.n_triples)
    )
    assert result.ignored == set()


def test_text_arrow_with_unlisted_predicate_is_ignored_not_invalid(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Text(id="text-1", text="Film"),
        Arrow(id="arrow-1", text="rdfs:comment", source="diamond-1", target="text-1"),
    )
    result = generate_triples("test", prefixes, elements)
    assert result.invalid == set()
    assert {"arrow-1", "text-1"} <= result.ignored


def test_text_arrow_with_bad_language_is_invalid(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Text(id="text-1", text="Film"),
        Arrow(id="arrow-1", text="upper:label @french", source="diamond-1", target="text-1"),
    )
    result = generate_triples("test", prefixes, elements)
    assert result.invalid == {"arrow-1"}


def test_raw_triples(prefixes, as_elements):
    prefixes["rdfs"] = "http://www.w3.org/2000/01/rdf-schema#"
    elements = as_elements(
        Text(id="text-1", text="test:Movie"),
        Text(id="text-2", text="'A film'@en"),
        Text(id="text-3", text="'42'^^xsd:integer"),
        Arrow(id="arrow-1", text="rdfs:comment", source="text-1", target="text-2"),
        Arrow(id="arrow-2", text="test:rank", source="text-1", target="text-3"),
    )
    result = generate_triples("test", prefixes, elements)

    assert f'<{TEST_NS}Movie> <http://www.w3.org/2000/01/rdf-schema#comment> "A film"@en .' in lines(result.n_triples)
    assert f'<{TEST_NS}Movie> <{TEST_NS}rank> "42"^^<{XSD_NS}integer> .' in lines(result.n_triples)
    assert result.raw == {"text-1", "text-2", "text-3", "arrow-1", "arrow-2"}
    assert result.invalid == set()
    assert result.ignored == set()


def test_raw_triple_with_bad_parts(prefixes, as_elements):
    elements = as_elements(
        Text(id="text-1", text="nope:Movie"),
        Text(id="text-2", text="'unterminated"),
        Arrow(id="arrow-1", text="test:rank", source="text-1", target="text-2"),
    )
    result = generate_triples("test", prefixes, elements)

    assert result.invalid == {"text-1", "text-2"}
    assert result.raw == {"text-1", "text-2", "arrow-1"}
    assert result.ignored == {"text-1", "text-2", "arrow-1"}


# =============================================================================
# ENUMERATIONS
# =============================================================================


def test_enumeration_tree(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Color (E)"),
        Diamond(id="diamond-2", text="test:Red (V)"),
        Diamond(id="diamond-3", text="test:Blue (V)"),
        Tree(
            id="tree-1",
            root="diamond-1",
            items=(
                TreeItem(parent="diamond-1", element="diamond-2"),
                TreeItem(parent="diamond-1", element="diamond-3"),
            ),
        ),
    )
    result = generate_triples("test", prefixes, elements)
    output = lines(result.n_triples)

    assert f"<{TEST_NS}Color> <{UPPER_NS}oneOf> _:treetree-1_0 ." in output
    assert f"_:treetree-1_0 <{RDF_NS}first> <{TEST_NS}Red> ." in output
    assert f"_:treetree-1_0 <{RDF_NS}rest> _:treetree-1_1 ." in output
    assert f"_:treetree-1_1 <{RDF_NS}first> <{TEST_NS}Blue> ." in output
    assert f"_:treetree-1_1 <{RDF_NS}rest> <{RDF_NS}nil> ." in output
    assert f"<{TEST_NS}Red> <{RDF_NS}type> <{UPPER_NS}EnumValue> ." in output
    assert "tree-1" not in result.ignored
    assert result.invalid == set()


def test_sealed_class_tree_emits_nothing(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Shape (SC)"),
        Diamond(id="diamond-2", text="test:Circle (DC)"),
        Tree(id="tree-1", root="diamond-1", items=(TreeItem(parent="diamond-1", element="diamond-2"),)),
    )
    result = generate_triples("test", prefixes, elements)
    assert "tree-1" not in result.invalid
    assert "tree-1" in result.ignored


@pytest.mark.parametrize("root_text", ["test:Movie (DC)", "test:Red (V)", "test:Movie (XX)"])
def test_tree_with_unsupported_root_is_invalid(prefixes, as_elements, root_text):
    elements = as_elements(
        Diamond(id="diamond-1", text=root_text),
        Diamond(id="diamond-2", text="test:Blue (V)"),
        Tree(id="tree-1", root="diamond-1", items=(TreeItem(parent="diamond-1", element="diamond-2"),)),
    )
    result = generate_triples("test", prefixes, elements)
    assert "tree-1" in result.invalid


def test_enumeration_with_non_value_member_is_invalid(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Color (E)"),
        Diamond(id="diamond-2", text="test:Paint (DC)"),
        Tree(id="tree-1", root="diamond-1", items=(TreeItem(parent="diamond-1", element="diamond-2"),)),
    )
    result = generate_triples("test", prefixes, elements)
    assert "tree-1" in result.invalid
    assert "oneOf" not in result.n_triples


# =============================================================================
# PRIMARY KEYS
# =============================================================================


def _primary_key_diagram(as_elements, *orders):
    elements = [Diamond(id="diamond-1", text="test:Movie (DC)")]
    for index, order in enumerate(orders, start=1):
        elements.append(Rectangle(id=f"rectangle-{index}", text="xsd:string"))
        elements.append(
            Arrow(
                id=f"arrow-{index}",
                text=f"test:field{index} (1..1 PK{order})",
                source="diamond-1",
                target=f"rectangle-{index}",
            )
        )
    return as_elements(*elements)


def test_gap_in_primary_key_sequence(prefixes, as_elements):
    result = generate_triples("test", prefixes, _primary_key_diagram(as_elements, 1, 3, 4))
    assert result.invalid == {"arrow-2", "arrow-3"}
    # The key list is still emitted with every entry
    assert result.n_triples.count(f"<{RDF_NS}first>") == 3


def test_primary_key_sequence_must_start_at_one(prefixes, as_elements):
    result = generate_triples("test", prefixes, _primary_key_diagram(as_elements, 2, 3))
    assert result.invalid == {"arrow-1", "arrow-2"}


def test_primary_key_entries_are_sorted(prefixes, as_elements):
    result = generate_triples("test", prefixes, _primary_key_diagram(as_elements, 2, 1))
    output = lines(result.n_triples)
    assert f"_:pkdiamond-1_0 <{RDF_NS}first> <{TEST_NS}field2> ." in output
    assert f"_:pkdiamond-1_1 <{RDF_NS}first> <{TEST_NS}field1> ." in output
    assert result.invalid == set()


def test_keyed_covers_every_diamond_of_the_class(prefixes, as_elements):
    elements = as_elements(
        Diamond(id="diamond-1", text="test:Movie (DC)"),
        Diamond(id="diamond-2", text="test:Movie (DC)"),
        Diamond(id="diamond-3", text="test:Person (DC)"),
        Rectangle(id="rectangle-1", text="xsd:string"),
        Arrow(id="arrow-1", text="test:title (1..1 PK1)", source="diamond-1", target="rectangle-1"),
    )
    result = generate_triples("test", prefixes, elements)
    assert result.keyed == {"diamond-1", "diamond-2"}


def test_generation_result_to_dict(prefixes, primary_key_elements):
    data = generate_triples("test", prefixes, primary_key_elements).to_dict()
    assert data["keyed"] == ["diamond-1"]
    assert data["triple_count"] == 18
    assert data["invalid"] == []


def test_shared_generator_across_threads(prefixes, as_elements):
    elements = as_elements(
        *[Diamond(id=f"diamond-{i}", text=f"test:Class{i} (DC)") for i in range(200)]
    )
    broken = as_elements(Diamond(id="diamond-x", text="test:Broken (XX)"))
    generator = TripleGenerator()
    expected = generator.generate("test", prefixes, elements)
    results = []

    def work(document):
        for _ in range(20):
            results.append((document, generator.generate("test", prefixes, document)))

    threads = [threading.Thread(target=work, args=(document,)) for document in (elements, broken) * 2]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 80
    for document, result in results:
        if document is elements:
            assert result.n_triples == expected.n_triples
            assert result.ignored == set()
            assert result.invalid == set()
        else:
            assert result.n_triples == DOMAIN_MODEL
            assert result.invalid == {"diamond-x"}
