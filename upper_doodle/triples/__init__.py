"""
Triples Module - Diagram to RDF compilation.

This module turns diagram elements into canonical N-Triples and renders
them as formatted Turtle.

Components:
- grammar.py: Label grammars and CURIE resolution
- generator.py: Converts diagram elements to N-Triples
- reader.py: Parses N-Triples into structured nodes
- serializer.py: Renders N-Triples as Turtle
- validator.py: Validates output with rdflib and pyshacl
"""

from .generator import (
    GenerationResult,
    PrimaryKeyEntry,
    TripleGenerator,
    external_elements,
    generate_triples,
    is_external,
)
from .reader import (
    BlankNode,
    LiteralNode,
    NTriplesReader,
    NTriplesSyntaxError,
    Triple,
    URINode,
    parse_n_triples,
)
from .serializer import TurtleSerializer, serialize_to_file, serialize_to_turtle
from .validator import TripleValidator, ValidationResult, check_consistency, validate_graph

__all__ = [
    # Generator
    "TripleGenerator",
    "GenerationResult",
    "PrimaryKeyEntry",
    "generate_triples",
    "is_external",
    "external_elements",
    # Reader
    "NTriplesReader",
    "NTriplesSyntaxError",
    "Triple",
    "URINode",
    "BlankNode",
    "LiteralNode",
    "parse_n_triples",
    # Serializer
    "TurtleSerializer",
    "serialize_to_turtle",
    "serialize_to_file",
    # Validator
    "TripleValidator",
    "ValidationResult",
    "validate_graph",
    "check_consistency",
]
