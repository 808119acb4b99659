"""
Document loaders for upper-doodle diagrams.
"""

from .document import (
    Arrow,
    Diamond,
    Document,
    DocumentError,
    Element,
    Rectangle,
    Text,
    Tree,
    TreeItem,
    document_from_dict,
    load_document,
)

__all__ = [
    "Arrow",
    "Diamond",
    "Document",
    "DocumentError",
    "Element",
    "Rectangle",
    "Text",
    "Tree",
    "TreeItem",
    "document_from_dict",
    "load_document",
]
