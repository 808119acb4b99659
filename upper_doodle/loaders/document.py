"""
Document Loader - Reads diagram documents into typed element models.

This module provides:
- Pydantic models for the five diagram element kinds
- A Document model holding prefixes, domain, elements and supplemental N-Triples
- JSON and YAML loading with a single DocumentError for every failure
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

# Configure logging
logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Raised when a diagram document cannot be read or is malformed."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


# =============================================================================
# ELEMENT MODELS
# =============================================================================


class ElementBase(BaseModel):
    """Fields shared by every element kind."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(description="Unique element identifier")


class Diamond(ElementBase):
    """Class box, labelled ``CURIE (DC|SC|E|V)``."""

    type: Literal["diamond"] = "diamond"
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    text: str = ""


class Rectangle(ElementBase):
    """Datatype box, labelled with a single CURIE."""

    type: Literal["rectangle"] = "rectangle"
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    text: str = ""


class Arrow(ElementBase):
    """Directed connector between two elements."""

    type: Literal["arrow"] = "arrow"
    x1: float = 0
    y1: float = 0
    x2: float = 0
    y2: float = 0
    text: str = ""
    source: str | None = Field(default=None, description="Id of the element at the tail")
    target: str | None = Field(default=None, description="Id of the element at the head")


class Text(ElementBase):
    """Free-form text: a caption, or one end of a raw triple."""

    type: Literal["text"] = "text"
    x: float = 0
    y: float = 0
    text: str = ""


class TreeItem(BaseModel):
    """One edge of a tree: ``element`` hangs below ``parent``."""

    model_config = ConfigDict(frozen=True)

    parent: str
    element: str


class Tree(ElementBase):
    """Hierarchy rooted at a diamond (enumeration members, sealed subclasses)."""

    type: Literal["tree"] = "tree"
    root: str
    items: tuple[TreeItem, ...] = ()


Element = Annotated[
    Union[Diamond, Rectangle, Arrow, Text, Tree],
    Field(discriminator="type"),
]


class Document(BaseModel):
    """A complete diagram: prefix table, domain, elements and extra triples."""

    model_config = ConfigDict(populate_by_name=True)

    domain: str = ""
    prefixes: dict[str, str] = Field(default_factory=dict)
    elements: dict[str, Element] = Field(default_factory=dict)
    n_triples: str = Field(default="", alias="nTriples")

    @model_validator(mode="after")
    def _check_element_keys(self) -> "Document":
        for key, element in self.elements.items():
            if key != element.id:
                raise ValueError(f"element key '{key}' does not match its id '{element.id}'")
        return self


# =============================================================================
# LOADING
# =============================================================================


def document_from_dict(data: dict[str, Any]) -> Document:
    """
    Build a Document from already-parsed data.

    Raises:
        DocumentError: If the data does not describe a valid document
    """
    if not isinstance(data, dict):
        raise DocumentError(f"expected an object at the top level, got {type(data).__name__}")
    try:
        return Document.model_validate(data)
    except ValidationError as e:
        raise DocumentError(f"invalid document: {e}") from e


def load_document(path: str | Path) -> Document:
    """
    Load a diagram document from a JSON or YAML file.

    Files ending in ``.yaml``/``.yml`` are read with PyYAML, everything
    else as JSON.

    Args:
        path: Path to the document file

    Returns:
        Parsed Document

    Raises:
        DocumentError: If the file is missing, unparsable or malformed
    """
    path = Path(path)
    if not path.is_file():
        raise DocumentError("document not found", path)

    logger.debug("Loading document from %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DocumentError(f"could not parse document: {e}", path) from e
    except OSError as e:
        raise DocumentError(f"could not read document: {e}", path) from e

    try:
        document = document_from_dict(data)
    except DocumentError as e:
        raise DocumentError(str(e), path) from e

    logger.info("Loaded %d elements (domain '%s') from %s", len(document.elements), document.domain, path.name)
    return document
