"""Shared fixtures for upper-doodle tests."""

import logging

import pytest

from upper_doodle.config import set_settings

TEST_NS = "https://github.com/theengineear/onto/test#"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
UPPER_NS = "https://github.com/theengineear/ns/upper#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"


def default_prefixes() -> dict[str, str]:
    return {
        "test": TEST_NS,
        "rdf": RDF_NS,
        "upper": UPPER_NS,
        "xsd": XSD_NS,
    }


@pytest.fixture
def prefixes():
    """Prefix table of the default test document."""
    return default_prefixes()


@pytest.fixture
def domain():
    return "test"


@pytest.fixture
def as_elements():
    """Turn element models into an id-keyed element graph."""

    def build(*elements):
        return {element.id: element for element in elements}

    return build


@pytest.fixture
def default_document():
    """A document dict in the on-disk format."""
    return {
        "domain": "test",
        "prefixes": default_prefixes(),
        "elements": {},
        "nTriples": "",
    }


@pytest.fixture(autouse=True)
def reset_global_state():
    """Keep settings and logging changes from leaking between tests."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    set_settings(None)
    yield
    set_settings(None)
    logging.disable(logging.NOTSET)
    root.handlers = handlers
    root.setLevel(level)
