"""
upper-doodle - Compile ontology diagrams into RDF.
"""

__version__ = "0.1.0"
