"""
ontolex: OWL JSON-LD ontology -> AT Protocol lexicon compiler.

This package provides:
- schema: ontology model, loader, class mapping and lexicon generators
- audit: drift report between an ontology and a lexicon tree
- config: generator lookup tables and run settings
- pipeline: one parameterized generate run
"""

from ontolex.config import GeneratorConfig, RunSettings
from ontolex.errors import OntolexError, OntologyFormatError

__version__ = "0.1.0"

__all__ = [
    "GeneratorConfig",
    "RunSettings",
    "OntolexError",
    "OntologyFormatError",
]
