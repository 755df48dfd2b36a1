"""
Lexicon generators.

Generates AT Protocol lexicons from the ontology model:
- Record lexicons and the shared defs document
- List query lexicons derived from record lexicons
- Self-contained (inlined) lexicon variant
"""

from ontolex.schema.generators.inlined_lexicon import inline_documents
from ontolex.schema.generators.query_lexicon import derive_query_documents
from ontolex.schema.generators.record_lexicon import generate_record_documents
from ontolex.schema.generators.type_mapper import TypeMapper

__all__ = [
    "TypeMapper",
    "generate_record_documents",
    "derive_query_documents",
    "inline_documents",
]
