"""
Ontology model and lexicon generation.

Provides:
- Ontology model (ClassNode, PropertyNode, NamedIndividual, OntologyGraph)
- Lexicon field variants and SchemaDocument
- The JSON-LD loader and the class -> NSID mapping
"""

from ontolex.schema.fields import (
    ArrayOf,
    CrossDocRef,
    DocumentKind,
    EmbeddedRef,
    EnumString,
    ObjectDef,
    Scalar,
    ScalarKind,
    SchemaDocument,
)
from ontolex.schema.loader import build_graph, load_ontology
from ontolex.schema.mapping import ClassMapping, nsid_to_path
from ontolex.schema.ontology import (
    ClassKind,
    ClassNode,
    NamedIndividual,
    OntologyGraph,
    PropertyNode,
    UnionClass,
)

__all__ = [
    "ArrayOf",
    "CrossDocRef",
    "DocumentKind",
    "EmbeddedRef",
    "EnumString",
    "ObjectDef",
    "Scalar",
    "ScalarKind",
    "SchemaDocument",
    "build_graph",
    "load_ontology",
    "ClassMapping",
    "nsid_to_path",
    "ClassKind",
    "ClassNode",
    "NamedIndividual",
    "OntologyGraph",
    "PropertyNode",
    "UnionClass",
]
