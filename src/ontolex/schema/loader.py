"""
Ontology Loader

Builds an OntologyGraph from a JSON-LD OWL document.

The source graph is loosely shaped; everything is normalized here so that no
other component touches raw nodes:
- `@type` may be a string or a list
- `rdfs:domain` / `rdfs:range` may be a string, an `{"@id"}` object, a list,
  or an `owl:unionOf` that may be wrapped in an `{"@list"}` container
- named union classes are substituted wherever they are referenced
- abstract classes in a domain are expanded into their concrete subclasses
- labels and comments may be strings, `{"@value"}` objects or lists of them

References to undefined names are kept as opaque strings.
"""

import json
from pathlib import Path
from typing import Any

import structlog

from ontolex.config import GeneratorConfig
from ontolex.errors import OntologyFormatError
from ontolex.schema.ontology import (
    ClassKind,
    ClassNode,
    NamedIndividual,
    OntologyGraph,
    PropertyNode,
    UnionClass,
)
from ontolex.utils import read_json

logger = structlog.get_logger()

CLASS_TYPES = {"owl:Class", "rdfs:Class"}
OBJECT_PROPERTY_TYPES = {"owl:ObjectProperty"}
# Sources spell the datatype property both ways
PROPERTY_TYPES = {
    "owl:ObjectProperty",
    "owl:DatatypeProperty",
    "owl:DataTypeProperty",
    "owl:FunctionalProperty",
    "rdf:Property",
}
INDIVIDUAL_TYPE = "owl:NamedIndividual"


def node_types(node: dict[str, Any]) -> list[str]:
    """`@type` as a list."""
    raw = node.get("@type")
    if raw is None:
        return []
    if isinstance(raw, list):
        return [t for t in raw if isinstance(t, str)]
    return [raw]


def literal_text(value: Any) -> str:
    """Plain text of a literal, preferring English when several are given."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return str(value.get("@value", ""))
    if isinstance(value, list) and value:
        for item in value:
            if isinstance(item, dict) and (item.get("@language") or "").startswith("en"):
                return str(item.get("@value", ""))
        return literal_text(value[0])
    return ""


def literal_int(value: Any) -> int | None:
    """Cardinality literal as int (plain, numeric string or typed `@value`)."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("@value")
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def unwrap_list(value: Any) -> list[Any]:
    """Unwrap an `owl:unionOf` value, with or without its `@list` container."""
    if isinstance(value, dict) and "@list" in value:
        value = value["@list"]
    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]


def extract_nodes(data: Any, source: str = "<memory>") -> list[dict[str, Any]]:
    """Return the node list of a JSON-LD document (`@graph` or a bare list)."""
    if isinstance(data, list):
        nodes = data
    elif isinstance(data, dict):
        nodes = data.get("@graph", [data])
    else:
        raise OntologyFormatError(source, "expected a JSON object or array")

    if not isinstance(nodes, list):
        raise OntologyFormatError(source, "@graph must be an array of nodes")
    for index, node in enumerate(nodes):
        if not isinstance(node, dict):
            raise OntologyFormatError(source, f"node {index} is not an object")
    return nodes


class GraphBuilder:
    """Normalizes raw JSON-LD nodes into an OntologyGraph."""

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()
        self._unions: dict[str, UnionClass] = {}

    def local_name(self, ref: str) -> str:
        """Strip the ontology prefix and repair known misspellings."""
        prefix = self.config.prefix
        name = ref[len(prefix):] if prefix and ref.startswith(prefix) else ref
        return self.config.class_aliases.get(name, name)

    def _ref_name(self, value: Any) -> str | None:
        if isinstance(value, str):
            return self.local_name(value)
        if isinstance(value, dict) and isinstance(value.get("@id"), str):
            return self.local_name(value["@id"])
        return None

    def _class_refs(self, value: Any) -> tuple[list[str], bool]:
        """
        Resolve a domain/range declaration.

        Returns the ordered member names and whether the declaration is a
        union (inline, named, or a list of several classes).
        """
        if value is None:
            return [], False

        if isinstance(value, list):
            names: list[str] = []
            for item in value:
                names.extend(self._class_refs(item)[0])
            return names, len(names) > 1

        if isinstance(value, dict) and "owl:unionOf" in value:
            names = []
            for member in unwrap_list(value["owl:unionOf"]):
                names.extend(self._class_refs(member)[0])
            return names, True

        name = self._ref_name(value)
        if name is None:
            return [], False
        if name in self._unions:
            return list(self._unions[name].members), True
        return [name], False

    def _index_unions(self, nodes: list[dict[str, Any]]) -> None:
        for node in nodes:
            node_id = node.get("@id")
            if not isinstance(node_id, str) or "owl:unionOf" not in node:
                continue
            if not CLASS_TYPES.intersection(node_types(node)):
                continue
            members = [
                name
                for name in (self._ref_name(m) for m in unwrap_list(node["owl:unionOf"]))
                if name
            ]
            name = self.local_name(node_id)
            self._unions[name] = UnionClass(name=name, members=tuple(members))

    def _expand_domains(self, domains: list[str]) -> tuple[str, ...]:
        expanded: list[str] = []
        for domain in domains:
            targets = self.config.distributions.get(domain, [domain])
            for target in targets:
                if target not in expanded:
                    expanded.append(target)
        return tuple(expanded)

    def _class_kind(self, name: str) -> ClassKind:
        if name in self.config.enum_classes:
            return ClassKind.ENUMERATION
        if name in self.config.distributions:
            return ClassKind.ABSTRACT
        return ClassKind.RECORD

    def _build_class(self, name: str, node: dict[str, Any]) -> ClassNode:
        parent = node.get("rdfs:subClassOf")
        parent_name = None
        if isinstance(parent, list):
            parent = next((p for p in parent if self._ref_name(p)), None)
        if parent is not None:
            parent_name = self._ref_name(parent)
        return ClassNode(
            name=name,
            label=literal_text(node.get("rdfs:label")),
            description=literal_text(node.get("rdfs:comment")),
            status=literal_text(node.get("vs:term_status")) or "stable",
            parent=parent_name,
            kind=self._class_kind(name),
        )

    def _build_property(self, name: str, node: dict[str, Any], types: list[str]) -> PropertyNode:
        domains, _ = self._class_refs(node.get("rdfs:domain"))
        range_names, is_union = self._class_refs(node.get("rdfs:range"))

        range_value: str | tuple[str, ...] | None
        if not range_names:
            range_value = None
        elif is_union:
            range_value = tuple(range_names)
        else:
            range_value = range_names[0]

        inverse = node.get("owl:inverseOf")
        return PropertyNode(
            name=name,
            domains=self._expand_domains(domains),
            range=range_value,
            exact_cardinality=literal_int(node.get("owl:cardinality")),
            max_cardinality=literal_int(node.get("owl:maxCardinality")),
            is_object_property=bool(OBJECT_PROPERTY_TYPES.intersection(types)),
            description=literal_text(node.get("rdfs:comment")),
            label=literal_text(node.get("rdfs:label")),
            status=literal_text(node.get("vs:term_status")) or "stable",
            inverse_of=self._ref_name(inverse) if inverse is not None else None,
        )

    def _build_individual(
        self, name: str, node: dict[str, Any], types: list[str]
    ) -> NamedIndividual:
        prefix = self.config.prefix
        return NamedIndividual(
            name=name,
            member_of=tuple(self.local_name(t) for t in types if t != INDIVIDUAL_TYPE),
            label=literal_text(node.get("rdfs:label")),
            description=literal_text(node.get("rdfs:comment")),
            source_keys=tuple(k for k in node if prefix and k.startswith(prefix)),
        )

    def build(self, nodes: list[dict[str, Any]]) -> OntologyGraph:
        """Classify every node and return the finished graph."""
        self._unions = {}
        self._index_unions(nodes)

        classes: dict[str, ClassNode] = {}
        properties: dict[str, PropertyNode] = {}
        individuals: dict[str, NamedIndividual] = {}

        for node in nodes:
            node_id = node.get("@id")
            if not isinstance(node_id, str):
                continue
            name = self.local_name(node_id)
            types = node_types(node)

            if CLASS_TYPES.intersection(types) and name not in self._unions:
                classes[name] = self._build_class(name, node)

            if PROPERTY_TYPES.intersection(types):
                properties[name] = self._build_property(name, node, types)

            if INDIVIDUAL_TYPE in types:
                individuals[name] = self._build_individual(name, node, types)

        logger.info(
            "ontology_built",
            classes=len(classes),
            properties=len(properties),
            individuals=len(individuals),
            unions=len(self._unions),
        )
        return OntologyGraph(
            prefix=self.config.prefix,
            classes=classes,
            properties=properties,
            individuals=individuals,
            unions=self._unions,
        )


def build_graph(
    nodes: list[dict[str, Any]], config: GeneratorConfig | None = None
) -> OntologyGraph:
    """Build an OntologyGraph from already-parsed JSON-LD nodes."""
    return GraphBuilder(config).build(nodes)


def load_ontology(path: str | Path, config: GeneratorConfig | None = None) -> OntologyGraph:
    """
    Read a JSON-LD ontology file and build its graph.

    Raises:
        FileNotFoundError: If the file doesn't exist
        OntologyFormatError: If it is not JSON or not a node graph
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ontology file not found: {path}")

    try:
        data = read_json(path)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise OntologyFormatError(str(path), f"not valid JSON ({e})") from e

    logger.info("ontology_loading", path=str(path))
    return build_graph(extract_nodes(data, str(path)), config)
