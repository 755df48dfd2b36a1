"""
Record Lexicon Generator

Generates one AT Protocol record lexicon per mapped ontology class, plus the
shared `{namespace}.defs` document holding the canonical measure def.
"""

from pathlib import Path

import structlog

from ontolex.config import GeneratorConfig
from ontolex.schema.fields import (
    ArrayOf,
    CrossDocRef,
    DocumentKind,
    EmbeddedRef,
    EnumString,
    FieldDef,
    ObjectDef,
    Scalar,
    ScalarKind,
    SchemaDocument,
)
from ontolex.schema.generators.type_mapper import TypeMapper
from ontolex.schema.mapping import ClassMapping, nsid_to_path
from ontolex.schema.ontology import OntologyGraph, PropertyNode
from ontolex.utils import write_json

logger = structlog.get_logger()

MEASURE_DESCRIPTION = (
    "A quantity expressed as a numeric value with a unit of measure. "
    "AT Protocol does not support floats, so the value is represented as "
    "numerator/denominator integers."
)


def collect_class_properties(
    graph: OntologyGraph, class_name: str, config: GeneratorConfig
) -> list[PropertyNode]:
    """
    Properties that belong on a class's record, in source order.

    Event-only properties (action effects) are dropped from every other
    class even when their declared domain is broader.
    """
    props = []
    for prop in graph.properties_for(class_name):
        if prop.name in config.event_properties and class_name != config.event_class:
            continue
        props.append(prop)
    return props


def discriminator_field(graph: OntologyGraph, config: GeneratorConfig) -> EnumString | None:
    """knownValues-restricted identifier naming which individual a record is."""
    disc = config.discriminator
    if disc is None:
        return None
    return EnumString(tuple(graph.enum_values(disc.class_name)), description=disc.description)


def measure_def(config: GeneratorConfig, unit_nsid: str | None = None) -> ObjectDef:
    """The shared measure def: integer numerator/denominator plus a unit reference."""
    numerator, denominator, unit = config.measure_properties
    return ObjectDef(
        description=MEASURE_DESCRIPTION,
        required=(numerator,),
        properties={
            numerator: Scalar(ScalarKind.INTEGER, description="The numeric value (numerator)."),
            denominator: Scalar(
                ScalarKind.INTEGER,
                description="The denominator for fractional values. Default 1 if omitted.",
            ),
            unit: CrossDocRef(
                target=unit_nsid,
                description=f"Reference to a {config.unit_class} record.",
            ),
        },
    )


def build_defs_document(
    namespace: str, config: GeneratorConfig, mapping: ClassMapping
) -> SchemaDocument:
    return SchemaDocument(
        id=f"{namespace}.defs",
        kind=DocumentKind.DEFS,
        embedded_defs={
            config.measure_def_name: measure_def(config, mapping.nsid_for(config.unit_class))
        },
    )


def build_record_document(
    graph: OntologyGraph,
    class_name: str,
    nsid: str,
    mapper: TypeMapper,
    config: GeneratorConfig,
) -> SchemaDocument:
    """Emit the record document for one class."""
    fields: dict[str, FieldDef] = {}
    required: list[str] = []

    disc = config.discriminator
    if disc is not None and class_name == disc.class_name:
        fields[disc.field_name] = discriminator_field(graph, config)
        required.append(disc.field_name)

    for prop in collect_class_properties(graph, class_name, config):
        if prop.name in fields:
            continue
        fields[prop.name] = mapper.map_property(prop)
        if prop.is_required:
            required.append(prop.name)

    node = graph.get_class(class_name)
    description = f"{class_name} record"
    if node is not None:
        description = node.description or f"{node.label or class_name} record"

    return SchemaDocument(
        id=nsid,
        kind=DocumentKind.RECORD,
        description=description,
        fields=fields,
        required=tuple(required),
    )


def generate_record_documents(
    graph: OntologyGraph,
    mapping: ClassMapping,
    config: GeneratorConfig | None = None,
    namespace: str = "org.openassociation",
) -> list[SchemaDocument]:
    """
    Emit every mapped record plus the shared defs document.

    Documents come back sorted by id so repeated runs write identical trees.
    """
    config = config or GeneratorConfig()
    mapper = TypeMapper(graph, mapping, config, namespace)
    skipped = config.skipped()

    documents = []
    for class_name, nsid in sorted(mapping.items(), key=lambda item: item[1]):
        if class_name in skipped:
            logger.info("record_skipped", class_name=class_name, nsid=nsid)
            continue
        if graph.get_class(class_name) is None:
            logger.warning("mapped_class_not_in_ontology", class_name=class_name, nsid=nsid)
        documents.append(build_record_document(graph, class_name, nsid, mapper, config))

    documents.append(build_defs_document(namespace, config, mapping))
    return sorted(documents, key=lambda doc: doc.id)


def _field_targets(field_def: FieldDef) -> list[str]:
    if isinstance(field_def, ArrayOf):
        return _field_targets(field_def.items)
    if isinstance(field_def, CrossDocRef) and field_def.target:
        return [field_def.target]
    if isinstance(field_def, EmbeddedRef):
        return [field_def.ref]
    return []


def unresolved_references(documents: list[SchemaDocument]) -> list[tuple[str, str, str]]:
    """
    (document id, field path, target) for every reference whose target is
    not part of the given document set.
    """
    defs_by_doc = {doc.id: set(doc.embedded_defs) for doc in documents}
    for doc in documents:
        if doc.kind != DocumentKind.DEFS:
            defs_by_doc[doc.id].add("main")

    missing = []
    for doc in documents:
        fields = list(doc.fields.items())
        for def_name, obj in doc.embedded_defs.items():
            fields.extend((f"{def_name}.{name}", f) for name, f in obj.properties.items())

        for path, field_def in fields:
            for target in _field_targets(field_def):
                target_doc, _, def_name = target.partition("#")
                target_doc = target_doc or doc.id
                if "#" in target:
                    found = def_name in defs_by_doc.get(target_doc, set())
                else:
                    found = target_doc in defs_by_doc
                if not found:
                    missing.append((doc.id, path, target))
    return missing


def write_documents(documents: list[SchemaDocument], output_root: Path) -> list[Path]:
    """Write each document to its NSID-derived path under output_root."""
    paths = []
    for doc in documents:
        path = write_json(nsid_to_path(doc.id, output_root), doc.to_lexicon())
        logger.info("lexicon_written", nsid=doc.id, path=str(path))
        paths.append(path)
    return paths
