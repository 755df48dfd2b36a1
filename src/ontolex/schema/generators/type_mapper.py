"""
Range/Type Mapper

Maps an ontology property (range, object/datatype flag, cardinality) to a
lexicon field definition.

Rules are tried in order and the first match wins:
 1. Per-property overrides from the config table
 2. Classification tag properties -> string / array of string
 3. Union ranges: all agents -> DID, all records -> AT-URI
    (mixed unions fall through using their first member)
 4. Enumeration class -> knownValues from its named individuals
 5. Self-referencing "pairs with" property -> identifier string
 6. Measurement range -> ref to the shared measure def
 7. Agent range -> DID
 8. Record class range -> AT-URI
 9. Datatype range -> scalar (fractional numbers go to the measure def)
10. Anything else -> string with an explanatory note
"""

from dataclasses import replace

import structlog

from ontolex.config import GeneratorConfig
from ontolex.schema.fields import (
    DATETIME,
    URI,
    ArrayOf,
    CrossDocRef,
    EmbeddedRef,
    EnumString,
    FieldDef,
    Scalar,
    ScalarKind,
    field_from_lexicon,
    identity_ref,
    with_cardinality,
)
from ontolex.schema.mapping import ClassMapping
from ontolex.schema.ontology import ClassKind, OntologyGraph, PropertyNode

logger = structlog.get_logger()

DATATYPE_PREFIXES = ("xsd:", "dtype:", "rdf:", "rdfs:")

BOOLEAN_TYPES = {"xsd:boolean"}
DATETIME_TYPES = {"xsd:dateTimeStamp", "xsd:dateTime", "xsd:date"}
URI_TYPES = {"xsd:anyURI"}
STRING_TYPES = {"xsd:string", "xsd:normalizedString", "rdf:langString", "rdfs:Literal"}
INTEGER_TYPES = {
    "xsd:integer",
    "xsd:int",
    "xsd:long",
    "xsd:short",
    "xsd:nonNegativeInteger",
    "xsd:positiveInteger",
}


class TypeMapper:
    """Decides the lexicon field shape of each ontology property."""

    def __init__(
        self,
        graph: OntologyGraph,
        mapping: ClassMapping,
        config: GeneratorConfig | None = None,
        namespace: str = "org.openassociation",
    ):
        self.graph = graph
        self.mapping = mapping
        self.config = config or GeneratorConfig()
        self.measure_ref = f"{namespace}.defs#{self.config.measure_def_name}"
        self._skipped = self.config.skipped()
        self._overrides = {
            name: field_from_lexicon(data)
            for name, data in self.config.property_overrides.items()
        }

    def is_identity_class(self, name: str) -> bool:
        return name in self.config.identity_classes

    def is_record_class(self, name: str) -> bool:
        """Emitted as a record and referenced by AT-URI (agents use DIDs)."""
        return (
            name in self.mapping
            and name not in self._skipped
            and not self.is_identity_class(name)
        )

    def is_enum_class(self, name: str) -> bool:
        node = self.graph.get_class(name)
        if node is not None and node.kind == ClassKind.ENUMERATION:
            return True
        return name in self.config.enum_classes

    def map_property(self, prop: PropertyNode) -> FieldDef:
        """Field definition for a property, with its description attached."""
        field_def = self._map_shape(prop)

        description = prop.description or field_def.description
        if description != field_def.description:
            field_def = replace(field_def, description=description)

        limit = self.config.string_limits.get(prop.name)
        if (
            limit is not None
            and isinstance(field_def, Scalar)
            and field_def.kind == ScalarKind.STRING
            and not field_def.format
            and not field_def.lossy
        ):
            field_def = replace(field_def, max_graphemes=limit)
        return field_def

    def _map_shape(self, prop: PropertyNode) -> FieldDef:
        scalar = prop.is_single_valued
        members = prop.range_members
        effective = members[0] if members else None

        # 1. Named overrides
        if prop.name in self._overrides:
            return self._overrides[prop.name]

        # 2. Classification tags mix URIs and free text
        if prop.name in self.config.classification_properties:
            return with_cardinality(Scalar(ScalarKind.STRING), scalar)

        # 3. Unions
        if prop.is_union_range:
            if all(self.is_identity_class(m) for m in members):
                return with_cardinality(identity_ref(), scalar)
            if all(self.is_record_class(m) for m in members):
                return with_cardinality(CrossDocRef(), scalar)

        # 4. Enumerations
        if effective and self.is_enum_class(effective):
            return EnumString(
                tuple(self.graph.enum_values(effective)),
                description=f"One of the {effective} enum values",
            )

        # 5. Self reference kept as an identifier to avoid a recursive schema
        if effective and self.config.self_reference_properties.get(prop.name) == effective:
            return Scalar(ScalarKind.STRING, description=f"{effective} identifier")

        # 6. Quantities
        if effective in self.config.measure_ranges:
            return EmbeddedRef(self.measure_ref)

        # 7. Agents
        if effective and self.is_identity_class(effective):
            return with_cardinality(identity_ref(), scalar)

        # 8. Records
        if effective and self.is_record_class(effective):
            target = CrossDocRef(target=self.mapping.nsid_for(effective))
            return with_cardinality(target, scalar)

        # 9. Datatypes
        if (
            not prop.is_object_property
            or effective is None
            or effective.startswith(DATATYPE_PREFIXES)
        ):
            element = self._map_datatype(prop.name, effective or "xsd:string")
            declared = prop.declared_cardinality
            if declared is not None and declared > 1:
                return ArrayOf(element)
            return element

        # 10. Unrecognized
        return self._lossy_string(prop.name, effective)

    def _map_datatype(self, prop_name: str, datatype: str) -> FieldDef:
        if datatype in BOOLEAN_TYPES:
            return Scalar(ScalarKind.BOOLEAN)
        if datatype in DATETIME_TYPES:
            return Scalar(ScalarKind.STRING, format=DATETIME)
        if datatype in URI_TYPES:
            return Scalar(ScalarKind.STRING, format=URI)
        if datatype in STRING_TYPES:
            return Scalar(ScalarKind.STRING)
        if datatype in INTEGER_TYPES:
            return Scalar(ScalarKind.INTEGER)
        # Lexicons have no float type
        if datatype in self.config.fractional_datatypes:
            return EmbeddedRef(self.measure_ref)
        return self._lossy_string(prop_name, datatype)

    def _lossy_string(self, prop_name: str, range_name: str) -> Scalar:
        note = self.config.unsupported_datatypes.get(
            range_name, f"Unrecognized range {range_name}, stored as a string"
        )
        logger.warning("lossy_range_mapping", property=prop_name, range=range_name)
        return Scalar(ScalarKind.STRING, note=note)
