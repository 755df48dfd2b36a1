"""
Query Lexicon Generator

Derives one `list<Plural>` query lexicon per record lexicon. Filter
parameters come only from reference-shaped, enumerated and boolean fields;
plain strings, integers and datetimes never become filters.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from ontolex.schema.fields import (
    AT_URI,
    DID,
    ArrayOf,
    CrossDocRef,
    DocumentKind,
    EnumString,
    FieldDef,
    Scalar,
    ScalarKind,
    SchemaDocument,
    identity_ref,
    reference_format,
)
from ontolex.schema.mapping import nsid_group, nsid_name

logger = structlog.get_logger()

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
# Lookup and pagination parameters every list query carries
RESERVED_PARAMS = ("uri", "limit", "cursor")

REFERENCE_NOUNS = {
    AT_URI: ("AT-URI", "referenced record"),
    DID: ("DID", "referenced agent"),
}

OUTPUT_SCHEMA: dict[str, Any] = {
    "encoding": "application/json",
    "schema": {
        "type": "object",
        "required": ["records"],
        "properties": {
            "records": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["uri"],
                    "properties": {
                        "uri": {
                            "type": "string",
                            "format": "at-uri",
                            "description": "AT-URI of the record.",
                        },
                        "value": {
                            "type": "unknown",
                            "description": "The full record value.",
                        },
                    },
                },
            },
            "cursor": {
                "type": "string",
                "description": "Pagination cursor for next page.",
            },
        },
    },
}


@dataclass(frozen=True)
class FilterParam:
    """One derived filter parameter."""

    name: str
    value_type: str  # "at-uri", "did", "enum" or "bool"
    contains: bool = False

    @property
    def description(self) -> str:
        if self.value_type in REFERENCE_NOUNS:
            token, noun = REFERENCE_NOUNS[self.value_type]
            if self.contains:
                return f"Filter where {self.name} array contains this {token}."
            return f"Filter by {self.name} ({token} of {noun})."
        if self.value_type == "enum":
            return f"Filter by {self.name} value."
        return f"Filter by {self.name}."

    def to_field(self) -> FieldDef:
        if self.value_type == AT_URI:
            return CrossDocRef(description=self.description)
        if self.value_type == DID:
            return identity_ref(self.description)
        if self.value_type == "bool":
            return Scalar(ScalarKind.BOOLEAN, description=self.description)
        return Scalar(ScalarKind.STRING, description=self.description)

    def __str__(self) -> str:
        suffix = " [contains]" if self.contains else ""
        return f"{self.name} ({self.value_type}){suffix}"


def pluralize(name: str) -> str:
    """process -> processes, economicEvent -> economicEvents."""
    if name.endswith(("s", "sh", "ch", "x", "z")):
        return name + "es"
    return name + "s"


def query_nsid(record_nsid: str) -> str:
    """`a.b.economicEvent` -> `a.b.listEconomicEvents`."""
    plural = pluralize(nsid_name(record_nsid))
    return f"{nsid_group(record_nsid)}.list{plural[:1].upper()}{plural[1:]}"


def derive_filters(fields: dict[str, FieldDef]) -> list[FilterParam]:
    """Filter parameters for a record's fields, in field order."""
    filters = []
    for name, field_def in fields.items():
        if name in RESERVED_PARAMS:
            logger.warning("filter_name_reserved", field=name)
            continue
        ref_format = reference_format(field_def)
        if ref_format:
            filters.append(FilterParam(name, ref_format))
        elif isinstance(field_def, ArrayOf) and reference_format(field_def.items):
            filters.append(FilterParam(name, reference_format(field_def.items), contains=True))
        elif isinstance(field_def, EnumString) and field_def.values:
            filters.append(FilterParam(name, "enum"))
        elif isinstance(field_def, Scalar) and field_def.kind == ScalarKind.BOOLEAN:
            filters.append(FilterParam(name, "bool"))
    return filters


def build_list_query(record: SchemaDocument) -> SchemaDocument:
    """Derive the list query for one record document."""
    plural = pluralize(nsid_name(record.id))
    filters = derive_filters(record.fields)

    params: dict[str, FieldDef] = {
        "uri": CrossDocRef(
            description="Fetch a single record by AT-URI. Other filters are ignored when set."
        ),
    }
    for f in filters:
        params[f.name] = f.to_field()
    params["limit"] = Scalar(
        ScalarKind.INTEGER,
        description="Maximum number of records to return.",
        minimum=1,
        maximum=MAX_LIMIT,
        default=DEFAULT_LIMIT,
    )
    params["cursor"] = Scalar(
        ScalarKind.STRING, description="Pagination cursor from a previous response."
    )

    description = f"List {plural}."
    if filters:
        description += f" Filterable by: {', '.join(f.name for f in filters)}."

    return SchemaDocument(
        id=query_nsid(record.id),
        kind=DocumentKind.QUERY,
        description=description,
        fields=params,
        output=OUTPUT_SCHEMA,
    )


def derive_query_documents(documents: list[SchemaDocument]) -> list[SchemaDocument]:
    """One list query per record document, sorted by id."""
    records = sorted(
        (doc for doc in documents if doc.kind == DocumentKind.RECORD),
        key=lambda doc: doc.id,
    )
    return [build_list_query(record) for record in records]
