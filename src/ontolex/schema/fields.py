"""
Field Definitions

Field-type variants for emitted lexicon documents.
Every variant serializes to the AT Protocol lexicon JSON shape and can be
parsed back from it, so generators and the auditor share one representation:
- Scalar (string / integer / boolean, optional format)
- EnumString (string with knownValues)
- ArrayOf (array wrapping another field)
- EmbeddedRef (ref to an object def, e.g. the shared measure)
- CrossDocRef (AT-URI of another record)
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

LEXICON_VERSION = 1

# String formats used for references
AT_URI = "at-uri"
DID = "did"
URI = "uri"
DATETIME = "datetime"


class ScalarKind(Enum):
    """Primitive lexicon types."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"


class DocumentKind(Enum):
    """Kind of emitted lexicon document."""

    RECORD = "record"
    QUERY = "query"
    DEFS = "defs"


@dataclass(frozen=True)
class Scalar:
    """A primitive field. Identity references are strings with format `did`."""

    kind: ScalarKind
    format: str | None = None
    description: str = ""
    note: str = ""  # Explanation for a lossy mapping
    max_graphemes: int | None = None
    minimum: int | None = None
    maximum: int | None = None
    default: Any = None

    @property
    def lossy(self) -> bool:
        return bool(self.note)

    def to_lexicon(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.kind.value}
        if self.format:
            out["format"] = self.format
        description = self.description or self.note
        if description:
            out["description"] = description
        if self.max_graphemes is not None:
            out["maxGraphemes"] = self.max_graphemes
        if self.minimum is not None:
            out["minimum"] = self.minimum
        if self.maximum is not None:
            out["maximum"] = self.maximum
        if self.default is not None:
            out["default"] = self.default
        return out


@dataclass(frozen=True)
class EnumString:
    """A string restricted to a known, ordered set of values."""

    values: tuple[str, ...]
    description: str = ""

    def to_lexicon(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "string"}
        if self.description:
            out["description"] = self.description
        out["knownValues"] = list(self.values)
        return out


@dataclass(frozen=True)
class ArrayOf:
    """An array of another field shape."""

    items: "FieldDef"
    description: str = ""

    def to_lexicon(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": "array",
            "items": replace(self.items, description="").to_lexicon(),
        }
        if self.description:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class EmbeddedRef:
    """Reference to an object def, written as `nsid#defName` or `#defName`."""

    ref: str
    description: str = ""

    @property
    def target_document(self) -> str:
        return self.ref.split("#", 1)[0]

    @property
    def def_name(self) -> str:
        return self.ref.split("#", 1)[1] if "#" in self.ref else "main"

    def to_lexicon(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "ref", "ref": self.ref}
        if self.description:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class CrossDocRef:
    """
    AT-URI reference to an instance of another record document.

    The target document id is known when the field is built from the
    ontology, but lexicons have no place to store it, so a field parsed
    back from disk has `target=None`.
    """

    target: str | None = None
    description: str = ""

    def to_lexicon(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "string", "format": AT_URI}
        if self.description:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class OtherField:
    """Any lexicon type ontolex does not generate (blob, union, unknown...)."""

    type_name: str
    raw: tuple[tuple[str, Any], ...] = ()
    description: str = ""

    def to_lexicon(self) -> dict[str, Any]:
        out = dict(self.raw)
        out["type"] = self.type_name
        if self.description:
            out["description"] = self.description
        return out


FieldDef = Union[Scalar, EnumString, ArrayOf, EmbeddedRef, CrossDocRef, OtherField]


def identity_ref(description: str = "") -> Scalar:
    """Identity (DID) reference to an agent."""
    return Scalar(ScalarKind.STRING, format=DID, description=description)


def with_cardinality(element: FieldDef, scalar: bool) -> FieldDef:
    """Wrap an element shape in an array unless the field is single-valued."""
    return element if scalar else ArrayOf(element)


def base_kind(field_def: FieldDef) -> str:
    """Lexicon `type` of a field."""
    if isinstance(field_def, Scalar):
        return field_def.kind.value
    if isinstance(field_def, (EnumString, CrossDocRef)):
        return "string"
    if isinstance(field_def, ArrayOf):
        return "array"
    if isinstance(field_def, EmbeddedRef):
        return "ref"
    return field_def.type_name


def field_format(field_def: FieldDef) -> str | None:
    if isinstance(field_def, Scalar):
        return field_def.format
    if isinstance(field_def, CrossDocRef):
        return AT_URI
    return None


def reference_format(field_def: FieldDef) -> str | None:
    """`at-uri` or `did` when the field is a cross-document or identity reference."""
    if isinstance(field_def, CrossDocRef):
        return AT_URI
    if isinstance(field_def, Scalar) and field_def.format == DID:
        return DID
    return None


def field_from_lexicon(data: dict[str, Any]) -> FieldDef:
    """Parse a lexicon property definition back into a FieldDef."""
    type_name = data.get("type", "unknown")
    description = data.get("description", "")

    if type_name == "array":
        return ArrayOf(field_from_lexicon(data.get("items") or {}), description=description)
    if type_name == "ref":
        return EmbeddedRef(data.get("ref", ""), description=description)
    if type_name == "string":
        if data.get("knownValues"):
            return EnumString(tuple(data["knownValues"]), description=description)
        if data.get("format") == AT_URI:
            return CrossDocRef(description=description)
        return Scalar(
            ScalarKind.STRING,
            format=data.get("format"),
            description=description,
            max_graphemes=data.get("maxGraphemes"),
        )
    if type_name == "integer":
        return Scalar(
            ScalarKind.INTEGER,
            description=description,
            minimum=data.get("minimum"),
            maximum=data.get("maximum"),
            default=data.get("default"),
        )
    if type_name == "boolean":
        return Scalar(ScalarKind.BOOLEAN, description=description, default=data.get("default"))

    raw = tuple(
        (k, v) for k, v in data.items() if k not in ("type", "description")
    )
    return OtherField(type_name, raw=raw, description=description)


@dataclass(frozen=True)
class ObjectDef:
    """Object-shaped def shared within or across documents (e.g. the measure)."""

    properties: dict[str, FieldDef]
    required: tuple[str, ...] = ()
    description: str = ""

    def to_lexicon(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "object"}
        if self.description:
            out["description"] = self.description
        if self.required:
            out["required"] = list(self.required)
        out["properties"] = {name: f.to_lexicon() for name, f in self.properties.items()}
        return out

    @classmethod
    def from_lexicon(cls, data: dict[str, Any]) -> "ObjectDef":
        return cls(
            properties={
                name: field_from_lexicon(prop)
                for name, prop in (data.get("properties") or {}).items()
            },
            required=tuple(data.get("required") or ()),
            description=data.get("description", ""),
        )


@dataclass
class SchemaDocument:
    """
    One emitted lexicon document.

    For records `fields` are the record properties; for queries they are the
    query parameters. `embedded_defs` holds every def other than `main`.
    """

    id: str
    kind: DocumentKind
    description: str = ""
    fields: dict[str, FieldDef] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    embedded_defs: dict[str, ObjectDef] = field(default_factory=dict)
    key: str = "tid"
    output: dict[str, Any] | None = None

    def to_lexicon(self) -> dict[str, Any]:
        """Serialize to the lexicon JSON shape with deterministic key order."""
        defs: dict[str, Any] = {}
        properties = {name: f.to_lexicon() for name, f in self.fields.items()}

        if self.kind == DocumentKind.RECORD:
            record: dict[str, Any] = {"type": "object"}
            if self.required:
                record["required"] = list(self.required)
            record["properties"] = properties
            defs["main"] = {
                "type": "record",
                "description": self.description,
                "key": self.key,
                "record": record,
            }
        elif self.kind == DocumentKind.QUERY:
            main: dict[str, Any] = {
                "type": "query",
                "description": self.description,
                "parameters": {"type": "params", "properties": properties},
            }
            if self.output is not None:
                main["output"] = self.output
            defs["main"] = main

        for name, obj in self.embedded_defs.items():
            defs[name] = obj.to_lexicon()

        return {"lexicon": LEXICON_VERSION, "id": self.id, "defs": defs}

    @classmethod
    def from_lexicon(cls, data: dict[str, Any]) -> "SchemaDocument":
        defs = data.get("defs") or {}
        main = defs.get("main") or {}
        main_type = main.get("type")

        embedded = {
            name: ObjectDef.from_lexicon(d)
            for name, d in defs.items()
            if name != "main" and isinstance(d, dict) and d.get("type") == "object"
        }

        if main_type == "record":
            record = main.get("record") or {}
            return cls(
                id=data.get("id", ""),
                kind=DocumentKind.RECORD,
                description=main.get("description", ""),
                fields={
                    name: field_from_lexicon(prop)
                    for name, prop in (record.get("properties") or {}).items()
                },
                required=tuple(record.get("required") or ()),
                embedded_defs=embedded,
                key=main.get("key", "tid"),
            )
        if main_type == "query":
            params = (main.get("parameters") or {}).get("properties") or {}
            return cls(
                id=data.get("id", ""),
                kind=DocumentKind.QUERY,
                description=main.get("description", ""),
                fields={name: field_from_lexicon(p) for name, p in params.items()},
                embedded_defs=embedded,
                output=main.get("output"),
            )
        return cls(id=data.get("id", ""), kind=DocumentKind.DEFS, embedded_defs=embedded)
