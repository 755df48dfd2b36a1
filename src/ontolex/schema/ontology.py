"""
Ontology Model

In-memory model of a parsed OWL ontology.
All identifiers are local names (namespace prefix stripped).
The graph is built once per run by the loader and never mutated afterwards;
the emitter, query deriver and auditor all read from it.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping


class ClassKind(Enum):
    """How a class takes part in schema emission."""

    RECORD = "record"  # May become a record lexicon
    ABSTRACT = "abstract"  # Properties redistributed to concrete subclasses
    ENUMERATION = "enumeration"  # Named individuals become knownValues


@dataclass(frozen=True)
class ClassNode:
    """An owl:Class."""

    name: str
    label: str = ""
    description: str = ""
    status: str = "stable"
    parent: str | None = None
    kind: ClassKind = ClassKind.RECORD


@dataclass(frozen=True)
class PropertyNode:
    """
    An owl:ObjectProperty / owl:DatatypeProperty.

    `range` is a single local name, an ordered tuple for unions, or None.
    `domains` is already expanded: abstract classes are replaced by their
    concrete subclasses.
    """

    name: str
    domains: tuple[str, ...] = ()
    range: str | tuple[str, ...] | None = None
    exact_cardinality: int | None = None
    max_cardinality: int | None = None
    is_object_property: bool = False
    description: str = ""
    label: str = ""
    status: str = "stable"
    inverse_of: str | None = None

    @property
    def is_union_range(self) -> bool:
        return isinstance(self.range, tuple)

    @property
    def range_members(self) -> tuple[str, ...]:
        if self.range is None:
            return ()
        if isinstance(self.range, tuple):
            return self.range
        return (self.range,)

    @property
    def range_label(self) -> str:
        """Human readable range, unions joined with `|`."""
        return " | ".join(self.range_members)

    @property
    def is_required(self) -> bool:
        """Only an exact cardinality of one makes a field required."""
        return self.exact_cardinality == 1

    @property
    def is_single_valued(self) -> bool:
        return self.exact_cardinality == 1 or self.max_cardinality == 1

    @property
    def declared_cardinality(self) -> int | None:
        if self.exact_cardinality is not None:
            return self.exact_cardinality
        return self.max_cardinality


@dataclass(frozen=True)
class NamedIndividual:
    """An owl:NamedIndividual, used to populate enumerations."""

    name: str
    member_of: tuple[str, ...] = ()
    label: str = ""
    description: str = ""
    # Raw (prefixed) keys present on the source node, for auditing
    source_keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class UnionClass:
    """A named class declared as owl:unionOf other classes."""

    name: str
    members: tuple[str, ...] = field(default_factory=tuple)


class OntologyGraph:
    """
    Immutable registry of classes, properties, named individuals and
    named unions for one ontology.
    """

    def __init__(
        self,
        prefix: str,
        classes: dict[str, ClassNode],
        properties: dict[str, PropertyNode],
        individuals: dict[str, NamedIndividual],
        unions: dict[str, UnionClass],
    ):
        self.prefix = prefix
        self._classes = MappingProxyType(dict(classes))
        self._properties = MappingProxyType(dict(properties))
        self._individuals = MappingProxyType(dict(individuals))
        self._unions = MappingProxyType(dict(unions))

    @property
    def classes(self) -> Mapping[str, ClassNode]:
        return self._classes

    @property
    def properties(self) -> Mapping[str, PropertyNode]:
        return self._properties

    @property
    def individuals(self) -> Mapping[str, NamedIndividual]:
        return self._individuals

    @property
    def unions(self) -> Mapping[str, UnionClass]:
        return self._unions

    def get_class(self, name: str) -> ClassNode | None:
        return self._classes.get(name)

    def get_property(self, name: str) -> PropertyNode | None:
        return self._properties.get(name)

    def properties_for(self, class_name: str) -> Iterator[PropertyNode]:
        """Properties whose (expanded) domain includes the class, in source order."""
        for prop in self._properties.values():
            if class_name in prop.domains:
                yield prop

    def individuals_of(self, class_name: str) -> list[NamedIndividual]:
        return [i for i in self._individuals.values() if class_name in i.member_of]

    def enum_values(self, class_name: str) -> list[str]:
        """Sorted local names of a class's named individuals."""
        return sorted(i.name for i in self.individuals_of(class_name))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "prefix": self.prefix,
            "classes": {
                name: {
                    "label": c.label,
                    "description": c.description,
                    "status": c.status,
                    "parent": c.parent,
                    "kind": c.kind.value,
                }
                for name, c in self._classes.items()
            },
            "properties": {
                name: {
                    "domains": list(p.domains),
                    "range": list(p.range) if isinstance(p.range, tuple) else p.range,
                    "exact_cardinality": p.exact_cardinality,
                    "max_cardinality": p.max_cardinality,
                    "object": p.is_object_property,
                    "description": p.description,
                }
                for name, p in self._properties.items()
            },
            "individuals": {
                name: {"member_of": list(i.member_of), "label": i.label}
                for name, i in self._individuals.items()
            },
            "unions": {name: list(u.members) for name, u in self._unions.items()},
        }
