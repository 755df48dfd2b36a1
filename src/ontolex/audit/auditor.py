"""
Lexicon Auditor

Recomputes the expected field set of every mapped class from the ontology and
diffs it against a lexicon tree on disk. The expected shapes come from the
same TypeMapper the generator uses; the on-disk documents are only read.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import structlog

from ontolex.audit.report import (
    AuditReport,
    BrokenReference,
    DiscriminatorCheck,
    ExtraProperty,
    MeasureCheck,
    MissingDocument,
    MissingProperty,
    TypeMismatch,
    UnmappedClass,
)
from ontolex.config import GeneratorConfig
from ontolex.schema.fields import (
    ArrayOf,
    EmbeddedRef,
    EnumString,
    FieldDef,
    Scalar,
    SchemaDocument,
    base_kind,
    field_format,
)
from ontolex.schema.generators.record_lexicon import (
    collect_class_properties,
    discriminator_field,
)
from ontolex.schema.generators.type_mapper import TypeMapper
from ontolex.schema.mapping import ClassMapping, load_lexicon_tree
from ontolex.schema.ontology import OntologyGraph, PropertyNode

logger = structlog.get_logger()


@dataclass(frozen=True)
class Expectation:
    """Expected shape of one record field and the property it came from."""

    field_def: FieldDef
    prop: PropertyNode | None = None


def compare_fields(expected: FieldDef, actual: FieldDef) -> list[str]:
    """
    Shape differences between an expected and an on-disk field.

    An on-disk array is an accepted widening of any expectation, so only
    its items' format/ref are compared. Lossy (noted) string expectations
    skip the base kind check.
    """
    if isinstance(actual, ArrayOf):
        actual = actual.items
        if isinstance(expected, ArrayOf):
            expected = expected.items
        check_kind = False
    elif isinstance(expected, ArrayOf):
        return [f"type mismatch: expected array, got {base_kind(actual)}"]
    else:
        check_kind = not (isinstance(expected, Scalar) and expected.lossy)

    expected_kind = base_kind(expected)
    actual_kind = base_kind(actual)

    if isinstance(expected, EmbeddedRef) and isinstance(actual, EmbeddedRef):
        if actual.ref != expected.ref:
            return [f"ref mismatch: expected {expected.ref}, got {actual.ref}"]
        return []

    if expected_kind == "string" and actual_kind == "string":
        expected_format = field_format(expected)
        if expected_format and field_format(actual) != expected_format:
            got = field_format(actual) or "none"
            return [f"format mismatch: expected {expected_format}, got {got}"]
        return []

    if check_kind and expected_kind != actual_kind:
        return [f"type mismatch: expected {expected_kind}, got {actual_kind}"]
    return []


def iter_refs(value: Any, path: str) -> Iterator[tuple[str, str]]:
    """Yield (field path, ref) for every `ref`/`refs` string below value."""
    if isinstance(value, list):
        for item in value:
            yield from iter_refs(item, path)
        return
    if not isinstance(value, dict):
        return

    ref = value.get("ref")
    if isinstance(ref, str):
        yield path, ref
    refs = value.get("refs")
    if isinstance(refs, list):
        for item in refs:
            if isinstance(item, str):
                yield path, item

    for key, item in value.items():
        if key == "properties" and isinstance(item, dict):
            for name, prop in item.items():
                yield from iter_refs(prop, f"{path}.{name}")
        elif key == "items":
            yield from iter_refs(item, f"{path}[]")
        elif isinstance(item, (dict, list)):
            yield from iter_refs(item, path)


def resolve_ref(ref: str, nsid: str, documents: dict[str, dict[str, Any]]) -> str | None:
    """Return the missing target of a ref, or None when it resolves."""
    if ref.startswith("#"):
        doc_id, def_name = nsid, ref[1:]
    else:
        doc_id, _, def_name = ref.partition("#")
        def_name = def_name or "main"

    doc = documents.get(doc_id)
    if doc is None:
        return doc_id
    if def_name not in (doc.get("defs") or {}):
        return f"{doc_id}#{def_name}"
    return None


def find_broken_references(documents: dict[str, dict[str, Any]]) -> list[BrokenReference]:
    """Every ref in every def of every document that names nothing in the tree."""
    broken = []
    for nsid in sorted(documents):
        defs = documents[nsid].get("defs") or {}
        for def_name, definition in defs.items():
            for path, ref in iter_refs(definition, def_name):
                missing = resolve_ref(ref, nsid, documents)
                if missing is not None:
                    broken.append(
                        BrokenReference(nsid=nsid, path=path, ref=ref, missing_target=missing)
                    )
    return broken


class Auditor:
    """Diffs an ontology against a lexicon tree."""

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
        self.namespace = namespace
        self.mapper = TypeMapper(graph, mapping, self.config, namespace)

    @property
    def defs_id(self) -> str:
        return f"{self.namespace}.defs"

    def expected_fields(self, class_name: str) -> dict[str, Expectation]:
        """Expected record fields of a class, discriminator first."""
        expected: dict[str, Expectation] = {}
        disc = self.config.discriminator
        if disc is not None and class_name == disc.class_name:
            expected[disc.field_name] = Expectation(discriminator_field(self.graph, self.config))
        for prop in collect_class_properties(self.graph, class_name, self.config):
            expected.setdefault(prop.name, Expectation(self.mapper.map_property(prop), prop))
        return expected

    def audit(self, documents: dict[str, dict[str, Any]]) -> AuditReport:
        """Audit lexicons keyed by id."""
        skipped = self.config.skipped()
        report = AuditReport(skipped_classes=sorted(self.config.skip_classes))

        for node in self.graph.classes.values():
            if node.name not in self.mapping and node.name not in skipped:
                report.unmapped_classes.append(
                    UnmappedClass(class_name=node.name, label=node.label, status=node.status)
                )

        total = 0
        for class_name, nsid in sorted(self.mapping.items(), key=lambda item: item[1]):
            if class_name in skipped:
                continue
            raw = documents.get(nsid)
            if raw is None:
                report.missing_documents.append(MissingDocument(class_name=class_name, nsid=nsid))
                continue
            expected = self.expected_fields(class_name)
            total += len(expected)
            self._audit_document(report, class_name, SchemaDocument.from_lexicon(raw), expected)

        report.discriminator = self._check_discriminator(documents)
        report.measure = self._check_measure(documents)
        report.broken_references = find_broken_references(documents)
        report.refresh_summary(total)

        logger.info("audit_complete", **report.summary.model_dump())
        return report

    def audit_directory(self, root: str | Path) -> AuditReport:
        return self.audit(load_lexicon_tree(root))

    def _audit_document(
        self,
        report: AuditReport,
        class_name: str,
        doc: SchemaDocument,
        expected: dict[str, Expectation],
    ) -> None:
        for name, expectation in expected.items():
            if name in doc.fields:
                continue
            prop = expectation.prop
            report.missing_properties.append(
                MissingProperty(
                    nsid=doc.id,
                    class_name=class_name,
                    property=name,
                    range=prop.range_label if prop else "",
                    object_property=prop.is_object_property if prop else False,
                    status=prop.status if prop else "",
                    description=prop.description if prop else "",
                )
            )

        for name, actual in doc.fields.items():
            if name in expected:
                continue
            report.extra_properties.append(
                ExtraProperty(
                    nsid=doc.id,
                    class_name=class_name,
                    property=name,
                    lexicon_type=base_kind(actual),
                    lexicon_format=field_format(actual),
                    description=actual.description,
                )
            )

        for name, expectation in expected.items():
            actual = doc.fields.get(name)
            if actual is None:
                continue
            issues = compare_fields(expectation.field_def, actual)
            if not issues:
                continue
            report.type_mismatches.append(
                TypeMismatch(
                    nsid=doc.id,
                    class_name=class_name,
                    property=name,
                    range=expectation.prop.range_label if expectation.prop else "",
                    lexicon_type=base_kind(actual),
                    lexicon_format=field_format(actual),
                    lexicon_ref=actual.ref if isinstance(actual, EmbeddedRef) else None,
                    issues=issues,
                )
            )

    def _check_discriminator(
        self, documents: dict[str, dict[str, Any]]
    ) -> DiscriminatorCheck | None:
        disc = self.config.discriminator
        if disc is None:
            return None

        individuals = self.graph.individuals_of(disc.class_name)
        prefix = self.config.prefix
        individual_props = sorted(
            {key[len(prefix):] for ind in individuals for key in ind.source_keys}
        )

        nsid = self.mapping.nsid_for(disc.class_name)
        raw = documents.get(nsid) if nsid else None
        fields = SchemaDocument.from_lexicon(raw).fields if raw is not None else {}
        disc_field = fields.get(disc.field_name)
        known = list(disc_field.values) if isinstance(disc_field, EnumString) else []
        names = sorted(ind.name for ind in individuals)

        return DiscriminatorCheck(
            class_name=disc.class_name,
            nsid=nsid if raw is not None else None,
            field_name=disc.field_name,
            individuals=names,
            known_values=known,
            missing_values=[n for n in names if n not in known],
            extra_values=[v for v in known if v not in names],
            individual_properties=individual_props,
            missing_properties=(
                [p for p in individual_props if p not in fields] if raw is not None else []
            ),
        )

    def _check_measure(self, documents: dict[str, dict[str, Any]]) -> MeasureCheck:
        name = self.config.measure_def_name
        check = MeasureCheck(
            ref=f"{self.defs_id}#{name}", expected=list(self.config.measure_properties)
        )
        definition = ((documents.get(self.defs_id) or {}).get("defs") or {}).get(name)
        if not isinstance(definition, dict):
            return check

        check.found = True
        check.defined = list((definition.get("properties") or {}).keys())
        check.missing = [p for p in check.expected if p not in check.defined]
        return check
