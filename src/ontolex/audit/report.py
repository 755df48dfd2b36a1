"""
Audit Report

Pydantic models for the ontology/lexicon drift report and its plain-text
rendering. `AuditReport.model_dump_json()` is the machine-parseable form;
`render_text()` the human-readable one.
"""

from itertools import groupby

from pydantic import BaseModel, Field

RULE = "━" * 66


class UnmappedClass(BaseModel):
    """Ontology class with no NSID that is not on the skip-list."""

    class_name: str
    label: str = ""
    status: str = ""


class MissingDocument(BaseModel):
    """Mapped class whose lexicon file is absent from the tree."""

    class_name: str
    nsid: str


class MissingProperty(BaseModel):
    nsid: str
    class_name: str
    property: str
    range: str = Field(default="", description="Ontology range, unions joined with |")
    object_property: bool = False
    status: str = ""
    description: str = ""


class ExtraProperty(BaseModel):
    nsid: str
    class_name: str
    property: str
    lexicon_type: str
    lexicon_format: str | None = None
    description: str = ""


class TypeMismatch(BaseModel):
    nsid: str
    class_name: str
    property: str
    range: str = ""
    lexicon_type: str
    lexicon_format: str | None = None
    lexicon_ref: str | None = None
    issues: list[str] = Field(default_factory=list)


class DiscriminatorCheck(BaseModel):
    """Named individuals of the discriminator class against the lexicon."""

    class_name: str
    nsid: str | None = None
    field_name: str
    individuals: list[str] = Field(default_factory=list)
    known_values: list[str] = Field(default_factory=list)
    missing_values: list[str] = Field(default_factory=list)
    extra_values: list[str] = Field(default_factory=list)
    individual_properties: list[str] = Field(default_factory=list)
    missing_properties: list[str] = Field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return len(self.missing_values) + len(self.extra_values) + len(self.missing_properties)


class MeasureCheck(BaseModel):
    """Completeness of the shared measure def."""

    ref: str
    found: bool = False
    defined: list[str] = Field(default_factory=list)
    expected: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return len(self.missing) if self.found else 1


class BrokenReference(BaseModel):
    nsid: str
    path: str = Field(
        description="Field path inside the document, e.g. main.owner or detail.items[]"
    )
    ref: str
    missing_target: str


class AuditSummary(BaseModel):
    total_properties: int = 0
    missing: int = 0
    extra: int = 0
    mismatched: int = 0
    unmapped_classes: int = 0
    missing_documents: int = 0
    broken_refs: int = 0


class AuditReport(BaseModel):
    """Structured diff between the ontology and a lexicon tree."""

    skipped_classes: list[str] = Field(default_factory=list)
    unmapped_classes: list[UnmappedClass] = Field(default_factory=list)
    missing_documents: list[MissingDocument] = Field(default_factory=list)
    missing_properties: list[MissingProperty] = Field(default_factory=list)
    extra_properties: list[ExtraProperty] = Field(default_factory=list)
    type_mismatches: list[TypeMismatch] = Field(default_factory=list)
    discriminator: DiscriminatorCheck | None = None
    measure: MeasureCheck | None = None
    broken_references: list[BrokenReference] = Field(default_factory=list)
    summary: AuditSummary = Field(default_factory=AuditSummary)

    def refresh_summary(self, total_properties: int) -> None:
        self.summary = AuditSummary(
            total_properties=total_properties,
            missing=len(self.missing_properties),
            extra=len(self.extra_properties),
            mismatched=len(self.type_mismatches),
            unmapped_classes=len(self.unmapped_classes),
            missing_documents=len(self.missing_documents),
            broken_refs=len(self.broken_references),
        )

    @property
    def has_findings(self) -> bool:
        """True when anything other than intentional additions was reported."""
        s = self.summary
        if s.missing or s.mismatched or s.unmapped_classes or s.missing_documents or s.broken_refs:
            return True
        if self.discriminator is not None and self.discriminator.issue_count:
            return True
        return self.measure is not None and self.measure.issue_count > 0

    def render_text(self) -> str:
        lines: list[str] = []

        def section(title: str) -> None:
            lines.extend([RULE, f"  {title}", RULE])

        section("1. CLASSES NOT MAPPED TO LEXICONS")
        if not self.unmapped_classes and not self.missing_documents:
            lines.append("  ✓ All classes mapped (or intentionally skipped)")
        for item in self.unmapped_classes:
            lines.append(f"  ✗ {item.class_name} ({item.label}) [{item.status}]")
        for doc in self.missing_documents:
            lines.append(f"  ✗ {doc.class_name} → {doc.nsid} (document file missing)")
        lines.append(f"  Intentionally skipped: {', '.join(self.skipped_classes)}")
        lines.append("")

        section("2. PROPERTIES MISSING FROM LEXICONS")
        if not self.missing_properties:
            lines.append("  ✓ No missing properties")
        for nsid, items in groupby(self.missing_properties, key=lambda m: m.nsid):
            lines.append(f"\n  {nsid}:")
            for item in items:
                kind = "ObjectProperty" if item.object_property else "DatatypeProperty"
                lines.append(f"    ✗ {item.property}")
                lines.append(
                    f"      Range: {item.range or 'none'} | OWL: {kind} | Status: {item.status}"
                )
                if item.description:
                    lines.append(f'      "{item.description}"')
        lines.append("")

        section("3. PROPERTIES IN LEXICONS NOT IN THE ONTOLOGY (ADDITIONS)")
        if not self.extra_properties:
            lines.append("  ✓ No extra properties")
        for nsid, extras in groupby(self.extra_properties, key=lambda e: e.nsid):
            lines.append(f"\n  {nsid}:")
            for extra in extras:
                fmt = f", format: {extra.lexicon_format}" if extra.lexicon_format else ""
                lines.append(f"    + {extra.property} ({extra.lexicon_type}{fmt})")
                if extra.description:
                    lines.append(f'      "{extra.description}"')
        lines.append("")

        section("4. TYPE/FORMAT MISMATCHES")
        if not self.type_mismatches:
            lines.append("  ✓ No type mismatches")
        for mismatch in self.type_mismatches:
            lines.append(f"  ✗ {mismatch.nsid}.{mismatch.property}")
            lines.append(f"    Ontology range: {mismatch.range or 'none'}")
            lines.append(
                f"    Lexicon: type={mismatch.lexicon_type}, "
                f"format={mismatch.lexicon_format or 'none'}, ref={mismatch.lexicon_ref or 'none'}"
            )
            for issue in mismatch.issues:
                lines.append(f"    → {issue}")
        lines.append("")

        disc = self.discriminator
        section(f"5. {disc.class_name.upper() if disc else 'DISCRIMINATOR'} NAMED INDIVIDUALS")
        if disc is None:
            lines.append("  (no discriminator configured)")
        else:
            lines.append(
                f"  Ontology individuals ({len(disc.individuals)}): "
                f"{', '.join(disc.individuals)}"
            )
            lines.append(
                f"  Lexicon {disc.field_name} knownValues ({len(disc.known_values)}): "
                f"{', '.join(disc.known_values)}"
            )
            if disc.nsid is None:
                lines.append(f"  ✗ {disc.class_name} has no lexicon document")
            if disc.missing_values:
                lines.append(f"  ✗ Missing knownValues: {', '.join(disc.missing_values)}")
            if disc.extra_values:
                lines.append(f"  + Extra knownValues: {', '.join(disc.extra_values)}")
            lines.append(f"  Properties on individuals: {', '.join(disc.individual_properties)}")
            if disc.missing_properties:
                lines.append(f"  ✗ Missing from lexicon: {', '.join(disc.missing_properties)}")
            if not disc.issue_count and disc.nsid is not None:
                lines.append("  ✓ Individuals and lexicon agree")
        lines.append("")

        measure = self.measure
        section("6. SHARED MEASURE DEFINITION")
        if measure is None or not measure.found:
            lines.append(f"  ✗ {measure.ref if measure else 'measure def'} not found!")
        else:
            lines.append(f"  Defined properties: {', '.join(measure.defined)}")
            lines.append(f"  Expected: {', '.join(measure.expected)}")
            if measure.missing:
                lines.append(f"  ✗ Missing: {', '.join(measure.missing)}")
            else:
                lines.append("  ✓ All measure properties present")
        lines.append("")

        section("7. CROSS-REFERENCE INTEGRITY")
        if not self.broken_references:
            lines.append("  ✓ All refs resolve to existing lexicons")
        for broken in self.broken_references:
            lines.append(
                f'  ✗ {broken.nsid} {broken.path}: ref "{broken.ref}" → '
                f"{broken.missing_target} NOT FOUND"
            )
        lines.append("")

        s = self.summary
        section("SUMMARY")
        lines.append(f"  Total ontology properties checked: {s.total_properties}")
        lines.append(f"  Missing from lexicons:             {s.missing}")
        lines.append(f"  Extra in lexicons:                 {s.extra}")
        lines.append(f"  Type/format mismatches:            {s.mismatched}")
        lines.append(f"  Unmapped classes:                  {s.unmapped_classes}")
        lines.append(f"  Missing documents:                 {s.missing_documents}")
        lines.append(f"  Broken refs:                       {s.broken_refs}")
        lines.append("")
        return "\n".join(lines)
