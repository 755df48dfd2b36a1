"""
Generation pipeline.

One run: load ontology + mapping -> emit records and the defs document ->
derive list queries -> write. Every input is read and validated before the
first file is written.
"""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from ontolex.config import GeneratorConfig, RunSettings
from ontolex.schema.fields import DocumentKind, SchemaDocument
from ontolex.schema.generators.query_lexicon import derive_query_documents
from ontolex.schema.generators.record_lexicon import (
    generate_record_documents,
    unresolved_references,
    write_documents,
)
from ontolex.schema.loader import load_ontology
from ontolex.schema.mapping import ClassMapping, load_lexicon_tree

logger = structlog.get_logger()


@dataclass
class PipelineResult:
    """Documents produced by one run and the files written for them."""

    records: list[SchemaDocument] = field(default_factory=list)
    queries: list[SchemaDocument] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    # (document id, field, target) of references to documents not emitted
    unresolved: list[tuple[str, str, str]] = field(default_factory=list)

    @property
    def documents(self) -> list[SchemaDocument]:
        return self.records + self.queries

    def summary(self) -> str:
        """Per-document property counts."""
        lines = []
        for doc in self.documents:
            if doc.kind == DocumentKind.DEFS:
                count = sum(len(d.properties) for d in doc.embedded_defs.values())
                lines.append(f"  {doc.id}: {count} def properties")
            elif doc.kind == DocumentKind.QUERY:
                lines.append(f"  {doc.id}: {len(doc.fields)} parameters")
            else:
                lines.append(
                    f"  {doc.id}: {len(doc.fields)} properties ({len(doc.required)} required)"
                )
        lines.append("")
        lines.append(f"  Records: {len(self.records)}  Queries: {len(self.queries)}")
        lines.append(f"  Files written: {len(self.written)}")
        if self.unresolved:
            lines.append(f"  Unresolved references: {len(self.unresolved)}")
        return "\n".join(lines)


def run_pipeline(
    settings: RunSettings,
    config: GeneratorConfig | None = None,
    with_queries: bool = True,
) -> PipelineResult:
    """
    Generate the lexicon tree described by settings.

    Raises:
        FileNotFoundError: If the ontology or mapping file doesn't exist
        OntologyFormatError: If either file is malformed
    """
    config = config or GeneratorConfig.load(settings.config_path)
    graph = load_ontology(settings.ontology_path, config)
    mapping = ClassMapping.from_json(settings.mapping_path, config.prefix)

    result = PipelineResult()
    result.records = generate_record_documents(graph, mapping, config, settings.namespace)
    if with_queries:
        result.queries = derive_query_documents(result.records)

    result.unresolved = unresolved_references(result.records)
    for nsid, path, target in result.unresolved:
        logger.warning("unresolved_reference", nsid=nsid, field=path, target=target)

    if settings.dry_run:
        logger.info("dry_run", documents=len(result.documents))
    else:
        result.written = write_documents(result.documents, settings.output_root)

    logger.info(
        "pipeline_complete",
        records=len(result.records),
        queries=len(result.queries),
        written=len(result.written),
        unresolved=len(result.unresolved),
    )
    return result


def derive_queries_from_tree(root: Path, dry_run: bool = False) -> PipelineResult:
    """Derive list queries from the record lexicons already under root."""
    records = [
        SchemaDocument.from_lexicon(data)
        for data in load_lexicon_tree(root).values()
        if (data.get("defs") or {}).get("main", {}).get("type") == "record"
    ]
    records.sort(key=lambda doc: doc.id)
    result = PipelineResult(records=records, queries=derive_query_documents(records))
    logger.info("queries_derived", records=len(records), queries=len(result.queries))

    if not dry_run:
        result.written = write_documents(result.queries, root)
    return result
