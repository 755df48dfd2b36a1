#!/usr/bin/env python3
"""
CLI for ontolex.

Usage:
    ontolex generate                 # Ontology -> record, defs and query lexicons
    ontolex generate --dry-run       # Report without writing
    ontolex queries --dry-run        # Show filters derived from on-disk records
    ontolex inline --input lexicons --output lexicons-inlined
    ontolex audit                    # Drift report on stdout
    ontolex audit --json             # Same report as JSON
    ontolex env --format md          # Dump env vars as markdown
"""

import argparse
import sys
from pathlib import Path

import structlog

from ontolex.audit.auditor import Auditor
from ontolex.config import GeneratorConfig, RunSettings
from ontolex.errors import OntolexError
from ontolex.pipeline import derive_queries_from_tree, run_pipeline
from ontolex.schema.generators.inlined_lexicon import inline_documents, write_inlined_tree
from ontolex.schema.generators.query_lexicon import derive_filters
from ontolex.schema.loader import load_ontology
from ontolex.schema.mapping import ClassMapping, load_lexicon_tree
from ontolex.utils import dump_env_config


def configure_logging() -> None:
    """Send log events to stderr so stdout carries only reports."""
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))


def _settings(args) -> RunSettings:
    return RunSettings.from_env(
        ontology_path=getattr(args, "ontology", None),
        mapping_path=getattr(args, "mapping", None),
        output_root=getattr(args, "output", None),
        namespace=getattr(args, "namespace", None),
        config_path=getattr(args, "config", None),
        dry_run=getattr(args, "dry_run", None) or None,
    )


def cmd_generate(args):
    """Generate record, defs and query lexicons."""
    settings = _settings(args)
    result = run_pipeline(settings, with_queries=not args.no_queries)

    print(f"Generated lexicons for {settings.ontology_path} -> {settings.output_root}")
    print(result.summary())
    if settings.dry_run:
        print("  Mode: dry run (no files written)")


def cmd_queries(args):
    """Derive list query lexicons from on-disk record lexicons."""
    root = Path(args.input) if args.input else _settings(args).output_root
    result = derive_queries_from_tree(root, dry_run=args.dry_run)

    total_filters = 0
    for record, query in zip(result.records, result.queries):
        filters = derive_filters(record.fields)
        total_filters += len(filters)
        print(f"  {record.id} → {query.id}")
        for f in filters:
            print(f"    {f}")
        if not filters:
            print("    (pagination only, no derived filters)")

    print()
    print(f"  Queries derived: {len(result.queries)}")
    print(f"  Total filter params: {total_filters}")
    print(f"  Mode: {'dry run (no files written)' if args.dry_run else 'files written'}")


def cmd_inline(args):
    """Write the self-contained lexicon variant."""
    # --output here is the inlined tree, not the generator output root
    settings = RunSettings.from_env(namespace=args.namespace)
    source = Path(args.input) if args.input else settings.output_root
    documents = load_lexicon_tree(source)
    inlined, dependency_map = inline_documents(documents, settings.defs_id)
    map_path = write_inlined_tree(inlined, dependency_map, Path(args.output))

    print(f"  Input documents:  {len(documents)}")
    print(f"  Output documents: {len(inlined)} ({settings.defs_id} omitted)")
    print(f"  Inlined:          {', '.join(dependency_map['schemaRefs']) or 'none'}")
    print(f"  Self-contained:   {', '.join(dependency_map['selfContained']) or 'none'}")
    print(f"\nDependency map written to: {map_path}")


def cmd_audit(args):
    """Audit a lexicon tree against the ontology."""
    settings = _settings(args)
    config = GeneratorConfig.load(settings.config_path)
    graph = load_ontology(settings.ontology_path, config)
    mapping = ClassMapping.from_json(settings.mapping_path, config.prefix)
    root = Path(args.input) if args.input else settings.output_root

    report = Auditor(graph, mapping, config, settings.namespace).audit_directory(root)
    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print(report.render_text())

    if args.fail_on_findings and report.has_findings:
        sys.exit(1)


def cmd_env(args):
    """Dump environment variable configuration."""
    # Resolving the settings registers every variable a run reads
    RunSettings.from_env()
    print(dump_env_config(format=args.format, include_values=not args.no_values))


def _add_input_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--ontology", help="JSON-LD ontology file (ONTOLEX_ONTOLOGY)")
    parser.add_argument("--mapping", help="Class -> NSID mapping file (ONTOLEX_MAPPING)")
    parser.add_argument("--namespace", help="Namespace of the defs document (ONTOLEX_NAMESPACE)")
    parser.add_argument("--config", help="YAML generator config (ONTOLEX_CONFIG)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ontolex",
        description="OWL JSON-LD ontology -> AT Protocol lexicon compiler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # generate command
    generate_parser = subparsers.add_parser("generate", help="Generate lexicons")
    _add_input_args(generate_parser)
    generate_parser.add_argument("--output", "-o", help="Output root (ONTOLEX_OUTPUT)")
    generate_parser.add_argument("--dry-run", action="store_true", help="Do not write files")
    generate_parser.add_argument(
        "--no-queries", action="store_true", help="Skip list query derivation"
    )
    generate_parser.set_defaults(func=cmd_generate)

    # queries command
    queries_parser = subparsers.add_parser("queries", help="Derive list queries from records")
    queries_parser.add_argument("--input", "-i", help="Lexicon root (default: ONTOLEX_OUTPUT)")
    queries_parser.add_argument("--dry-run", action="store_true", help="Do not write files")
    queries_parser.set_defaults(func=cmd_queries)

    # inline command
    inline_parser = subparsers.add_parser("inline", help="Write self-contained lexicons")
    inline_parser.add_argument("--input", "-i", help="Lexicon root (default: ONTOLEX_OUTPUT)")
    inline_parser.add_argument("--output", "-o", required=True, help="Output root")
    inline_parser.add_argument("--namespace", help="Namespace of the defs document")
    inline_parser.set_defaults(func=cmd_inline)

    # audit command
    audit_parser = subparsers.add_parser("audit", help="Audit lexicons against the ontology")
    _add_input_args(audit_parser)
    audit_parser.add_argument("--input", "-i", help="Lexicon root (default: ONTOLEX_OUTPUT)")
    audit_parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    audit_parser.add_argument(
        "--fail-on-findings",
        action="store_true",
        help="Exit 1 when anything besides additions is reported",
    )
    audit_parser.set_defaults(func=cmd_audit)

    # env command
    env_parser = subparsers.add_parser("env", help="Dump environment variables")
    env_parser.add_argument(
        "--format", "-f",
        choices=["json", "md", "markdown", "env"],
        default="json",
        help="Output format (default: json)",
    )
    env_parser.add_argument(
        "--no-values",
        action="store_true",
        help="Exclude current values from output",
    )
    env_parser.set_defaults(func=cmd_env)

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging()
    try:
        args.func(args)
    except (FileNotFoundError, OntolexError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
