"""
Inlined Lexicon Generator

Produces a self-contained variant of a lexicon tree: every reference to the
shared measure def is rewritten to a local `#measure` and the def is copied
into the referencing document, so the defs document is no longer needed.
"""

import copy
from pathlib import Path
from typing import Any

import structlog

from ontolex.errors import OntolexError
from ontolex.schema.mapping import nsid_to_path
from ontolex.utils import write_json

logger = structlog.get_logger()


def _inline_refs(value: Any, shared_ref: str, local_ref: str) -> tuple[Any, int]:
    """Copy of value with every `ref == shared_ref` rewritten, plus the count."""
    if isinstance(value, list):
        total = 0
        items = []
        for item in value:
            new_item, count = _inline_refs(item, shared_ref, local_ref)
            items.append(new_item)
            total += count
        return items, total

    if isinstance(value, dict):
        total = 0
        result = {}
        for key, item in value.items():
            if key == "ref" and item == shared_ref:
                result[key] = local_ref
                total += 1
            else:
                result[key], count = _inline_refs(item, shared_ref, local_ref)
                total += count
        return result, total

    return value, 0


def inline_documents(
    documents: dict[str, dict[str, Any]],
    defs_id: str,
    def_name: str = "measure",
) -> tuple[dict[str, dict[str, Any]], dict[str, Any]]:
    """
    Inline the shared def into every document that references it.

    Args:
        documents: Lexicons keyed by id, including the defs document
        defs_id: Id of the shared defs document
        def_name: Name of the def to inline

    Returns:
        (inlined documents without the defs document, dependency map)

    Raises:
        OntolexError: If the defs document or the def is missing
    """
    defs_doc = documents.get(defs_id)
    shared_def = ((defs_doc or {}).get("defs") or {}).get(def_name)
    if shared_def is None:
        raise OntolexError(f"Could not find {defs_id}#{def_name} in the input lexicons")

    shared_ref = f"{defs_id}#{def_name}"
    local_ref = f"#{def_name}"

    inlined: dict[str, dict[str, Any]] = {}
    schema_refs: dict[str, list[str]] = {}
    self_contained: list[str] = []

    for nsid in sorted(documents):
        if nsid == defs_id:
            continue
        result, count = _inline_refs(documents[nsid], shared_ref, local_ref)
        if count:
            result.setdefault("defs", {})[def_name] = copy.deepcopy(shared_def)
            schema_refs[nsid] = [shared_ref]
            logger.info("lexicon_inlined", nsid=nsid, refs=count)
        else:
            self_contained.append(nsid)
        inlined[nsid] = result

    dependency_map = {"schemaRefs": schema_refs, "selfContained": self_contained}
    return inlined, dependency_map


def write_inlined_tree(
    documents: dict[str, dict[str, Any]],
    dependency_map: dict[str, Any],
    output_root: Path,
) -> Path:
    """Write the inlined lexicons and `dependency-map.json`; returns the map path."""
    for nsid, lexicon in documents.items():
        write_json(nsid_to_path(nsid, output_root), lexicon)
    map_path = write_json(output_root / "dependency-map.json", dependency_map)
    logger.info("dependency_map_written", path=str(map_path), documents=len(documents))
    return map_path
