"""
Class Mapping

Flat mapping from ontology class names to lexicon NSIDs
(e.g. `"EconomicEvent": "org.openassociation.economicEvent"`), and the
NSID helpers shared by every generator.
"""

import json
from pathlib import Path
from typing import Any, Iterator

import structlog

from ontolex.errors import OntologyFormatError
from ontolex.utils import read_json

logger = structlog.get_logger()


def nsid_group(nsid: str) -> str:
    """Everything before the last segment."""
    return nsid.rsplit(".", 1)[0] if "." in nsid else ""


def nsid_name(nsid: str) -> str:
    """Last segment."""
    return nsid.rsplit(".", 1)[-1]


def nsid_to_path(nsid: str, root: Path) -> Path:
    """`a.b.c` -> `root/a/b/c.json`."""
    parts = nsid.split(".")
    return root.joinpath(*parts[:-1], f"{parts[-1]}.json")


class ClassMapping:
    """Class name -> NSID, in file order."""

    def __init__(self, entries: dict[str, str]):
        self._entries = dict(entries)

    @classmethod
    def from_dict(cls, data: dict[str, str], prefix: str = "") -> "ClassMapping":
        """Keys may be given with or without the ontology prefix."""
        entries = {}
        for name, nsid in data.items():
            if prefix and name.startswith(prefix):
                name = name[len(prefix):]
            entries[name] = nsid
        return cls(entries)

    @classmethod
    def from_json(cls, path: str | Path, prefix: str = "") -> "ClassMapping":
        """
        Load a mapping file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            OntologyFormatError: If it is not a flat JSON object of strings
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Mapping file not found: {path}")
        try:
            data = read_json(path)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise OntologyFormatError(str(path), f"not valid JSON ({e})") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise OntologyFormatError(str(path), "expected a flat object of class -> NSID")
        return cls.from_dict(data, prefix)

    def nsid_for(self, class_name: str) -> str | None:
        return self._entries.get(class_name)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._entries.items())

    def __contains__(self, class_name: object) -> bool:
        return class_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def load_lexicon_tree(root: str | Path) -> dict[str, dict[str, Any]]:
    """
    Read every lexicon file under root, keyed by its `id`.

    Files that are not valid JSON or carry no `id` are logged and skipped.
    """
    root = Path(root)
    documents: dict[str, dict[str, Any]] = {}
    for path in sorted(root.rglob("*.json")):
        try:
            data = read_json(path)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("lexicon_unreadable", path=str(path), error=str(e))
            continue
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            logger.warning("lexicon_without_id", path=str(path))
            continue
        documents[data["id"]] = data
    return documents
