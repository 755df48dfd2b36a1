"""
Errors raised by ontolex.

Only malformed input is raised. Everything found while auditing is
accumulated into the audit report instead.
"""


class OntolexError(Exception):
    """Base class for ontolex errors."""


class OntologyFormatError(OntolexError, ValueError):
    """An ontology or mapping file could not be read as the expected shape."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
