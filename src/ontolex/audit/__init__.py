"""Ontology/lexicon drift auditing."""

from ontolex.audit.auditor import Auditor
from ontolex.audit.report import AuditReport

__all__ = ["Auditor", "AuditReport"]
