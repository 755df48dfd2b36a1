import json

import pytest

from ontolex.audit.auditor import Auditor, compare_fields, find_broken_references, resolve_ref
from ontolex.audit.report import AuditReport
from ontolex.schema.fields import (
    URI,
    ArrayOf,
    CrossDocRef,
    EmbeddedRef,
    Scalar,
    ScalarKind,
    identity_ref,
)
from ontolex.schema.generators.query_lexicon import derive_query_documents
from ontolex.schema.generators.record_lexicon import write_documents
from ontolex.schema.mapping import nsid_to_path

EVENT = "org.test.observation.economicEvent"
PROCESS = "org.test.observation.process"


@pytest.fixture
def auditor(graph, mapping, config, namespace):
    return Auditor(graph, mapping, config, namespace)


def edit_lexicon(root, nsid, edit):
    path = nsid_to_path(nsid, root)
    data = json.loads(path.read_text())
    edit(data)
    path.write_text(json.dumps(data, indent=2))


def record_props(data):
    return data["defs"]["main"]["record"]["properties"]


class TestRoundTrip:
    def test_fresh_output_is_clean(self, auditor, lexicon_root):
        report = auditor.audit_directory(lexicon_root)
        assert report.summary.missing == 0
        assert report.summary.mismatched == 0
        assert report.summary.extra == 0
        assert report.summary.broken_refs == 0
        assert report.summary.missing_documents == 0
        assert report.summary.total_properties > 0

    def test_unmapped_classes(self, auditor, lexicon_root):
        report = auditor.audit_directory(lexicon_root)
        assert [u.class_name for u in report.unmapped_classes] == ["Commitment"]
        assert report.unmapped_classes[0].status == "unstable"
        assert report.summary.unmapped_classes == 1

    def test_discriminator_and_measure_agree(self, auditor, lexicon_root):
        report = auditor.audit_directory(lexicon_root)
        assert report.discriminator.individuals == ["consume", "produce"]
        assert report.discriminator.known_values == ["consume", "produce"]
        assert report.discriminator.individual_properties == ["inputOutput", "pairsWith"]
        assert report.discriminator.issue_count == 0
        assert report.measure.found
        assert report.measure.missing == []

    def test_ignores_generated_queries(self, auditor, tmp_path, records):
        write_documents(records + derive_query_documents(records), tmp_path)
        report = auditor.audit_directory(tmp_path)
        assert report.summary.extra == 0
        assert report.summary.broken_refs == 0


class TestFindings:
    def test_hand_deleted_property_is_missing(self, auditor, lexicon_root):
        edit_lexicon(lexicon_root, EVENT, lambda d: record_props(d).pop("hasPointInTime"))

        report = auditor.audit_directory(lexicon_root)
        assert report.summary.missing == 1
        [missing] = report.missing_properties
        assert missing.nsid == EVENT
        assert missing.property == "hasPointInTime"
        assert missing.range == "xsd:dateTimeStamp"

        text = report.render_text()
        assert f"  {EVENT}:" in text
        assert "✗ hasPointInTime" in text

    def test_dangling_reference(self, auditor, lexicon_root):
        def add_ref(data):
            record_props(data)["ownerOf"] = {"type": "ref", "ref": "org.test.nothing.here"}

        edit_lexicon(lexicon_root, PROCESS, add_ref)

        report = auditor.audit_directory(lexicon_root)
        assert report.summary.broken_refs == 1
        [broken] = report.broken_references
        assert broken.nsid == PROCESS
        assert broken.path == "main.ownerOf"
        assert broken.missing_target == "org.test.nothing.here"
        # Fields the ontology does not declare are reported as additions
        assert [e.property for e in report.extra_properties] == ["ownerOf"]

    def test_format_mismatch(self, auditor, lexicon_root):
        edit_lexicon(
            lexicon_root, EVENT, lambda d: record_props(d)["provider"].update(format="at-uri")
        )
        report = auditor.audit_directory(lexicon_root)
        [mismatch] = report.type_mismatches
        assert mismatch.property == "provider"
        assert mismatch.issues == ["format mismatch: expected did, got at-uri"]

    def test_ref_mismatch(self, auditor, lexicon_root):
        edit_lexicon(
            lexicon_root,
            EVENT,
            lambda d: record_props(d)["effortRatio"].update(ref="org.test.defs#other"),
        )
        report = auditor.audit_directory(lexicon_root)
        assert [m.property for m in report.type_mismatches] == ["effortRatio"]
        assert report.type_mismatches[0].lexicon_ref == "org.test.defs#other"
        assert report.summary.broken_refs == 1

    def test_array_widening_is_accepted(self, auditor, lexicon_root):
        def widen(data):
            record_props(data)["finished"] = {"type": "array", "items": {"type": "boolean"}}

        edit_lexicon(lexicon_root, PROCESS, widen)
        assert auditor.audit_directory(lexicon_root).summary.mismatched == 0

    def test_scalar_where_array_expected(self, auditor, lexicon_root):
        edit_lexicon(
            lexicon_root,
            "org.test.agent.person",
            lambda d: record_props(d).update(relatedAgent={"type": "string", "format": "did"}),
        )
        report = auditor.audit_directory(lexicon_root)
        [mismatch] = report.type_mismatches
        assert mismatch.issues == ["type mismatch: expected array, got string"]

    def test_missing_document(self, auditor, lexicon_root):
        nsid_to_path("org.test.knowledge.unit", lexicon_root).unlink()
        report = auditor.audit_directory(lexicon_root)
        assert [(d.class_name, d.nsid) for d in report.missing_documents] == [
            ("Unit", "org.test.knowledge.unit")
        ]
        assert report.has_findings

    def test_incomplete_measure_def(self, auditor, lexicon_root):
        edit_lexicon(
            lexicon_root,
            "org.test.defs",
            lambda d: d["defs"]["measure"]["properties"].pop("hasDenominator"),
        )
        report = auditor.audit_directory(lexicon_root)
        assert report.measure.missing == ["hasDenominator"]
        assert "✗ Missing: hasDenominator" in report.render_text()

    def test_discriminator_drift(self, auditor, lexicon_root):
        def drop(data):
            record_props(data)["actionId"]["knownValues"] = ["produce", "transfer"]
            record_props(data).pop("pairsWith")

        edit_lexicon(lexicon_root, "org.test.knowledge.action", drop)
        disc = auditor.audit_directory(lexicon_root).discriminator
        assert disc.missing_values == ["consume"]
        assert disc.extra_values == ["transfer"]
        assert disc.missing_properties == ["pairsWith"]

    def test_unreadable_file_is_skipped(self, auditor, lexicon_root):
        (lexicon_root / "broken.json").write_text("{oops")
        report = auditor.audit_directory(lexicon_root)
        assert report.summary.missing == 0


class TestCompareFields:
    def test_lossy_expectation_skips_kind(self):
        expected = Scalar(ScalarKind.STRING, note="stored as string")
        assert compare_fields(expected, Scalar(ScalarKind.INTEGER)) == []

    def test_kind_mismatch(self):
        issues = compare_fields(Scalar(ScalarKind.BOOLEAN), Scalar(ScalarKind.INTEGER))
        assert issues == ["type mismatch: expected boolean, got integer"]

    def test_array_items_formats_compared(self):
        issues = compare_fields(ArrayOf(CrossDocRef()), ArrayOf(identity_ref()))
        assert issues == ["format mismatch: expected at-uri, got did"]

    def test_ref_expected_got_string(self):
        issues = compare_fields(EmbeddedRef("a.defs#measure"), Scalar(ScalarKind.STRING))
        assert issues == ["type mismatch: expected ref, got string"]

    def test_format_only_checked_when_expected(self):
        assert compare_fields(Scalar(ScalarKind.STRING), Scalar(ScalarKind.STRING, format=URI)) == []


class TestReferenceSweep:
    def test_resolve_ref_forms(self):
        docs = {
            "a.defs": {"defs": {"measure": {"type": "object"}}},
            "a.rec": {"defs": {"main": {"type": "record"}, "local": {"type": "object"}}},
        }
        assert resolve_ref("a.defs#measure", "a.rec", docs) is None
        assert resolve_ref("#local", "a.rec", docs) is None
        assert resolve_ref("a.rec", "a.defs", docs) is None
        assert resolve_ref("#nope", "a.rec", docs) == "a.rec#nope"
        assert resolve_ref("a.defs", "a.rec", docs) == "a.defs#main"
        assert resolve_ref("b.none#x", "a.rec", docs) == "b.none"

    def test_refs_in_non_main_defs_and_unions(self):
        docs = {
            "a.rec": {
                "defs": {
                    "main": {"type": "record", "record": {"type": "object", "properties": {}}},
                    "detail": {
                        "type": "object",
                        "properties": {
                            "items": {"type": "array", "items": {"type": "ref", "ref": "#gone"}},
                            "choice": {"type": "union", "refs": ["a.rec#detail", "x.y"]},
                        },
                    },
                }
            }
        }
        broken = find_broken_references(docs)
        assert [(b.path, b.missing_target) for b in broken] == [
            ("detail.items[]", "a.rec#gone"),
            ("detail.choice", "x.y"),
        ]


def test_json_report_round_trips(auditor, lexicon_root):
    report = auditor.audit_directory(lexicon_root)
    data = json.loads(report.model_dump_json(indent=2))
    assert data["summary"]["missing"] == 0
    assert AuditReport.model_validate(data).summary == report.summary


def test_text_report_sections_in_order(auditor, lexicon_root):
    text = auditor.audit_directory(lexicon_root).render_text()
    headings = [
        "1. CLASSES NOT MAPPED",
        "2. PROPERTIES MISSING",
        "3. PROPERTIES IN LEXICONS",
        "4. TYPE/FORMAT MISMATCHES",
        "5. ACTION NAMED INDIVIDUALS",
        "6. SHARED MEASURE DEFINITION",
        "7. CROSS-REFERENCE INTEGRITY",
        "SUMMARY",
    ]
    positions = [text.index(h) for h in headings]
    assert positions == sorted(positions)
    assert "✗ Commitment" in text
