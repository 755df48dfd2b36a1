import json

import pytest

from ontolex.cli import main

NAMESPACE = "org.test"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "ONTOLEX_ONTOLOGY",
        "ONTOLEX_MAPPING",
        "ONTOLEX_OUTPUT",
        "ONTOLEX_NAMESPACE",
        "ONTOLEX_CONFIG",
        "ONTOLEX_DRY_RUN",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def input_args(ontology_file, mapping_file):
    return [
        "--ontology", str(ontology_file),
        "--mapping", str(mapping_file),
        "--namespace", NAMESPACE,
    ]


@pytest.fixture
def generated(tmp_path, input_args, capsys):
    out = tmp_path / "out"
    main(["generate", *input_args, "--output", str(out)])
    capsys.readouterr()
    return out


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "generate" in capsys.readouterr().out


def test_generate_writes_tree(tmp_path, input_args, capsys):
    out = tmp_path / "out"
    main(["generate", *input_args, "--output", str(out)])

    stdout = capsys.readouterr().out
    assert "org.test.observation.economicEvent:" in stdout
    assert (out / "org" / "test" / "defs.json").exists()
    assert (out / "org" / "test" / "observation" / "listEconomicEvents.json").exists()


def test_generate_dry_run_writes_nothing(tmp_path, input_args, capsys):
    out = tmp_path / "out"
    main(["generate", *input_args, "--output", str(out), "--dry-run"])
    assert not out.exists()
    assert "dry run" in capsys.readouterr().out


def test_generate_without_queries(tmp_path, input_args):
    out = tmp_path / "out"
    main(["generate", *input_args, "--output", str(out), "--no-queries"])
    assert not list(out.rglob("list*.json"))


def test_missing_ontology_exits_nonzero(tmp_path, mapping_file, capsys):
    with pytest.raises(SystemExit) as exc:
        main([
            "generate",
            "--ontology", str(tmp_path / "absent.json"),
            "--mapping", str(mapping_file),
            "--output", str(tmp_path / "out"),
        ])
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_audit_json(generated, input_args, capsys):
    main(["audit", *input_args, "--input", str(generated), "--json"])
    report = json.loads(capsys.readouterr().out)
    assert report["summary"]["missing"] == 0
    assert report["summary"]["broken_refs"] == 0
    assert [u["class_name"] for u in report["unmapped_classes"]] == ["Commitment"]


def test_audit_text(generated, input_args, capsys):
    main(["audit", *input_args, "--input", str(generated)])
    assert "SUMMARY" in capsys.readouterr().out


def test_audit_fail_on_findings(generated, input_args):
    # Commitment is never mapped
    with pytest.raises(SystemExit) as exc:
        main(["audit", *input_args, "--input", str(generated), "--fail-on-findings"])
    assert exc.value.code == 1


def test_queries_dry_run(lexicon_root, capsys):
    main(["queries", "--input", str(lexicon_root), "--dry-run"])
    stdout = capsys.readouterr().out
    assert "org.test.observation.economicEvent → org.test.observation.listEconomicEvents" in stdout
    assert "provider (did)" in stdout
    assert "dry run" in stdout
    assert not list(lexicon_root.rglob("list*.json"))


def test_queries_writes_beside_records(lexicon_root, capsys):
    main(["queries", "--input", str(lexicon_root)])
    assert (lexicon_root / "org" / "test" / "observation" / "listProcesses.json").exists()


def test_inline(tmp_path, lexicon_root, capsys):
    out = tmp_path / "inlined"
    main(["inline", "--input", str(lexicon_root), "--output", str(out), "--namespace", NAMESPACE])

    dependency_map = json.loads((out / "dependency-map.json").read_text())
    assert "org.test.observation.economicEvent" in dependency_map["schemaRefs"]
    assert "Dependency map written to" in capsys.readouterr().out


def test_inline_without_defs_document(tmp_path, lexicon_root, capsys):
    with pytest.raises(SystemExit):
        main(["inline", "--input", str(lexicon_root), "--output", str(tmp_path / "x")])
    assert "org.openassociation.defs" in capsys.readouterr().err


def test_env_dump(capsys):
    main(["env", "--format", "env"])
    stdout = capsys.readouterr().out
    assert "ONTOLEX_NAMESPACE=org.openassociation" in stdout
    assert "ONTOLEX_ONTOLOGY=specs/vf/vf.json" in stdout


def test_malformed_config_exits_nonzero(tmp_path, input_args, capsys):
    config = tmp_path / "bad.yaml"
    config.write_text("distributions: [unclosed\n")
    with pytest.raises(SystemExit) as exc:
        main(["generate", *input_args, "--config", str(config), "--dry-run"])
    assert exc.value.code == 1
    assert "not valid YAML" in capsys.readouterr().err
