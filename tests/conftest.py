"""Shared fixtures: a small ValueFlows-shaped ontology and its class mapping."""

import json

import pytest
import structlog

from ontolex.config import GeneratorConfig
from ontolex.schema.generators.record_lexicon import generate_record_documents, write_documents
from ontolex.schema.loader import build_graph
from ontolex.schema.mapping import ClassMapping

NAMESPACE = "org.test"


def _cls(name, comment=None, label=None, parent=None, status=None):
    node = {"@id": f"vf:{name}", "@type": "owl:Class"}
    node["rdfs:label"] = label if label is not None else name
    if comment:
        node["rdfs:comment"] = comment
    if parent:
        node["rdfs:subClassOf"] = {"@id": f"vf:{parent}"}
    if status:
        node["vs:term_status"] = status
    return node


def _prop(name, domain, range_, obj=True, comment=None, **extra):
    node = {
        "@id": f"vf:{name}",
        "@type": "owl:ObjectProperty" if obj else "owl:DatatypeProperty",
        "rdfs:domain": domain,
        "rdfs:range": range_,
    }
    if comment:
        node["rdfs:comment"] = comment
    node.update(extra)
    return node


def _individual(name, cls, **extra):
    node = {
        "@id": f"vf:{name}",
        "@type": ["owl:NamedIndividual", f"vf:{cls}"],
        "rdfs:label": {"@value": name, "@language": "en"},
    }
    node.update(extra)
    return node


ONTOLOGY = {
    "@context": {"vf": "https://w3id.org/valueflows/ont/vf#"},
    "@graph": [
        _cls("Agent", comment="A person or group or organization with economic agency."),
        _cls("Person", parent="Agent"),
        _cls("Organization", parent="Agent"),
        _cls("EcologicalAgent", parent="Agent"),
        _cls("EconomicEvent", comment="An observed economic flow."),
        {
            "@id": "vf:Process",
            "@type": "owl:Class",
            "rdfs:label": [
                {"@value": "Processus", "@language": "fr"},
                {"@value": "Process", "@language": "en"},
            ],
        },
        _cls("Action", comment="An action verb defining the kind of event."),
        _cls("Unit", comment="A unit of measure."),
        _cls("Measure"),
        _cls("Agreenent", comment="Any type of agreement among economic agents."),
        _cls("Proposal", comment="Published requests or offers."),
        _cls("ProposalPurpose"),
        _cls("InputOutput"),
        _cls("Commitment", status="unstable"),
        {
            "@id": "vf:ProcessOrEvent",
            "@type": "owl:Class",
            "owl:unionOf": {"@list": [{"@id": "vf:Process"}, {"@id": "vf:EconomicEvent"}]},
        },
        # Agent properties, distributed to the concrete agents
        _prop("name", {"@id": "vf:Agent"}, "xsd:string", obj=False, comment="The name."),
        _prop("relatedAgent", {"@id": "vf:Agent"}, {"@id": "vf:Agent"}),
        # EconomicEvent
        _prop(
            "provider",
            {"@id": "vf:EconomicEvent"},
            {"@id": "vf:Agent"},
            **{"@type": ["owl:ObjectProperty", "owl:FunctionalProperty"], "owl:maxCardinality": "1"},
        ),
        _prop("action", {"@id": "vf:EconomicEvent"}, {"@id": "vf:Action"}, **{"owl:cardinality": 1}),
        _prop(
            "resourceQuantity",
            {"@id": "vf:EconomicEvent"},
            {"@id": "vf:Measure"},
            **{"owl:maxCardinality": 1},
        ),
        _prop("effortRatio", {"@id": "vf:EconomicEvent"}, "xsd:decimal", obj=False),
        _prop("hasPointInTime", {"@id": "vf:EconomicEvent"}, "xsd:dateTimeStamp", obj=False),
        _prop(
            "note",
            [{"@id": "vf:EconomicEvent"}, {"@id": "vf:Process"}],
            "xsd:string",
            obj=False,
        ),
        _prop("inputOf", {"@id": "vf:EconomicEvent"}, {"@id": "vf:Process"}, **{"owl:maxCardinality": 1}),
        _prop("triggeredBy", {"@id": "vf:EconomicEvent"}, {"@id": "vf:ProcessOrEvent"}),
        _prop("classifiedAs", {"@id": "vf:EconomicEvent"}, "xsd:anyURI"),
        # Process
        _prop("finished", {"@id": "vf:Process"}, "xsd:boolean", obj=False),
        _prop("imageList", {"@id": "vf:Process"}, "xsd:anyURI", obj=False),
        _prop("hasGeometry", {"@id": "vf:Process"}, "geosparql:Geometry", obj=False),
        _prop("mystery", {"@id": "vf:Process"}, {"@id": "vf:Nonexistent"}),
        _prop(
            "inScopeOf",
            {"owl:unionOf": {"@list": [{"@id": "vf:Process"}, {"@id": "vf:Proposal"}]}},
            {"owl:unionOf": [{"@id": "vf:Person"}, {"@id": "vf:Organization"}]},
        ),
        # Proposal
        _prop("purpose", {"@id": "vf:Proposal"}, {"@id": "vf:ProposalPurpose"}),
        # Unit
        _prop(
            "symbol",
            {"@id": "vf:Unit"},
            "xsd:string",
            obj=False,
            **{"owl:cardinality": {"@value": "1", "@type": "xsd:nonNegativeInteger"}},
        ),
        # Action and its effects
        _prop(
            "inputOutput",
            [{"@id": "vf:Action"}, {"@id": "vf:EconomicEvent"}],
            {"@id": "vf:InputOutput"},
        ),
        _prop("pairsWith", {"@id": "vf:Action"}, {"@id": "vf:Action"}),
        # Measure
        _prop("hasNumericalValue", {"@id": "vf:Measure"}, "xsd:double", obj=False),
        # Named individuals
        _individual("gamma", "ProposalPurpose"),
        _individual("alpha", "ProposalPurpose"),
        _individual("beta", "ProposalPurpose"),
        _individual("input", "InputOutput"),
        _individual("output", "InputOutput"),
        _individual(
            "produce",
            "Action",
            **{"vf:inputOutput": {"@id": "vf:output"}, "vf:pairsWith": {"@id": "vf:consume"}},
        ),
        _individual("consume", "Action", **{"vf:inputOutput": {"@id": "vf:input"}}),
    ],
}

MAPPING = {
    "vf:EconomicEvent": "org.test.observation.economicEvent",
    "Process": "org.test.observation.process",
    "Action": "org.test.knowledge.action",
    "Unit": "org.test.knowledge.unit",
    "Person": "org.test.agent.person",
    "Organization": "org.test.agent.organization",
    "EcologicalAgent": "org.test.agent.ecologicalAgent",
    "Proposal": "org.test.proposal.proposal",
    "Agreement": "org.test.agreement.agreement",
}


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def ontology_data():
    return json.loads(json.dumps(ONTOLOGY))


@pytest.fixture
def config():
    return GeneratorConfig()


@pytest.fixture
def graph(ontology_data, config):
    return build_graph(ontology_data["@graph"], config)


@pytest.fixture
def mapping(config):
    return ClassMapping.from_dict(MAPPING, config.prefix)


@pytest.fixture
def ontology_file(tmp_path, ontology_data):
    path = tmp_path / "vf.json"
    path.write_text(json.dumps(ontology_data))
    return path


@pytest.fixture
def mapping_file(tmp_path):
    path = tmp_path / "class-to-nsid.json"
    path.write_text(json.dumps(MAPPING))
    return path


@pytest.fixture
def namespace():
    return NAMESPACE


@pytest.fixture
def records(graph, mapping, config):
    return generate_record_documents(graph, mapping, config, NAMESPACE)


@pytest.fixture
def lexicon_root(tmp_path, records):
    root = tmp_path / "lexicons"
    write_documents(records, root)
    return root
