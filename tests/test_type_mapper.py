import pytest

from ontolex.config import GeneratorConfig
from ontolex.schema.fields import (
    DATETIME,
    DID,
    URI,
    ArrayOf,
    CrossDocRef,
    EmbeddedRef,
    EnumString,
    Scalar,
    ScalarKind,
    identity_ref,
)
from ontolex.schema.generators.type_mapper import TypeMapper
from ontolex.schema.ontology import PropertyNode

MEASURE_REF = "org.test.defs#measure"
PROCESS_NSID = "org.test.observation.process"


@pytest.fixture
def mapper(graph, mapping, config, namespace):
    return TypeMapper(graph, mapping, config, namespace)


def test_fractional_datatype_routes_to_measure(mapper, graph):
    field_def = mapper.map_property(graph.get_property("effortRatio"))
    assert field_def == EmbeddedRef(MEASURE_REF)
    assert field_def.to_lexicon() == {"type": "ref", "ref": MEASURE_REF}


def test_measure_range(mapper, graph):
    assert mapper.map_property(graph.get_property("resourceQuantity")) == EmbeddedRef(MEASURE_REF)


def test_enumeration_values_sorted(mapper, graph):
    field_def = mapper.map_property(graph.get_property("purpose"))
    assert isinstance(field_def, EnumString)
    assert field_def.values == ("alpha", "beta", "gamma")
    assert field_def.to_lexicon()["knownValues"] == ["alpha", "beta", "gamma"]
    assert field_def.description == "One of the ProposalPurpose enum values"


def test_agent_range_is_did_array_without_cardinality(mapper, graph):
    assert mapper.map_property(graph.get_property("relatedAgent")) == ArrayOf(identity_ref())


def test_agent_range_with_max_one_is_scalar(mapper, graph):
    field_def = mapper.map_property(graph.get_property("provider"))
    assert field_def == Scalar(ScalarKind.STRING, format=DID)


def test_record_range_is_at_uri(mapper, graph):
    field_def = mapper.map_property(graph.get_property("inputOf"))
    assert field_def == CrossDocRef(target=PROCESS_NSID)
    assert field_def.to_lexicon() == {"type": "string", "format": "at-uri"}


def test_union_of_agents(mapper, graph):
    assert mapper.map_property(graph.get_property("inScopeOf")) == ArrayOf(identity_ref())


def test_union_of_records(mapper, graph):
    field_def = mapper.map_property(graph.get_property("triggeredBy"))
    assert field_def == ArrayOf(CrossDocRef())


def test_mixed_union_falls_through_on_first_member(mapper):
    prop = PropertyNode(name="x", range=("Person", "Process"), is_object_property=True)
    assert mapper.map_property(prop) == ArrayOf(identity_ref())


def test_override_wins(mapper, graph):
    field_def = mapper.map_property(graph.get_property("imageList"))
    assert field_def == ArrayOf(Scalar(ScalarKind.STRING, format=URI))


def test_classification_tags_ignore_range(mapper, graph):
    assert mapper.map_property(graph.get_property("classifiedAs")) == ArrayOf(
        Scalar(ScalarKind.STRING)
    )
    single = PropertyNode(
        name="resourceClassifiedAs", range="Process", is_object_property=True, max_cardinality=1
    )
    assert mapper.map_property(single) == Scalar(ScalarKind.STRING)


def test_pairs_with_is_identifier(mapper, graph):
    field_def = mapper.map_property(graph.get_property("pairsWith"))
    assert field_def == Scalar(ScalarKind.STRING, description="Action identifier")


@pytest.mark.parametrize(
    "datatype,expected",
    [
        ("xsd:boolean", Scalar(ScalarKind.BOOLEAN)),
        ("xsd:dateTimeStamp", Scalar(ScalarKind.STRING, format=DATETIME)),
        ("xsd:dateTime", Scalar(ScalarKind.STRING, format=DATETIME)),
        ("xsd:anyURI", Scalar(ScalarKind.STRING, format=URI)),
        ("xsd:string", Scalar(ScalarKind.STRING)),
        ("xsd:integer", Scalar(ScalarKind.INTEGER)),
        ("xsd:int", Scalar(ScalarKind.INTEGER)),
        ("xsd:float", EmbeddedRef(MEASURE_REF)),
        ("xsd:double", EmbeddedRef(MEASURE_REF)),
    ],
)
def test_datatypes(mapper, datatype, expected):
    prop = PropertyNode(name="value", range=datatype)
    assert mapper.map_property(prop) == expected


def test_duration_is_measure(mapper):
    prop = PropertyNode(name="hasDuration", range="time:Duration", is_object_property=True)
    assert mapper.map_property(prop) == EmbeddedRef(MEASURE_REF)


def test_unsupported_numeric_union_gets_note(mapper):
    field_def = mapper.map_property(PropertyNode(name="value", range="dtype:numericUnion"))
    assert field_def.kind == ScalarKind.STRING
    assert field_def.lossy
    assert "does not support floats" in field_def.to_lexicon()["description"]


def test_geometry_is_lossy_string(mapper, graph):
    field_def = mapper.map_property(graph.get_property("hasGeometry"))
    assert field_def == Scalar(ScalarKind.STRING, note="GeoSPARQL geometry serialization")


def test_unknown_range_is_lossy_string(mapper, graph):
    field_def = mapper.map_property(graph.get_property("mystery"))
    assert field_def.lossy
    assert "Nonexistent" in field_def.note


def test_comment_becomes_description(mapper, graph):
    assert mapper.map_property(graph.get_property("name")).description == "The name."


def test_string_limits(mapper, graph):
    assert mapper.map_property(graph.get_property("name")).max_graphemes == 640
    assert mapper.map_property(graph.get_property("note")).max_graphemes == 10000


class TestCardinalityLaw:
    @pytest.mark.parametrize("range_", ["Process", "Person", "Agent"])
    def test_array_wraps_scalar_shape(self, mapper, range_):
        scalar = mapper.map_property(
            PropertyNode(name="x", range=range_, is_object_property=True, exact_cardinality=1)
        )
        unbounded = mapper.map_property(PropertyNode(name="x", range=range_, is_object_property=True))
        many = mapper.map_property(
            PropertyNode(name="x", range=range_, is_object_property=True, max_cardinality=5)
        )
        assert not isinstance(scalar, ArrayOf)
        assert unbounded == ArrayOf(scalar)
        assert many == ArrayOf(scalar)

    def test_datatype_with_declared_cardinality_above_one(self, mapper):
        prop = PropertyNode(name="count", range="xsd:integer", max_cardinality=3)
        assert mapper.map_property(prop) == ArrayOf(Scalar(ScalarKind.INTEGER))


def test_custom_config_tables(graph, mapping, namespace):
    config = GeneratorConfig(property_overrides={}, classification_properties=[])
    mapper = TypeMapper(graph, mapping, config, namespace)
    field_def = mapper.map_property(graph.get_property("imageList"))
    assert field_def == Scalar(ScalarKind.STRING, format=URI)
