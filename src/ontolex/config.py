"""
Configuration for ontolex.

GeneratorConfig holds the lookup tables that steer schema emission
(abstract-class distribution, enumeration classes, per-property overrides...).
The defaults describe the ValueFlows ontology; any of them can be replaced
from a YAML file.

RunSettings holds the paths and namespace for one run, read from CLI flags
or environment variables.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ontolex.errors import OntologyFormatError
from ontolex.utils import get_env_bool, get_env_str

VF_ENUM_CLASSES = [
    "InputOutput",
    "CreateResource",
    "EventQuantity",
    "AccountingEffect",
    "OnhandEffect",
    "LocationEffect",
    "ContainedEffect",
    "AccountableEffect",
    "StageEffect",
    "StateEffect",
    "ProposalPurpose",
]

VF_ACTION_EFFECT_PROPERTIES = [
    "inputOutput",
    "pairsWith",
    "createResource",
    "eventQuantity",
    "accountingEffect",
    "onhandEffect",
    "locationEffect",
    "containedEffect",
    "accountableEffect",
    "stageEffect",
    "stateEffect",
]


@dataclass
class DiscriminatorConfig:
    """Synthetic enumerated field naming which named individual a record is."""

    class_name: str = "Action"
    field_name: str = "actionId"
    description: str = "The canonical identifier for this action type"


@dataclass
class GeneratorConfig:
    """Lookup tables consulted by the loader, type mapper, emitter and auditor."""

    prefix: str = "vf:"

    # Abstract class -> concrete subclasses receiving its properties
    distributions: dict[str, list[str]] = field(
        default_factory=lambda: {"Agent": ["Person", "Organization", "EcologicalAgent"]}
    )
    enum_classes: list[str] = field(default_factory=lambda: list(VF_ENUM_CLASSES))
    # Classes referenced by DID rather than AT-URI
    identity_classes: list[str] = field(
        default_factory=lambda: ["Agent", "Person", "Organization", "EcologicalAgent"]
    )
    # Free-text/URI tag properties, never typed references
    classification_properties: list[str] = field(
        default_factory=lambda: ["classifiedAs", "resourceClassifiedAs", "processClassifiedAs"]
    )
    # Property -> lexicon field, consulted before any range rule
    property_overrides: dict[str, dict[str, Any]] = field(
        default_factory=lambda: {
            # Declared as a single xsd:anyURI, documented as a list of images
            "imageList": {"type": "array", "items": {"type": "string", "format": "uri"}},
        }
    )
    # Property -> class it points back to; emitted as a plain identifier string
    self_reference_properties: dict[str, str] = field(
        default_factory=lambda: {"pairsWith": "Action"}
    )
    # Properties that only belong on the event-like class
    event_class: str = "Action"
    event_properties: list[str] = field(
        default_factory=lambda: list(VF_ACTION_EFFECT_PROPERTIES)
    )
    discriminator: DiscriminatorConfig | None = field(default_factory=DiscriminatorConfig)

    # Ranges that become a ref to the shared measure def
    measure_ranges: list[str] = field(
        default_factory=lambda: ["Measure", "om:Measure", "time:Duration"]
    )
    measure_def_name: str = "measure"
    measure_properties: list[str] = field(
        default_factory=lambda: ["hasNumericalValue", "hasDenominator", "hasUnit"]
    )
    unit_class: str = "Unit"
    fractional_datatypes: list[str] = field(
        default_factory=lambda: ["xsd:decimal", "xsd:float", "xsd:double"]
    )
    # Datatypes with no lexicon equivalent -> note explaining the string form
    unsupported_datatypes: dict[str, str] = field(
        default_factory=lambda: {
            "dtype:numericUnion": "Decimal number as string (AT Protocol does not support floats)",
            "geosparql:Geometry": "GeoSPARQL geometry serialization",
        }
    )

    # Misspelled identifiers in the source ontology
    class_aliases: dict[str, str] = field(default_factory=lambda: {"Agreenent": "Agreement"})
    string_limits: dict[str, int] = field(default_factory=lambda: {"note": 10000, "name": 640})
    # Classes that are intentionally not records
    skip_classes: list[str] = field(
        default_factory=lambda: [
            "Agent",
            "Measure",
            "AgentRelationship",
            "AgentRelationshipRole",
            "ExternalLink",
        ]
    )

    def __post_init__(self):
        # numerator, denominator, unit
        if len(self.measure_properties) != 3:
            raise ValueError(
                "measure_properties must name exactly 3 properties "
                f"(numerator, denominator, unit), got {len(self.measure_properties)}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratorConfig":
        """Build a config, keeping defaults for absent keys."""
        defaults = cls()

        discriminator: DiscriminatorConfig | None = defaults.discriminator
        if "discriminator" in data:
            disc_data = data["discriminator"]
            if disc_data is None:
                discriminator = None
            else:
                discriminator = DiscriminatorConfig(
                    class_name=disc_data.get("class_name", "Action"),
                    field_name=disc_data.get("field_name", "actionId"),
                    description=disc_data.get(
                        "description", DiscriminatorConfig().description
                    ),
                )

        return cls(
            prefix=data.get("prefix", defaults.prefix),
            distributions=data.get("distributions", defaults.distributions),
            enum_classes=data.get("enum_classes", defaults.enum_classes),
            identity_classes=data.get("identity_classes", defaults.identity_classes),
            classification_properties=data.get(
                "classification_properties", defaults.classification_properties
            ),
            property_overrides=data.get("property_overrides", defaults.property_overrides),
            self_reference_properties=data.get(
                "self_reference_properties", defaults.self_reference_properties
            ),
            event_class=data.get("event_class", defaults.event_class),
            event_properties=data.get("event_properties", defaults.event_properties),
            discriminator=discriminator,
            measure_ranges=data.get("measure_ranges", defaults.measure_ranges),
            measure_def_name=data.get("measure_def_name", defaults.measure_def_name),
            measure_properties=data.get("measure_properties", defaults.measure_properties),
            unit_class=data.get("unit_class", defaults.unit_class),
            fractional_datatypes=data.get("fractional_datatypes", defaults.fractional_datatypes),
            unsupported_datatypes=data.get(
                "unsupported_datatypes", defaults.unsupported_datatypes
            ),
            class_aliases=data.get("class_aliases", defaults.class_aliases),
            string_limits=data.get("string_limits", defaults.string_limits),
            skip_classes=data.get("skip_classes", defaults.skip_classes),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "GeneratorConfig":
        """
        Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            OntologyFormatError: If it is not YAML, not a mapping, or invalid
        """
        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise OntologyFormatError(str(path), f"not valid YAML ({e})") from e

        if not isinstance(data, dict):
            raise OntologyFormatError(str(path), "expected a mapping of config keys")
        try:
            return cls.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise OntologyFormatError(str(path), str(e)) from e

    @classmethod
    def load(cls, path: str | Path | None = None) -> "GeneratorConfig":
        """Load from an explicit path, ONTOLEX_CONFIG, or the built-in defaults."""
        config_path = path or get_env_str(
            "ONTOLEX_CONFIG",
            "",
            description="YAML file overriding the generator lookup tables",
            group="inputs",
        )
        if config_path:
            return cls.from_yaml(config_path)
        return cls()

    def abstract_classes(self) -> set[str]:
        return set(self.distributions)

    def skipped(self) -> set[str]:
        """Every class that is intentionally never a record."""
        return set(self.skip_classes) | self.abstract_classes() | set(self.enum_classes)


@dataclass
class RunSettings:
    """Inputs and outputs of one pipeline run."""

    ontology_path: Path
    mapping_path: Path
    output_root: Path
    namespace: str
    config_path: Path | None = None
    dry_run: bool = False

    @property
    def defs_id(self) -> str:
        return f"{self.namespace}.defs"

    @classmethod
    def from_env(cls, **overrides: Any) -> "RunSettings":
        """Resolve settings; non-None keyword overrides win over the environment."""
        values = {
            "ontology_path": get_env_str(
                "ONTOLEX_ONTOLOGY",
                "specs/vf/vf.json",
                description="JSON-LD ontology graph",
                group="inputs",
            ),
            "mapping_path": get_env_str(
                "ONTOLEX_MAPPING",
                "specs/vf/class-to-nsid.json",
                description="Class name -> lexicon NSID mapping",
                group="inputs",
            ),
            "output_root": get_env_str(
                "ONTOLEX_OUTPUT",
                "lexicons",
                description="Root directory for generated lexicons",
                group="outputs",
            ),
            "namespace": get_env_str(
                "ONTOLEX_NAMESPACE",
                "org.openassociation",
                description="NSID namespace of the shared defs document",
                group="outputs",
            ),
            "config_path": get_env_str(
                "ONTOLEX_CONFIG",
                "",
                description="YAML file overriding the generator lookup tables",
                group="inputs",
            ),
            "dry_run": get_env_bool(
                "ONTOLEX_DRY_RUN",
                False,
                description="Derive and report without writing files",
                group="outputs",
            ),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        return cls(
            ontology_path=Path(values["ontology_path"]),
            mapping_path=Path(values["mapping_path"]),
            output_root=Path(values["output_root"]),
            namespace=values["namespace"],
            config_path=Path(values["config_path"]) if values["config_path"] else None,
            dry_run=bool(values["dry_run"]),
        )
