"""Configuration of the collision term.

The models accept the keys of the ``Collision_Term`` section of a
simulation's YAML configuration file, so an existing configuration can be
loaded unchanged. Only the switches that influence interaction finding and
channel enumeration are represented here.
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, FrozenSet, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class CollisionCriterion(str, Enum):
    """Decision procedure used to accept a collision."""

    GEOMETRIC = "Geometric"
    COVARIANT = "Covariant"
    STOCHASTIC = "Stochastic"


class NNbarTreatment(str, Enum):
    """How nucleon-antinucleon annihilation is modelled."""

    NO_ANNIHILATION = "no annihilation"
    RESONANCES = "resonances"
    STRINGS = "strings"


ALL_2TO2: FrozenSet[str] = frozenset({
    "Elastic",
    "NN_to_NR",
    "NN_to_DR",
    "KN_to_KN",
    "KN_to_KDelta",
    "Strangeness_exchange",
    "NNbar",
})


class CollisionTermConfig(BaseModel):
    """Switches forwarded to the interaction finder and the channel models."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    collision_criterion: CollisionCriterion = Field(
        CollisionCriterion.GEOMETRIC, alias="Collision_Criterion",
        description="Geometric, Covariant or Stochastic")
    elastic_cross_section: float = Field(
        -1.0, alias="Elastic_Cross_Section",
        description="Constant elastic cross section [mb]; negative means parametrized")
    isotropic: bool = Field(False, alias="Isotropic", description="Do all collisions isotropically")
    testparticles: int = Field(1, ge=1, alias="Testparticles", description="Test-particle multiplicity")
    two_to_one: bool = Field(True, alias="Two_to_One", description="Enable resonance formation")
    included_2to2: FrozenSet[str] = Field(ALL_2TO2, alias="Included_2to2")
    low_snn_cut: float = Field(
        1.98, alias="Elastic_NN_Cutoff_Sqrts",
        description="No elastic NN collisions below this sqrt(s) [GeV]")
    strings: bool = Field(False, alias="Strings", description="Enable string excitation")
    use_aqm: bool = Field(True, alias="Use_AQM", description="Additive quark model fallback cross sections")
    nnbar_treatment: NNbarTreatment = Field(NNbarTreatment.NO_ANNIHILATION, alias="NNbar_Treatment")
    string_formation_time: float = Field(1.0, gt=0, alias="String_Formation_Time")
    channel_models: Optional[List[str]] = Field(
        None, alias="Channel_Models",
        description="Names of the channel models to combine; default depends on the other switches")

    @field_validator("collision_criterion", mode="before")
    @classmethod
    def _criterion_case_insensitive(cls, value: Any) -> Any:
        if isinstance(value, str):
            for criterion in CollisionCriterion:
                if criterion.value.lower() == value.strip().lower():
                    return criterion
        return value

    @field_validator("included_2to2", mode="before")
    @classmethod
    def _expand_all(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if value is None or "All" in value:
            return ALL_2TO2
        unknown = set(value) - ALL_2TO2
        if unknown:
            raise ValueError(f"Unknown 2-to-2 reactions: {sorted(unknown)}")
        return frozenset(value)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CollisionTermConfig":
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid Collision_Term configuration:\n{exc}") from exc

    @property
    def is_stochastic(self) -> bool:
        return self.collision_criterion is CollisionCriterion.STOCHASTIC


def load_config(path: Union[str, Path]) -> CollisionTermConfig:
    """Read the ``Collision_Term`` section (and ``General.Testparticles``) from a YAML file."""
    path = Path(path)
    yaml = YAML(typ="safe")
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.load(fh) or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path} does not contain a mapping")

    section = dict(data.get("Collision_Term", {}) or {})
    general = data.get("General", {}) or {}
    if "Testparticles" in general and "Testparticles" not in section:
        section["Testparticles"] = general["Testparticles"]
    string_parameters = section.pop("String_Parameters", None) or {}
    if "Formation_Time" in string_parameters and "String_Formation_Time" not in section:
        section["String_Formation_Time"] = string_parameters["Formation_Time"]

    config = CollisionTermConfig.from_mapping(section)
    logger.info(f"Loaded collision term configuration from {path}: {config.collision_criterion.value} criterion")
    return config
