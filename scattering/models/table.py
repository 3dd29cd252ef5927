"""
Channel table: constant partial cross sections per incoming pair.

The table is read from YAML:

    pairs:
      - incoming: [π⁺, N⁺]
        channels:
          - {products: [π⁺, N⁺], sigma: 15.0, process: elastic, reaction: Elastic}
          - {process: soft-string, sigma: 5.0}
    triples:
      - incoming: [π⁺, π⁻, π⁰]
        products: [ω]
        rate: 0.5

Names may be registry names or symbols. Every channel is checked for
charge, baryon number and strangeness conservation when the table is built.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Tuple, Union

from ruamel.yaml import YAML

from ..actions import CollisionBranch, ProcessType
from ..config import NNbarTreatment
from ..conservation import describe_violation, kinematically_allowed
from ..errors import ConfigurationError, UnknownParticleError
from .base import CrossSectionModel

logger = logging.getLogger(__name__)

# Additive quark model: reference cross section for baryon-baryon scattering [mb]
AQM_REFERENCE_XS = 40.0
AQM_MESON_FACTOR = 2.0 / 3.0
AQM_STRANGE_SUPPRESSION = 0.4


@dataclass(frozen=True)
class TableEntry:
    products: Tuple
    sigma: float
    process: ProcessType
    reaction: str = ""


def _key(types) -> Tuple[str, ...]:
    return tuple(sorted(p.name for p in types))


def aqm_cross_section(type_a, type_b) -> float:
    """Additive quark model estimate: σ = 40 mb · (2/3)^n_mesons · Π (1 − 0.4 x_s)."""
    n_mesons = sum(1 for p in (type_a, type_b) if not p.is_baryon)
    xs = AQM_REFERENCE_XS * AQM_MESON_FACTOR ** n_mesons
    for p in (type_a, type_b):
        xs *= 1.0 - AQM_STRANGE_SUPPRESSION * p.strange_fraction
    return xs


class ChannelTable(CrossSectionModel):
    """Tabulated channels, filtered by the collision-term switches."""

    name = "Channel table"
    description = "Constant partial cross sections read from a YAML table"

    def __init__(self, pairs: Dict[Tuple[str, ...], List[TableEntry]] = None,
                 triples: Dict[Tuple[str, ...], List[TableEntry]] = None):
        self.pairs = dict(pairs or {})
        self.triples = dict(triples or {})

    # -------------------- Construction --------------------

    @classmethod
    def from_yaml(cls, path: Union[str, Path], registry) -> "ChannelTable":
        yaml = YAML(typ="safe")
        with Path(path).open("r", encoding="utf-8") as fh:
            data = yaml.load(fh) or {}
        table = cls.from_mapping(data, registry)
        logger.info(f"Loaded channel table from {path}: {len(table.pairs)} pairs, {len(table.triples)} triples")
        return table

    @classmethod
    def from_mapping(cls, data: Mapping, registry) -> "ChannelTable":
        pairs: Dict[Tuple[str, ...], List[TableEntry]] = {}
        for item in data.get("pairs", []) or []:
            incoming = cls._resolve(registry, item, "incoming", 2)
            entries = pairs.setdefault(_key(incoming), [])
            for channel in item.get("channels", []) or []:
                entries.append(cls._entry(registry, incoming, channel, weight_key="sigma"))

        triples: Dict[Tuple[str, ...], List[TableEntry]] = {}
        for item in data.get("triples", []) or []:
            incoming = cls._resolve(registry, item, "incoming", 3)
            entry = cls._entry(registry, incoming, dict(item, process="3->1"), weight_key="rate")
            triples.setdefault(_key(incoming), []).append(entry)

        return cls(pairs, triples)

    @staticmethod
    def _resolve(registry, item: Mapping, field: str, size: int = None) -> Tuple:
        try:
            names = item[field]
        except KeyError:
            raise ConfigurationError(f"Channel table entry {dict(item)} has no '{field}'") from None
        if size is not None and len(names) != size:
            raise ConfigurationError(f"'{field}' must list {size} particles, got {names}")
        try:
            return tuple(registry.find(str(n)) for n in names)
        except UnknownParticleError as exc:
            raise ConfigurationError(str(exc)) from exc

    @classmethod
    def _entry(cls, registry, incoming: Tuple, channel: Mapping, weight_key: str) -> TableEntry:
        try:
            process = ProcessType(channel.get("process", "2->2"))
        except ValueError:
            raise ConfigurationError(f"Unknown process '{channel.get('process')}' in channel table") from None
        if weight_key not in channel:
            raise ConfigurationError(f"Channel {dict(channel)} has no '{weight_key}'")

        if process.is_string:
            products = ()
        else:
            products = cls._resolve(registry, channel, "products")
            violation = describe_violation(incoming, products)
            if violation:
                raise ConfigurationError(f"Channel table: {violation}")

        reaction = channel.get("reaction", "Elastic" if process is ProcessType.ELASTIC else "")
        return TableEntry(products, float(channel[weight_key]), process, reaction)

    # -------------------- Channels --------------------

    def _allowed(self, entry: TableEntry, type_a, type_b, sqrts: float, config) -> bool:
        if entry.reaction == "NNbar":
            if config.nnbar_treatment is NNbarTreatment.NO_ANNIHILATION:
                return False
            if (config.nnbar_treatment is NNbarTreatment.STRINGS) != entry.process.is_string:
                return False
        elif entry.process is ProcessType.ELASTIC:
            if "Elastic" not in config.included_2to2:
                return False
            if type_a.is_nucleon and type_b.is_nucleon and sqrts < config.low_snn_cut:
                return False
        elif entry.process.is_string:
            if not config.strings:
                return False
        elif entry.process is ProcessType.TWO_TO_ONE:
            if not config.two_to_one:
                return False
        elif entry.reaction and entry.reaction not in config.included_2to2:
            return False
        return kinematically_allowed(sqrts, entry.products)

    def collision_channels(self, action, config):
        type_a, type_b = action.incoming_types
        sqrts = action.sqrt_s
        entries = self.pairs.get(_key((type_a, type_b)))
        if entries is None:
            return self._aqm_channels(type_a, type_b, sqrts, config) if config.use_aqm else []

        channels = []
        for entry in entries:
            if not self._allowed(entry, type_a, type_b, sqrts, config):
                continue
            sigma = entry.sigma
            if entry.process is ProcessType.ELASTIC and config.elastic_cross_section >= 0.0:
                sigma = config.elastic_cross_section
            channels.append(CollisionBranch(entry.products, sigma, entry.process, entry.reaction))
        return channels

    def _aqm_channels(self, type_a, type_b, sqrts, config):
        """Elastic fallback for pairs the table does not list."""
        if "Elastic" not in config.included_2to2:
            return []
        if type_a.is_nucleon and type_b.is_nucleon and sqrts < config.low_snn_cut:
            return []
        sigma = config.elastic_cross_section
        if sigma < 0.0:
            sigma = aqm_cross_section(type_a, type_b)
        return [CollisionBranch((type_a, type_b), sigma, ProcessType.ELASTIC, "Elastic")]

    def multi_final_states(self, action, config):
        entries = self.triples.get(_key(action.incoming_types), [])
        sqrts = action.sqrt_s
        return [
            CollisionBranch(entry.products, entry.sigma, ProcessType.THREE_TO_ONE, "Multi")
            for entry in entries
            if kinematically_allowed(sqrts, entry.products)
        ]
