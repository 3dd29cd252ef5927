"""
Diagnostic reports built on top of the interaction finder:
partial and final-state cross-section scans, and the list of all
reactions the channel model knows about.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from .actions import ProcessType, ScatterAction
from .constants import really_small
from .decaytree import FinalStateCrossSection, build_tree
from .kinematics import pcm_from_s, s_from_plab
from .particles import ParticleData, ParticleType, isoclean

logger = logging.getLogger(__name__)

# Default scan: CM momenta 0.02, 0.04, ..., 4.0 GeV
N_MOMENTUM_POINTS = 200
MOMENTUM_STEP = 0.02

REACTION_SCAN_MOMENTA = (0.1, 0.3, 0.5, 1.0, 2.0, 3.0, 5.0, 10.0)

# Width of one channel column in the text table
COLUMN_WIDTH = 16


def deduplicate(final_state_xs: List[FinalStateCrossSection]) -> List[FinalStateCrossSection]:
    """Sort by name and merge entries with equal names, summing their cross sections."""
    merged: List[FinalStateCrossSection] = []
    for entry in sorted(final_state_xs, key=lambda fs: fs.name):
        if merged and merged[-1].name == entry.name:
            merged[-1].cross_section += entry.cross_section
        else:
            merged.append(FinalStateCrossSection(entry.name, entry.cross_section, entry.mass))
    return merged


def iso_summary(registry) -> str:
    return f"{len(registry.iso_types())} iso-particle types."


def _pair(type_a: ParticleType, type_b: ParticleType, m_a: float, m_b: float,
          momentum: float) -> Tuple[ParticleData, ParticleData]:
    """Head-on pair in its CM frame along x."""
    a = ParticleData.from_type(type_a, id=0, px=momentum, mass=m_a)
    b = ParticleData.from_type(type_b, id=1, px=-momentum, mass=m_b)
    return a, b


def _scatter_action(finder, a: ParticleData, b: ParticleData) -> ScatterAction:
    act = ScatterAction(a, b, 0.0, isotropic=finder.config.isotropic,
                        string_formation_time=finder.config.string_formation_time)
    act.add_all_scatterings(finder.model, finder.config)
    return act


@dataclass
class CrossSectionScan:
    """
    Cross sections of one incoming pair over a list of √s values.

    ``columns`` maps a channel name to (√s, σ [mb]) points; ``masses`` holds
    the summed product pole mass used to order the columns.
    """

    pair_name: str
    sqrts: List[float] = field(default_factory=list)
    columns: Dict[str, List[Tuple[float, float]]] = field(default_factory=dict)
    masses: Dict[str, float] = field(default_factory=dict)

    def add(self, name: str, sqrts: float, xs: float, mass: float, accumulate: bool = False) -> None:
        points = self.columns.setdefault(name, [])
        self.masses[name] = mass
        if accumulate and points and abs(points[-1][0] - sqrts) < really_small:
            points[-1] = (points[-1][0], points[-1][1] + xs)
        else:
            points.append((sqrts, xs))

    def drop_zero_columns(self) -> None:
        """Remove channels that vanish over the whole scan."""
        for name in [n for n, points in self.columns.items() if sum(xs for _, xs in points) == 0.0]:
            del self.columns[name]
            del self.masses[name]

    @property
    def channel_names(self) -> List[str]:
        """Channels ordered by summed product mass, 'total' first."""
        return sorted(self.columns, key=lambda name: (self.masses[name], name))

    def value(self, name: str, sqrts: float) -> float:
        for s, xs in self.columns.get(name, ()):
            if abs(s - sqrts) < really_small:
                return xs
        return 0.0

    def format_table(self) -> str:
        names = self.channel_names
        lines = [
            f"# Dumping partial {self.pair_name} cross-sections in mb, energies in GeV",
            "   sqrt_s" + "".join(name.rjust(COLUMN_WIDTH) for name in names),
        ]
        for sqrts in self.sqrts:
            lines.append("%9.6f" % sqrts + "".join("%16.6f" % self.value(name, sqrts) for name in names))
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        names = self.channel_names
        df = pd.DataFrame(
            [[self.value(name, s) for name in names] for s in self.sqrts],
            columns=names,
            index=pd.Index(self.sqrts, name="sqrt_s"),
        )
        return df


def scan_momenta(m_a: float, m_b: float, plab: Sequence[float] = ()) -> List[float]:
    """CM momenta of the scan: the default grid, or the sorted unique lab momenta converted."""
    if plab:
        return [pcm_from_s(s_from_plab(p, m_a, m_b), m_a, m_b) for p in sorted(set(plab))]
    return [MOMENTUM_STEP * (i + 1) for i in range(N_MOMENTUM_POINTS)]


def dump_cross_sections(finder, type_a: ParticleType, type_b: ParticleType, m_a: float, m_b: float,
                        final_state: bool = False, plab: Sequence[float] = ()) -> CrossSectionScan:
    """
    Scan the cross sections of ``type_a`` + ``type_b`` with masses ``m_a`` and ``m_b``.

    Without ``final_state`` every collision channel gets one column. With it,
    the decay tree of every channel is expanded and the columns are the
    exclusive final states after all decays.
    """
    scan = CrossSectionScan(type_a.name + type_b.name)

    for momentum in scan_momenta(m_a, m_b, plab):
        a, b = _pair(type_a, type_b, m_a, m_b, momentum)
        act = _scatter_action(finder, a, b)
        sqrts = act.sqrt_s
        scan.sqrts.append(sqrts)

        if final_state:
            tree = build_tree(act)
            for fs in deduplicate(tree.final_state_cross_sections()):
                # String channels end with an empty state
                if not fs.name:
                    continue
                scan.add(fs.name, sqrts, fs.cross_section, fs.mass)
        else:
            for channel in act.collision_channels:
                if channel.weight <= 0.0:
                    continue
                scan.add(channel.description(), sqrts, channel.weight, channel.final_state_mass,
                         accumulate=True)

        # Total first in the column ordering
        scan.add("total", sqrts, act.cross_section, -1.0)

    scan.drop_zero_columns()
    logger.debug(f"{scan.pair_name}: {len(scan.sqrts)} points, {len(scan.columns)} channels")
    return scan


def reaction_string(type_a: ParticleType, type_b: ParticleType, channel) -> str:
    """'AB → CD (el)' style label of one channel, charge marks removed."""
    incoming = type_a.name + type_b.name
    if channel.process_type.is_string:
        reaction = f"{incoming} → strings"
    else:
        if channel.process_type is ProcessType.ELASTIC:
            label = " (el)"
        elif channel.process_type is ProcessType.TWO_TO_TWO:
            label = " (inel)"
        else:
            label = " (?)"
        reaction = f"{incoming} → {''.join(p.name for p in channel.particle_types)}{label}"
    return isoclean(reaction)


def dump_reactions(finder, momenta: Sequence[float] = REACTION_SCAN_MOMENTA) -> List[str]:
    """
    Every reaction of every isospin pair over a coarse momentum scan.

    Returns the report lines: two summary lines, then one comma-separated
    line per pair of multiplets with a non-zero cross section somewhere.
    """
    registry = finder.registry
    iso_types = registry.iso_types()
    n_iso = len(iso_types)
    lines = [f"{n_iso} iso-particle types.", f"They can make {n_iso * (n_iso - 1) // 2} pairs."]

    for i, iso_a in enumerate(iso_types):
        for iso_b in iso_types[i:]:
            any_nonzero_cs = False
            reactions = set()
            for type_a in iso_a.states:
                for type_b in iso_b.states:
                    if registry.index(type_a) > registry.index(type_b):
                        continue
                    for momentum in momenta:
                        a, b = _pair(type_a, type_b, type_a.mass, type_b.mass, momentum)
                        act = _scatter_action(finder, a, b)
                        if act.cross_section <= 0.0:
                            continue
                        any_nonzero_cs = True
                        reactions.update(reaction_string(type_a, type_b, c) for c in act.collision_channels)
            if any_nonzero_cs:
                lines.append(", ".join(sorted(reactions)))
    return lines
