"""
Decay trees: every cascade of decays that can follow a two-body process.

The root node stands for the colliding pair (weight = total cross section),
its children for the collision channels (weight = partial cross section in
mb) and every deeper node for one 1 → n decay (weight = branching ratio).
Flattening the tree gives exclusive final-state cross sections.

Resonances are treated at their pole mass; no integration over the
spectral function is done.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence

from .decay_modes import DecayBranch
from .particles import ParticleType


@dataclass
class FinalStateCrossSection:
    """Exclusive cross section [mb] of one final state and its total pole mass [GeV]."""

    name: str
    cross_section: float
    mass: float


def _canonical(state: Sequence[ParticleType]) -> List[ParticleType]:
    return sorted(state, key=lambda p: p.name)


@dataclass
class Node:
    name: str
    weight: float
    initial_particles: List[ParticleType]
    final_particles: List[ParticleType]
    state: List[ParticleType]
    children: List["Node"] = field(default_factory=list)

    def add_action(self, name: str, weight: float, initial_particles: Sequence[ParticleType],
                   final_particles: Sequence[ParticleType]) -> "Node":
        """
        Append a child node. Its state is this node's state with
        ``initial_particles`` removed and ``final_particles`` added, sorted by name.
        """
        state = list(self.state)
        for p in initial_particles:
            state.remove(p)
        state.extend(final_particles)
        child = Node(name, weight, list(initial_particles), list(final_particles), _canonical(state))
        self.children.append(child)
        return child

    def format(self) -> str:
        """Tree as text, one node per line, indented one space per level."""
        lines: List[str] = []
        self._format(0, lines)
        return "\n".join(lines)

    def _format(self, depth: int, lines: List[str]) -> None:
        lines.append(f"{' ' * depth}{self.name} {self.weight:g}")
        for child in self.children:
            child._format(depth + 1, lines)

    def final_state_cross_sections(self, show_intermediate_states: bool = False) -> List[FinalStateCrossSection]:
        """One entry per leaf; equal names are not merged here (see diagnostics.deduplicate)."""
        result: List[FinalStateCrossSection] = []
        self._final_state_cross_sections(0, result, "", 1.0, show_intermediate_states)
        return result

    def _final_state_cross_sections(self, depth: int, result: List[FinalStateCrossSection],
                                    name: str, weight: float, show_intermediate_states: bool) -> None:
        # The root carries the total cross section and is not a factor
        if depth > 0:
            weight *= self.weight

        state_name = "".join(p.name for p in self.state)
        if show_intermediate_states:
            new_name = f"{name}->" if name else ""
            new_name += f"{self.name}{{{state_name}}}"
        else:
            new_name = state_name

        if not self.children:
            mass = sum(p.mass for p in self.state)
            result.append(FinalStateCrossSection(new_name, weight, mass))
            return
        for child in self.children:
            child._final_state_cross_sections(depth + 1, result, new_name, weight, show_intermediate_states)


def make_decay_name(resonance_name: str, decay: DecayBranch) -> str:
    """Label of a decay node, e.g. '[Δ⁺⁺->N⁺π⁺]'."""
    return f"[{resonance_name}->{''.join(p.name for p in decay.particle_types)}]"


def add_decays(node: Node, sqrts: float) -> None:
    """
    Recursively add every kinematically allowed decay below ``node``.

    With several unstable particles in a state the same final state is
    reached through every ordering of their decays; dividing each level by
    the number of unstable particles compensates for it. If one unstable
    particle has no open decay at its available energy, the node's weight
    is set to zero and expansion stops.
    """
    unstable = [p for p in node.state if not p.is_stable]
    sqrts_minus_masses = sqrts - sum(p.mass for p in node.state)
    norm = 1.0 / len(unstable) if unstable else 1.0

    for ptype in unstable:
        sqrts_decay = sqrts_minus_masses + ptype.mass
        can_decay = False
        for decay in ptype.decay_modes:
            if decay.final_state_mass > sqrts_decay:
                continue
            can_decay = True
            child = node.add_action(make_decay_name(ptype.name, decay), norm * decay.weight,
                                    [ptype], decay.particle_types)
            add_decays(child, sqrts_decay)
        if not can_decay:
            node.weight = 0.0
            return


def build_tree(action, show_decays: bool = True) -> Node:
    """
    Decay tree of a two-body action whose channels are already attached.
    The root state is the incoming pair.
    """
    type_a, type_b = action.incoming_types
    tree = Node(type_a.name + type_b.name, action.cross_section,
                [type_a, type_b], [type_a, type_b], [type_a, type_b])
    sqrts = action.sqrt_s
    for channel in action.collision_channels:
        if channel.weight <= 0.0:
            continue
        process_node = tree.add_action(channel.description(), channel.weight,
                                       [type_a, type_b], channel.particle_types)
        if show_decays:
            add_decays(process_node, sqrts)
    return tree
