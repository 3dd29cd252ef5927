"""
Resonance formation a + b → R with a relativistic-kinematics Breit–Wigner.

σ(√s) = g_R / (g_a g_b) · S · 4π / p_cm² · BR(R → a b) · (Γ²/4) / ((√s − M)² + Γ²/4)

with g = 2J + 1, S = 2 for identical incoming species, converted from
GeV⁻² to mb through (ħc)². Widths are taken at the pole.
"""
import math
import logging

from ..actions import CollisionBranch, ProcessType
from ..conservation import check_quantum_numbers
from ..constants import fm2_mb, hbarc, really_small
from .base import CrossSectionModel

logger = logging.getLogger(__name__)


def _same_species(types_a, types_b) -> bool:
    return sorted(p.name for p in types_a) == sorted(p.name for p in types_b)


class ResonanceFormationModel(CrossSectionModel):
    """2 → 1 formation of every unstable species that decays into the incoming pair."""

    name = "Resonance formation"
    description = "Breit–Wigner 2→1 cross sections from the decay table"

    def __init__(self, registry):
        self.registry = registry

    def formation_cross_section(self, resonance, type_a, type_b, sqrts: float, pcm: float) -> float:
        if pcm < really_small:
            return 0.0
        br = sum(b.weight for b in resonance.decay_modes if _same_species(b.particle_types, (type_a, type_b)))
        if br <= 0.0:
            return 0.0
        spin_factor = (2.0 * resonance.spin + 1.0) / ((2.0 * type_a.spin + 1.0) * (2.0 * type_b.spin + 1.0))
        symmetry_factor = 2.0 if type_a is type_b else 1.0
        half_width_sqr = resonance.width ** 2 / 4.0
        breit_wigner = half_width_sqr / ((sqrts - resonance.mass) ** 2 + half_width_sqr)
        xs_gev = spin_factor * symmetry_factor * 4.0 * math.pi / (pcm * pcm) * br * breit_wigner
        return xs_gev * hbarc ** 2 / fm2_mb

    def collision_channels(self, action, config):
        if not config.two_to_one:
            return []
        type_a, type_b = action.incoming_types
        sqrts = action.sqrt_s
        pcm = action.pcm()

        channels = []
        for resonance in self.registry:
            if resonance.is_stable:
                continue
            if not check_quantum_numbers((type_a, type_b), (resonance,))['conserved']:
                continue
            xs = self.formation_cross_section(resonance, type_a, type_b, sqrts, pcm)
            if xs > 0.0:
                logger.debug(f"{type_a.name}{type_b.name} → {resonance.name}: {xs:.4f} mb at √s = {sqrts:.4f} GeV")
                channels.append(CollisionBranch((resonance,), xs, ProcessType.TWO_TO_ONE, "Resonance"))
        return channels
