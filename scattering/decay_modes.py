import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Sequence, Tuple
import re

if TYPE_CHECKING:
    from .particles import ParticleType

logger = logging.getLogger(__name__)

# Branching ratios are renormalised when their sum is off by more than this.
BRANCHING_TOLERANCE = 1e-6

# Common ASCII spellings of the hadron names used in the database
_CANON = {
    "p": "N⁺",
    "n": "N⁰",
    "pbar": "N̅⁻",
    "nbar": "N̅⁰",
    "pi+": "π⁺",
    "pi-": "π⁻",
    "pi0": "π⁰",
    "K+": "K⁺",
    "K-": "K̅⁻",
    "K0": "K⁰",
    "eta": "η",
    "omega": "ω",
    "rho+": "ρ⁺",
    "rho-": "ρ⁻",
    "rho0": "ρ⁰",
    "gamma": "γ",
    "γ": "γ",
}


@dataclass(frozen=True)
class DecayBranch:
    """One decay channel of a resonance: its products and branching ratio."""

    particle_types: Tuple["ParticleType", ...]
    weight: float

    @property
    def final_state_mass(self) -> float:
        return sum(p.mass for p in self.particle_types)

    def __repr__(self) -> str:
        names = " ".join(p.name for p in self.particle_types)
        return f"DecayBranch({names}, weight={self.weight:.4f})"


def canonicalize_mode(mode_text: str) -> List[str]:
    """
    Convert a decay-mode string like 'p pi+' into particle names.
    Examples:
      'p pi+' → ['N⁺', 'π⁺']
      'N⁺ π⁰' → ['N⁺', 'π⁰']
    Parenthetical notes are dropped; 'stable' yields [].
    """
    mode = re.sub(r"\s*\(.*?\)\s*", " ", mode_text).strip()
    mode = re.sub(r"\s+", " ", mode)

    if not mode or mode.lower().startswith("stable"):
        return []

    return [_CANON.get(token, token) for token in mode.split(" ")]


def read_decay_modes(cur) -> List[Tuple[int, str, float]]:
    """Fetch (pdg_id, decay_mode, branching_fraction) rows, skipping 'stable' and unusable rows."""
    cur.execute("SELECT pdg_id, decay_mode, branching_fraction FROM decays")
    modes: List[Tuple[int, str, float]] = []
    for pdg_id, mode, br in cur.fetchall():
        mode = (mode or "").strip()
        if not mode or "stable" in mode.lower():
            continue
        try:
            br = float(br)
        except (TypeError, ValueError):
            logger.warning(f"Skipping decay row {pdg_id} '{mode}': bad branching fraction {br!r}")
            continue
        modes.append((int(pdg_id), mode, br))
    return modes


def normalize_branches(parent_name: str, branches: Sequence[DecayBranch]) -> List[DecayBranch]:
    """Scale branching ratios so that they sum to one. Negative weights are clamped to zero."""
    weights = [b.weight if b.weight > 0.0 else 0.0 for b in branches]
    total = sum(weights)
    if total <= 0.0:
        return []
    if abs(total - 1.0) > BRANCHING_TOLERANCE:
        logger.warning(
            f"Branching ratios of {parent_name} sum to {total:.6f}, renormalising to 1"
        )
    return [DecayBranch(b.particle_types, w / total) for b, w in zip(branches, weights)]
