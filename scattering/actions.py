"""
Interaction descriptors ("actions") produced by the interaction finder.

An action is built by an evaluator once its decision procedure accepts, and
carries the weighted outcome channels the execution stage chooses from.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from .constants import really_small
from .kinematics import FourVector, beta_cm, relative_velocity
from .particles import ParticleData, ParticleType

if TYPE_CHECKING:
    from .config import CollisionCriterion, CollisionTermConfig
    from .models.base import CrossSectionModel

logger = logging.getLogger(__name__)


class ProcessType(Enum):
    NONE = "none"
    ELASTIC = "elastic"
    TWO_TO_ONE = "2->1"
    TWO_TO_TWO = "2->2"
    THREE_TO_ONE = "3->1"
    STRING_SOFT = "soft-string"
    STRING_HARD = "hard-string"

    @property
    def is_string(self) -> bool:
        return self in (ProcessType.STRING_SOFT, ProcessType.STRING_HARD)


@dataclass(frozen=True)
class CollisionBranch:
    """One outcome channel: product species, partial cross section [mb] and process kind."""

    particle_types: Tuple[ParticleType, ...]
    weight: float
    process_type: ProcessType
    reaction: str = ""

    @property
    def final_state_mass(self) -> float:
        return sum(p.mass for p in self.particle_types)

    def description(self) -> str:
        """Products sorted by name and concatenated, or the string label for string processes."""
        if self.process_type.is_string or not self.particle_types:
            return self.process_type.value
        return "".join(sorted(p.name for p in self.particle_types))

    def __repr__(self) -> str:
        return f"CollisionBranch({self.description()}, {self.weight:.4f} mb, {self.process_type.value})"


class Action:
    """A candidate interaction of two or more particles within the current timestep."""

    def __init__(self, incoming: Sequence[ParticleData], time_until_collision: float,
                 criterion: Optional["CollisionCriterion"] = None):
        self.incoming_particles: Tuple[ParticleData, ...] = tuple(incoming)
        self.time_until_collision = time_until_collision
        self.criterion = criterion
        self.process_type = ProcessType.NONE
        self._channels: List[CollisionBranch] = []

    # -------------------- Channels --------------------

    def add_collision_channels(self, branches: Sequence[CollisionBranch]) -> None:
        """Attach channels; branches with vanishing weight are dropped."""
        for branch in branches:
            if branch.weight > 0.0:
                self._channels.append(branch)

    @property
    def collision_channels(self) -> List[CollisionBranch]:
        return list(self._channels)

    @property
    def cross_section(self) -> float:
        """Total cross section [mb]: the sum of all channel weights."""
        return sum(b.weight for b in self._channels)

    # -------------------- Kinematics --------------------

    @property
    def total_momentum(self) -> FourVector:
        total = self.incoming_particles[0].momentum
        for p in self.incoming_particles[1:]:
            total = total + p.momentum
        return total

    @property
    def mandelstam_s(self) -> float:
        return self.total_momentum.sqr()

    @property
    def sqrt_s(self) -> float:
        return self.total_momentum.abs()

    @property
    def incoming_types(self) -> Tuple[ParticleType, ...]:
        return tuple(p.type for p in self.incoming_particles)

    def __repr__(self) -> str:
        names = "".join(p.type.name for p in self.incoming_particles)
        ids = ",".join(str(p.id) for p in self.incoming_particles)
        return (f"{type(self).__name__}({names} [{ids}], t={self.time_until_collision:.4f} fm/c, "
                f"σ={self.cross_section:.4f} mb, {len(self._channels)} channels)")


class ScatterAction(Action):
    """Two-body collision candidate."""

    def __init__(self, data_a: ParticleData, data_b: ParticleData, time_until_collision: float,
                 isotropic: bool = False, string_formation_time: float = 1.0,
                 criterion: Optional["CollisionCriterion"] = None):
        super().__init__((data_a, data_b), time_until_collision, criterion)
        self.isotropic = isotropic
        self.string_formation_time = string_formation_time

    def add_all_scatterings(self, model: "CrossSectionModel", config: "CollisionTermConfig") -> None:
        """Ask the channel model for every applicable outcome of this pair."""
        self.add_collision_channels(model.collision_channels(self, config))

    def relative_velocity(self) -> float:
        a, b = self.incoming_particles
        return relative_velocity(a.momentum, b.momentum)

    def pcm(self) -> float:
        """Momentum of either particle in the centre-of-momentum frame."""
        a, b = self.incoming_particles
        s = self.mandelstam_s
        m_a, m_b = a.effective_mass, b.effective_mass
        lam = (s - (m_a + m_b) ** 2) * (s - (m_a - m_b) ** 2)
        return math.sqrt(max(lam, 0.0)) / (2.0 * math.sqrt(s)) if s > 0.0 else 0.0

    def transverse_distance_sqr(self) -> float:
        """
        UrQMD squared distance of closest approach in the centre-of-momentum frame:
        d² = (x_a - x_b)² - ((x_a - x_b)·(p_a - p_b))² / (p_a - p_b)²
        """
        a, b = self.incoming_particles
        velocity = beta_cm(a.momentum, b.momentum)
        pos_diff = a.position.boost(-velocity).threevec - b.position.boost(-velocity).threevec
        mom_diff = a.momentum.boost(-velocity).threevec - b.momentum.boost(-velocity).threevec
        dr2 = float(pos_diff @ pos_diff)
        dp2 = float(mom_diff @ mom_diff)
        # Zero relative momentum: the distance never changes
        if dp2 < really_small:
            return dr2
        dpdr = float(pos_diff @ mom_diff)
        return dr2 - dpdr * dpdr / dp2

    def cov_transverse_distance_sqr(self) -> float:
        """Lorentz-invariant squared transverse distance (Hirano and Nara)."""
        a, b = self.incoming_particles
        delta_x = a.position - b.position
        mom_diff = a.momentum.threevec - b.momentum.threevec
        x_sqr = delta_x.sqr()
        if float(mom_diff @ mom_diff) < really_small:
            return -x_sqr

        p_a, p_b = a.momentum, b.momentum
        p_a_sqr = p_a.sqr()
        p_b_sqr = p_b.sqr()
        p_a_dot_x = p_a.Dot(delta_x)
        p_b_dot_x = p_b.Dot(delta_x)
        p_a_dot_p_b = p_a.Dot(p_b)

        numerator = (p_a_sqr * p_b_dot_x ** 2 + p_b_sqr * p_a_dot_x ** 2
                     - 2.0 * p_a_dot_p_b * p_a_dot_x * p_b_dot_x)
        return -x_sqr - numerator / (p_a_dot_p_b ** 2 - p_a_sqr * p_b_sqr)


class ScatterActionMulti(Action):
    """Many-body (currently three-body) reaction candidate, stochastic criterion only."""

    def add_final_state(self, model: "CrossSectionModel", config: "CollisionTermConfig") -> None:
        self.add_collision_channels(model.multi_final_states(self, config))
        self.process_type = ProcessType.THREE_TO_ONE if self._channels else ProcessType.NONE

    def probability_multi(self, model: "CrossSectionModel", dt: float, cell_vol: float) -> float:
        return model.probability_multi(self, dt, cell_vol)
