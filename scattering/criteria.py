"""
Collision criteria: the three decision procedures of the interaction finder.

A criterion supplies the time of closest approach, the squared transverse
distance used by the distance pre-filter, and the final accept/reject
decision. The finder selects one strategy at construction.
"""

from __future__ import annotations
import logging
import math
from abc import ABC, abstractmethod

from .config import CollisionCriterion
from .constants import really_small
from .errors import ProbabilityOverflowError
from .kinematics import FourVector

logger = logging.getLogger(__name__)


class Criterion(ABC):
    """Interface shared by the geometric, covariant and stochastic criteria."""

    tag: CollisionCriterion
    # Whether candidates are only ever searched inside one cell
    cell_local: bool = False
    # Whether the transverse-distance pre-filter applies
    uses_distance: bool = True

    @abstractmethod
    def collision_time(self, pos_a: FourVector, mom_a: FourVector,
                       pos_b: FourVector, mom_b: FourVector, dt: float, rng) -> float:
        """Time until the collision in fm/c; negative if the particles never approach."""

    def distance_squared(self, action) -> float:
        return 0.0

    @abstractmethod
    def accept(self, action, xs: float, distance_sqr: float, dt: float, cell_vol: float,
               testparticles: int, rng) -> bool:
        """Final decision, given the scaled cross section ``xs`` in fm²."""


class GeometricCriterion(Criterion):
    """Distance of closest approach in the centre-of-momentum frame, UrQMD style."""

    tag = CollisionCriterion.GEOMETRIC

    def collision_time(self, pos_a, mom_a, pos_b, mom_b, dt, rng):
        """
        UrQMD collision time in the computational frame:
        t_coll = - (x_a - x_b)·(v_a - v_b) / (v_a - v_b)²
        written with Δv·E_a·E_b to avoid dividing by the energies twice.
        """
        dv_times_e1e2 = mom_a.threevec * mom_b.x0 - mom_b.threevec * mom_a.x0
        dv_times_e1e2_sqr = float(dv_times_e1e2 @ dv_times_e1e2)
        if dv_times_e1e2_sqr < really_small:
            return -1.0
        dr = pos_a.threevec - pos_b.threevec
        return -float(dr @ dv_times_e1e2) * (mom_a.x0 * mom_b.x0 / dv_times_e1e2_sqr)

    def distance_squared(self, action):
        return action.transverse_distance_sqr()

    def accept(self, action, xs, distance_sqr, dt, cell_vol, testparticles, rng):
        data_a, data_b = action.incoming_particles
        # Just collided with each other
        if data_a.id_process > 0 and data_a.id_process == data_b.id_process:
            logger.debug(
                f"Skipping collided particles at time {data_a.position.x0} due to process "
                f"{data_a.id_process}\n    {data_a}\n<-> {data_b}"
            )
            return False

        cross_section_criterion = xs / math.pi
        if distance_sqr >= cross_section_criterion:
            return False

        logger.debug(f"particle distance squared: {distance_sqr}\n    {data_a}\n<-> {data_b}")
        return True


class CovariantCriterion(GeometricCriterion):
    """Lorentz-invariant closest approach (Hirano and Nara)."""

    tag = CollisionCriterion.COVARIANT

    def collision_time(self, pos_a, mom_a, pos_b, mom_b, dt, rng):
        """Mean of the two particles' times of closest approach in the pair rest frame."""
        delta_x = pos_a - pos_b
        p_a_sqr = mom_a.sqr()
        p_b_sqr = mom_b.sqr()
        p_a_dot_x = mom_a.Dot(delta_x)
        p_b_dot_x = mom_b.Dot(delta_x)
        p_a_dot_p_b = mom_a.Dot(mom_b)

        denominator = p_a_dot_p_b ** 2 - p_a_sqr * p_b_sqr
        if abs(denominator) < really_small:
            return -1.0

        time_a = (p_b_sqr * p_a_dot_x - p_a_dot_p_b * p_b_dot_x) * mom_a.x0 / denominator
        time_b = -(p_a_sqr * p_b_dot_x - p_a_dot_p_b * p_a_dot_x) * mom_b.x0 / denominator
        return 0.5 * (time_a + time_b)

    def distance_squared(self, action):
        return action.cov_transverse_distance_sqr()


class StochasticCriterion(Criterion):
    """Collision probability per cell and timestep."""

    tag = CollisionCriterion.STOCHASTIC
    cell_local = True
    uses_distance = False

    def collision_time(self, pos_a, mom_a, pos_b, mom_b, dt, rng):
        return dt * rng.uniform(0.0, 1.0)

    def accept(self, action, xs, distance_sqr, dt, cell_vol, testparticles, rng):
        v_rel = action.relative_velocity()
        # Two-particle collision probability, Xu and Greiner (2005), eq. (11)
        prob = xs * v_rel * dt / cell_vol

        logger.debug(
            f"Stochastic collision criterion parameters:\nprob = {prob}, xs = {xs}, "
            f"v_rel = {v_rel}, dt = {dt}, cell_vol = {cell_vol}, testparticles = {testparticles}"
        )

        if prob > 1.0:
            raise ProbabilityOverflowError(
                f"Probability larger than 1 for stochastic rates. ( P = {prob} )\n"
                f"criterion = {self.tag.value}, xs = {xs} fm², v_rel = {v_rel}, dt = {dt} fm/c, "
                f"cell_vol = {cell_vol} fm³, testparticles = {testparticles}\n"
                f"Use smaller timesteps."
            )

        return rng.uniform(0.0, 1.0) <= prob


_CRITERIA = {
    CollisionCriterion.GEOMETRIC: GeometricCriterion,
    CollisionCriterion.COVARIANT: CovariantCriterion,
    CollisionCriterion.STOCHASTIC: StochasticCriterion,
}


def make_criterion(tag: CollisionCriterion) -> Criterion:
    return _CRITERIA[CollisionCriterion(tag)]()
