"""
Interaction finder: decides which pairs and triples of particles interact
within the current timestep and builds the corresponding actions.

The finder is pure apart from the random source passed to each call. The
interaction-history flags are borrowed read-only; the execution stage owns
and updates them between timesteps.
"""

from __future__ import annotations
import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from .actions import Action, ScatterAction, ScatterActionMulti
from .config import CollisionTermConfig
from .constants import fm2_mb, maximum_cross_section, really_small
from .criteria import make_criterion
from .errors import ConfigurationError, ProbabilityOverflowError
from .kinematics import FourVector
from .models import build_model
from .particles import ParticleData, ParticleTypeRegistry

logger = logging.getLogger(__name__)


class ScatterActionsFinder:
    """
    Finds two- and three-body interactions among lists of particles.

    Args:
        config: collision-term switches (criterion, test particles, channel switches)
        registry: particle species and decay modes
        model: channel model; built from the configuration when omitted
        nucleon_has_interacted: one flag per initial nucleon, indexed by particle id
        n_tot: number of initial nucleons (projectile + target)
        n_proj: number of projectile nucleons; ids below it are projectile-side
    """

    def __init__(self, config: CollisionTermConfig, registry: ParticleTypeRegistry,
                 model=None, nucleon_has_interacted: Sequence[bool] = (),
                 n_tot: int = 0, n_proj: int = 0):
        self.config = config
        self.registry = registry
        self.model = model if model is not None else build_model(config, registry)
        self.criterion = make_criterion(config.collision_criterion)
        self.nucleon_has_interacted = nucleon_has_interacted
        self.n_tot = n_tot
        self.n_proj = n_proj
        self.testparticles = config.testparticles

        if self.is_constant_elastic_isotropic():
            logger.info(
                f"Constant elastic isotropic cross-section mode: using "
                f"{config.elastic_cross_section} mb as maximal cross-section."
            )

    @property
    def coll_crit(self):
        return self.criterion.tag

    def is_constant_elastic_isotropic(self) -> bool:
        return (len(self.registry) == 1 and self.config.elastic_cross_section > 0.0
                and self.config.isotropic)

    def max_transverse_distance_sqr(self, testparticles: int) -> float:
        """Largest squared distance [fm²] at which any channel could still fire."""
        max_xs = (self.config.elastic_cross_section if self.is_constant_elastic_isotropic()
                  else maximum_cross_section)
        return max_xs / testparticles * fm2_mb / math.pi

    # -------------------- History --------------------

    def has_interacted(self, data: ParticleData) -> bool:
        return data.id < len(self.nucleon_has_interacted) and bool(self.nucleon_has_interacted[data.id])

    def is_spectator_pair(self, data_a: ParticleData, data_b: ParticleData) -> bool:
        """
        Both particles are initial nucleons of the same nucleus and neither
        has collided yet: they must not scatter off each other.
        """
        if data_a.id >= self.n_tot or data_b.id >= self.n_tot:
            return False
        same_nucleus = (data_a.id < self.n_proj) == (data_b.id < self.n_proj)
        return same_nucleus and not (self.has_interacted(data_a) or self.has_interacted(data_b))

    def _require_rng(self, rng) -> None:
        if rng is None:
            raise ConfigurationError(
                f"The {self.coll_crit.value} criterion samples collision times and "
                f"acceptance; pass a seeded numpy Generator as rng.")

    def _propagation_momentum(self, data: ParticleData, beam_momentum: Sequence[FourVector]) -> FourVector:
        """
        Frozen Fermi motion: initial nucleons that have not interacted are
        propagated with the beam momentum, so they are searched with it too.
        """
        if data.id < len(beam_momentum) and not self.has_interacted(data):
            return beam_momentum[data.id]
        return data.momentum

    def collision_time(self, data_a: ParticleData, data_b: ParticleData, dt: float,
                       beam_momentum: Sequence[FourVector] = (), rng=None) -> float:
        return self.criterion.collision_time(
            data_a.position, self._propagation_momentum(data_a, beam_momentum),
            data_b.position, self._propagation_momentum(data_b, beam_momentum),
            dt, rng,
        )

    # -------------------- Evaluators --------------------

    def check_collision_two_part(self, data_a: ParticleData, data_b: ParticleData, dt: float,
                                 beam_momentum: Sequence[FourVector] = (), cell_vol: float = 0.0,
                                 rng: Optional[np.random.Generator] = None) -> Optional[ScatterAction]:
        """
        Decide whether two particles collide within ``dt``.

        Returns the ScatterAction with all channels attached, or None.
        ``rng`` is only drawn from by the stochastic criterion, which requires it.
        Raises ProbabilityOverflowError if the stochastic probability exceeds one.
        """
        assert data_a.id >= 0 and data_b.id >= 0
        if self.criterion.cell_local:
            self._require_rng(rng)

        if self.is_spectator_pair(data_a, data_b):
            return None

        # No grid or search in cell means no collision for the stochastic criterion
        if self.criterion.cell_local and cell_vol < really_small:
            return None

        time_until_collision = self.collision_time(data_a, data_b, dt, beam_momentum, rng)
        if time_until_collision < 0.0 or time_until_collision >= dt:
            return None

        act = ScatterAction(data_a, data_b, time_until_collision,
                            isotropic=self.config.isotropic,
                            string_formation_time=self.config.string_formation_time,
                            criterion=self.coll_crit)

        distance_squared = self.criterion.distance_squared(act)

        # Don't enumerate channels for pairs that are too far apart
        if self.criterion.uses_distance and distance_squared >= self.max_transverse_distance_sqr(self.testparticles):
            return None

        act.add_all_scatterings(self.model, self.config)

        xs = act.cross_section * fm2_mb / float(self.testparticles)
        xs *= data_a.xsec_scaling_factor(time_until_collision)
        xs *= data_b.xsec_scaling_factor(time_until_collision)

        if not self.criterion.accept(act, xs, distance_squared, dt, cell_vol, self.testparticles, rng):
            return None
        return act

    def check_collision_multi_part(self, plist: Sequence[ParticleData], dt: float, cell_vol: float,
                                   rng: Optional[np.random.Generator] = None) -> Optional[ScatterActionMulti]:
        """
        Decide whether a group of three particles reacts within ``dt``
        (stochastic criterion only). ``rng`` is required.
        """
        self._require_rng(rng)

        # No grid or search in cell
        if cell_vol < really_small:
            return None

        if self.testparticles != 1:
            raise ConfigurationError(
                "Multi-body reactions do not scale with testparticles yet. Use 1.")

        time_until_collision = dt * rng.uniform(0.0, 1.0)

        act = ScatterActionMulti(plist, time_until_collision, criterion=self.coll_crit)
        act.add_final_state(self.model, self.config)
        if not act.collision_channels:
            # No final state reachable from exactly this group
            return None

        p_nm = act.probability_multi(self.model, dt, cell_vol)
        if p_nm > 1.0:
            raise ProbabilityOverflowError(
                f"Probability larger than 1 for stochastic rates. ( P_nm = {p_nm} )\n"
                f"criterion = {self.coll_crit.value}, n = {len(plist)}, dt = {dt} fm/c, "
                f"cell_vol = {cell_vol} fm³\nUse smaller timesteps."
            )

        if rng.uniform(0.0, 1.0) > p_nm:
            return None
        return act

    # -------------------- Candidate enumeration --------------------

    def find_actions_in_cell(self, search_list: Sequence[ParticleData], dt: float, cell_vol: float,
                             beam_momentum: Sequence[FourVector] = (),
                             rng: Optional[np.random.Generator] = None) -> List[Action]:
        """All pairs (and, for the stochastic criterion, triples) within one cell."""
        actions: List[Action] = []
        stochastic = self.criterion.cell_local

        for p1 in search_list:
            for p2 in search_list:
                if p1.id < p2.id:
                    act = self.check_collision_two_part(p1, p2, dt, beam_momentum, cell_vol, rng)
                    if act is not None:
                        actions.append(act)
                if stochastic:
                    for p3 in search_list:
                        if p1.id < p2.id < p3.id:
                            act = self.check_collision_multi_part((p1, p2, p3), dt, cell_vol, rng)
                            if act is not None:
                                actions.append(act)
        return actions

    def find_actions_with_neighbors(self, search_list: Sequence[ParticleData],
                                    neighbors_list: Sequence[ParticleData], dt: float,
                                    beam_momentum: Sequence[FourVector] = (),
                                    rng: Optional[np.random.Generator] = None) -> List[Action]:
        """Pairs between one cell and one of its neighbours."""
        actions: List[Action] = []
        if self.criterion.cell_local:
            # Only search in cells
            return actions
        for p1 in search_list:
            for p2 in neighbors_list:
                assert p1.id != p2.id
                act = self.check_collision_two_part(p1, p2, dt, beam_momentum, rng=rng)
                if act is not None:
                    actions.append(act)
        return actions

    def find_actions_with_surrounding_particles(self, search_list: Sequence[ParticleData],
                                                surrounding_list: Sequence[ParticleData], dt: float,
                                                beam_momentum: Sequence[FourVector] = (),
                                                rng: Optional[np.random.Generator] = None) -> List[Action]:
        """Pairs between a search list and a surrounding pool, skipping particles present in both."""
        actions: List[Action] = []
        if self.criterion.cell_local:
            # Only search in cells
            return actions
        search_ids = {p.id for p in search_list}
        for p2 in surrounding_list:
            if p2.id in search_ids:
                continue
            for p1 in search_list:
                act = self.check_collision_two_part(p1, p2, dt, beam_momentum, rng=rng)
                if act is not None:
                    actions.append(act)
        return actions
