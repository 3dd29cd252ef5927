"""
Interaction finder tests.

Tests:
    1. Collision times of the three criteria
    2. Pair evaluator: acceptance, time window, distance, spectators, Fermi motion
    3. Stochastic probabilities and the overflow fault
    4. Multi-body evaluator
    5. Candidate enumeration modes
"""
import logging
import math

import numpy as np
import pytest

from scattering.actions import ScatterAction, ScatterActionMulti
from scattering.config import CollisionCriterion
from scattering.criteria import CovariantCriterion, GeometricCriterion, make_criterion
from scattering.errors import ConfigurationError, ProbabilityOverflowError
from scattering.finder import ScatterActionsFinder
from scattering.kinematics import momentum_from_mass, relative_velocity
from scattering.models import ChannelTable, ConstantElasticModel
from scattering.particles import ParticleTypeRegistry

from conftest import PARTICLES, FixedRng

ALL_CRITERIA = list(CollisionCriterion)

TRIPLES = {"triples": [{"incoming": ["pi+", "pi-", "pi0"], "products": ["omega"], "rate": 0.5}]}


def _finder(registry, make_config, sigma=10.0, model=None, **kwargs):
    history = kwargs.pop("nucleon_has_interacted", ())
    n_tot = kwargs.pop("n_tot", 0)
    n_proj = kwargs.pop("n_proj", 0)
    config = make_config(**kwargs)
    model = model if model is not None else ConstantElasticModel(sigma=sigma)
    return ScatterActionsFinder(config, registry, model=model, nucleon_has_interacted=history,
                                n_tot=n_tot, n_proj=n_proj)


def _head_on(make_particle, name_a="π⁺", name_b="π⁻", ids=(0, 1), p=1.0, impact=0.0):
    """Two particles 2 fm apart along x, flying at each other with |p| = p."""
    a = make_particle(name_a, ids[0], x=-1.0, px=p)
    b = make_particle(name_b, ids[1], x=1.0, px=-p, y=impact)
    return a, b


# ---------------------------- Collision times -----------------------------
@pytest.mark.parametrize("criterion", [GeometricCriterion(), CovariantCriterion()])
def test_head_on_collision_time(make_particle, criterion):
    a, b = _head_on(make_particle)
    t = criterion.collision_time(a.position, a.momentum, b.position, b.momentum, 5.0, None)
    assert t == pytest.approx(a.momentum.E / 1.0)


@pytest.mark.parametrize("criterion", [GeometricCriterion(), CovariantCriterion()])
def test_parallel_particles_never_collide(make_particle, criterion):
    a = make_particle("π⁺", 0, x=-1.0, px=0.5)
    b = make_particle("π⁺", 1, x=1.0, px=0.5)
    assert criterion.collision_time(a.position, a.momentum, b.position, b.momentum, 5.0, None) == -1.0


def test_stochastic_collision_time_is_sampled(make_particle):
    a, b = _head_on(make_particle)
    criterion = make_criterion(CollisionCriterion.STOCHASTIC)
    assert criterion.collision_time(a.position, a.momentum, b.position, b.momentum, 0.4, FixedRng(0.25)) == pytest.approx(0.1)


def test_make_criterion_from_string():
    assert isinstance(make_criterion("Covariant"), CovariantCriterion)
    assert make_criterion("Stochastic").cell_local


# ----------------------------- Pair evaluator -----------------------------
@pytest.mark.parametrize("criterion", [CollisionCriterion.GEOMETRIC, CollisionCriterion.COVARIANT])
def test_head_on_pair_accepted(registry, make_config, make_particle, criterion):
    finder = _finder(registry, make_config, collision_criterion=criterion)
    a, b = _head_on(make_particle)
    act = finder.check_collision_two_part(a, b, dt=2.0)
    assert isinstance(act, ScatterAction)
    assert act.time_until_collision == pytest.approx(a.momentum.E)
    assert act.cross_section == 10.0
    assert act.criterion is criterion


def test_collision_after_timestep_rejected(registry, make_config, make_particle):
    finder = _finder(registry, make_config)
    a, b = _head_on(make_particle)
    assert finder.check_collision_two_part(a, b, dt=0.5) is None


def test_receding_pair_rejected(registry, make_config, make_particle):
    finder = _finder(registry, make_config)
    a = make_particle("π⁺", 0, x=1.0, px=1.0)
    b = make_particle("π⁻", 1, x=-1.0, px=-1.0)
    assert finder.check_collision_two_part(a, b, dt=10.0) is None


@pytest.mark.parametrize("criterion", [CollisionCriterion.GEOMETRIC, CollisionCriterion.COVARIANT])
def test_transverse_distance_criterion(registry, make_config, make_particle, criterion):
    # σ = 10 mb = 1 fm², so collisions need d² < 1/π fm²
    finder = _finder(registry, make_config, collision_criterion=criterion)
    near = _head_on(make_particle, impact=0.3)
    far = _head_on(make_particle, impact=1.0)
    assert finder.check_collision_two_part(*near, dt=2.0) is not None
    assert finder.check_collision_two_part(*far, dt=2.0) is None


def test_distance_pre_filter(registry, make_config, make_particle):
    finder = _finder(registry, make_config, sigma=1.0e6)
    assert finder.max_transverse_distance_sqr(1) == pytest.approx(2000.0 * 0.1 / math.pi)
    assert finder.max_transverse_distance_sqr(4) == pytest.approx(500.0 * 0.1 / math.pi)
    # Beyond 2000 mb even a huge cross section is not looked at
    far = _head_on(make_particle, impact=9.0)
    assert finder.check_collision_two_part(*far, dt=2.0) is None


def test_just_collided_pair_rejected(registry, make_config, make_particle):
    finder = _finder(registry, make_config)
    a, b = _head_on(make_particle)
    a.id_process = b.id_process = 7
    assert finder.check_collision_two_part(a, b, dt=2.0) is None
    b.id_process = 8
    assert finder.check_collision_two_part(a, b, dt=2.0) is not None


def test_no_channels_no_collision(registry, make_config, make_particle):
    finder = _finder(registry, make_config, sigma=0.0)
    assert finder.check_collision_two_part(*_head_on(make_particle), dt=2.0) is None


def test_formation_time_scales_cross_section(registry, make_config, make_particle):
    finder = _finder(registry, make_config)
    a, b = _head_on(make_particle, impact=0.3)
    # 0.09 fm² < 1/π, but not below 0.2/π
    a.formation_time = 100.0
    a.initial_xsec_scaling_factor = 0.2
    assert finder.check_collision_two_part(a, b, dt=2.0) is None


@pytest.mark.parametrize("criterion", ALL_CRITERIA)
def test_spectators_never_collide(registry, make_config, make_particle, criterion):
    # Ids 0, 1 projectile nucleons, 2, 3 target nucleons
    finder = _finder(registry, make_config, collision_criterion=criterion,
                     nucleon_has_interacted=[False] * 4, n_tot=4, n_proj=2)
    rng = FixedRng(0.0)
    same_side = _head_on(make_particle, ids=(0, 1))
    assert finder.check_collision_two_part(*same_side, dt=2.0, cell_vol=1000.0, rng=rng) is None
    target_side = _head_on(make_particle, ids=(2, 3))
    assert finder.check_collision_two_part(*target_side, dt=2.0, cell_vol=1000.0, rng=rng) is None
    opposite = _head_on(make_particle, ids=(1, 2))
    assert finder.check_collision_two_part(*opposite, dt=2.0, cell_vol=1000.0, rng=rng) is not None


def test_interacted_nucleon_is_no_spectator(registry, make_config, make_particle):
    finder = _finder(registry, make_config, nucleon_has_interacted=[True, False, False, False],
                     n_tot=4, n_proj=2)
    assert finder.check_collision_two_part(*_head_on(make_particle, ids=(0, 1)), dt=2.0) is not None
    # Produced particles are never spectators
    assert finder.check_collision_two_part(*_head_on(make_particle, ids=(2, 7)), dt=2.0) is not None


def test_frozen_fermi_motion(registry, make_config, make_particle):
    finder = _finder(registry, make_config, sigma=200.0, low_snn_cut=0.0,
                     nucleon_has_interacted=[False, False], n_tot=2, n_proj=1)
    a = make_particle("N⁺", 0, x=-1.0)
    b = make_particle("N⁰", 1, x=1.0)
    assert finder.check_collision_two_part(a, b, dt=5.0) is None

    beam = [momentum_from_mass(0.938, 1.0), momentum_from_mass(0.938, -1.0)]
    act = finder.check_collision_two_part(a, b, dt=5.0, beam_momentum=beam)
    assert act is not None
    assert act.time_until_collision == pytest.approx(beam[0].E)


def test_accepted_times_inside_timestep(registry, make_config, make_particle):
    rng = np.random.default_rng(42)
    finder = _finder(registry, make_config, sigma=40.0)
    dt = 1.0
    accepted = []
    for i in range(300):
        x = rng.uniform(-2.0, 2.0, size=(2, 3))
        p = rng.uniform(-1.0, 1.0, size=(2, 3))
        a = make_particle("π⁺", 2 * i, x=x[0, 0], y=x[0, 1], z=x[0, 2], px=p[0, 0], py=p[0, 1], pz=p[0, 2])
        b = make_particle("π⁻", 2 * i + 1, x=x[1, 0], y=x[1, 1], z=x[1, 2], px=p[1, 0], py=p[1, 1], pz=p[1, 2])
        act = finder.check_collision_two_part(a, b, dt)
        if act is not None:
            accepted.append(act)
    assert accepted
    assert all(0.0 <= act.time_until_collision < dt for act in accepted)


def test_constant_elastic_isotropic_mode(make_config, caplog):
    registry = ParticleTypeRegistry.from_records(PARTICLES[3:4])
    config = make_config(elastic_cross_section=30.0, isotropic=True)
    with caplog.at_level(logging.INFO, logger="scattering.finder"):
        finder = ScatterActionsFinder(config, registry)
    assert finder.is_constant_elastic_isotropic()
    assert finder.max_transverse_distance_sqr(2) == pytest.approx(15.0 * 0.1 / math.pi)
    assert "30.0 mb" in caplog.text


# ------------------------------ Stochastic --------------------------------
def test_stochastic_needs_a_cell(registry, make_config, make_particle):
    finder = _finder(registry, make_config, collision_criterion="Stochastic")
    a, b = _head_on(make_particle)
    assert finder.check_collision_two_part(a, b, dt=0.1, cell_vol=0.0, rng=FixedRng(0.0)) is None
    assert finder.check_collision_two_part(a, b, dt=0.1, cell_vol=1e-7, rng=FixedRng(0.0)) is None


def test_stochastic_requires_random_source(registry, make_config, make_particle):
    finder = _finder(registry, make_config, model=ChannelTable.from_mapping(TRIPLES, registry),
                     collision_criterion="Stochastic")
    a, b = _head_on(make_particle)
    with pytest.raises(ConfigurationError, match="rng"):
        finder.check_collision_two_part(a, b, dt=0.1, cell_vol=1000.0)
    with pytest.raises(ConfigurationError, match="rng"):
        finder.check_collision_multi_part(_pions(make_particle), dt=0.1, cell_vol=10.0)
    with pytest.raises(ConfigurationError, match="rng"):
        finder.find_actions_in_cell([a, b], dt=0.1, cell_vol=1000.0)


def test_stochastic_acceptance(registry, make_config, make_particle):
    finder = _finder(registry, make_config, collision_criterion="Stochastic")
    a, b = _head_on(make_particle, impact=5.0)
    # P = 1 fm² · v_rel · 0.1 fm / 1000 fm³ ≈ 2e-4; the distance plays no role
    act = finder.check_collision_two_part(a, b, dt=0.1, cell_vol=1000.0, rng=FixedRng(0.0))
    assert act is not None
    assert act.time_until_collision == 0.0
    assert finder.check_collision_two_part(a, b, dt=0.1, cell_vol=1000.0, rng=FixedRng(0.5)) is None


def test_stochastic_time_inside_timestep(registry, make_config, make_particle):
    finder = _finder(registry, make_config, collision_criterion="Stochastic")
    rng = np.random.default_rng(7)
    a, b = _head_on(make_particle)
    for _ in range(50):
        act = finder.check_collision_two_part(a, b, dt=0.1, cell_vol=0.5, rng=rng)
        if act is not None:
            assert 0.0 <= act.time_until_collision < 0.1


def test_stochastic_probability_overflow(registry, make_config, make_particle):
    finder = _finder(registry, make_config, collision_criterion="Stochastic")
    a, b = _head_on(make_particle)
    v_rel = relative_velocity(a.momentum, b.momentum)
    assert 1.0 * v_rel * 1.0 / 0.01 > 1.0
    with pytest.raises(ProbabilityOverflowError, match="smaller timesteps"):
        finder.check_collision_two_part(a, b, dt=1.0, cell_vol=0.01, rng=FixedRng(0.0))


# ------------------------------ Multi-body --------------------------------
def _pions(make_particle, names=("π⁺", "π⁻", "π⁰")):
    return [make_particle(names[0], 0, px=0.5), make_particle(names[1], 1, px=-0.5), make_particle(names[2], 2)]


def test_multi_part_accepted(registry, make_config, make_particle):
    finder = _finder(registry, make_config, model=ChannelTable.from_mapping(TRIPLES, registry),
                     collision_criterion="Stochastic")
    act = finder.check_collision_multi_part(_pions(make_particle), dt=0.1, cell_vol=10.0, rng=FixedRng(0.0))
    assert isinstance(act, ScatterActionMulti)
    assert act.time_until_collision == 0.0
    assert finder.check_collision_multi_part(_pions(make_particle), dt=0.1, cell_vol=10.0, rng=FixedRng(0.9)) is None


def test_multi_part_rejections(registry, make_config, make_particle):
    finder = _finder(registry, make_config, model=ChannelTable.from_mapping(TRIPLES, registry),
                     collision_criterion="Stochastic")
    assert finder.check_collision_multi_part(_pions(make_particle), dt=0.1, cell_vol=0.0, rng=FixedRng(0.0)) is None
    no_final_state = _pions(make_particle, names=("π⁺", "π⁺", "π⁻"))
    assert finder.check_collision_multi_part(no_final_state, dt=0.1, cell_vol=10.0, rng=FixedRng(0.0)) is None


def test_multi_part_overflow(registry, make_config, make_particle):
    finder = _finder(registry, make_config, model=ChannelTable.from_mapping(TRIPLES, registry),
                     collision_criterion="Stochastic")
    # 0.5 · 1 / 0.1² = 50
    with pytest.raises(ProbabilityOverflowError):
        finder.check_collision_multi_part(_pions(make_particle), dt=1.0, cell_vol=0.1, rng=FixedRng(0.0))


def test_multi_part_requires_single_testparticle(registry, make_config, make_particle):
    finder = _finder(registry, make_config, model=ChannelTable.from_mapping(TRIPLES, registry),
                     collision_criterion="Stochastic", testparticles=2)
    with pytest.raises(ConfigurationError):
        finder.check_collision_multi_part(_pions(make_particle), dt=0.1, cell_vol=10.0, rng=FixedRng(0.0))


# ---------------------------- Candidate modes -----------------------------
def test_in_cell_stochastic_pairs_and_triples(registry, make_config, make_particle):
    finder = _finder(registry, make_config, model=ChannelTable.from_mapping(TRIPLES, registry),
                     collision_criterion="Stochastic")
    actions = finder.find_actions_in_cell(_pions(make_particle), dt=0.1, cell_vol=100.0, rng=FixedRng(0.0))
    pairs = [a for a in actions if isinstance(a, ScatterAction)]
    triples = [a for a in actions if isinstance(a, ScatterActionMulti)]
    assert sorted(tuple(p.id for p in a.incoming_particles) for a in pairs) == [(0, 1), (0, 2), (1, 2)]
    assert [tuple(p.id for p in a.incoming_particles) for a in triples] == [(0, 1, 2)]


def test_in_cell_geometric_pairs_only(registry, make_config, make_particle):
    finder = _finder(registry, make_config, model=ChannelTable.from_mapping(TRIPLES, registry))
    a, b = _head_on(make_particle)
    actions = finder.find_actions_in_cell([a, b], dt=2.0, cell_vol=100.0)
    assert len(actions) == 1
    assert isinstance(actions[0], ScatterAction)


def test_neighbor_and_surrounding_modes_skip_stochastic(registry, make_config, make_particle):
    finder = _finder(registry, make_config, collision_criterion="Stochastic")
    a, b = _head_on(make_particle)
    assert finder.find_actions_with_neighbors([a], [b], dt=2.0, rng=FixedRng(0.0)) == []
    assert finder.find_actions_with_surrounding_particles([a], [b], dt=2.0, rng=FixedRng(0.0)) == []


def test_neighbor_mode(registry, make_config, make_particle):
    finder = _finder(registry, make_config)
    a, b = _head_on(make_particle)
    actions = finder.find_actions_with_neighbors([a], [b], dt=2.0)
    assert [tuple(p.id for p in act.incoming_particles) for act in actions] == [(0, 1)]


def test_surrounding_mode_skips_shared_particles(registry, make_config, make_particle):
    finder = _finder(registry, make_config)
    a, b = _head_on(make_particle)
    actions = finder.find_actions_with_surrounding_particles([a], [a, b], dt=2.0)
    assert len(actions) == 1
    assert {p.id for p in actions[0].incoming_particles} == {0, 1}
