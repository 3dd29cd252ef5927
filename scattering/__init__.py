"""
Scatterfinder: interaction discovery for hadronic transport.

Usage:
    import numpy as np
    from scattering import ParticleTypeRegistry, ScatterActionsFinder, load_config

    registry = ParticleTypeRegistry.from_sqlite()
    finder = ScatterActionsFinder(load_config("data/config.yaml"), registry)
    actions = finder.find_actions_in_cell(particles, dt=0.1, cell_vol=8.0,
                                          rng=np.random.default_rng(42))
"""
from .actions import Action, CollisionBranch, ProcessType, ScatterAction, ScatterActionMulti
from .config import CollisionCriterion, CollisionTermConfig, NNbarTreatment, load_config
from .errors import ConfigurationError, ProbabilityOverflowError, ScatteringError, UnknownParticleError
from .finder import ScatterActionsFinder
from .kinematics import FourVector
from .particles import IsoParticleType, ParticleData, ParticleType, ParticleTypeRegistry

__all__ = [
    "Action",
    "CollisionBranch",
    "ProcessType",
    "ScatterAction",
    "ScatterActionMulti",
    "CollisionCriterion",
    "CollisionTermConfig",
    "NNbarTreatment",
    "load_config",
    "ConfigurationError",
    "ProbabilityOverflowError",
    "ScatteringError",
    "UnknownParticleError",
    "ScatterActionsFinder",
    "FourVector",
    "IsoParticleType",
    "ParticleData",
    "ParticleType",
    "ParticleTypeRegistry",
]
