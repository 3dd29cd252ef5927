"""
Channel models: the physics collaborator of the interaction finder.

Usage:
    from scattering.models import build_model

    model = build_model(config, registry, channel_table)
    channels = model.collision_channels(action, config)
"""
from .base import CrossSectionModel
from .composite import CompositeModel
from .elastic import ConstantElasticModel
from .resonance import ResonanceFormationModel
from .table import ChannelTable, aqm_cross_section
from .registry import register, get_model, build_model, list_registered_models

__all__ = [
    "CrossSectionModel",
    "CompositeModel",
    "ConstantElasticModel",
    "ResonanceFormationModel",
    "ChannelTable",
    "aqm_cross_section",
    "register",
    "get_model",
    "build_model",
    "list_registered_models",
]
