"""
Channel model registry: maps model names to factories.

A factory receives the particle registry and an optional channel table
and returns a CrossSectionModel instance.
"""
from ..errors import ConfigurationError
from .composite import CompositeModel
from .elastic import ConstantElasticModel
from .resonance import ResonanceFormationModel


# Global registry: name -> factory(particle_registry, channel_table)
_REGISTRY: dict = {}


def register(name: str, factory):
    """
    Register a channel model factory.

    Example:
        >>> register("elastic", lambda registry, table: ConstantElasticModel())
    """
    _REGISTRY[name] = factory


def get_model(name: str, registry, channel_table=None):
    """Instantiate the model registered under ``name``."""
    try:
        factory = _REGISTRY[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown channel model '{name}'; registered: {sorted(_REGISTRY)}") from None
    return factory(registry, channel_table)


def list_registered_models():
    """List all registered channel models."""
    return sorted(_REGISTRY)


def default_model_names(config, channel_table=None):
    names = []
    if channel_table is not None:
        names.append("table")
    elif config.elastic_cross_section >= 0.0:
        names.append("elastic")
    if config.two_to_one:
        names.append("resonances")
    return names


def build_model(config, registry, channel_table=None):
    """
    Assemble the channel model described by the configuration.

    Uses ``config.channel_models`` when given, otherwise the channel table
    (or the constant elastic model) plus resonance formation.
    """
    names = config.channel_models or default_model_names(config, channel_table)
    if not names:
        raise ConfigurationError("No channel model selected")
    models = [get_model(name, registry, channel_table) for name in names]
    return models[0] if len(models) == 1 else CompositeModel(models)


def _table(registry, channel_table):
    if channel_table is None:
        raise ConfigurationError("Channel model 'table' requires a channel table")
    return channel_table


# ========== AUTO-REGISTER KNOWN MODELS ==========
register("elastic", lambda registry, table: ConstantElasticModel())
register("resonances", lambda registry, table: ResonanceFormationModel(registry))
register("table", _table)
