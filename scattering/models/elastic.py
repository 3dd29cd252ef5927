from ..actions import CollisionBranch, ProcessType
from .base import CrossSectionModel


class ConstantElasticModel(CrossSectionModel):
    """Every pair scatters elastically with one energy-independent cross section."""

    name = "Constant elastic"
    description = "Single elastic channel with Elastic_Cross_Section (or a fixed value)"

    def __init__(self, sigma: float = None):
        self.sigma = sigma

    def collision_channels(self, action, config):
        sigma = self.sigma if self.sigma is not None else config.elastic_cross_section
        if sigma <= 0.0 or "Elastic" not in config.included_2to2:
            return []
        a, b = action.incoming_types
        if a.is_nucleon and b.is_nucleon and action.sqrt_s < config.low_snn_cut:
            return []
        return [CollisionBranch((a, b), sigma, ProcessType.ELASTIC, "Elastic")]
