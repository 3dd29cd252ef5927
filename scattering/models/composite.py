from .base import CrossSectionModel


class CompositeModel(CrossSectionModel):
    """Concatenates the channels of several models."""

    name = "Composite"
    description = "Union of the channels of its component models"

    def __init__(self, models):
        self.models = list(models)

    def collision_channels(self, action, config):
        channels = []
        for model in self.models:
            channels.extend(model.collision_channels(action, config))
        return channels

    def multi_final_states(self, action, config):
        states = []
        for model in self.models:
            states.extend(model.multi_final_states(action, config))
        return states

    def __repr__(self) -> str:
        return f"CompositeModel({', '.join(m.name for m in self.models)})"
