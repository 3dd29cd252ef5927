from abc import ABC, abstractmethod
from typing import List


class CrossSectionModel(ABC):
    """
    Base class for all channel models.

    Given a collision candidate, returns its outcome channels with partial
    cross sections in mb. Implementations must not draw random numbers;
    all acceptance decisions belong to the interaction finder.
    """

    name: str = "abstract"
    description: str = ""

    @abstractmethod
    def collision_channels(self, action, config) -> List:
        """
        Return the CollisionBranch list for a two-body action.

        Args:
            action: ScatterAction with both incoming particles
            config: CollisionTermConfig with the channel switches

        Returns:
            List of CollisionBranch, weights in mb
        """

    def multi_final_states(self, action, config) -> List:
        """Final states reachable from exactly the incoming group of a many-body action."""
        return []

    def probability_multi(self, action, dt: float, cell_vol: float) -> float:
        """
        Probability of an n-body reaction within dt in a cell of volume cell_vol.

        Channel weights of many-body branches are rate coefficients in
        fm^(3(n-1)) c, so that P = Σ rate · dt / V^(n-1).
        """
        n = len(action.incoming_particles)
        return action.cross_section * dt / cell_vol ** (n - 1)
