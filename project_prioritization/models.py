"""Data models for the prioritization pipeline stage."""

from dataclasses import dataclass


@dataclass
class PrioritizeResult:
    """Funded actions and the outcome they achieve.

    Parameters
    ----------
    selected_actions : list[str]
        Action IDs chosen for funding.
    funded_projects : list[str]
        Project IDs whose actions are all funded.
    feature_persistence : dict[str, float]
        Persistence probability achieved by each feature.
    total_cost : float
        Total cost of the selected actions.
    """

    selected_actions: list[str]
    funded_projects: list[str]
    feature_persistence: dict[str, float]
    total_cost: float

    def __post_init__(self) -> None:
        """Validate cost and persistence values."""
        if self.total_cost < 0:
            raise ValueError("total_cost must be non-negative")
        if any(not 0 <= p <= 1 for p in self.feature_persistence.values()):
            raise ValueError("feature_persistence values must be between 0 and 1")
