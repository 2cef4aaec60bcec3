"""Sequential Bayesian belief updating under identity threat.

A credibility belief is updated step by step from evidence and institutional
signals, with identity threat shifting weight from the former to the latter.
"""

from .state import (
    BeliefState,
    ObservationContext,
    SimulationSettings,
    StepRecord,
    UpdateCoefficients,
    UpdateResult,
)
from .updater import BeliefUpdater, bayesian_update
from .trajectories import (
    AbsentInstitution,
    Constant,
    DelayedInstitution,
    Escalating,
    ResponsiveInstitution,
    ShockEvent,
    Trajectory,
)
from .simulator import BeliefEvolutionSimulator, simulate_belief_evolution
from .scenarios import (
    ScenarioComparator,
    compare_scenarios,
    default_scenarios,
    summarize_scenarios,
)

__all__ = [
    "BeliefState",
    "ObservationContext",
    "SimulationSettings",
    "StepRecord",
    "UpdateCoefficients",
    "UpdateResult",
    "BeliefUpdater",
    "bayesian_update",
    "AbsentInstitution",
    "Constant",
    "DelayedInstitution",
    "Escalating",
    "ResponsiveInstitution",
    "ShockEvent",
    "Trajectory",
    "BeliefEvolutionSimulator",
    "simulate_belief_evolution",
    "ScenarioComparator",
    "compare_scenarios",
    "default_scenarios",
    "summarize_scenarios",
]
