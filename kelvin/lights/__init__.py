"""Per-light automation state machine."""

from .light import Light
from .state_machine import Action, Decision, Observation, decide

__all__ = ["Action", "Decision", "Light", "Observation", "decide"]
