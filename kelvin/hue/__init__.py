"""Hue Bridge communication module."""

from .bridge import HueBridge
from .bulb import HueLight

__all__ = ["HueBridge", "HueLight"]
