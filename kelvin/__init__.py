"""Kelvin - circadian color temperature and brightness for Hue lights."""

__version__ = "0.1.0"
