"""Shallot: a minimal onion-routing overlay."""

__version__ = "0.1.0"

from .circuit import Circuit, CircuitBuilder
from .client import OnionUser
from .config import Config
from .relay import OnionRelay

__all__ = ["Circuit", "CircuitBuilder", "Config", "OnionRelay", "OnionUser"]
