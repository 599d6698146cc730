"""Route group exports."""

from . import dynamic_routing, health, optimization

__all__ = ["dynamic_routing", "health", "optimization"]
