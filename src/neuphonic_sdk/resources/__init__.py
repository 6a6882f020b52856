"""REST resource clients."""

from .agents import Agents
from .restorations import Restorations
from .voices import Voices

__all__ = ["Agents", "Restorations", "Voices"]
