"""
AgentStart - prompt assembly for AI agent CLIs with a layered config store
and an installable asset registry.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
