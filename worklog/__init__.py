"""
Worklog - Branching operation log for generated projects.

A persisted, append-mostly record of the changes made to a project by build
tools, editors and AI agents, with git-like branching, diffing and tagging.
"""

__version__ = "0.1.0"

# Configuration is available at top level for convenience
from worklog.config import config

__all__ = ["config", "__version__"]
