"""
Reference HTTP service for the screen source, analytics sink and assistant
document application.
"""

from .app import create_app
from .store import Experiment, Project, ProjectStore, Variant

__all__ = ["create_app", "Experiment", "Project", "ProjectStore", "Variant"]
