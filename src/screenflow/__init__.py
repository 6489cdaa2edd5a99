"""
screenflow core package: onboarding flow runtime and assistant edit pipeline.
"""

from .version import __version__, SCHEMA_VERSION  # noqa: F401

__all__ = [
    "tree",
    "runtime",
    "flows",
    "patching",
    "streaming",
    "client",
    "errors",
    "__version__",
    "SCHEMA_VERSION",
]
