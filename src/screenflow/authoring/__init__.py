"""
Helpers for flow authors and the assistant request builder.
"""

from .variables import VariableInfo, collect_flow_variables

__all__ = ["VariableInfo", "collect_flow_variables"]
