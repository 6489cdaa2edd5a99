"""
Structured, id-targeted edits over element trees.
"""

from .merge import MergeReport, merge, merge_elements, merge_report
from .models import Change, parse_changes

__all__ = ["MergeReport", "merge", "merge_elements", "merge_report", "Change", "parse_changes"]
