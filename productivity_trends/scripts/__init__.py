"""
Executable scripts for the productivity trends component.

Scripts:
    run_productivity_trends.py: Load, derive, annotate and summarize productivity change
"""

from .run_productivity_trends import main as run_productivity_trends

__all__ = [
    "run_productivity_trends"
]
