"""
Path utilities for the Forest Productivity Trends pipeline.

This module provides consistent path handling and directory management
across all pipeline components.
"""

from pathlib import Path
from typing import Union, Optional


def ensure_directory(path: Union[str, Path], parents: bool = True) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to create
        parents: Whether to create parent directories

    Returns:
        Path: Created directory path

    Examples:
        >>> output_dir = ensure_directory("data/results/productivity_trends")
    """
    path = Path(path)
    path.mkdir(parents=parents, exist_ok=True)
    return path


def resolve_path(path: Union[str, Path], base_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve path to absolute path, optionally relative to base_path.

    Args:
        path: Path to resolve
        base_path: Base path for relative resolution (default: current directory)

    Returns:
        Path: Resolved absolute path

    Examples:
        >>> abs_path = resolve_path("data/raw/gpp_exports")
        >>> abs_path = resolve_path("exports", base_path="/project/data/raw")
    """
    path = Path(path)

    if path.is_absolute():
        return path

    if base_path:
        base_path = Path(base_path)
        return (base_path / path).resolve()

    return path.resolve()
