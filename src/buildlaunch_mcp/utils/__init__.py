"""Utility modules for buildlaunch-mcp."""

from .project import (
    candidate_directories,
    find_project_root,
    find_solution_file,
    project_unique_name,
    resolve_project_file,
)

__all__ = [
    "candidate_directories",
    "find_project_root",
    "find_solution_file",
    "project_unique_name",
    "resolve_project_file",
]
