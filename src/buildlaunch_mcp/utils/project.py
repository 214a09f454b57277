"""Project and solution resolution.

Supplies the launch watcher with its two inputs at arming time:
- candidate directories, solution directory before project directory
- the target identifier, the project's unique name within its solution
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Final

logger = logging.getLogger(__name__)

PROJECT_FILE_PATTERNS: Final[tuple[str, ...]] = ("*.csproj", "*.vbproj", "*.fsproj")


def _ancestors(start: Path) -> Iterator[Path]:
    """Yield start directory and its ancestors."""
    yield start
    yield from start.parents


def _project_files(directory: Path) -> list[Path]:
    files: list[Path] = []
    for pattern in PROJECT_FILE_PATTERNS:
        files.extend(directory.glob(pattern))
    return sorted(files)


def find_project_root(start_dir: str | Path | None = None) -> Path:
    """Find .NET project root by walking up from a directory.

    Searches for project markers in this order:
    1. .sln (solution file) - preferred for multi-project setups
    2. .csproj/.vbproj/.fsproj (project files)
    3. .git (git root as fallback)

    Falls back to start_dir if no marker is found.
    """
    current = Path(start_dir or Path.cwd()).resolve()

    for directory in _ancestors(current):
        if any(directory.glob("*.sln")):
            return directory

    for directory in _ancestors(current):
        if _project_files(directory):
            return directory

    for directory in _ancestors(current):
        if (directory / ".git").exists():  # .git can be file (worktree) or dir
            return directory

    return current


def resolve_project_file(project: str | Path, root: str | Path | None = None) -> Path:
    """Resolve a project argument to a project file.

    Args:
        project: Project file, or a directory holding exactly one project file.
            Relative paths are taken from root.
        root: Base directory for relative paths (defaults to CWD)

    Returns:
        Absolute path to the project file

    Raises:
        ValueError: If no single project file can be determined
    """
    path = Path(project)
    if not path.is_absolute():
        path = Path(root or Path.cwd()) / path
    path = path.resolve()

    if path.is_dir():
        candidates = _project_files(path)
        if len(candidates) != 1:
            raise ValueError(
                f"Expected one project file in {path}, found {len(candidates)}"
            )
        return candidates[0]

    if not path.is_file():
        raise ValueError(f"Project file does not exist: {project}")
    return path


def find_solution_file(project_file: str | Path) -> Path | None:
    """Find the solution owning a project by walking up from its directory.

    The nearest directory with a .sln wins; within it the first file by name.
    """
    start = Path(project_file).resolve().parent
    for directory in _ancestors(start):
        solutions = sorted(directory.glob("*.sln"))
        if solutions:
            if len(solutions) > 1:
                logger.debug(f"Multiple solutions in {directory}, using {solutions[0].name}")
            return solutions[0]
    return None


def candidate_directories(
    project_file: str | Path,
    solution_file: str | Path | None = None,
) -> list[str]:
    """Directories searched for launch.json, highest precedence first.

    A launch.json next to the solution overrides the project's own.
    """
    project_dir = os.path.dirname(os.path.abspath(project_file))
    if solution_file is None:
        return [project_dir]

    solution_dir = os.path.dirname(os.path.abspath(solution_file))
    if os.path.normcase(solution_dir) == os.path.normcase(project_dir):
        return [solution_dir]
    return [solution_dir, project_dir]


def project_unique_name(
    project_file: str | Path,
    solution_file: str | Path | None = None,
) -> str:
    """Unique name of a project: its path relative to the solution directory.

    Projects outside the solution directory (or without a solution) are
    named by their absolute path.
    """
    project_path = os.path.abspath(project_file)
    if solution_file is None:
        return project_path

    solution_dir = os.path.dirname(os.path.abspath(solution_file))
    try:
        common = os.path.commonpath([project_path, solution_dir])
    except ValueError:
        # Different drives on Windows
        return project_path
    if os.path.normcase(common) != os.path.normcase(solution_dir):
        return project_path
    return os.path.relpath(project_path, solution_dir)
