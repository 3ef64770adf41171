"""Git helpers."""

import subprocess
from pathlib import Path

from .errors import GitError


def get_commit_hash(repo_dir: str) -> str:
    """
    Get the commit hash that HEAD points to in a local repository.

    Args:
        repo_dir: Path to the repository

    Returns:
        Full commit hash

    Raises:
        GitError: If repo_dir is not a repository, has no commits,
            or git is not installed
    """
    if not Path(repo_dir).is_dir():
        raise GitError(f"Not a directory: {repo_dir}")

    try:
        result = subprocess.run(
            ["git", "-C", str(repo_dir), "rev-parse", "--verify", "HEAD"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"Timed out resolving HEAD in {repo_dir}") from e

    if result.returncode != 0:
        raise GitError(f"Cannot resolve HEAD in {repo_dir}: {result.stderr.strip()}")

    return result.stdout.strip()
