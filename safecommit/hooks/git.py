"""Git access for the hook client: repository discovery and staged changes."""

from pathlib import Path
from typing import List, Optional, Union

import git
from git import Repo


class GitRepository:
    """Read-only view of the staged state of a repository."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Args:
            path: Any path inside the repository. Defaults to the current directory.

        Raises:
            ValueError: If the path is not inside a git repository
        """
        start = Path(path) if path is not None else Path.cwd()
        try:
            self.repo = Repo(start, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            raise ValueError(f"{start} is not a git repository")

    @property
    def root(self) -> Path:
        """Top-level working tree directory."""
        return Path(self.repo.working_tree_dir)

    @property
    def git_dir(self) -> Path:
        """The repository's git directory (``.git`` or a worktree gitdir)."""
        return Path(self.repo.git_dir)

    @property
    def hooks_dir(self) -> Path:
        return Path(self.repo.common_dir) / "hooks"

    def staged_diff(self) -> str:
        """Unified diff of the index against HEAD, three lines of context."""
        return self.repo.git.diff("--cached", "--unified=3", strip_newline_in_stdout=False)

    def staged_files(self) -> List[str]:
        """Paths of staged files, one per entry."""
        output = self.repo.git.diff("--cached", "--name-only")
        return [line.strip() for line in output.splitlines() if line.strip()]
