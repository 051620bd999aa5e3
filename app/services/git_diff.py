"""Git CLI backed diff source for repository-scoped analyses."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from app.core.config import settings

_logger = logging.getLogger(__name__)

# Hash of git's empty tree, diffed against when a repository has no HEAD yet.
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

INVALID_REPOSITORY_MESSAGE = "No valid git repository found at the specified path. Please select a valid git repository."

DiffResult = tuple[str, Optional[str]]


class DiffSource(Protocol):
    def validate_repository(self, repository_path: str) -> tuple[bool, Optional[str]]:  # pragma: no cover - interface
        ...

    def has_staged_changes(self, repository_path: str) -> bool:  # pragma: no cover - interface
        ...

    def get_uncommitted_diff(self, repository_path: str) -> DiffResult:  # pragma: no cover - interface
        ...

    def get_staged_diff(self, repository_path: str) -> DiffResult:  # pragma: no cover - interface
        ...

    def get_commit_diff(self, repository_path: str, commit_id: str) -> DiffResult:  # pragma: no cover - interface
        ...


class GitCommandError(RuntimeError):
    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        super().__init__(f"git {' '.join(args)} exited with {returncode}: {stderr.strip()}")
        self.returncode = returncode
        self.stderr = stderr


class GitDiffSource:
    """Produces unified diffs by shelling out to ``git``.

    Diff methods return ``(text, None)`` on success and ``("", error)`` when the
    diff cannot be produced or exceeds its size ceiling.
    """

    def __init__(
        self,
        git_executable: str = "git",
        *,
        max_diff_bytes: int | None = None,
        max_uncommitted_diff_bytes: int | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._git = git_executable
        self._max_diff_bytes = max_diff_bytes or settings.max_diff_bytes
        self._max_uncommitted_bytes = max_uncommitted_diff_bytes or settings.max_uncommitted_diff_bytes
        self._timeout = timeout

    def validate_repository(self, repository_path: str) -> tuple[bool, Optional[str]]:
        if not repository_path or not Path(repository_path).is_dir():
            return False, INVALID_REPOSITORY_MESSAGE
        try:
            output = self._run(repository_path, ["rev-parse", "--is-inside-work-tree"])
        except (GitCommandError, OSError, subprocess.TimeoutExpired):
            return False, INVALID_REPOSITORY_MESSAGE
        if output.decode("utf-8", errors="replace").strip() != "true":
            return False, INVALID_REPOSITORY_MESSAGE
        return True, None

    def has_staged_changes(self, repository_path: str) -> bool:
        try:
            output = self._run(repository_path, ["diff", "--cached", "--name-only"])
        except (GitCommandError, OSError, subprocess.TimeoutExpired):
            _logger.warning("Unable to inspect staged changes in %s", repository_path)
            return False
        return bool(output.strip())

    def get_uncommitted_diff(self, repository_path: str) -> DiffResult:
        try:
            base = "HEAD" if self._has_head(repository_path) else EMPTY_TREE_SHA
            raw = self._run(repository_path, ["diff", "--no-color", base])
        except (GitCommandError, OSError, subprocess.TimeoutExpired) as exc:
            return "", f"Error getting uncommitted diff: {exc}"
        if len(raw) > self._max_uncommitted_bytes:
            return "", f"Diff too large ({len(raw)} bytes > {_kb(self._max_uncommitted_bytes)}). Commit some changes first."
        return _decode(raw), None

    def get_staged_diff(self, repository_path: str) -> DiffResult:
        try:
            raw = self._run(repository_path, ["diff", "--no-color", "--cached"])
        except (GitCommandError, OSError, subprocess.TimeoutExpired) as exc:
            return "", f"Error getting staged diff: {exc}"
        if len(raw) > self._max_diff_bytes:
            return "", f"Staged diff too large ({len(raw)} bytes > {_kb(self._max_diff_bytes)})."
        return _decode(raw), None

    def get_commit_diff(self, repository_path: str, commit_id: str) -> DiffResult:
        if not commit_id:
            return "", "Commit ID is required"
        try:
            sha = self._run(repository_path, ["rev-parse", "--verify", f"{commit_id}^{{commit}}"])
        except GitCommandError as exc:
            if "ambiguous" in exc.stderr.lower():
                return "", f"Ambiguous commit ID '{commit_id}'. Please provide a more specific hash."
            _logger.warning("Commit '%s' not found in %s", commit_id, repository_path)
            return "", "Commit not found"
        except (OSError, subprocess.TimeoutExpired) as exc:
            return "", f"Error getting commit diff: {exc}"

        try:
            # Root commits are shown against the empty tree.
            raw = self._run(repository_path, ["show", "--no-color", "--format=", "-M", _decode(sha).strip()])
        except (GitCommandError, OSError, subprocess.TimeoutExpired) as exc:
            return "", f"Error getting commit diff: {exc}"
        if len(raw) > self._max_diff_bytes:
            return "", f"Commit diff too large ({len(raw)} bytes > {_kb(self._max_diff_bytes)})."
        return _decode(raw), None

    def _has_head(self, repository_path: str) -> bool:
        try:
            self._run(repository_path, ["rev-parse", "--verify", "--quiet", "HEAD"])
        except GitCommandError:
            return False
        return True

    def _run(self, repository_path: str, args: list[str]) -> bytes:
        completed = subprocess.run(
            [self._git, "-C", repository_path, *args],
            capture_output=True,
            timeout=self._timeout,
            check=False,
        )
        if completed.returncode != 0:
            raise GitCommandError(args, completed.returncode, completed.stderr.decode("utf-8", errors="replace"))
        return completed.stdout


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _kb(limit: int) -> str:
    return f"{limit // 1024}KB"
