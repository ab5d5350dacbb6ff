"""Repository context for planning against an existing project.

A :class:`RepositoryContext` describes what already exists on disk -- files,
directory layout, manifest and detected features -- so the plan builder can
bias its output.  Providers are optional: when none is given, or when one
fails, planning falls back to the baseline.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from src.utils.logging import get_logger

logger = get_logger("planning.repository")

_IGNORED_DIRS = {".git", "node_modules", "dist", "build", "__pycache__", ".venv", "venv"}
_MAX_FILES = 2000

# Feature key -> filename patterns that signal the feature exists.
_FEATURE_SIGNALS: dict[str, tuple[str, ...]] = {
    "content": (r"\bblog", r"\bposts?\b", r"postcard", r"postlist", r"article"),
    "dashboard": (r"dashboard", r"statscard", r"\badmin\b"),
    "identity": (r"\bauth", r"login", r"signup", r"session"),
    "theming": (r"theme", r"darkmode"),
    "forms": (r"form",),
    "api": (r"\bapi\b", r"routes?"),
    "data": (r"schema", r"migrations?", r"models?"),
}


class RepositoryContext(BaseModel):
    """Snapshot of an existing project used to bias planning.

    Attributes:
        files: Repository-relative file paths (POSIX separators).
        structure: Directory -> file names directly inside it.
        manifest: Parsed package manifest (``package.json``), if any.
        existing_features: Objective keys the project already implements.
    """

    files: list[str] = []
    structure: dict[str, list[str]] = {}
    manifest: dict | None = None
    existing_features: list[str] = []

    def dependency_names(self) -> list[str]:
        """Return declared dependency names from the manifest."""
        if not self.manifest:
            return []
        names: list[str] = []
        for section in ("dependencies", "devDependencies"):
            deps = self.manifest.get(section) or {}
            if isinstance(deps, dict):
                names.extend(sorted(deps))
        return names


class RepositoryContextProvider(Protocol):
    """Anything able to describe an existing repository."""

    def get_context(self) -> RepositoryContext | None: ...


class DirectoryContextProvider:
    """Provides context by auditing a directory on the local filesystem."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def get_context(self) -> RepositoryContext | None:
        return audit_repository(self.root)


def detect_features(files: list[str]) -> list[str]:
    """Return the objective keys whose signals appear in *files*."""
    lowered = [f.lower() for f in files]
    found: list[str] = []
    for key, patterns in _FEATURE_SIGNALS.items():
        if any(re.search(p, f) for p in patterns for f in lowered):
            found.append(key)
    return found


def audit_repository(repo_path: str | Path) -> RepositoryContext | None:
    """Scan *repo_path* and summarise it as a :class:`RepositoryContext`.

    Returns ``None`` when the path does not exist or is not a directory.
    """
    root = Path(repo_path)
    if not root.is_dir():
        logger.warning("repository_not_found", path=str(root))
        return None

    files: list[str] = []
    structure: dict[str, list[str]] = {}

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _IGNORED_DIRS)
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for name in sorted(filenames):
            rel = name if rel_dir == "." else f"{rel_dir}/{name}"
            files.append(rel)
            if rel_dir != ".":
                structure.setdefault(rel_dir, []).append(name)
            if len(files) >= _MAX_FILES:
                break
        if len(files) >= _MAX_FILES:
            logger.warning("repository_scan_truncated", path=str(root), limit=_MAX_FILES)
            break

    manifest = None
    manifest_path = root / "package.json"
    if manifest_path.is_file():
        try:
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("manifest_unreadable", path=str(manifest_path), error=str(exc))

    context = RepositoryContext(
        files=files,
        structure=structure,
        manifest=manifest if isinstance(manifest, dict) else None,
        existing_features=detect_features(files),
    )
    logger.info(
        "repository_audited",
        path=str(root),
        files=len(files),
        features=context.existing_features,
    )
    return context
