from pathlib import Path, PurePosixPath


def ensure_dir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def resolve_within(root: str | Path, relative: str) -> Path:
    """Join *relative* onto *root*, refusing paths that escape *root*."""
    parts = PurePosixPath(relative.replace("\\", "/")).parts
    if not parts or PurePosixPath(relative).is_absolute() or ".." in parts:
        raise ValueError(f"Unsafe artifact path: {relative!r}")
    base = Path(root).resolve()
    target = base.joinpath(*parts).resolve()
    if base != target and base not in target.parents:
        raise ValueError(f"Unsafe artifact path: {relative!r}")
    return target


def is_test_path(path: str) -> bool:
    """Return ``True`` for paths that look like test files."""
    p = PurePosixPath(path.replace("\\", "/"))
    name = p.name
    if any(part in ("test", "tests", "__tests__") for part in p.parts[:-1]):
        return True
    return (
        ".test." in name
        or ".spec." in name
        or (name.startswith("test_") and name.endswith(".py"))
        or name.endswith("_test.py")
    )
