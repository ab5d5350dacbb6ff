"""File renderer -- persists generated artifacts to the filesystem.

The :class:`FileRenderer` takes the :class:`GeneratedFile` list of an
:class:`ExecutionResult` and writes each one to disk under the configured
``output_dir``, preserving its relative path.
"""

from __future__ import annotations

import os

import aiofiles  # type: ignore[import-untyped]
from pydantic import BaseModel

from src.engines.models import GeneratedFile
from src.utils.file_utils import ensure_dir, resolve_within
from src.utils.logging import get_logger

logger = get_logger("engine.renderer")


class RenderedFile(BaseModel):
    """Descriptor for a file that has been written to disk.

    Attributes:
        file_path: Absolute path to the rendered file.
        relative_path: Path relative to the output directory.
        size_bytes: Size of the written file in bytes.
    """

    file_path: str
    relative_path: str
    size_bytes: int


class FileRenderer:
    """Write generated artifacts to disk.

    Parameters
    ----------
    output_dir:
        Root directory where files will be stored.  Created if it does not
        exist.
    """

    def __init__(self, output_dir: str = "./output") -> None:
        self.output_dir = ensure_dir(output_dir)

    async def render(self, file: GeneratedFile) -> RenderedFile:
        """Persist *file* under the output directory and return a descriptor.

        Raises
        ------
        ValueError
            When the artifact path is absolute or escapes the output directory.
        OSError
            When the file cannot be written.
        """
        target = resolve_within(self.output_dir, file.path)
        ensure_dir(target.parent)

        # Write asynchronously to avoid blocking the event loop.
        async with aiofiles.open(target, mode="w", encoding="utf-8") as fh:
            await fh.write(file.content)

        rendered = RenderedFile(
            file_path=str(target),
            relative_path=file.path,
            size_bytes=os.path.getsize(target),
        )
        logger.debug("render_complete", file_path=rendered.file_path, size_bytes=rendered.size_bytes)
        return rendered

    async def render_all(self, files: list[GeneratedFile]) -> tuple[list[RenderedFile], list[str]]:
        """Render every file; failures are collected as warning strings."""
        rendered: list[RenderedFile] = []
        warnings: list[str] = []
        for file in files:
            try:
                rendered.append(await self.render(file))
            except (OSError, ValueError) as exc:
                logger.warning("render_failed", path=file.path, error=str(exc))
                warnings.append(f"Failed to write {file.path}: {exc}")
        return rendered, warnings
