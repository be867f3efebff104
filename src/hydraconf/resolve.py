"""Locate the configuration file among ordered search directories.

Candidates are scanned in order and the first directory holding a regular file
with the target name wins.  A candidate is either a directory, which uses the
global ``filename`` of :class:`SearchConfig`, or a ``(directory, filename)``
pair carrying its own name.

Finding nothing is not an error: :func:`find_config_path` returns ``None`` and
the loader falls back to environment values alone.  An empty search list and
directories that cannot be listed are reported as errors.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils.errors import FilesystemError, PathResolutionError
from .utils.logging import get_logger

__all__ = ["SearchConfig", "SearchPath", "find_config_path", "iter_candidates"]

logger = get_logger(__name__)

SearchPath = tuple[Path, str] | Path


class SearchConfig(BaseModel):
    """Where to look for the configuration file."""

    filename: str | None = None
    paths: list[SearchPath] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("filename")
    @classmethod
    def bare_filename(cls, value: str | None) -> str | None:
        if value is not None and (not value or os.sep in value or "/" in value):
            raise ValueError("filename must be a bare, non-empty file name")
        return value


def iter_candidates(config: SearchConfig) -> Iterator[tuple[str, str]]:
    """Yield normalized absolute ``(directory, filename)`` pairs in search order."""

    if not config.paths:
        raise PathResolutionError(
            f"must specify at least 1 config search path. found: {len(config.paths)}"
        )
    for item in config.paths:
        if isinstance(item, tuple):
            directory, filename = item
        elif config.filename is None:
            raise PathResolutionError(f"no filename given for search path '{item}'")
        else:
            directory, filename = item, config.filename
        yield os.path.abspath(os.path.normpath(directory)), filename


def find_config_path(config: SearchConfig) -> str | None:
    """Return the absolute path of the first matching file, or ``None``.

    Raises
    ------
    PathResolutionError
        If no search path is configured, or a directory has no filename.
    FilesystemError
        If a candidate directory cannot be listed.
    """

    for directory, filename in iter_candidates(config):
        logger.debug("scanning %s for %s", directory, filename)
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.name == filename and entry.is_file(follow_symlinks=False):
                        found = os.path.join(directory, entry.name)
                        logger.debug("configuration file found at %s", found)
                        return found
        except OSError as exc:
            raise FilesystemError(f"cannot list search path '{directory}': {exc}") from exc
    return None
