"""Package source resolution.

Some providers install from a local package file (``dpkg -i``, ``rpm -i``,
``pkgadd -d``). A package's ``source`` is a fully qualified path or a URI
whose scheme is resolved to a local file by a registered resolver.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from urllib.parse import urlparse

import structlog

from .errors import SourceError

logger = structlog.get_logger(__name__)

SourceHandler = Callable[[str], Path]


def validate_source(source: str) -> str:
    """Check that a declared source is fully qualified.

    Args:
        source: Declared package source.

    Returns:
        The source, unchanged.

    Raises:
        SourceError: If the source is neither an absolute path nor a URI.
    """
    if source.startswith("/") or "://" in source:
        return source
    raise SourceError(f"Package sources must be fully qualified files: {source}")


def resolve_file(source: str) -> Path:
    """Resolve a ``file://`` URI or absolute path to an existing local file."""
    path = Path(source.removeprefix("file://"))
    if not path.exists():
        raise SourceError(f"File {path} does not exist")
    return path


class SourceResolver:
    """Maps source URI schemes to resolvers that produce local files."""

    def __init__(self) -> None:
        self._handlers: dict[str, SourceHandler] = {}
        self.register("file", resolve_file)

    def register(self, scheme: str, handler: SourceHandler) -> None:
        """Register a resolver for a URI scheme.

        Args:
            scheme: URI scheme, e.g. ``file``.
            handler: Callable turning a source string into a local path.
        """
        self._handlers[scheme] = handler
        logger.debug("source_scheme_registered", scheme=scheme)

    @property
    def schemes(self) -> list[str]:
        return sorted(self._handlers)

    def resolve(self, source: str) -> Path:
        """Resolve a source to a local file.

        Args:
            source: Absolute path or URI.

        Returns:
            Path to the local package file.

        Raises:
            SourceError: If the scheme is unknown or the file is missing.
        """
        validate_source(source)
        scheme = "file" if source.startswith("/") else urlparse(source).scheme
        handler = self._handlers.get(scheme)
        if handler is None:
            raise SourceError(f"Unknown package source: {scheme}")
        return handler(source)
