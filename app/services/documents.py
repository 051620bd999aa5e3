"""Coding standard documents: markdown storage and concurrent loading."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    def load(self, name: str, folder: str) -> tuple[str, bool]:  # pragma: no cover - interface
        ...

    def list_documents(self, folder: str) -> list[str]:  # pragma: no cover - interface
        ...


class MarkdownDocumentStore:
    """Reads ``<folder>/<name>.md`` files.

    ``load`` returns ``(content, is_error)``; on error the content holds the reason.
    """

    suffix = ".md"

    def load(self, name: str, folder: str) -> tuple[str, bool]:
        path = Path(folder) / f"{name}{self.suffix}"
        if not path.is_file():
            return f"Document not found: {name}", True
        try:
            return path.read_text(encoding="utf-8"), False
        except (OSError, UnicodeDecodeError) as exc:
            return f"Error loading document {name}: {exc}", True

    def list_documents(self, folder: str) -> list[str]:
        root = Path(folder)
        if not root.is_dir():
            return []
        return sorted(path.stem for path in root.glob(f"*{self.suffix}") if path.is_file())


class DocumentLoader:
    """Loads every selected document concurrently and keeps the successful ones."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def load_all(self, names: list[str], folder: str) -> list[str]:
        if not names:
            return []

        results = await asyncio.gather(
            *(asyncio.to_thread(self._store.load, name, folder) for name in names),
            return_exceptions=True,
        )

        documents: list[str] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                _logger.warning("Failed to load document %s: %s", name, result)
                continue
            content, is_error = result
            if is_error:
                _logger.warning("Failed to load document %s: %s", name, content)
                continue
            if not content:
                continue
            documents.append(content)
        _logger.info("Loaded %d of %d documents from %s", len(documents), len(names), folder)
        return documents
