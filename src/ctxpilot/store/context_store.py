"""Local record of the persisted browser context id.

A single plain-text marker file holds the id of the one context tracked
locally.  Reading is forgiving (anything unreadable means "no context
yet"); writing is not, because a context created remotely but not
recorded locally cannot be found again.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ctxpilot.exceptions import ContextStoreError

logger = logging.getLogger(__name__)


class ContextStore:
    """Read, write and clear the context id marker file.

    Args:
        path: Location of the marker file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        """Return the recorded context id, or ``None`` when there is none to reuse."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No context marker at %s", self._path)
            return None
        except OSError as e:
            logger.warning("Cannot read context marker %s (treating as absent): %s", self._path, e)
            return None

        context_id = raw.strip()
        if not context_id:
            logger.warning("Context marker %s is empty (treating as absent)", self._path)
            return None
        return context_id

    def save(self, context_id: str) -> None:
        """Overwrite the marker with *context_id*.

        Raises:
            ContextStoreError: If the file cannot be written.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(context_id, encoding="utf-8")
        except OSError as e:
            raise ContextStoreError(str(self._path), str(e)) from e
        logger.info("Saved context id %s to %s", context_id, self._path)

    def clear(self) -> bool:
        """Delete the marker.  Returns ``True`` if a marker was removed."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Removed context marker %s", self._path)
        return True
