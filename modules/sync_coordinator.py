"""
Sync Coordinator Module
-----------------------
Pushes rendered notes to Anki in one batch. Whenever the push cannot
complete, the notes are written to a recovery file for manual import.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path

from config.settings import RECOVERY_DIR
from modules.anki_connect import (
    AnkiConnectClient,
    AnkiConnectError,
    AnkiConnectRejectedError,
)
from modules.note_renderer import FlashcardNote

logger = logging.getLogger(__name__)

PING_FAILED_FILE = "ankiconnect-ping-failed.json"
REJECTED_FILE = "ankiconnect-error.json"
TRANSPORT_FAILED_FILE = "ankiconnect-failed.json"


class SyncError(Exception):
    """Base class for push failures. `recovery_path` is where the notes were saved."""

    def __init__(self, message: str, recovery_path: Path | None = None):
        super().__init__(message)
        self.recovery_path = recovery_path


class SyncConnectivityError(SyncError):
    """The liveness check failed, so no notes were sent."""


class SyncRejectedError(SyncError):
    """AnkiConnect answered the batch with an error."""


class SyncTransportError(SyncError):
    """The batch request failed in transit or returned garbage."""


def write_notes_json(notes: list[FlashcardNote], path: str | Path) -> Path:
    """Write notes as a JSON array of AnkiConnect note objects."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as file:
        json.dump([note.to_anki() for note in notes], file, indent=2, ensure_ascii=False)
    return path


class SyncCoordinator:
    """Sends notes to AnkiConnect, falling back to a recovery file."""

    def __init__(
        self,
        recovery_dir: str | Path = RECOVERY_DIR,
        client_factory: Callable[[str], AnkiConnectClient] = AnkiConnectClient,
    ):
        self.recovery_dir = Path(recovery_dir)
        self.client_factory = client_factory

    def _dump_recovery(self, notes: list[FlashcardNote], file_name: str) -> Path | None:
        """Best-effort save; a failure here is logged and never raised."""
        path = self.recovery_dir / file_name
        try:
            write_notes_json(notes, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not write recovery file {path}: {e}")
            return None
        logger.info(f"Saved {len(notes)} notes to '{path}' for manual import into Anki")
        return path

    def push(self, notes: list[FlashcardNote], target_url: str) -> list:
        """
        Push all notes to AnkiConnect in a single addNotes request.

        Args:
            notes: Rendered notes
            target_url: AnkiConnect endpoint

        Returns:
            AnkiConnect's per-note result list (note id or None per note)

        Raises:
            SyncConnectivityError: AnkiConnect did not answer the version check
            SyncRejectedError: AnkiConnect returned an error for the batch
            SyncTransportError: The batch request itself failed
        """
        if not notes:
            logger.warning("No notes to push")
            return []

        client = self.client_factory(target_url)

        available, version = client.is_available()
        if not available:
            path = self._dump_recovery(notes, PING_FAILED_FILE)
            raise SyncConnectivityError(
                f"Unable to contact AnkiConnect at {target_url}. "
                "Ensure Anki with AnkiConnect is running and reachable.",
                recovery_path=path,
            )
        logger.info(f"AnkiConnect v{version} reachable at {target_url}")

        try:
            results = client.add_notes([note.to_anki() for note in notes])
        except AnkiConnectRejectedError as e:
            path = self._dump_recovery(notes, REJECTED_FILE)
            raise SyncRejectedError(f"AnkiConnect returned error: {e}", recovery_path=path) from e
        except AnkiConnectError as e:
            path = self._dump_recovery(notes, TRANSPORT_FAILED_FILE)
            raise SyncTransportError(
                f"Failed to send notes to AnkiConnect: {e}", recovery_path=path
            ) from e

        added = sum(1 for r in results if r is not None)
        logger.info(f"AnkiConnect push: {added} added, {len(results) - added} not added")
        return results

    def export_only(self, notes: list[FlashcardNote], path: str | Path) -> Path:
        """Write notes to a JSON file without contacting Anki."""
        path = write_notes_json(notes, path)
        logger.info(f"Exported {len(notes)} notes to {path}")
        return path
