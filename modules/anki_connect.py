"""
AnkiConnect Client Module
-------------------------
REST client for AnkiConnect (Anki addon #2055492159).
Communicates with Anki over its localhost HTTP API to check availability
and add notes in bulk.
"""

import logging
from typing import Any

import httpx

from config.settings import ANKI_CONNECT_URL

logger = logging.getLogger(__name__)

ANKI_CONNECT_VERSION = 6


class AnkiConnectError(Exception):
    """Raised when AnkiConnect is unreachable or returns an unusable response."""


class AnkiConnectRejectedError(AnkiConnectError):
    """Raised when AnkiConnect answers with a non-null error field."""


class AnkiConnectClient:
    """Client for AnkiConnect REST API."""

    def __init__(
        self,
        url: str = ANKI_CONNECT_URL,
        timeout: httpx.Timeout | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout or httpx.Timeout(20.0, connect=5.0)
        self.transport = transport

    def _post(self, payload: dict) -> dict:
        """POST one action and return the decoded response envelope."""
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.ConnectError:
            raise AnkiConnectError(
                f"Cannot connect to AnkiConnect at {self.url}. Is Anki running with AnkiConnect installed?"
            )
        except httpx.TimeoutException:
            raise AnkiConnectError("AnkiConnect request timed out")
        except httpx.HTTPStatusError as e:
            raise AnkiConnectError(f"AnkiConnect HTTP error: {e.response.status_code}")
        except httpx.HTTPError as e:
            raise AnkiConnectError(f"AnkiConnect transport error: {e}")

        try:
            data = response.json()
        except ValueError:
            raise AnkiConnectError("AnkiConnect returned a response that is not JSON")

        if not isinstance(data, dict) or not ({"result", "error"} & data.keys()):
            raise AnkiConnectError(f"Malformed AnkiConnect response: {data!r}")

        return data

    def _request(self, action: str, params: dict | None = None) -> Any:
        """Send a request to AnkiConnect and return the result.

        Args:
            action: The AnkiConnect action name
            params: Optional parameters for the action

        Returns:
            The result field from AnkiConnect's response

        Raises:
            AnkiConnectError: If AnkiConnect is unreachable
            AnkiConnectRejectedError: If AnkiConnect returns an error
        """
        payload = {"action": action, "version": ANKI_CONNECT_VERSION}
        if params is not None:
            payload["params"] = params

        data = self._post(payload)
        if data.get("error") is not None:
            raise AnkiConnectRejectedError(str(data["error"]))

        return data.get("result")

    def version(self) -> int:
        """Return the AnkiConnect API version."""
        return self._request("version")

    def is_available(self) -> tuple[bool, int | None]:
        """Check if AnkiConnect is reachable.

        Returns:
            Tuple of (available, version)
        """
        try:
            version = self.version()
            return True, version
        except AnkiConnectError as e:
            logger.debug(f"AnkiConnect liveness check failed: {e}")
            return False, None

    def add_notes(self, notes: list[dict]) -> list[int | None]:
        """Add multiple notes to Anki.

        Each note dict should have: deckName, modelName, fields, tags.

        Args:
            notes: List of note dicts in AnkiConnect format

        Returns:
            List of note IDs (None for failed notes)
        """
        result = self._request("addNotes", {"notes": notes})
        if not isinstance(result, list):
            raise AnkiConnectError(f"addNotes returned {type(result).__name__}, expected a list")
        return result
