import logging
from typing import Optional
from urllib.parse import quote

from pydantic import ValidationError

from .exceptions import PendingRecordError
from ..schemas.recording import PendingPlayback
from ..storage_manager.storage import StorageManager

logger = logging.getLogger(__name__)

PENDING_KEY_PREFIX = "pending"


def pending_key(origin: str) -> str:
    """Document key for an origin, e.g. 'https://a.test' -> 'pending/https%3A%2F%2Fa.test'."""
    return f"{PENDING_KEY_PREFIX}/{quote(origin, safe='')}"


class PendingPlaybackStore:
    """Durable pending-playback records, one per page origin, consumed at most once."""

    def __init__(self, storage_manager: StorageManager):
        self.storage_manager = storage_manager

    async def put(self, origin: str, pending: PendingPlayback) -> None:
        await self.storage_manager.write_document(pending_key(origin), pending.to_dict())
        logger.debug(f"Stored pending playback for {origin} ({len(pending.events_tail)} events)")

    async def take(self, origin: str) -> Optional[PendingPlayback]:
        """
        Returns and clears the record for `origin`; a second call returns None.

        Raises:
            PendingRecordError: If the stored record does not decode.
        """
        raw = await self.storage_manager.take_document(pending_key(origin))
        if raw is None:
            return None
        try:
            return PendingPlayback.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Discarded malformed pending playback for {origin}: {e}")
            raise PendingRecordError(origin, original_exception=e) from e

    async def clear(self, origin: str) -> None:
        await self.storage_manager.delete_document(pending_key(origin))
