"""
Client-side management of the signed-in user's provider keys.

The manager keeps a cached copy of the key list for the call gate. The cache
is only ever replaced by a fresh listing from the server, so a mutation that
succeeds is always followed by a refetch and a mutation that fails leaves the
cache untouched.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from keyrelay.client.api import RelayApiClient
from keyrelay.schemas import ApiKeySummary

logger = logging.getLogger(__name__)


class SecretManager:
    """List, save and delete the caller's keys with a refreshed local cache."""

    def __init__(self, api: RelayApiClient) -> None:
        self._api = api
        self._keys: List[ApiKeySummary] = []

    @property
    def keys(self) -> tuple[ApiKeySummary, ...]:
        return tuple(self._keys)

    async def refresh(self) -> List[ApiKeySummary]:
        """Replace the cache with the server's current listing."""
        keys = await self._api.list_keys()
        self._keys = list(keys)
        return list(self._keys)

    async def list(self) -> List[ApiKeySummary]:
        return await self.refresh()

    def get(self, service: str) -> Optional[ApiKeySummary]:
        for key in self._keys:
            if key.service == service:
                return key
        return None

    async def save(self, service: str, value: str) -> None:
        """Update the cached key for ``service`` by id, or insert a new one."""
        existing = self.get(service)
        if existing is not None:
            await self._api.update_key(existing.id, value)
        else:
            await self._api.insert_key(service, value)
        logger.info("%s API key saved successfully", service)
        await self.refresh()

    async def delete(self, key_id: str) -> None:
        await self._api.delete_key(key_id)
        logger.info("API key %s deleted successfully", key_id)
        await self.refresh()

    def clear(self) -> None:
        """Forget cached keys, e.g. on sign-out. Stored keys are not touched."""
        self._keys = []


__all__ = ["SecretManager"]
