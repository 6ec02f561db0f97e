"""
Pre-flight check for relay calls.

Calls for a service without a registered key are stopped locally with
:class:`SecretRequiredError` and routed to the ``on_secret_required`` hook
instead of reaching the relay.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from keyrelay.client.api import RelayApiClient
from keyrelay.client.errors import AuthenticationRequired, RelayCallError, SecretRequiredError
from keyrelay.client.secrets import SecretManager

logger = logging.getLogger(__name__)


class CallGate:
    def __init__(self, secrets: SecretManager) -> None:
        self._secrets = secrets

    def has_secret_for(self, service: str) -> bool:
        return self._secrets.get(service) is not None


class GatedRelayCaller:
    """Issue one relay call per invocation, gated on a registered key."""

    def __init__(
        self,
        api: RelayApiClient,
        secrets: SecretManager,
        *,
        on_secret_required: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._api = api
        self._gate = CallGate(secrets)
        self._on_secret_required = on_secret_required
        self._on_error = on_error
        self.error: Optional[str] = None

    @property
    def gate(self) -> CallGate:
        return self._gate

    async def call(self, service: str, endpoint: str, payload: Any = None) -> Any:
        self.error = None
        if not self._gate.has_secret_for(service):
            exc = SecretRequiredError(service)
            self.error = str(exc)
            logger.info("Blocked %s call: no key registered", service)
            if self._on_secret_required is not None:
                self._on_secret_required(service)
            raise exc

        try:
            return await self._api.call_relay(
                service=service, endpoint=endpoint, payload=payload
            )
        except (RelayCallError, AuthenticationRequired) as exc:
            self.error = str(exc)
            if self._on_error is not None:
                self._on_error(self.error)
            raise


__all__ = ["CallGate", "GatedRelayCaller"]
