"""
Provider descriptors and outbound request shaping.

The registry is an immutable table built once at startup. Each row owns its
auth carrier, so the relay never branches on the service key itself; adding a
provider means adding one row to :func:`build_default_registry`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from keyrelay.core.errors import UnknownService


@dataclass(frozen=True, slots=True)
class HeaderAuth:
    """Carry the secret in a request header rendered from ``template``."""

    header: str
    template: str = "{secret}"

    def apply(
        self, secret: str, headers: Dict[str, str], params: Dict[str, str]
    ) -> None:
        headers[self.header] = self.template.format(secret=secret)


@dataclass(frozen=True, slots=True)
class QueryAuth:
    """Carry the secret as a URL query parameter."""

    param: str

    def apply(
        self, secret: str, headers: Dict[str, str], params: Dict[str, str]
    ) -> None:
        params[self.param] = secret


AuthCarrier = HeaderAuth | QueryAuth


@dataclass(frozen=True, slots=True)
class OutboundRequest:
    """A fully shaped provider request. ``params`` may hold the secret."""

    method: str
    url: str
    headers: Dict[str, str]
    params: Dict[str, str] = field(default_factory=dict)
    json: Any = None


@dataclass(frozen=True, slots=True)
class ServiceDescriptor:
    key: str
    url_template: str
    auth: AuthCarrier
    method: str = "POST"

    def build_url(self, endpoint: str) -> str:
        """Substitute the caller's endpoint; templates without a slot ignore it."""
        return self.url_template.format(endpoint=endpoint.lstrip("/"))

    def build_request(
        self, *, endpoint: str, secret: str, payload: Any = None
    ) -> OutboundRequest:
        headers = {"Content-Type": "application/json"}
        params: Dict[str, str] = {}
        self.auth.apply(secret, headers, params)
        return OutboundRequest(
            method=self.method,
            url=self.build_url(endpoint),
            headers=headers,
            params=params,
            json=payload,
        )


class ServiceRegistry:
    """Read-only lookup over a closed set of service descriptors."""

    def __init__(self, descriptors: Mapping[str, ServiceDescriptor]) -> None:
        self._descriptors = MappingProxyType(dict(descriptors))

    def __contains__(self, key: object) -> bool:
        return key in self._descriptors

    def __iter__(self):
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, key: str) -> Optional[ServiceDescriptor]:
        return self._descriptors.get(key)

    def resolve(self, key: str) -> ServiceDescriptor:
        """Return the descriptor for ``key`` or raise :class:`UnknownService`."""
        descriptor = self._descriptors.get(key)
        if descriptor is None:
            raise UnknownService()
        return descriptor

    def keys(self) -> list[str]:
        return sorted(self._descriptors)


def build_default_registry(*, azure_region: str = "eastus") -> ServiceRegistry:
    """Construct the supported provider table."""
    descriptors = [
        ServiceDescriptor(
            key="openai",
            url_template="https://api.openai.com/v1/{endpoint}",
            auth=HeaderAuth("Authorization", "Bearer {secret}"),
        ),
        ServiceDescriptor(
            key="stability",
            url_template="https://api.stability.ai/v1/{endpoint}",
            auth=HeaderAuth("Authorization", "Bearer {secret}"),
        ),
        ServiceDescriptor(
            key="azure_speech",
            url_template=(
                f"https://{azure_region}.api.cognitive.microsoft.com/sts/v1.0/issuetoken"
            ),
            auth=HeaderAuth("Ocp-Apim-Subscription-Key"),
        ),
        ServiceDescriptor(
            key="google_tts",
            url_template="https://texttospeech.googleapis.com/v1/{endpoint}",
            auth=QueryAuth("key"),
        ),
        ServiceDescriptor(
            key="writesonic",
            url_template="https://api.writesonic.com/v2/{endpoint}",
            auth=HeaderAuth("X-API-KEY"),
        ),
        ServiceDescriptor(
            key="replicate",
            url_template="https://api.replicate.com/v1/{endpoint}",
            auth=HeaderAuth("Authorization", "Token {secret}"),
        ),
    ]
    return ServiceRegistry({descriptor.key: descriptor for descriptor in descriptors})


__all__ = [
    "AuthCarrier",
    "HeaderAuth",
    "OutboundRequest",
    "QueryAuth",
    "ServiceDescriptor",
    "ServiceRegistry",
    "build_default_registry",
]
