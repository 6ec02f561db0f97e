try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from keyrelay.client import (
    GatedRelayCaller,
    RelayApiClient,
    RelayCallError,
    SecretManager,
    SecretRequiredError,
)
from keyrelay.main import app

pytestmark = pytest.mark.anyio("asyncio")


class Hooks:
    def __init__(self) -> None:
        self.redirects: list[str] = []
        self.errors: list[str] = []

    def on_secret_required(self, service: str) -> None:
        self.redirects.append(service)

    def on_error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture()
def gate_env(store, signer):
    from keyrelay import dependencies

    outbound: list[httpx.Request] = []

    def upstream(request: httpx.Request) -> httpx.Response:
        outbound.append(request)
        if request.url.host == "api.openai.com":
            return httpx.Response(
                401, json={"error": {"message": "Incorrect API key provided"}}
            )
        return httpx.Response(201, json={"id": "pred-1", "status": "starting"})

    app.dependency_overrides.clear()
    app.dependency_overrides.update(
        {
            dependencies.get_secret_store: lambda: store,
            dependencies.get_identity_verifier: lambda: signer,
            dependencies.get_upstream_transport: lambda: httpx.MockTransport(upstream),
        }
    )

    yield store, signer, outbound

    app.dependency_overrides.clear()


async def _caller(signer, hooks: Hooks) -> tuple[GatedRelayCaller, SecretManager]:
    api = RelayApiClient(
        "http://testserver",
        session_token=signer.issue("user-1"),
        transport=httpx.ASGITransport(app=app),
    )
    secrets = SecretManager(api)
    await secrets.refresh()
    caller = GatedRelayCaller(
        api,
        secrets,
        on_secret_required=hooks.on_secret_required,
        on_error=hooks.on_error,
    )
    return caller, secrets


async def test_gate_blocks_call_without_key(gate_env):
    _, signer, outbound = gate_env
    hooks = Hooks()
    caller, _ = await _caller(signer, hooks)

    assert caller.gate.has_secret_for("replicate") is False
    with pytest.raises(SecretRequiredError) as excinfo:
        await caller.call("replicate", "predictions", {"input": {}})

    assert excinfo.value.service == "replicate"
    assert hooks.redirects == ["replicate"]
    assert hooks.errors == []
    assert caller.error == "replicate API key is required"
    assert outbound == []


async def test_gate_allows_call_once_key_is_saved(gate_env):
    _, signer, outbound = gate_env
    hooks = Hooks()
    caller, secrets = await _caller(signer, hooks)

    await secrets.save("replicate", "r8_xxx_value")
    result = await caller.call("replicate", "predictions", {"input": {"prompt": "fox"}})

    assert result == {"id": "pred-1", "status": "starting"}
    assert outbound[0].headers["authorization"] == "Token r8_xxx_value"
    assert hooks.redirects == []
    assert hooks.errors == []
    assert caller.error is None


async def test_relay_failure_is_reported_once(gate_env):
    _, signer, _ = gate_env
    hooks = Hooks()
    caller, secrets = await _caller(signer, hooks)
    await secrets.save("openai", "sk-wrong-key-000")

    with pytest.raises(RelayCallError) as excinfo:
        await caller.call("openai", "chat/completions", {"messages": []})

    assert excinfo.value.status_code == 401
    assert excinfo.value.body == {"error": {"message": "Incorrect API key provided"}}
    assert hooks.errors == ["Incorrect API key provided"]
    assert hooks.redirects == []


async def test_gate_does_not_see_keys_deleted_elsewhere_until_refresh(gate_env):
    store, signer, outbound = gate_env
    hooks = Hooks()
    caller, secrets = await _caller(signer, hooks)
    await secrets.save("replicate", "r8_xxx_value")
    store.delete_secret(user_id="user-1", secret_id=secrets.get("replicate").id)

    # The stale cache lets the call through; the relay itself answers 404.
    with pytest.raises(RelayCallError) as excinfo:
        await caller.call("replicate", "predictions", {})
    assert excinfo.value.status_code == 404
    assert hooks.errors == ["API key not found"]
    assert outbound == []

    await secrets.refresh()
    with pytest.raises(SecretRequiredError):
        await caller.call("replicate", "predictions", {})
