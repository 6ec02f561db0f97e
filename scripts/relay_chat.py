#!/usr/bin/env python
"""Lightweight CLI for chatting with OpenAI through the key relay.

The OpenAI key never leaves the relay: this tool only holds a session token.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from keyrelay.client import (  # noqa: E402
    GatedRelayCaller,
    RelayApiClient,
    RelayClientError,
    SecretManager,
    SecretRequiredError,
)

TOKEN_ENV = "KEYRELAY_SESSION_TOKEN"
URL_ENV = "KEYRELAY_URL"
DEFAULT_MODEL = "gpt-4o-mini"


def _print_blocks(role: str, parts: Iterable[str]) -> None:
    header = "You" if role == "user" else "Assistant"
    print(f"{header}: ")
    for part in parts:
        print(part)
    print()


def _reply_text(response: Any) -> str:
    try:
        return response["choices"][0]["message"]["content"] or "(no text response)"
    except (KeyError, IndexError, TypeError):
        return "(no text response)"


async def _build_caller(base_url: str) -> GatedRelayCaller:
    api = RelayApiClient(base_url)
    api.set_session_token(os.environ.get(TOKEN_ENV))
    if not api.signed_in:
        raise RuntimeError(
            f"Environment variable {TOKEN_ENV} must be set with your session token."
        )
    secrets = SecretManager(api)
    await secrets.refresh()
    return GatedRelayCaller(
        api,
        secrets,
        on_secret_required=lambda service: print(
            f"Please add your {service} API key before chatting "
            "(POST /api/keys).",
            file=sys.stderr,
        ),
        on_error=lambda message: print(f"API call failed: {message}", file=sys.stderr),
    )


async def _complete(
    caller: GatedRelayCaller, model: str, messages: List[Dict[str, str]]
) -> str:
    response = await caller.call(
        "openai",
        "chat/completions",
        {"model": model, "messages": messages},
    )
    return _reply_text(response)


async def run_once(message: str, model: str, base_url: str) -> int:
    caller = await _build_caller(base_url)
    try:
        reply = await _complete(caller, model, [{"role": "user", "content": message}])
    except RelayClientError:
        return 1
    _print_blocks("user", [message])
    _print_blocks("assistant", [reply])
    return 0


async def run_interactive(model: str, base_url: str) -> int:
    caller = await _build_caller(base_url)
    history: List[Dict[str, str]] = []
    print("Interactive relay session. Type 'exit' or 'quit' to end.\n")
    while True:
        try:
            message = input("You: ")
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            return 0
        if message.strip().lower() in {"exit", "quit"}:
            print("Goodbye!")
            return 0
        if not message.strip():
            continue
        history.append({"role": "user", "content": message})
        try:
            reply = await _complete(caller, model, history)
        except SecretRequiredError:
            return 1
        except RelayClientError:
            history.pop()
            continue
        history.append({"role": "assistant", "content": reply})
        print(f"Assistant: {reply}\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Send prompts to OpenAI through the relay or start a chat session."
    )
    parser.add_argument(
        "message",
        nargs="?",
        help="Single message to send. If omitted, interactive mode is started.",
    )
    parser.add_argument(
        "--model",
        dest="model",
        default=DEFAULT_MODEL,
        help="OpenAI chat model name.",
    )
    parser.add_argument(
        "--url",
        dest="url",
        default=os.environ.get(URL_ENV, "http://localhost:8000"),
        help=f"Relay base URL (default: ${URL_ENV} or http://localhost:8000).",
    )

    args = parser.parse_args(argv)

    if args.message:
        return asyncio.run(run_once(args.message, args.model, args.url))
    return asyncio.run(run_interactive(args.model, args.url))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
