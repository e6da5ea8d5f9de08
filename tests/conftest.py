"""
Shared pytest fixtures for the mod-translator test suite.

This module provides fixtures that are automatically available to all test files:
- A scripted stand-in for ChatCompletionClient (no network)
- Translator/orchestrator factories wired to the scripted client
- Small mod archives built on disk under tmp_path

No test in this suite talks to a real chat API.
"""

import json
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from mod_translator.translation.conversation import ConversationBuilder
from mod_translator.translation.orchestrator import BatchOrchestrator
from mod_translator.translation.translator import RetryingTranslator
from mod_translator.translation.types import Conversation

# ============================================================================
# SCRIPTED CLIENT
# ============================================================================


class ScriptedClient:
    """Replays canned replies and records every conversation it receives.

    Each entry of ``replies`` is either a string (returned as the reply),
    ``None`` (simulates a transport failure), an exception instance
    (raised), or a callable taking the conversation and returning one of
    the above.  The last entry repeats once the script runs out.
    """

    def __init__(self, replies: list):
        self.replies = list(replies)
        self.conversations: list[Conversation] = []

    def complete(self, conversation: Conversation):
        self.conversations.append(conversation)
        index = min(len(self.conversations), len(self.replies)) - 1
        reply = self.replies[index]
        if callable(reply):
            reply = reply(conversation)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def call_count(self) -> int:
        return len(self.conversations)


def echo_batch(conversation: Conversation) -> str:
    """Reply with the batch's own JSON, upper-cased, wrapped in prose."""
    batch = json.loads(conversation.turns[1].content)
    translated = {key: value.upper() for key, value in batch.items()}
    return "Here you go:\n" + json.dumps(translated, ensure_ascii=False) + "\nEnjoy!"


# ============================================================================
# FACTORY FIXTURES
# ============================================================================


@pytest.fixture
def scripted_client() -> Callable[..., ScriptedClient]:
    """Factory for ScriptedClient instances."""

    def _make(*replies) -> ScriptedClient:
        return ScriptedClient(list(replies))

    return _make


@pytest.fixture
def echo_reply() -> Callable[[Conversation], str]:
    """A reply callable that 'translates' by upper-casing every value."""
    return echo_batch


@pytest.fixture
def make_translator() -> Callable[..., RetryingTranslator]:
    """Build a RetryingTranslator around any client-like object."""

    def _make(client, *, max_attempts: int = 3) -> RetryingTranslator:
        return RetryingTranslator(
            client=client,
            builder=ConversationBuilder(model="test-model"),
            max_attempts=max_attempts,
        )

    return _make


@pytest.fixture
def make_orchestrator(make_translator) -> Callable[..., BatchOrchestrator]:
    """Build a BatchOrchestrator around a scripted client."""

    def _make(client, *, batch_size: int = 25, max_batch_attempts: int = 3, events=None):
        return BatchOrchestrator(
            translator=make_translator(client),
            batch_size=batch_size,
            max_batch_attempts=max_batch_attempts,
            on_progress=events.append if events is not None else None,
        )

    return _make


# ============================================================================
# MOD ARCHIVE FIXTURES
# ============================================================================


@pytest.fixture
def make_mod_archive(tmp_path: Path) -> Callable[..., Path]:
    """Create a ``.jar`` in ``tmp_path / "mods"`` with the given members.

    ``files`` maps archive member names to text (or raw bytes) content.
    """
    mods_dir = tmp_path / "mods"
    mods_dir.mkdir(exist_ok=True)

    def _make(name: str, files: dict[str, str | bytes]) -> Path:
        archive = mods_dir / name
        with zipfile.ZipFile(archive, "w") as zf:
            for member, content in files.items():
                zf.writestr(member, content)
        return archive

    return _make


@pytest.fixture
def standard_mod_files() -> dict[str, str]:
    """Members of a well-formed mod with an en_us language file."""
    return {
        "META-INF/MANIFEST.MF": "Manifest-Version: 1.0\nSpecification-Title: Example Mod\n",
        "assets/example/lang/en_us.json": json.dumps(
            {"item.example.gem": "Gem", "tooltip.example.gem": "§aShiny§r"}
        ),
        "com/example/Example.class": "bytecode",
    }
