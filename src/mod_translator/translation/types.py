"""Immutable value types for the translation core.

These frozen dataclasses flow between the conversation builder, the
retrying translator, and the batch orchestrator.  Every layer returns one
of the tagged outcome types defined here rather than raising, so a
failure reason can be inspected (and asserted on in tests) at any level.

Outcome tagging
---------------
``TranslationOutcome`` is the result of one RetryingTranslator run over a
single batch::

    TranslationSuccess(fragment, attempts)
    TranslationFailure(reason, detail, attempts)

``MapTranslationResult`` is the result of translating a whole language
map::

    MapTranslationSuccess(target)
    MapTranslationFailure(mod_name, batch_index, reason, last_reason, detail)

Callers discriminate with ``isinstance`` or the ``ok`` property.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Type alias for a flat localization map (key -> translated string).
LanguageMap = dict[str, str]


class Role(str, Enum):
    """Chat roles accepted by the remote API."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class FailureReason(str, Enum):
    """Why a batch (or a whole map) could not be translated.

    Attributes:
        API_ERROR:           Transport failure or non-2xx HTTP status.
        NO_JSON_FOUND:       The reply never contained a ``{ ... }`` span,
                             even after continuation turns.
        INVALID_JSON:        A ``{ ... }`` span was found but did not parse.
        INCOMPLETE_FRAGMENT: The parsed object is missing batch keys or
                             carries non-string values.
        ATTEMPTS_EXHAUSTED:  Every outer attempt for a batch failed.
    """

    API_ERROR = "api_error"
    NO_JSON_FOUND = "no_json_found"
    INVALID_JSON = "invalid_json"
    INCOMPLETE_FRAGMENT = "incomplete_fragment"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"


@dataclass(frozen=True)
class Turn:
    """One message in a conversation."""

    role: Role
    content: str

    def to_message(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class Conversation:
    """Ordered turn history sent to the model for one batch.

    Conversations are values: appending turns returns a new object and the
    original is left untouched, so every attempt can be inspected on its
    own.

    Attributes:
        model: Model identifier sent in the request body.
        turns: Turns in send order.
    """

    model: str
    turns: tuple[Turn, ...] = ()

    def append(self, *turns: Turn) -> Conversation:
        """Return a new conversation with ``turns`` added at the end."""
        return Conversation(model=self.model, turns=self.turns + tuple(turns))

    def to_payload(self) -> dict:
        """Render the chat-completions request body."""
        return {
            "model": self.model,
            "messages": [turn.to_message() for turn in self.turns],
        }


@dataclass(frozen=True)
class TranslationSuccess:
    """A batch whose reply parsed into a JSON object.

    Attributes:
        fragment: The parsed object, keyed like the batch.
        attempts: Request/response cycles used, starting at 1.
    """

    fragment: dict
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class TranslationFailure:
    """A batch run that ended without a usable fragment."""

    reason: FailureReason
    detail: str | None = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return False


TranslationOutcome = TranslationSuccess | TranslationFailure


@dataclass(frozen=True)
class MapTranslationSuccess:
    """Every batch of a language map was translated and merged."""

    target: LanguageMap = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class MapTranslationFailure:
    """A batch exhausted its outer attempts; no target map is produced.

    Attributes:
        mod_name:    Mod the map belongs to (may be empty for ad-hoc files).
        batch_index: Zero-based index of the failing batch.
        reason:      Always ``ATTEMPTS_EXHAUSTED`` for map-level failures.
        last_reason: Reason reported by the final inner run.
        detail:      Human-readable description of the last failure.
    """

    mod_name: str
    batch_index: int
    reason: FailureReason
    last_reason: FailureReason | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return False


MapTranslationResult = MapTranslationSuccess | MapTranslationFailure


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification emitted by the batch orchestrator.

    Attributes:
        kind:        ``"batch.started"``, ``"batch.completed"``,
                     ``"batch.retry"`` or ``"batch.failed"``.
        mod_name:    Mod being translated.
        batch_index: Zero-based batch index.
        batch_count: Total number of batches for this map.
        attempt:     Outer attempt number, starting at 1.
        detail:      Optional failure description.
    """

    kind: str
    mod_name: str
    batch_index: int
    batch_count: int
    attempt: int = 1
    detail: str | None = None
