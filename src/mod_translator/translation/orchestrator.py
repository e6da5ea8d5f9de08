"""Batch orchestration for whole language maps.

``BatchOrchestrator`` turns a complete source language map into a
complete target map:

1. Split the source keys into ordered batches of ``batch_size``.
2. For each batch, run :class:`RetryingTranslator` up to
   ``max_batch_attempts`` times.  Every run starts a brand-new
   conversation.  A run fails on any ``TranslationFailure``, on a
   fragment that does not cover the batch, or on an unexpected
   exception.
3. Merge each successful fragment into the accumulating target map.
4. If a batch exhausts its attempts, the whole map fails.  The partial
   target is discarded and a ``MapTranslationFailure`` names the batch.

Special-character policy
------------------------
Values containing a backslash, a section sign (``§``, Minecraft's
formatting prefix) or a newline are the ones models most often mangle.
After the wholesale merge of a batch, every such key is written again
from the fragment, so the final value is always exactly what the
successful parse returned.

Progress reporting
------------------
The orchestrator does not log progress.  It emits :class:`ProgressEvent`
values to the optional ``on_progress`` callback and leaves formatting to
the caller.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from mod_translator.translation.translator import RetryingTranslator
from mod_translator.translation.types import (
    FailureReason,
    LanguageMap,
    MapTranslationFailure,
    MapTranslationResult,
    MapTranslationSuccess,
    ProgressEvent,
    TranslationFailure,
    TranslationOutcome,
)

logger = logging.getLogger(__name__)

SPECIAL_CHARACTERS: frozenset[str] = frozenset({"\\", "§", "\n"})

DEFAULT_BATCH_SIZE = 25

DEFAULT_MAX_BATCH_ATTEMPTS = 3

ProgressCallback = Callable[[ProgressEvent], None]


@dataclass(frozen=True)
class Batch:
    """A contiguous slice of the source map.

    Attributes:
        index:   Zero-based position of the batch in the map.
        entries: Source key/value pairs, in source order.
    """

    index: int
    entries: LanguageMap

    @property
    def keys(self) -> list[str]:
        return list(self.entries)

    def to_json(self) -> str:
        """Serialise the entries as the user turn for the model."""
        return json.dumps(self.entries, ensure_ascii=False, indent=2)


# ── Module-level helpers ──────────────────────────────────────────────────────


def split_batches(source: Mapping[str, str], batch_size: int) -> list[Batch]:
    """Split ``source`` into ordered, non-overlapping batches.

    The last batch may be shorter than ``batch_size``.  An empty source
    yields no batches.

    Raises:
        ValueError: If ``batch_size`` is less than 1.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    keys = list(source)
    return [
        Batch(index=n, entries={key: source[key] for key in keys[start : start + batch_size]})
        for n, start in enumerate(range(0, len(keys), batch_size))
    ]


def contains_special_characters(value: str) -> bool:
    """Return ``True`` if ``value`` holds a backslash, ``§`` or a newline."""
    return any(char in SPECIAL_CHARACTERS for char in value)


def check_fragment(batch: Batch, fragment: Mapping) -> str | None:
    """Return a description of why ``fragment`` cannot be merged, or ``None``.

    A usable fragment carries every batch key with a string value.  Extra
    keys are tolerated and ignored by :func:`merge_fragment`.
    """
    missing = [key for key in batch.entries if key not in fragment]
    if missing:
        return f"fragment is missing {len(missing)} key(s): {', '.join(missing[:5])}"

    non_strings = [key for key in batch.entries if not isinstance(fragment[key], str)]
    if non_strings:
        return f"fragment has non-string values for: {', '.join(non_strings[:5])}"

    return None


def merge_fragment(
    target: LanguageMap,
    source: Mapping[str, str],
    batch: Batch,
    fragment: Mapping[str, str],
) -> None:
    """Merge a checked fragment into ``target`` in place.

    Only the batch's own keys are merged.  Special-character keys are then
    re-asserted from the fragment so they can never keep a stale value.
    Merging the same fragment twice leaves ``target`` unchanged.
    """
    for key in batch.entries:
        target[key] = fragment[key]

    for key in batch.entries:
        if contains_special_characters(source[key]):
            target[key] = fragment[key]


# ── Orchestrator ──────────────────────────────────────────────────────────────


class BatchOrchestrator:
    """Translates a full language map batch by batch.

    Attributes:
        _translator:         Runs one batch conversation.
        _batch_size:         Keys per batch.
        _max_batch_attempts: Fresh translator runs allowed per batch.
        _on_progress:        Optional progress callback.
    """

    def __init__(
        self,
        *,
        translator: RetryingTranslator,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_batch_attempts: int = DEFAULT_MAX_BATCH_ATTEMPTS,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if max_batch_attempts < 1:
            raise ValueError(f"max_batch_attempts must be >= 1, got {max_batch_attempts}")
        self._translator = translator
        self._batch_size = batch_size
        self._max_batch_attempts = max_batch_attempts
        self._on_progress = on_progress

    def translate_map(
        self,
        source: Mapping[str, str],
        system_prompt: str,
        *,
        mod_name: str = "",
    ) -> MapTranslationResult:
        """Translate every key of ``source``.

        Args:
            source:        Source language map (not modified).
            system_prompt: Rendered system prompt shared by all batches.
            mod_name:      Used in progress events and failure results.

        Returns:
            ``MapTranslationSuccess`` whose target has exactly the source
            keys, or ``MapTranslationFailure`` for the first batch that
            exhausted its attempts.
        """
        batches = split_batches(source, self._batch_size)
        target: LanguageMap = {}

        for batch in batches:
            outcome = self._translate_batch(batch, system_prompt, mod_name, len(batches))
            if isinstance(outcome, TranslationFailure):
                return MapTranslationFailure(
                    mod_name=mod_name,
                    batch_index=batch.index,
                    reason=FailureReason.ATTEMPTS_EXHAUSTED,
                    last_reason=outcome.reason,
                    detail=outcome.detail,
                )
            merge_fragment(target, source, batch, outcome.fragment)
            self._emit("batch.completed", mod_name, batch.index, len(batches))

        return MapTranslationSuccess(target=target)

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _translate_batch(
        self,
        batch: Batch,
        system_prompt: str,
        mod_name: str,
        batch_count: int,
    ) -> TranslationOutcome:
        """Run the translator until a fragment covers the batch.

        Returns the last failure when every attempt fails.
        """
        failure = TranslationFailure(FailureReason.ATTEMPTS_EXHAUSTED, attempts=0)
        content = batch.to_json()

        for attempt in range(1, self._max_batch_attempts + 1):
            self._emit("batch.started", mod_name, batch.index, batch_count, attempt)
            try:
                outcome = self._translator.translate(system_prompt, content)
            except Exception as exc:
                logger.warning(
                    "BatchOrchestrator: translator raised on batch %d (attempt %d).",
                    batch.index,
                    attempt,
                    exc_info=True,
                )
                outcome = TranslationFailure(FailureReason.API_ERROR, detail=str(exc))

            if not isinstance(outcome, TranslationFailure):
                problem = check_fragment(batch, outcome.fragment)
                if problem is None:
                    return outcome
                outcome = TranslationFailure(
                    FailureReason.INCOMPLETE_FRAGMENT,
                    detail=problem,
                    attempts=outcome.attempts,
                )

            failure = outcome
            detail = f"{failure.reason.value}: {failure.detail or 'no detail'}"
            kind = "batch.retry" if attempt < self._max_batch_attempts else "batch.failed"
            self._emit(kind, mod_name, batch.index, batch_count, attempt, detail)

        return failure

    def _emit(
        self,
        kind: str,
        mod_name: str,
        batch_index: int,
        batch_count: int,
        attempt: int = 1,
        detail: str | None = None,
    ) -> None:
        if self._on_progress is None:
            return
        self._on_progress(
            ProgressEvent(
                kind=kind,
                mod_name=mod_name,
                batch_index=batch_index,
                batch_count=batch_count,
                attempt=attempt,
                detail=detail,
            )
        )
