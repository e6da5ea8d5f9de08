"""Single-batch translation with conversation-continuation retries.

``RetryingTranslator`` owns one conversation per call to
:meth:`~RetryingTranslator.translate` and drives it until the model
returns a parseable JSON object, the conversation has been continued
once without success, or the attempt ceiling is reached.

State machine
-------------
::

    Sending ──(client returns None)──────────────▶ Failure(api_error)
       │
       ▼
    Received ──▶ ResponseExtractor
                   ├─ ok ─────────────────────────▶ Success(fragment)
                   ├─ malformed ──────────────────▶ Failure(invalid_json)
                   └─ incomplete
                        ├─ not yet continued and attempts left:
                        │    extend conversation, back to Sending
                        └─ otherwise ─────────────▶ Failure(no_json_found)

A run continues its conversation at most once (``MAX_CONTINUATIONS``),
so it sends at most two requests.  ``max_attempts`` still caps the
request count: with ``max_attempts=1`` the conversation is never
continued.

Transport failures are not retried here; the batch orchestrator retries
the whole run with a brand-new conversation.  Malformed JSON is not
retried either, since continuing a conversation whose last reply was
broken JSON rarely yields a clean object.
"""

from __future__ import annotations

import logging

from mod_translator.translation.client import ChatCompletionClient
from mod_translator.translation.conversation import ConversationBuilder
from mod_translator.translation.extractor import ExtractStatus, ResponseExtractor
from mod_translator.translation.types import (
    FailureReason,
    TranslationFailure,
    TranslationOutcome,
    TranslationSuccess,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

# Continuation exchanges allowed in one run.
MAX_CONTINUATIONS = 1


class RetryingTranslator:
    """Drives one batch conversation to a TranslationOutcome.

    Attributes:
        _client:       Sends conversations to the remote API.
        _builder:      Builds and extends conversations.
        _extractor:    Pulls the JSON object out of each reply.
        _max_attempts: Request/response cycles allowed per run.
    """

    def __init__(
        self,
        *,
        client: ChatCompletionClient,
        builder: ConversationBuilder,
        extractor: ResponseExtractor | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("RetryingTranslator requires max_attempts >= 1.")
        self._client = client
        self._builder = builder
        self._extractor = extractor or ResponseExtractor()
        self._max_attempts = max_attempts

    def translate(self, system_prompt: str, batch_content_json: str) -> TranslationOutcome:
        """Translate one batch.

        Args:
            system_prompt:      Rendered system prompt.
            batch_content_json: The batch's source entries as JSON text.

        Returns:
            ``TranslationSuccess`` with the parsed fragment, or
            ``TranslationFailure`` naming the reason.
        """
        conversation = self._builder.build(system_prompt, batch_content_json)
        continuations = 0
        attempt = 0

        for attempt in range(1, self._max_attempts + 1):
            reply = self._client.complete(conversation)
            if reply is None:
                return TranslationFailure(
                    FailureReason.API_ERROR,
                    detail="chat API request failed",
                    attempts=attempt,
                )

            logger.debug("RetryingTranslator: reply on attempt %d:\n%s", attempt, reply)

            result = self._extractor.extract(reply)
            if result.status is ExtractStatus.OK:
                return TranslationSuccess(fragment=result.payload, attempts=attempt)

            if result.status is ExtractStatus.MALFORMED:
                return TranslationFailure(
                    FailureReason.INVALID_JSON,
                    detail=result.detail,
                    attempts=attempt,
                )

            if continuations >= MAX_CONTINUATIONS or attempt >= self._max_attempts:
                break

            logger.info(
                "RetryingTranslator: reply had no JSON object (attempt %d/%d); "
                "asking the model to continue.",
                attempt,
                self._max_attempts,
            )
            conversation = self._builder.extend(conversation, reply)
            continuations += 1

        return TranslationFailure(
            FailureReason.NO_JSON_FOUND,
            detail=f"no JSON object after {attempt} attempt(s)",
            attempts=attempt,
        )
