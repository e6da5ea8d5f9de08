"""LLM translation core for mod language files.

This package takes a flat source language map (``key -> text``) and
produces the equivalent map in a target language by asking a remote
chat-completions model to translate it, batch by batch.

Package structure
-----------------
types.py         Turn, Conversation, tagged outcome types, ProgressEvent.
conversation.py  ConversationBuilder. Builds the (system, user)
                 conversation for a batch and extends it with a
                 continuation exchange.
client.py        ChatCompletionClient. Synchronous HTTP client for the
                 chat-completions endpoint.
extractor.py     ResponseExtractor. Pulls the JSON object out of a
                 free-form reply.
translator.py    RetryingTranslator. Drives one conversation to a
                 TranslationOutcome.
orchestrator.py  BatchOrchestrator. Splits a map into batches,
                 retries failed batches and merges fragments.
prompt.py        Prompt template loading and placeholder rendering.

Typical call flow
-----------------
1. ``render_prompt(template, mod_name=..., ...)`` builds the system prompt.
2. ``orchestrator.translate_map(source, prompt, mod_name=...)``
3. For each batch the orchestrator calls ``translator.translate``.
4. The translator sends the conversation through the client and hands
   each reply to the extractor, continuing the conversation when the
   reply was cut off.
5. The orchestrator checks and merges the fragment, or retries the batch.
6. The caller gets ``MapTranslationSuccess`` or ``MapTranslationFailure``.
"""

from mod_translator.translation.client import ChatCompletionClient
from mod_translator.translation.conversation import ConversationBuilder
from mod_translator.translation.extractor import ExtractResult, ExtractStatus, ResponseExtractor
from mod_translator.translation.orchestrator import (
    SPECIAL_CHARACTERS,
    Batch,
    BatchOrchestrator,
    contains_special_characters,
    merge_fragment,
    split_batches,
)
from mod_translator.translation.prompt import load_prompt_template, render_prompt
from mod_translator.translation.translator import RetryingTranslator
from mod_translator.translation.types import (
    Conversation,
    FailureReason,
    MapTranslationFailure,
    MapTranslationResult,
    MapTranslationSuccess,
    ProgressEvent,
    Role,
    TranslationFailure,
    TranslationOutcome,
    TranslationSuccess,
    Turn,
)

__all__ = [
    "SPECIAL_CHARACTERS",
    "Batch",
    "BatchOrchestrator",
    "ChatCompletionClient",
    "Conversation",
    "ConversationBuilder",
    "ExtractResult",
    "ExtractStatus",
    "FailureReason",
    "MapTranslationFailure",
    "MapTranslationResult",
    "MapTranslationSuccess",
    "ProgressEvent",
    "ResponseExtractor",
    "RetryingTranslator",
    "Role",
    "TranslationFailure",
    "TranslationOutcome",
    "TranslationSuccess",
    "Turn",
    "contains_special_characters",
    "load_prompt_template",
    "merge_fragment",
    "render_prompt",
    "split_batches",
]
