"""Conversation construction for chat-completion requests.

``ConversationBuilder`` produces the initial two-turn conversation for a
batch (system instructions + the batch's JSON as the user turn) and
extends it with a continuation exchange when the model stops before
emitting a complete JSON object.
"""

from __future__ import annotations

from mod_translator.translation.types import Conversation, Role, Turn

# Sent as the user turn that follows a truncated assistant reply.
CONTINUE_INSTRUCTION = "Please continue to execute"

DEFAULT_MODEL = "gpt-4-1106-preview"


class ConversationBuilder:
    """Builds and extends per-batch conversations.

    Attributes:
        _model: Model identifier stamped on every conversation.
    """

    def __init__(self, *, model: str = DEFAULT_MODEL) -> None:
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    def build(self, system_prompt: str, batch_content_json: str) -> Conversation:
        """Return a fresh ``(system, user)`` conversation.

        Args:
            system_prompt:      Rendered prompt (placeholders already
                                substituted by the caller).
            batch_content_json: The batch's source entries as JSON text.
        """
        return Conversation(
            model=self._model,
            turns=(
                Turn(Role.SYSTEM, system_prompt),
                Turn(Role.USER, batch_content_json),
            ),
        )

    def extend(self, conversation: Conversation, model_reply: str) -> Conversation:
        """Append the raw reply and a continuation request.

        The input conversation is not modified; a new value is returned.
        """
        return conversation.append(
            Turn(Role.ASSISTANT, model_reply),
            Turn(Role.USER, CONTINUE_INSTRUCTION),
        )
