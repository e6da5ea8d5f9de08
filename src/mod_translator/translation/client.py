"""HTTP client for the remote chat-completions endpoint.

``ChatCompletionClient`` is a thin, synchronous wrapper around a
chat-completions API (OpenAI's ``/v1/chat/completions`` by default).  It
is the only place in the translation core that makes a network call.

Sync vs async
-------------
Batches are translated strictly one after another, so the client uses
the synchronous ``requests`` library.  The call blocks for at most
``timeout_seconds`` (five minutes by default; long batches can take a
while to generate).

Credentials
-----------
The secret key is passed in at construction and sent as a bearer token.
It is never logged, and ``repr()`` masks it.
"""

from __future__ import annotations

import logging

import requests

from mod_translator.translation.types import Conversation

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"

DEFAULT_TIMEOUT_SECONDS = 300.0


class ChatCompletionClient:
    """Sends conversations and returns the assistant's message content.

    Attributes:
        _api_url:    Full chat-completions URL.
        _secret_key: Bearer token for the ``Authorization`` header.
        _timeout:    HTTP request timeout in seconds.
    """

    def __init__(
        self,
        *,
        secret_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._api_url = api_url
        self._secret_key = secret_key
        self._timeout = timeout_seconds

    def __repr__(self) -> str:
        return f"ChatCompletionClient(api_url={self._api_url!r}, secret_key='***')"

    def complete(self, conversation: Conversation) -> str | None:
        """POST the conversation and return the reply text.

        Returns ``None`` on any transport-level failure (timeout,
        connection error, non-2xx status) and when the response body is
        not the expected ``{"choices": [{"message": {"content": ...}}]}``
        envelope.  Whether the content holds usable JSON is the
        extractor's concern, so an empty string is returned as-is.

        Args:
            conversation: The full turn history for this attempt.

        Returns:
            The assistant message content, or ``None`` on failure.
        """
        try:
            response = requests.post(
                self._api_url,
                json=conversation.to_payload(),
                headers={"Authorization": f"Bearer {self._secret_key}"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.Timeout:
            logger.warning(
                "ChatCompletionClient: request timed out after %.1fs (endpoint=%s)",
                self._timeout,
                self._api_url,
            )
            return None
        except requests.exceptions.ConnectionError:
            logger.warning("ChatCompletionClient: cannot connect to %s", self._api_url)
            return None
        except requests.exceptions.RequestException as exc:
            logger.error("ChatCompletionClient: request failed: %s", exc)
            return None
        except ValueError:
            logger.error(
                "ChatCompletionClient: response body is not JSON (endpoint=%s)", self._api_url
            )
            return None

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.error("ChatCompletionClient: unexpected response envelope: %.200r", data)
            return None

        if not isinstance(content, str):
            logger.error("ChatCompletionClient: message content is not a string")
            return None
        return content
