"""JSON payload extraction from free-form model replies.

``ResponseExtractor`` takes the raw assistant text and decides whether it
carries a usable JSON object.  Models routinely wrap the payload in prose
("Sure! Here is the translation: ..."), so the extractor slices from the
first ``{`` to the last ``}`` and parses only that span.

Outcomes
--------
``ok``
    The span parsed; ``payload`` holds the resulting object.
``incomplete``
    No ``{`` or no ``}`` after it.  Usually the model was cut off before
    closing the object; the translator answers with a continuation turn.
``malformed``
    A span was found but is not valid JSON.  Re-sending the same text is
    not expected to help, so the translator gives up on this run.

Boundary detection is positional only.  Braces in prose before the
payload, or a stray ``{`` after it, will shift the span and usually
produce ``malformed``.  A balanced-brace scanner would avoid this but
would also accept replies the existing tool rejects, so the positional
rule is kept.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ExtractStatus(str, Enum):
    OK = "ok"
    INCOMPLETE = "incomplete"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ExtractResult:
    """Result of :meth:`ResponseExtractor.extract`.

    Attributes:
        status:  Extraction outcome.
        payload: Parsed object when ``status`` is ``OK``, else ``None``.
        detail:  Parser error message for ``MALFORMED``.
    """

    status: ExtractStatus
    payload: dict | None = None
    detail: str | None = None


class ResponseExtractor:
    """Locates and parses the JSON object embedded in a reply."""

    def extract(self, text: str) -> ExtractResult:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end == -1 or end < start:
            return ExtractResult(ExtractStatus.INCOMPLETE)

        candidate = text[start : end + 1]
        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError as exc:
            logger.warning("ResponseExtractor: reply span is not valid JSON: %s", exc)
            return ExtractResult(ExtractStatus.MALFORMED, detail=str(exc))

        return ExtractResult(ExtractStatus.OK, payload=payload)
