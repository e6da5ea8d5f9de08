"""System prompt templates.

A template is a plain text file (``prompts/<name>``) containing any of
the placeholders ``{MOD_NAME}``, ``{SOURCE_LANGUAGE}`` and
``{TARGET_LANGUAGE}``.  The template is loaded once per run and rendered
per mod, so each mod's prompt starts from the untouched template.

Placeholders are replaced with plain ``str.replace`` rather than
``str.format``: prompts usually contain literal JSON examples whose
braces must survive.
"""

from __future__ import annotations

from pathlib import Path


def load_prompt_template(path: Path) -> str:
    """Read a prompt template, trimming leading and trailing line breaks.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    return path.read_text(encoding="utf-8").strip("\r\n")


def render_prompt(
    template: str,
    *,
    mod_name: str,
    source_language: str,
    target_language: str,
) -> str:
    """Substitute the mod and language placeholders in ``template``."""
    return (
        template.replace("{MOD_NAME}", mod_name)
        .replace("{SOURCE_LANGUAGE}", source_language)
        .replace("{TARGET_LANGUAGE}", target_language)
    )
