"""Mod archive handling around the translation core.

archive.py  Extraction, repackaging, backup and language file I/O.
runner.py   ModTranslationRunner: per-mod driver used by the CLI.
"""

from mod_translator.mods.archive import LanguageFileError
from mod_translator.mods.runner import (
    ModReport,
    ModStatus,
    ModTranslationError,
    ModTranslationRunner,
)

__all__ = [
    "LanguageFileError",
    "ModReport",
    "ModStatus",
    "ModTranslationError",
    "ModTranslationRunner",
]
