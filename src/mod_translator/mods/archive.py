"""Mod archive and language file handling.

Mods are ``.jar`` files, which are ordinary zip archives.  Translating a
mod means extracting it to a scratch directory, locating
``<language>.json`` inside it (usually ``assets/<modid>/lang/``),
writing the new language file next to the source one and zipping the
directory back over the original archive.

Everything here is plain filesystem work; nothing in this module talks
to the translation API.
"""

from __future__ import annotations

import json
import logging
import shutil
import zipfile
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

MOD_ARCHIVE_PATTERN = "*.jar"

MANIFEST_PATTERN = "*.MF"

_TITLE_PREFIX = "Specification-Title:"


class LanguageFileError(ValueError):
    """Raised when a language file is not a flat JSON object of strings."""


# ── Archives ──────────────────────────────────────────────────────────────────


def list_mod_archives(mods_dir: Path) -> list[Path]:
    """Return the mod archives in ``mods_dir``, sorted by file name."""
    if not mods_dir.is_dir():
        return []
    return sorted(
        (path for path in mods_dir.glob(MOD_ARCHIVE_PATTERN) if path.is_file()),
        key=lambda path: path.name,
    )


def backup_archives(archives: Iterable[Path], backup_root: Path) -> Path:
    """Copy ``archives`` into a timestamped backup directory.

    The layout is ``<backup_root>/<YYYYmmddHHMMSS>/mods/<archive>``.

    Returns:
        The directory the archives were copied into.
    """
    destination = backup_root / datetime.now().strftime("%Y%m%d%H%M%S") / "mods"
    destination.mkdir(parents=True, exist_ok=True)
    for archive in archives:
        shutil.copy2(archive, destination / archive.name)
    logger.info("Backed up mod archives to %s", destination)
    return destination


def extract_archive(archive: Path, destination: Path) -> None:
    """Extract ``archive`` into ``destination``, replacing any previous contents."""
    if destination.exists():
        shutil.rmtree(destination)
    destination.mkdir(parents=True)
    with zipfile.ZipFile(archive) as zf:
        zf.extractall(destination)


def repackage_archive(source_dir: Path, archive: Path) -> None:
    """Replace ``archive`` with a deflated zip of ``source_dir``.

    Entry names are relative to ``source_dir`` and use forward slashes.
    Files are added in sorted order so repeated runs produce the same
    entry order.
    """
    if archive.exists():
        archive.unlink()
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(source_dir.rglob("*")):
            if path.is_file():
                zf.write(path, path.relative_to(source_dir).as_posix())


# ── Archive contents ─────────────────────────────────────────────────────────


def find_language_file(root: Path, language: str) -> Path | None:
    """Return the first ``<language>.json`` under ``root``, or ``None``."""
    matches = sorted(root.rglob(f"{language}.json"))
    return matches[0] if matches else None


def find_manifest(root: Path) -> Path | None:
    """Return the first ``*.MF`` manifest under ``root``, or ``None``."""
    matches = sorted(root.rglob(MANIFEST_PATTERN))
    return matches[0] if matches else None


def read_mod_name(manifest: Path) -> str | None:
    """Return the ``Specification-Title`` value from a jar manifest."""
    text = manifest.read_text(encoding="utf-8", errors="replace")
    for line in text.splitlines():
        if line.startswith(_TITLE_PREFIX):
            title = line.split(":", 1)[1].strip()
            return title or None
    return None


# ── Language files ────────────────────────────────────────────────────────────


def read_language_map(path: Path) -> dict[str, str]:
    """Load a language file as an ordered ``key -> text`` mapping.

    A UTF-8 byte-order mark is tolerated.

    Raises:
        LanguageFileError: If the file is not UTF-8, not valid JSON, not an
            object, or has non-string values.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except UnicodeDecodeError as exc:
        raise LanguageFileError(f"{path}: not UTF-8 ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise LanguageFileError(f"{path}: invalid JSON ({exc})") from exc

    if not isinstance(data, dict):
        raise LanguageFileError(f"{path}: expected a JSON object")

    bad = [key for key, value in data.items() if not isinstance(value, str)]
    if bad:
        raise LanguageFileError(f"{path}: non-string values for {', '.join(bad[:5])}")
    return data


def write_language_map(path: Path, language_map: dict[str, str]) -> None:
    """Write ``language_map`` as indented UTF-8 JSON."""
    path.write_text(json.dumps(language_map, ensure_ascii=False, indent=2), encoding="utf-8")
