"""Per-mod translation driver.

``ModTranslationRunner`` walks the mods directory and, for each archive:

1. Extracts it to ``<work_dir>/temp/<archive stem>``.
2. Skips the mod if it already ships ``<target>.json``, has no jar
   manifest, or has no ``<source>.json``.
3. Renders the prompt for this mod and translates the source map through
   :class:`~mod_translator.translation.BatchOrchestrator`.
4. Writes ``<target>.json`` beside the source file, repackages the
   archive in place and removes the scratch directory.

Failure policy
--------------
Skips are reported and the run continues.  A translation failure is
fatal for the whole run: :exc:`ModTranslationError` is raised before
anything is written for the failing mod, so its archive is left exactly
as it was.

Cancellation
------------
An optional ``threading.Event`` is checked before each mod.  Once it is
set the runner stops after the mod in progress; requests already in
flight are never interrupted.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from threading import Event

from mod_translator.mods.archive import (
    backup_archives,
    extract_archive,
    find_language_file,
    find_manifest,
    list_mod_archives,
    read_language_map,
    read_mod_name,
    repackage_archive,
    write_language_map,
)
from mod_translator.translation.orchestrator import BatchOrchestrator
from mod_translator.translation.prompt import render_prompt
from mod_translator.translation.types import FailureReason, MapTranslationFailure, ProgressEvent

logger = logging.getLogger(__name__)


class ModStatus(str, Enum):
    TRANSLATED = "translated"
    SKIPPED_TARGET_EXISTS = "skipped.target_exists"
    SKIPPED_NO_MANIFEST = "skipped.no_manifest"
    SKIPPED_NO_SOURCE = "skipped.no_source"


@dataclass(frozen=True)
class ModReport:
    """What happened to one mod archive."""

    archive: Path
    status: ModStatus
    detail: str | None = None


class ModTranslationError(RuntimeError):
    """Raised when a mod's language map cannot be translated.

    Attributes:
        mod_name:    Display name of the mod.
        batch_index: Zero-based index of the batch that failed.
        reason:      Reason reported by the last attempt for that batch.
    """

    def __init__(
        self,
        *,
        mod_name: str,
        batch_index: int,
        reason: FailureReason | None,
        detail: str | None = None,
    ) -> None:
        reason_text = reason.value if reason is not None else "unknown"
        message = f"translation failed for mod {mod_name!r} at batch {batch_index}: {reason_text}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.mod_name = mod_name
        self.batch_index = batch_index
        self.reason = reason
        self.detail = detail


def log_progress(event: ProgressEvent) -> None:
    """Default progress callback: one log line per batch event."""
    position = f"batch {event.batch_index + 1}/{event.batch_count}"
    if event.kind == "batch.started":
        logger.info("[%s] %s: translating (attempt %d)", event.mod_name, position, event.attempt)
    elif event.kind == "batch.completed":
        logger.info("[%s] %s: done", event.mod_name, position)
    elif event.kind == "batch.retry":
        logger.error(
            "[%s] %s: attempt %d failed (%s), retrying",
            event.mod_name,
            position,
            event.attempt,
            event.detail,
        )
    elif event.kind == "batch.failed":
        logger.error(
            "[%s] %s: giving up after attempt %d (%s)",
            event.mod_name,
            position,
            event.attempt,
            event.detail,
        )


class ModTranslationRunner:
    """Translates the language files of every mod archive in a directory.

    Attributes:
        _orchestrator:    Translates a single language map.
        _prompt_template: Unrendered system prompt template.
        _source_language: Language code of the files to read (``en_us``).
        _target_language: Language code of the files to write.
        _work_dir:        Scratch/backup root.
        _stop_event:      Checked between mods.
    """

    def __init__(
        self,
        *,
        orchestrator: BatchOrchestrator,
        prompt_template: str,
        source_language: str,
        target_language: str,
        work_dir: Path,
        stop_event: Event | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._prompt_template = prompt_template
        self._source_language = source_language
        self._target_language = target_language
        self._work_dir = work_dir
        self._stop_event = stop_event

    @property
    def temp_dir(self) -> Path:
        return self._work_dir / "temp"

    @property
    def backup_dir(self) -> Path:
        return self._work_dir / "ModBackup"

    def run(self, mods_dir: Path, *, backup: bool = True) -> list[ModReport]:
        """Process every archive in ``mods_dir`` in file-name order.

        The scratch directory is removed even when a mod fails.

        Raises:
            ModTranslationError: On the first mod whose translation fails.
            LanguageFileError:   If a source language file is unusable.
        """
        archives = list_mod_archives(mods_dir)
        if not archives:
            logger.info("No mod archives found in %s", mods_dir)
            return []

        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)
        if backup:
            backup_archives(archives, self.backup_dir)

        reports: list[ModReport] = []
        try:
            for number, archive in enumerate(archives, start=1):
                if self._stop_event is not None and self._stop_event.is_set():
                    logger.info(
                        "Stop requested; %d mod(s) left unprocessed.", len(archives) - number + 1
                    )
                    break
                logger.info(
                    "Current processing target: %d / %d %s", number, len(archives), archive.stem
                )
                report = self.process_archive(archive)
                if report.status is not ModStatus.TRANSLATED:
                    logger.info("%s: %s", archive.name, report.detail)
                reports.append(report)
        finally:
            if self.temp_dir.exists():
                shutil.rmtree(self.temp_dir)
        return reports

    def process_archive(self, archive: Path) -> ModReport:
        """Translate one mod archive in place.

        Raises:
            ModTranslationError: If the language map cannot be translated.
            LanguageFileError:   If the source language file is malformed.
        """
        workspace = self.temp_dir / archive.stem
        extract_archive(archive, workspace)

        if find_language_file(workspace, self._target_language) is not None:
            shutil.rmtree(workspace)
            return ModReport(
                archive, ModStatus.SKIPPED_TARGET_EXISTS, "The translation file already exists."
            )

        manifest = find_manifest(workspace)
        if manifest is None:
            shutil.rmtree(workspace)
            return ModReport(
                archive, ModStatus.SKIPPED_NO_MANIFEST, "The meta information file was not found."
            )

        source_file = find_language_file(workspace, self._source_language)
        if source_file is None:
            shutil.rmtree(workspace)
            return ModReport(
                archive, ModStatus.SKIPPED_NO_SOURCE, "The original language file was not found."
            )

        mod_name = read_mod_name(manifest) or archive.stem
        source = read_language_map(source_file)
        target = self.translate_map(source, mod_name=mod_name)

        write_language_map(source_file.with_name(f"{self._target_language}.json"), target)
        repackage_archive(workspace, archive)
        shutil.rmtree(workspace)
        return ModReport(archive, ModStatus.TRANSLATED, f"{len(target)} key(s) translated")

    def translate_map(self, source: dict[str, str], *, mod_name: str) -> dict[str, str]:
        """Translate one language map with this mod's rendered prompt.

        Raises:
            ModTranslationError: If any batch exhausts its attempts.
        """
        system_prompt = render_prompt(
            self._prompt_template,
            mod_name=mod_name,
            source_language=self._source_language,
            target_language=self._target_language,
        )
        result = self._orchestrator.translate_map(source, system_prompt, mod_name=mod_name)
        if isinstance(result, MapTranslationFailure):
            raise ModTranslationError(
                mod_name=result.mod_name,
                batch_index=result.batch_index,
                reason=result.last_reason,
                detail=result.detail,
            )
        return result.target
