"""Tests for ModTranslationRunner.

Archives are real zip files written under ``tmp_path``; the chat client is
the scripted stand-in from ``conftest.py``.
"""

import json
import logging
import threading
import zipfile

import pytest

from mod_translator.mods.archive import LanguageFileError
from mod_translator.mods.runner import (
    ModStatus,
    ModTranslationError,
    ModTranslationRunner,
    log_progress,
)
from mod_translator.translation.types import FailureReason, ProgressEvent

TEMPLATE = "Translate {MOD_NAME} from {SOURCE_LANGUAGE} to {TARGET_LANGUAGE}"


@pytest.fixture
def make_runner(tmp_path, make_orchestrator):
    def _make(client, *, stop_event=None, **kwargs):
        return ModTranslationRunner(
            orchestrator=make_orchestrator(client, **kwargs),
            prompt_template=TEMPLATE,
            source_language="en_us",
            target_language="ja_jp",
            work_dir=tmp_path / "work",
            stop_event=stop_event,
        )

    return _make


def _read_member(archive, member) -> str:
    with zipfile.ZipFile(archive) as zf:
        return zf.read(member).decode("utf-8")


@pytest.mark.integration
class TestRunTranslates:
    def test_writes_target_file_into_archive(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client, echo_reply
    ):
        archive = make_mod_archive("example.jar", standard_mod_files)
        client = scripted_client(echo_reply)

        reports = make_runner(client).run(tmp_path / "mods")

        assert [r.status for r in reports] == [ModStatus.TRANSLATED]
        target = json.loads(_read_member(archive, "assets/example/lang/ja_jp.json"))
        assert target == {"item.example.gem": "GEM", "tooltip.example.gem": "§ASHINY§R"}
        assert _read_member(archive, "com/example/Example.class") == "bytecode"

    def test_prompt_uses_manifest_title(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client, echo_reply
    ):
        make_mod_archive("example.jar", standard_mod_files)
        client = scripted_client(echo_reply)

        make_runner(client).run(tmp_path / "mods")

        system_prompt = client.conversations[0].turns[0].content
        assert system_prompt == "Translate Example Mod from en_us to ja_jp"

    def test_prompt_falls_back_to_archive_stem(
        self, tmp_path, make_runner, make_mod_archive, scripted_client, echo_reply
    ):
        make_mod_archive(
            "untitled-1.0.jar",
            {
                "META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n",
                "assets/u/lang/en_us.json": '{"a": "b"}',
            },
        )
        client = scripted_client(echo_reply)

        make_runner(client).run(tmp_path / "mods")

        assert "untitled-1.0" in client.conversations[0].turns[0].content

    def test_each_mod_gets_its_own_prompt(
        self, tmp_path, make_runner, make_mod_archive, scripted_client, echo_reply
    ):
        for name, title in (("a.jar", "First"), ("b.jar", "Second")):
            make_mod_archive(
                name,
                {
                    "META-INF/MANIFEST.MF": f"Specification-Title: {title}\n",
                    "assets/x/lang/en_us.json": '{"k": "v"}',
                },
            )
        client = scripted_client(echo_reply)

        make_runner(client).run(tmp_path / "mods")

        prompts = [c.turns[0].content for c in client.conversations]
        assert prompts == [
            "Translate First from en_us to ja_jp",
            "Translate Second from en_us to ja_jp",
        ]

    def test_backup_and_temp_cleanup(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client, echo_reply
    ):
        make_mod_archive("example.jar", standard_mod_files)
        runner = make_runner(scripted_client(echo_reply))

        runner.run(tmp_path / "mods")

        backups = list(runner.backup_dir.glob("*/mods/example.jar"))
        assert len(backups) == 1
        assert not runner.temp_dir.exists()

    def test_no_backup(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client, echo_reply
    ):
        make_mod_archive("example.jar", standard_mod_files)
        runner = make_runner(scripted_client(echo_reply))

        runner.run(tmp_path / "mods", backup=False)

        assert not runner.backup_dir.exists()

    def test_empty_mods_dir(self, tmp_path, make_runner, scripted_client):
        (tmp_path / "mods").mkdir()
        assert make_runner(scripted_client("{}")).run(tmp_path / "mods") == []


@pytest.mark.integration
class TestRunSkips:
    def test_existing_target_is_skipped(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client
    ):
        files = dict(standard_mod_files)
        files["assets/example/lang/ja_jp.json"] = '{"item.example.gem": "宝石"}'
        archive = make_mod_archive("example.jar", files)
        before = archive.read_bytes()
        client = scripted_client("{}")

        reports = make_runner(client).run(tmp_path / "mods")

        assert reports[0].status is ModStatus.SKIPPED_TARGET_EXISTS
        assert client.call_count == 0
        assert archive.read_bytes() == before

    def test_missing_manifest_is_skipped(
        self, tmp_path, make_runner, make_mod_archive, scripted_client
    ):
        make_mod_archive("example.jar", {"assets/x/lang/en_us.json": '{"a": "b"}'})
        reports = make_runner(scripted_client("{}")).run(tmp_path / "mods")
        assert reports[0].status is ModStatus.SKIPPED_NO_MANIFEST

    def test_missing_source_is_skipped(
        self, tmp_path, make_runner, make_mod_archive, scripted_client
    ):
        make_mod_archive("example.jar", {"META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n"})
        reports = make_runner(scripted_client("{}")).run(tmp_path / "mods")
        assert reports[0].status is ModStatus.SKIPPED_NO_SOURCE


@pytest.mark.integration
class TestRunFailures:
    def test_translation_failure_raises_and_leaves_archive(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client
    ):
        archive = make_mod_archive("example.jar", standard_mod_files)
        before = archive.read_bytes()

        with pytest.raises(ModTranslationError) as excinfo:
            make_runner(scripted_client(None)).run(tmp_path / "mods")

        assert excinfo.value.mod_name == "Example Mod"
        assert excinfo.value.batch_index == 0
        assert excinfo.value.reason is FailureReason.API_ERROR
        assert "Example Mod" in str(excinfo.value)
        assert archive.read_bytes() == before

    def test_failure_stops_remaining_mods(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client
    ):
        make_mod_archive("a.jar", standard_mod_files)
        second = make_mod_archive("b.jar", standard_mod_files)
        before = second.read_bytes()
        client = scripted_client("no json at all")

        with pytest.raises(ModTranslationError):
            make_runner(client, max_batch_attempts=1).run(tmp_path / "mods")

        assert second.read_bytes() == before

    def test_failure_removes_scratch_directory(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client
    ):
        make_mod_archive("example.jar", standard_mod_files)
        runner = make_runner(scripted_client(None))

        with pytest.raises(ModTranslationError):
            runner.run(tmp_path / "mods")

        assert not runner.temp_dir.exists()

    def test_non_utf8_source_raises_language_file_error(
        self, tmp_path, make_runner, make_mod_archive, scripted_client
    ):
        archive = make_mod_archive(
            "latin.jar",
            {
                "META-INF/MANIFEST.MF": "Specification-Title: Latin\n",
                "assets/latin/lang/en_us.json": b'{"a": "caf\xe9"}',
            },
        )
        before = archive.read_bytes()
        client = scripted_client("{}")
        runner = make_runner(client)

        with pytest.raises(LanguageFileError):
            runner.run(tmp_path / "mods")

        assert client.call_count == 0
        assert not runner.temp_dir.exists()
        assert archive.read_bytes() == before


@pytest.mark.integration
class TestStopEvent:
    def test_stop_before_first_mod(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client
    ):
        make_mod_archive("example.jar", standard_mod_files)
        stop = threading.Event()
        stop.set()
        client = scripted_client("{}")

        reports = make_runner(client, stop_event=stop).run(tmp_path / "mods")

        assert reports == []
        assert client.call_count == 0

    def test_stop_between_mods(
        self, tmp_path, make_runner, make_mod_archive, standard_mod_files, scripted_client, echo_reply
    ):
        make_mod_archive("a.jar", standard_mod_files)
        make_mod_archive("b.jar", standard_mod_files)
        stop = threading.Event()

        def reply(conversation):
            # Stop is requested while the first mod's request is in flight.
            stop.set()
            return echo_reply(conversation)

        reports = make_runner(scripted_client(reply), stop_event=stop).run(tmp_path / "mods")

        assert [r.archive.name for r in reports] == ["a.jar"]
        assert reports[0].status is ModStatus.TRANSLATED


@pytest.mark.unit
class TestLogProgress:
    def test_retry_logged_as_error(self, caplog):
        caplog.set_level(logging.INFO, logger="mod_translator.mods.runner")
        log_progress(ProgressEvent("batch.retry", "demo", 0, 3, attempt=1, detail="api_error"))
        assert "batch 1/3" in caplog.text
        assert "api_error" in caplog.text
        assert caplog.records[-1].levelno == logging.ERROR

    def test_completed_logged_as_info(self, caplog):
        caplog.set_level(logging.INFO, logger="mod_translator.mods.runner")
        log_progress(ProgressEvent("batch.completed", "demo", 1, 2))
        assert "[demo] batch 2/2: done" in caplog.text
