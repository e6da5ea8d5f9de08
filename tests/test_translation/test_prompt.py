"""Unit tests for prompt template loading and rendering."""

import pytest

from mod_translator.translation.prompt import load_prompt_template, render_prompt


@pytest.mark.unit
class TestRenderPrompt:
    def test_substitutes_all_placeholders(self):
        template = "Mod {MOD_NAME}: {SOURCE_LANGUAGE} -> {TARGET_LANGUAGE}"
        rendered = render_prompt(
            template, mod_name="Create", source_language="en_us", target_language="ja_jp"
        )
        assert rendered == "Mod Create: en_us -> ja_jp"

    def test_repeated_placeholders(self):
        rendered = render_prompt(
            "{MOD_NAME} {MOD_NAME}", mod_name="X", source_language="a", target_language="b"
        )
        assert rendered == "X X"

    def test_literal_json_braces_survive(self):
        template = 'Reply like {"key": "value"} for {MOD_NAME}'
        rendered = render_prompt(template, mod_name="M", source_language="a", target_language="b")
        assert rendered == 'Reply like {"key": "value"} for M'

    def test_template_is_not_modified_between_mods(self):
        template = "Translating {MOD_NAME}"
        first = render_prompt(template, mod_name="One", source_language="a", target_language="b")
        second = render_prompt(template, mod_name="Two", source_language="a", target_language="b")
        assert (first, second) == ("Translating One", "Translating Two")


@pytest.mark.unit
class TestLoadPromptTemplate:
    def test_trims_surrounding_line_breaks(self, tmp_path):
        path = tmp_path / "prompt.txt"
        path.write_bytes("\r\n\nTranslate {MOD_NAME}\n  keep inner\n\r\n".encode())
        assert load_prompt_template(path) == "Translate {MOD_NAME}\n  keep inner"

    def test_reads_utf8(self, tmp_path):
        path = tmp_path / "prompt.txt"
        path.write_text("日本語に翻訳してください", encoding="utf-8")
        assert load_prompt_template(path) == "日本語に翻訳してください"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_prompt_template(tmp_path / "missing.txt")
