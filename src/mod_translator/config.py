"""
Translator configuration management.

This module handles loading configuration from multiple sources with a
clear priority order:

    1. Environment variables (highest priority) - for CI and one-off runs
    2. Config file (settings.ini in the working directory, or --config)
    3. Built-in defaults (lowest priority) - sensible fallbacks

The translation core never reads configuration itself; the CLI loads a
TranslatorConfig and hands plain values to the classes it builds.

Usage:
    from mod_translator.config import load_config

    cfg = load_config()
    print(cfg.translation.target_language)
    for problem in cfg.problems():
        print(problem)

Environment Variable Mapping:
    MODTR_API_KEY          -> api.secret_key
    MODTR_API_URL          -> api.api_url
    MODTR_MODEL            -> api.model
    MODTR_SOURCE_LANGUAGE  -> translation.source_language
    MODTR_TARGET_LANGUAGE  -> translation.target_language
    MODTR_BATCH_SIZE       -> translation.batch_size
    MODTR_LOG_LEVEL        -> logging.level

Legacy settings.ini files with a single ``[Settings]`` section
(``ChatGptSecretKey``, ``SourceLanguage``, ``TargetLanguage``,
``PromptFileName``) are still understood.
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from mod_translator.translation.client import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS
from mod_translator.translation.conversation import DEFAULT_MODEL
from mod_translator.translation.orchestrator import DEFAULT_BATCH_SIZE, DEFAULT_MAX_BATCH_ATTEMPTS
from mod_translator.translation.translator import DEFAULT_MAX_ATTEMPTS

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Looked up relative to the working directory (the game directory).
DEFAULT_CONFIG_FILE = Path("settings.ini")


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ApiSettings:
    """Remote chat API configuration."""

    secret_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass
class TranslationSettings:
    """Language and batching configuration."""

    source_language: str = "en_us"
    target_language: str = "ja_jp"
    prompt_file_name: str = "default.txt"
    batch_size: int = DEFAULT_BATCH_SIZE
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    max_batch_attempts: int = DEFAULT_MAX_BATCH_ATTEMPTS


@dataclass
class PathSettings:
    """Directory layout, relative paths resolved against the working directory."""

    mods_dir: str = "mods"
    work_dir: str = "MinecraftLanguageTranslator"
    prompts_dir: str = "prompts"
    backup: bool = True


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "simple"


@dataclass
class TranslatorConfig:
    """
    Complete translator configuration.

    Aggregates all settings sections.  Build one with load_config().
    """

    api: ApiSettings = field(default_factory=ApiSettings)
    translation: TranslationSettings = field(default_factory=TranslationSettings)
    paths: PathSettings = field(default_factory=PathSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def prompt_path(self) -> Path:
        """Path of the selected prompt template."""
        return Path(self.paths.prompts_dir) / self.translation.prompt_file_name

    def problems(self) -> list[str]:
        """Return every reason this configuration cannot be used for a run."""
        found: list[str] = []
        if not self.api.secret_key:
            found.append("api.secret_key is not set (or MODTR_API_KEY)")
        if not self.translation.source_language:
            found.append("translation.source_language is not set")
        if not self.translation.target_language:
            found.append("translation.target_language is not set")
        if not self.translation.prompt_file_name:
            found.append("translation.prompt_file_name is not set")
        elif not self.prompt_path.is_file():
            found.append(f"prompt file not found: {self.prompt_path}")
        if self.translation.batch_size < 1:
            found.append("translation.batch_size must be at least 1")
        if self.translation.max_attempts < 1:
            found.append("translation.max_attempts must be at least 1")
        if self.translation.max_batch_attempts < 1:
            found.append("translation.max_batch_attempts must be at least 1")
        return found

    def require_valid(self) -> "TranslatorConfig":
        """Return self, or raise ConfigError listing every problem."""
        found = self.problems()
        if found:
            raise ConfigError(found)
        return self


class ConfigError(ValueError):
    """Raised when the configuration cannot be used.

    Attributes:
        problems: Every validation problem found.
    """

    def __init__(self, problems: list[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _load_legacy_section(parser: configparser.ConfigParser, cfg: TranslatorConfig) -> None:
    """Load the single-section ``[Settings]`` layout used by older installs."""
    if not parser.has_section("Settings"):
        return
    # configparser lower-cases option names, so "ChatGptSecretKey" is read
    # as "chatgptsecretkey".
    if parser.has_option("Settings", "chatgptsecretkey"):
        cfg.api.secret_key = parser.get("Settings", "chatgptsecretkey")
    if parser.has_option("Settings", "sourcelanguage"):
        cfg.translation.source_language = parser.get("Settings", "sourcelanguage")
    if parser.has_option("Settings", "targetlanguage"):
        cfg.translation.target_language = parser.get("Settings", "targetlanguage")
    if parser.has_option("Settings", "promptfilename"):
        cfg.translation.prompt_file_name = parser.get("Settings", "promptfilename")


def _load_from_ini(parser: configparser.ConfigParser, cfg: TranslatorConfig) -> None:
    """Load configuration from parsed INI file into TranslatorConfig."""
    _load_legacy_section(parser, cfg)

    # API section
    if parser.has_section("api"):
        if parser.has_option("api", "secret_key"):
            cfg.api.secret_key = parser.get("api", "secret_key")
        if parser.has_option("api", "api_url"):
            cfg.api.api_url = parser.get("api", "api_url")
        if parser.has_option("api", "model"):
            cfg.api.model = parser.get("api", "model")
        if parser.has_option("api", "timeout_seconds"):
            cfg.api.timeout_seconds = parser.getfloat("api", "timeout_seconds")

    # Translation section
    if parser.has_section("translation"):
        if parser.has_option("translation", "source_language"):
            cfg.translation.source_language = parser.get("translation", "source_language")
        if parser.has_option("translation", "target_language"):
            cfg.translation.target_language = parser.get("translation", "target_language")
        if parser.has_option("translation", "prompt_file_name"):
            cfg.translation.prompt_file_name = parser.get("translation", "prompt_file_name")
        if parser.has_option("translation", "batch_size"):
            cfg.translation.batch_size = parser.getint("translation", "batch_size")
        if parser.has_option("translation", "max_attempts"):
            cfg.translation.max_attempts = parser.getint("translation", "max_attempts")
        if parser.has_option("translation", "max_batch_attempts"):
            cfg.translation.max_batch_attempts = parser.getint(
                "translation", "max_batch_attempts"
            )

    # Paths section
    if parser.has_section("paths"):
        if parser.has_option("paths", "mods_dir"):
            cfg.paths.mods_dir = parser.get("paths", "mods_dir")
        if parser.has_option("paths", "work_dir"):
            cfg.paths.work_dir = parser.get("paths", "work_dir")
        if parser.has_option("paths", "prompts_dir"):
            cfg.paths.prompts_dir = parser.get("paths", "prompts_dir")
        if parser.has_option("paths", "backup"):
            cfg.paths.backup = _parse_bool(parser.get("paths", "backup"))

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: TranslatorConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # API settings
    if env_key := os.getenv("MODTR_API_KEY"):
        cfg.api.secret_key = env_key
    if env_url := os.getenv("MODTR_API_URL"):
        cfg.api.api_url = env_url
    if env_model := os.getenv("MODTR_MODEL"):
        cfg.api.model = env_model

    # Translation settings
    if env_source := os.getenv("MODTR_SOURCE_LANGUAGE"):
        cfg.translation.source_language = env_source
    if env_target := os.getenv("MODTR_TARGET_LANGUAGE"):
        cfg.translation.target_language = env_target
    if env_batch := os.getenv("MODTR_BATCH_SIZE"):
        cfg.translation.batch_size = int(env_batch)

    # Logging settings
    if env_log := os.getenv("MODTR_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config(config_file: Path | None = None) -> TranslatorConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. The INI file (``config_file``, default ``./settings.ini``)
        3. Built-in defaults

    A missing file is not an error; defaults and environment still apply.

    Args:
        config_file: Explicit INI path.  ``None`` uses DEFAULT_CONFIG_FILE.

    Returns:
        TranslatorConfig: Fully populated configuration object.
    """
    cfg = TranslatorConfig()

    path = config_file if config_file is not None else DEFAULT_CONFIG_FILE
    if path.exists():
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(path, encoding="utf-8")
        _load_from_ini(parser, cfg)

    # Apply environment variable overrides (highest priority)
    _apply_env_overrides(cfg)

    return cfg


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def _mask(secret: str) -> str:
    """Show only the last four characters of a secret."""
    if not secret:
        return "(not set)"
    if len(secret) <= 4:
        return "****"
    return "****" + secret[-4:]


def format_config_summary(cfg: TranslatorConfig) -> str:
    """Render a human-readable configuration summary with the key masked."""
    lines = [
        "=" * 60,
        "TRANSLATOR CONFIGURATION",
        "=" * 60,
        f"API endpoint:    {cfg.api.api_url}",
        f"Model:           {cfg.api.model}",
        f"API key:         {_mask(cfg.api.secret_key)}",
        f"Timeout:         {cfg.api.timeout_seconds:.0f}s",
        "-" * 60,
        f"Languages:       {cfg.translation.source_language} -> "
        f"{cfg.translation.target_language}",
        f"Prompt:          {cfg.prompt_path}",
        f"Batch size:      {cfg.translation.batch_size}",
        f"Attempts:        {cfg.translation.max_attempts} per run, "
        f"{cfg.translation.max_batch_attempts} runs per batch",
        "-" * 60,
        f"Mods directory:  {cfg.paths.mods_dir}",
        f"Work directory:  {cfg.paths.work_dir}",
        f"Backup:          {cfg.paths.backup}",
        f"Log level:       {cfg.logging.level}",
        "=" * 60,
    ]
    return "\n".join(lines)
