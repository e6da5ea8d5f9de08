"""
Command-line interface for mod-translator.

Provides CLI commands:
- run: Translate the language files of every mod archive in the mods directory
- translate-file: Translate a single language JSON file
- show-config: Print the effective configuration (API key masked)

Usage:
    mod-translator [--config PATH] run [--mods-dir DIR] [--no-backup]
    mod-translator [--config PATH] translate-file SOURCE OUTPUT [--mod-name NAME]
    mod-translator [--config PATH] show-config

Exit codes:
    0: success
    1: a translation failed (no output written for the failing mod)
    2: configuration problem

Environment Variables:
    See mod_translator.config for the MODTR_* overrides.
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from mod_translator.config import ConfigError, TranslatorConfig, format_config_summary, load_config
from mod_translator.mods.archive import LanguageFileError, read_language_map, write_language_map
from mod_translator.mods.runner import (
    ModStatus,
    ModTranslationError,
    ModTranslationRunner,
    log_progress,
)
from mod_translator.translation import (
    BatchOrchestrator,
    ChatCompletionClient,
    ConversationBuilder,
    RetryingTranslator,
    load_prompt_template,
)

logger = logging.getLogger(__name__)

_LOG_FORMATS = {
    "simple": "[%(levelname)s] %(message)s",
    "detailed": "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
}


def configure_logging(cfg: TranslatorConfig) -> None:
    """Configure the root logger from the ``[logging]`` settings."""
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper(), logging.INFO),
        format=_LOG_FORMATS.get(cfg.logging.format, _LOG_FORMATS["simple"]),
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def build_orchestrator(cfg: TranslatorConfig) -> BatchOrchestrator:
    """Wire client, builder, translator and orchestrator from configuration."""
    client = ChatCompletionClient(
        secret_key=cfg.api.secret_key,
        api_url=cfg.api.api_url,
        timeout_seconds=cfg.api.timeout_seconds,
    )
    translator = RetryingTranslator(
        client=client,
        builder=ConversationBuilder(model=cfg.api.model),
        max_attempts=cfg.translation.max_attempts,
    )
    return BatchOrchestrator(
        translator=translator,
        batch_size=cfg.translation.batch_size,
        max_batch_attempts=cfg.translation.max_batch_attempts,
        on_progress=log_progress,
    )


def _load_checked_config(args: argparse.Namespace) -> TranslatorConfig | None:
    """Load and validate configuration, reporting problems to stderr."""
    cfg = load_config(args.config)
    configure_logging(cfg)
    try:
        return cfg.require_valid()
    except ConfigError as e:
        for problem in e.problems:
            print(f"Configuration error: {problem}", file=sys.stderr)
        return None


def _install_stop_handlers(stop_event: threading.Event) -> None:
    """Turn SIGINT/SIGTERM into a request to stop after the current mod."""

    def _handler(signum, frame):  # noqa: ARG001
        logger.warning("Stop requested; finishing the current mod first.")
        stop_event.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def cmd_run(args: argparse.Namespace) -> int:
    """
    Translate every mod archive in the mods directory.

    Args:
        args: Parsed arguments with ``config``, ``mods_dir`` and
            ``no_backup`` attributes.

    Returns:
        int: Exit code (0 = success, 1 = translation failure, 2 = config error)
    """
    cfg = _load_checked_config(args)
    if cfg is None:
        return 2

    stop_event = threading.Event()
    _install_stop_handlers(stop_event)

    runner = ModTranslationRunner(
        orchestrator=build_orchestrator(cfg),
        prompt_template=load_prompt_template(cfg.prompt_path),
        source_language=cfg.translation.source_language,
        target_language=cfg.translation.target_language,
        work_dir=Path(cfg.paths.work_dir),
        stop_event=stop_event,
    )
    mods_dir = Path(args.mods_dir or cfg.paths.mods_dir)
    backup = cfg.paths.backup and not args.no_backup

    try:
        reports = runner.run(mods_dir, backup=backup)
    except (ModTranslationError, LanguageFileError) as e:
        logger.error("%s", e)
        logger.error("Run aborted; no output was written for this mod.")
        return 1

    translated = sum(1 for report in reports if report.status is ModStatus.TRANSLATED)
    logger.info("Finished: %d translated, %d skipped.", translated, len(reports) - translated)
    return 0


def cmd_translate_file(args: argparse.Namespace) -> int:
    """
    Translate one language JSON file.

    Returns:
        int: Exit code (0 = success, 1 = translation failure, 2 = config error)
    """
    cfg = _load_checked_config(args)
    if cfg is None:
        return 2

    runner = ModTranslationRunner(
        orchestrator=build_orchestrator(cfg),
        prompt_template=load_prompt_template(cfg.prompt_path),
        source_language=cfg.translation.source_language,
        target_language=cfg.translation.target_language,
        work_dir=Path(cfg.paths.work_dir),
    )
    source_path = Path(args.source)
    mod_name = args.mod_name or source_path.stem

    try:
        source = read_language_map(source_path)
        target = runner.translate_map(source, mod_name=mod_name)
    except (ModTranslationError, LanguageFileError) as e:
        logger.error("%s", e)
        return 1

    write_language_map(Path(args.output), target)
    logger.info("Wrote %d key(s) to %s", len(target), args.output)
    return 0


def cmd_show_config(args: argparse.Namespace) -> int:
    """Print the effective configuration and any problems with it."""
    cfg = load_config(args.config)
    print(format_config_summary(cfg))
    problems = cfg.problems()
    for problem in problems:
        print(f"WARNING: {problem}")
    return 0 if not problems else 2


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="mod-translator",
        description="Translate mod language files with a chat-completions model",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the INI settings file (default: ./settings.ini)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Translate every mod archive",
        description=(
            "Back up the mods directory, then add a target-language file to every "
            "mod that has a source-language file and no translation yet."
        ),
    )
    run_parser.add_argument(
        "--mods-dir",
        type=str,
        help="Directory holding the mod archives (default: paths.mods_dir)",
    )
    run_parser.add_argument(
        "--no-backup",
        action="store_true",
        help="Skip the timestamped backup of the mod archives",
    )
    run_parser.set_defaults(func=cmd_run)

    # translate-file command
    file_parser = subparsers.add_parser(
        "translate-file",
        help="Translate a single language JSON file",
    )
    file_parser.add_argument("source", help="Source language JSON file")
    file_parser.add_argument("output", help="Where to write the translated JSON file")
    file_parser.add_argument(
        "--mod-name",
        type=str,
        help="Value for the {MOD_NAME} placeholder (default: source file stem)",
    )
    file_parser.set_defaults(func=cmd_translate_file)

    # show-config command
    show_parser = subparsers.add_parser(
        "show-config",
        help="Print the effective configuration",
    )
    show_parser.set_defaults(func=cmd_show_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
