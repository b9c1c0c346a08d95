from __future__ import annotations

import argparse
from datetime import datetime
import json
import logging
from pathlib import Path

from fanout_logic.domain.languages import LANGUAGE_NAMES
from popup_app import telemetry
from popup_app.application.view_state import PopupViewState
from popup_app.config import CONFIG_FILE_NAME, Theme, config_dir
from popup_app.services.container import AppServices
from popup_app.services.settings_provider import ConfigSettingsProvider
from popup_app.services.stores import (
    ERROR_LOG_FILE_NAME,
    EXPORT_TIME_FORMAT,
    HISTORY_FILE_NAME,
    ErrorLog,
    HistoryStore,
)

REPL_SWAP_COMMAND = ":swap"
REPL_AUTO_COMMAND = ":auto"
REPL_EXIT_COMMANDS = frozenset({"q", "quit", "exit", ":q"})
WAIT_MARGIN_S = 5.0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="afterpot",
        description="Translate text with every configured provider at once.",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding settings, history and error logs.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log to stderr.")
    parser.add_argument(
        "--reset-log",
        action="store_true",
        help="Start a fresh event log instead of appending.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    translate = commands.add_parser("translate", help="Translate one text.")
    translate.add_argument("text", help="Text to translate.")
    translate.add_argument(
        "--format",
        choices=("lines", "json"),
        default="lines",
        help="Output format.",
    )

    commands.add_parser("repl", help=f"Interactive session; {REPL_SWAP_COMMAND} swaps.")

    history = commands.add_parser("history", help="Show saved translations.")
    history.add_argument("--limit", type=int, default=10)
    history.add_argument("--clear", action="store_true")

    errors = commands.add_parser("errors", help="Show the error log.")
    errors.add_argument("--export", type=Path, default=None, help="Write to file.")
    errors.add_argument("--clear", action="store_true")

    commands.add_parser("models", help="List Gemini models for the configured key.")

    config = commands.add_parser("config", help="Show or change settings.")
    config.add_argument("--gemini-api-key", default=None)
    config.add_argument("--gemini-model", default=None)
    config.add_argument(
        "--target-language", choices=sorted(LANGUAGE_NAMES), default=None
    )
    config.add_argument("--hotkey", default=None)
    config.add_argument(
        "--theme", choices=[theme.value for theme in Theme], default=None
    )
    return parser


def _print_lines(state: PopupViewState) -> None:
    print(f"[{state.language_pair}]" if state.language_pair else "[unknown]")
    if not state.items:
        print("No translation results.")
        return
    for item in state.items:
        print(f"{item.service}: {item.text}")


def _print_json(state: PopupViewState) -> None:
    payload = {
        "original": state.original,
        "detectedLanguage": state.detected_language,
        "targetLanguage": state.target_language,
        "translations": [
            {"service": item.service, "result": item.text} for item in state.items
        ],
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _run_translate(services: AppServices, text: str, output: str) -> int:
    services.translator.capture(text)
    services.translator.wait_idle(services.orchestrator.timeout_s + WAIT_MARGIN_S)
    state = services.presenter.state
    if output == "json":
        _print_json(state)
    else:
        _print_lines(state)
    return 0 if state.items else 1


def _run_repl(services: AppServices) -> int:
    timeout = services.orchestrator.timeout_s + WAIT_MARGIN_S
    print(
        f"afterpot repl: enter text, {REPL_SWAP_COMMAND} to swap, "
        f"{REPL_AUTO_COMMAND} for automatic target, 'quit' to exit."
    )
    while True:
        try:
            text = input("> ").strip()
        except EOFError:
            print("")
            break
        if not text:
            continue
        if text.casefold() in REPL_EXIT_COMMANDS:
            break
        if text == REPL_AUTO_COMMAND:
            services.translator.clear_override()
            print("Automatic target language restored.")
            continue
        if text == REPL_SWAP_COMMAND:
            services.translator.swap_languages()
        else:
            services.translator.capture(text)
        services.translator.wait_idle(timeout)
        _print_lines(services.presenter.state)
    return 0


def _run_history(base: Path, limit: int, clear: bool) -> int:
    store = HistoryStore(path=base / HISTORY_FILE_NAME)
    if clear:
        store.clear()
        return 0
    for entry in store.get_all()[: max(limit, 0)]:
        when = datetime.fromtimestamp(entry.timestamp / 1000).strftime(
            EXPORT_TIME_FORMAT
        )
        print(
            f"[{when}] {entry.detected_language} → {entry.target_language}: "
            f"{entry.original_text}"
        )
        for translation in entry.translations:
            print(f"  {translation.service}: {translation.result}")
    return 0


def _run_errors(base: Path, export: Path | None, clear: bool) -> int:
    error_log = ErrorLog(path=base / ERROR_LOG_FILE_NAME)
    if clear:
        error_log.clear()
        return 0
    text = error_log.export_text()
    if export is not None:
        export.write_text(text, encoding="utf-8")
        return 0
    if text:
        print(text)
    return 0


def _run_models(services: AppServices) -> int:
    settings = services.settings.get_settings()
    if not settings.gemini_api_key:
        print("Gemini API key is not configured.")
        return 1
    for model in services.translator.gemini_models(settings.gemini_api_key):
        print(model)
    return 0


def _run_config(base: Path, args: argparse.Namespace) -> int:
    provider = ConfigSettingsProvider(path=base / CONFIG_FILE_NAME)
    changes: dict[str, object] = {}
    if args.gemini_api_key is not None:
        changes["gemini_api_key"] = args.gemini_api_key
    if args.gemini_model is not None:
        changes["gemini_model"] = args.gemini_model
    if args.target_language is not None:
        changes["target_language"] = args.target_language
    if args.hotkey is not None:
        changes["hotkey"] = args.hotkey
    if args.theme is not None:
        changes["theme"] = Theme(args.theme)
    settings = provider.update(**changes) if changes else provider.app_settings()
    masked = "***" if settings.gemini_api_key else ""
    print(f"geminiApiKey: {masked}")
    print(f"geminiModel: {settings.gemini_model}")
    print(f"targetLanguage: {settings.target_language}")
    print(f"hotkey: {settings.hotkey}")
    print(f"theme: {settings.theme.value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    telemetry.configure(reset=args.reset_log)
    base: Path = args.config_dir or config_dir()

    if args.command == "history":
        return _run_history(base, args.limit, args.clear)
    if args.command == "errors":
        return _run_errors(base, args.export, args.clear)
    if args.command == "config":
        return _run_config(base, args)

    services = AppServices.create(base_dir=base)
    services.start()
    try:
        if args.command == "translate":
            return _run_translate(services, args.text, args.format)
        if args.command == "models":
            return _run_models(services)
        return _run_repl(services)
    finally:
        services.stop()


if __name__ == "__main__":
    raise SystemExit(main())
