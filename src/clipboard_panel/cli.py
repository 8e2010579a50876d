"""CLI/bootstrap helpers for the clipboard panel."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from clipboard_panel.action_messages import build_missing_store_error
from clipboard_panel.config import load_config
from clipboard_panel.models import CONFIG_APP_NAME, PanelConfig
from clipboard_panel.services.interfaces import PanelServices, build_default_panel_services

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse and reuse clipboard history in a TUI")
    parser.add_argument(
        "--store-url",
        type=str,
        default=None,
        help="Base URL of the clipboard history store (overrides config store_url)",
    )
    parser.add_argument(
        "--rpc-url",
        type=str,
        default=None,
        help="Host RPC endpoint used to paste into the active app and hide the panel",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Run against an in-memory store filled with sample clips",
    )
    parser.add_argument(
        "--keyword",
        type=str,
        default="",
        help="Initial search keyword",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII-only icons for compatibility with limited terminals",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/clipboard-panel/debug.log)",
    )
    return parser


def _apply_overrides(config: PanelConfig, args: argparse.Namespace) -> PanelConfig:
    changes: dict[str, Any] = {}
    if args.store_url:
        changes["store_url"] = args.store_url.strip()
    if args.rpc_url:
        changes["rpc_url"] = args.rpc_url.strip()
    if args.ascii:
        changes["ascii_icons"] = True
    return replace(config, **changes) if changes else config


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], PanelConfig] = load_config,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    services_factory: Callable[..., PanelServices] = build_default_panel_services,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = _build_parser().parse_args(argv)

    configure_logging_fn(args.debug)
    logger.debug("clipboard-panel starting, cwd=%s", Path.cwd())

    config = _apply_overrides(load_config_fn(), args)
    if not args.demo and not config.store_url:
        print(build_missing_store_error(), file=sys.stderr)
        return 1

    services = services_factory(config, demo=args.demo)

    if app_factory is None:
        from clipboard_panel.app import ClipboardPanelApp as _ClipboardPanelApp

        app_factory = _ClipboardPanelApp

    app = app_factory(services, config=config, keyword=args.keyword)
    app.run()
    return 0


__all__ = ["_configure_logging", "main"]
