"""Tests for the command-line entry point and logging setup."""

from __future__ import annotations

import logging
import logging.handlers
import runpy
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from clipboard_panel.cli import _configure_logging, main
from clipboard_panel.models import PanelConfig


def _run(argv, *, config=None, services=None):
    config = config or PanelConfig()
    services_factory = MagicMock(return_value=services or MagicMock())
    app = MagicMock()
    app_factory = MagicMock(return_value=app)
    code = main(
        argv,
        load_config_fn=lambda: config,
        configure_logging_fn=MagicMock(),
        services_factory=services_factory,
        app_factory=app_factory,
    )
    return code, services_factory, app_factory, app


class TestMain:
    def test_missing_store_exits_with_error(self, capsys):
        code, services_factory, app_factory, _ = _run([])
        assert code == 1
        assert "no history store URL" in capsys.readouterr().err
        services_factory.assert_not_called()
        app_factory.assert_not_called()

    def test_demo_runs_without_store(self):
        code, services_factory, app_factory, app = _run(["--demo", "--keyword", "invoice"])
        assert code == 0
        config = services_factory.call_args.args[0]
        assert services_factory.call_args.kwargs == {"demo": True}
        app_factory.assert_called_once_with(
            services_factory.return_value, config=config, keyword="invoice"
        )
        app.run.assert_called_once_with()

    def test_command_line_overrides_config(self):
        base = PanelConfig(store_url="http://config:1")
        code, services_factory, _, _ = _run(
            ["--store-url", " http://cli:2 ", "--rpc-url", "http://rpc:3", "--ascii"],
            config=base,
        )
        assert code == 0
        config = services_factory.call_args.args[0]
        assert config.store_url == "http://cli:2"
        assert config.rpc_url == "http://rpc:3"
        assert config.ascii_icons is True
        assert services_factory.call_args.kwargs == {"demo": False}

    def test_config_store_url_is_enough(self):
        code, _, _, _ = _run([], config=PanelConfig(store_url="http://config:1"))
        assert code == 0

    def test_debug_flag_forwarded(self):
        configure = MagicMock()
        main(
            ["--demo", "--debug"],
            load_config_fn=PanelConfig,
            configure_logging_fn=configure,
            services_factory=MagicMock(),
            app_factory=MagicMock(),
        )
        configure.assert_called_once_with(True)


def test_main_module_calls_sys_exit_with_main_return_value():
    with (
        patch("clipboard_panel.cli.main", return_value=7) as main_mock,
        patch("sys.exit", side_effect=SystemExit) as exit_mock,
        pytest.raises(SystemExit),
    ):
        runpy.run_module("clipboard_panel.__main__", run_name="__main__")

    main_mock.assert_called_once_with()
    exit_mock.assert_called_once_with(7)


class TestDebugLogging:
    """Verify --debug configures file logging."""

    @pytest.fixture(autouse=True)
    def _restore_logging(self):
        handlers = list(logging.root.handlers)
        level = logging.root.level
        yield
        for handler in logging.root.handlers:
            if handler not in handlers:
                handler.close()
        logging.root.handlers[:] = handlers
        logging.root.setLevel(level)
        logging.disable(logging.NOTSET)

    def test_configure_logging_disabled_by_default(self):
        _configure_logging(debug=False)
        assert logging.root.manager.disable >= logging.CRITICAL

    def test_configure_logging_creates_file_handler(self, tmp_path: Path):
        with patch("clipboard_panel.cli.user_config_dir", return_value=str(tmp_path)):
            _configure_logging(debug=True)

        handler = logging.root.handlers[-1]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert logging.root.level == logging.DEBUG
        assert handler.baseFilename == str(tmp_path / "debug.log")
