"""Tests for the JSON configuration manager, logging setup and CLI wiring."""

import json
import logging

import pytest

from filelink.core import constants
from filelink.core.config import DEFAULT_SETTINGS, ConfigManager
from filelink.core.exceptions import ConfigurationError
from filelink.core.logging_config import setup_logging
from filelink.core.server_controller import ServerController
from filelink.main import build_parser


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "config" / "config.json"


def test_missing_config_file_is_created_with_defaults(config_file):
    manager = ConfigManager(config_file)
    assert json.loads(config_file.read_text()) == DEFAULT_SETTINGS
    assert manager.server_port() == constants.DEFAULT_PORT
    assert manager.compression_level() == 9


def test_user_values_are_merged_over_defaults(config_file):
    config_file.parent.mkdir(parents=True)
    config_file.write_text(json.dumps({"server_port": 8080, "storage_root": "/srv/files"}))
    manager = ConfigManager(config_file)
    assert manager.server_port() == 8080
    assert str(manager.storage_root()) == "/srv/files"
    assert manager.server_host() == constants.DEFAULT_HOST


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_corrupt_config_falls_back_to_defaults(config_file, content):
    config_file.parent.mkdir(parents=True)
    config_file.write_text(content)
    manager = ConfigManager(config_file)
    assert manager.get("server_port") == constants.DEFAULT_PORT


def test_unknown_keys_in_file_are_ignored(config_file, caplog):
    config_file.parent.mkdir(parents=True)
    config_file.write_text(json.dumps({"compression_level": 4, "colour": "blue"}))
    with caplog.at_level(logging.WARNING, logger="filelink.core.config"):
        manager = ConfigManager(config_file)
    assert manager.compression_level() == 4
    assert manager.get("colour") is None
    assert "colour" in caplog.text


def test_override_is_not_persisted_and_ignores_none(config_file):
    manager = ConfigManager(config_file)
    manager.override(server_port=4000, storage_root=None)
    assert manager.server_port() == 4000
    assert manager.storage_root() == constants.DEFAULT_STORAGE_ROOT
    assert ConfigManager(config_file).server_port() == constants.DEFAULT_PORT


def test_override_rejects_unknown_keys(config_file):
    with pytest.raises(ConfigurationError):
        ConfigManager(config_file).override(colour="blue")


@pytest.mark.parametrize("key, value, accessor", [
    ("compression_level", 10, "compression_level"),
    ("compression_level", "9", "compression_level"),
    ("server_port", 0, "server_port"),
    ("server_port", True, "server_port"),
    ("server_host", "", "server_host"),
    ("cors_origins", "*", "cors_origins"),
    ("storage_root", 5, "storage_root"),
])
def test_invalid_values_raise_configuration_error(config_file, key, value, accessor):
    manager = ConfigManager(config_file)
    manager.override(**{key: value})
    with pytest.raises(ConfigurationError):
        getattr(manager, accessor)()


def test_setup_logging_writes_to_rotating_file(tmp_path):
    root_logger = logging.getLogger()
    saved_handlers, saved_level = root_logger.handlers[:], root_logger.level
    try:
        log_file = setup_logging("DEBUG", tmp_path)
        logging.getLogger("filelink.test").info("hello from the test")
        for handler in root_logger.handlers:
            handler.flush()
        assert log_file == tmp_path / constants.LOG_FILENAME
        assert "hello from the test" in log_file.read_text(encoding="utf-8")
        assert root_logger.level == logging.DEBUG
    finally:
        for handler in root_logger.handlers:
            handler.close()
        root_logger.handlers[:] = saved_handlers
        root_logger.setLevel(saved_level)


def test_cli_arguments_map_to_settings(tmp_path):
    args = build_parser().parse_args(
        ["--root", str(tmp_path / "data"), "--port", "9000", "--backup-dir", str(tmp_path / "bk")]
    )
    assert args.storage_root == str(tmp_path / "data")
    assert args.server_port == 9000
    assert args.backup_dir == str(tmp_path / "bk")
    assert args.server_host is None


def test_server_controller_builds_app_from_settings(config_file, tmp_path):
    manager = ConfigManager(config_file)
    manager.override(
        storage_root=str(tmp_path / "data"),
        backup_dir=str(tmp_path / "bk"),
        upload_dir=str(tmp_path / "up"),
    )
    app = ServerController(manager).build_app()
    assert app.state.sandbox.root == (tmp_path / "data").resolve()
    assert app.state.backup_service.destination_dir == (tmp_path / "bk").resolve()
    assert (tmp_path / "data").is_dir()


def test_server_controller_shutdown_flags_running_server(config_file):
    controller = ServerController(ConfigManager(config_file))
    controller.shutdown()  # nothing running yet

    class FakeServer:
        should_exit = False

    controller.server = FakeServer()
    controller.shutdown()
    assert controller.server.should_exit is True
