import argparse

import pytest
import yaml

from functcp.bootstrap import deps
from functcp.bootstrap.config import loader
from functcp.core.transport.server import Server
from tests.handlers import number_of
from tests.helpers import FakeFuncTCPConfig


@pytest.fixture
def clear_caches():
    loader.get_configfile.cache_clear()
    deps.get_config.cache_clear()
    deps.get_server.cache_clear()
    yield
    loader.get_configfile.cache_clear()
    deps.get_config.cache_clear()
    deps.get_server.cache_clear()


def fake_cli(config: str | None = None):
    return lambda: argparse.Namespace(config=config, log_level="INFO")


@pytest.mark.ut
def test_settings_from_yaml(func_config):
    assert func_config.handler == "tests.handlers:number_of"
    assert func_config.server.worker_count == 4
    assert func_config.server.read_timeout == 5
    assert func_config.server.limit_concurrency == 16


@pytest.mark.ut
def test_env_overrides_yaml(config_file, monkeypatch):
    monkeypatch.setenv("TEST_FUNCNODECONFIG", str(config_file))
    monkeypatch.setenv("FUNCTCP_SERVER__WORKER_COUNT", "8")

    config = FakeFuncTCPConfig()

    assert config.server.worker_count == 8
    assert config.server.max_message_size == 64 * 1024


@pytest.mark.ut
def test_server_config_from_settings(func_config):
    server_config = func_config.get_server_config(number_of)

    assert server_config.handler is number_of
    assert server_config.port == 0
    assert server_config.worker_count == 4
    assert server_config.backlog == 10


@pytest.mark.ut
@pytest.mark.parametrize(
    "server",
    [
        {"port": 70000},
        {"port": -1},
        {"worker_count": 0},
        {"worker_count": 32, "limit_concurrency": 8},
        {"read_timeout": 0},
    ],
)
def test_invalid_settings_are_rejected(tmp_path, monkeypatch, server):
    file = tmp_path / "invalid.yaml"
    file.write_text(yaml.dump({"server": server}))
    monkeypatch.setenv("TEST_FUNCNODECONFIG", str(file))

    with pytest.raises(ValueError):
        FakeFuncTCPConfig()


@pytest.mark.ut
def test_invalid_handler_path_is_rejected(tmp_path, monkeypatch):
    file = tmp_path / "invalid.yaml"
    file.write_text(yaml.dump({"handler": "no_colon_here"}))
    monkeypatch.setenv("TEST_FUNCNODECONFIG", str(file))

    with pytest.raises(ValueError):
        FakeFuncTCPConfig()


@pytest.mark.ut
def test_configfile_from_cli(config_file, monkeypatch, clear_caches):
    monkeypatch.setattr(loader, "get_cli_args", fake_cli(str(config_file)))

    assert loader.get_configfile() == config_file


@pytest.mark.ut
def test_configfile_from_env(config_file, monkeypatch, clear_caches):
    monkeypatch.setattr(loader, "get_cli_args", fake_cli())
    monkeypatch.setenv("FUNCNODECONFIG", str(config_file))

    assert loader.get_configfile() == config_file


@pytest.mark.ut
def test_missing_configfile_exits(tmp_path, monkeypatch, clear_caches):
    monkeypatch.setattr(loader, "get_cli_args", fake_cli(str(tmp_path / "missing.yaml")))

    with pytest.raises(SystemExit, match="Configuration file not found"):
        loader.get_configfile()


@pytest.mark.ut
def test_default_configfile_is_optional(tmp_path, monkeypatch, clear_caches):
    monkeypatch.setattr(loader, "get_cli_args", fake_cli())
    monkeypatch.delenv("FUNCNODECONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    assert loader.get_configfile() is None


@pytest.mark.ut
def test_get_server_builds_configured_server(config_file, monkeypatch, clear_caches):
    monkeypatch.setattr(loader, "get_cli_args", fake_cli(str(config_file)))

    server = deps.get_server()

    assert isinstance(server, Server)
    assert server.worker_count == 4
    assert server.config.handler is number_of
    assert server.is_running is False


@pytest.mark.ut
def test_default_limit_concurrency_follows_worker_count(tmp_path, monkeypatch):
    file = tmp_path / "large.yaml"
    file.write_text(yaml.dump({"server": {"worker_count": 2000}}))
    monkeypatch.setenv("TEST_FUNCNODECONFIG", str(file))

    config = FakeFuncTCPConfig()

    assert config.server.limit_concurrency is None
    assert config.get_server_config(number_of).admission_limit == 2000


@pytest.mark.ut
@pytest.mark.parametrize(
    "content",
    [
        {"handlr": "tests.handlers:number_of"},
        {"server": {"worker_cont": 4}},
    ],
)
def test_unknown_keys_are_rejected(tmp_path, monkeypatch, content):
    file = tmp_path / "typo.yaml"
    file.write_text(yaml.dump(content))
    monkeypatch.setenv("TEST_FUNCNODECONFIG", str(file))

    with pytest.raises(ValueError):
        FakeFuncTCPConfig()


@pytest.mark.ut
def test_get_config_reports_unknown_keys(tmp_path, monkeypatch, clear_caches):
    file = tmp_path / "typo.yaml"
    file.write_text(yaml.dump({"server": {"prot": 8080}}))
    monkeypatch.setattr(loader, "get_cli_args", fake_cli(str(file)))

    with pytest.raises(SystemExit, match="server.prot"):
        deps.get_config()


@pytest.mark.ut
def test_get_config_reports_validation_errors(tmp_path, monkeypatch, clear_caches):
    file = tmp_path / "invalid.yaml"
    file.write_text(yaml.dump({"server": {"port": 70000}}))
    monkeypatch.setattr(loader, "get_cli_args", fake_cli(str(file)))

    with pytest.raises(SystemExit, match="server.port"):
        deps.get_config()


@pytest.mark.ut
def test_get_server_reports_bad_handler(tmp_path, monkeypatch, clear_caches):
    file = tmp_path / "bad_handler.yaml"
    file.write_text(yaml.dump({"handler": "tests.handlers:missing"}))
    monkeypatch.setattr(loader, "get_cli_args", fake_cli(str(file)))

    with pytest.raises(SystemExit, match="Cannot load handler"):
        deps.get_server()
