"""
Tests for settings and the node directory
"""

from pathlib import Path

import pytest

from comfyui_client.core import Settings, load_node_directory
from comfyui_client.errors import ConfigError


def write(path: Path, text: str) -> Path:
    path.write_text(text)
    return path


def test_load_node_directory(tmp_path):
    path = write(tmp_path / "nodes.yaml", """
nodes:
  router.os: http://10.0.0.5:8000/
  sequencer.os: https://seq.example.com
""")
    assert load_node_directory(path) == {
        "router.os": "http://10.0.0.5:8000",
        "sequencer.os": "https://seq.example.com",
    }


def test_empty_node_directory(tmp_path):
    assert load_node_directory(write(tmp_path / "nodes.yaml", "")) == {}


@pytest.mark.parametrize("text", [
    "nodes: [a, b]",
    "nodes:\n  router.os: ftp://x",
    "nodes: {router.os: [",
    "- just a list",
])
def test_invalid_node_directory(tmp_path, text):
    with pytest.raises(ConfigError):
        load_node_directory(write(tmp_path / "nodes.yaml", text))


def test_missing_node_directory(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_node_directory(tmp_path / "missing.yaml")


def test_settings_from_env(tmp_path, monkeypatch):
    nodes = write(tmp_path / "nodes.yaml", "nodes:\n  router.os: http://localhost:9000\n")
    monkeypatch.setenv("COMFYUI_CLIENT_NODE", "me.os")
    monkeypatch.setenv("COMFYUI_CLIENT_PROCESS", "client:comfyui_client:me.os")
    monkeypatch.setenv("COMFYUI_CLIENT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("COMFYUI_CLIENT_NODES", str(nodes))
    monkeypatch.setenv("COMFYUI_CLIENT_PORT", "8123")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    settings = Settings.from_env()

    assert str(settings.our_address) == "me.os@client:comfyui_client:me.os"
    assert settings.nodes == {"router.os": "http://localhost:9000"}
    assert settings.port == 8123
    assert settings.resolved_database_url == f"sqlite:///{tmp_path / 'data'}/client.db"


def test_settings_bad_port(monkeypatch):
    monkeypatch.setenv("COMFYUI_CLIENT_PORT", "eighty")
    with pytest.raises(ConfigError, match="eighty"):
        Settings.from_env()


def test_ensure_directories(settings):
    settings.ensure_directories()
    assert settings.images_dir.is_dir()
    assert settings.logs_dir.is_dir()


@pytest.mark.parametrize("node", ["", "a@b", "a:b"])
def test_invalid_own_node_name(tmp_path, node):
    settings = Settings(node=node, data_dir=tmp_path)
    with pytest.raises(ConfigError, match="COMFYUI_CLIENT_NODE"):
        settings.our_address


def test_invalid_own_process_fails_startup(tmp_path):
    from comfyui_client.core import build_client_process

    settings = Settings(process="client", data_dir=tmp_path / "data", database_url="sqlite://")
    with pytest.raises(ConfigError):
        build_client_process(settings)
    assert not (tmp_path / "data").exists()
