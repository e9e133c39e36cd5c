"""Tests for SuiKit configuration resolution and publishing."""
import json

import pytest

from sui_config import (
    ConfigError,
    DEFAULT_RPC_URL,
    NETWORKS,
    SuiConfig,
    load_config_file,
    network_url,
    publish_config,
    resolve_config,
)


def test_default_is_devnet():
    config = resolve_config(env={})
    assert config.rpc_url == DEFAULT_RPC_URL == "https://fullnode.devnet.sui.io:443"
    assert config.timeout is None


def test_explicit_url_wins():
    env = {"SUI_RPC_URL": "https://env", "SUI_NETWORK": "mainnet"}
    config = resolve_config(rpc_url="https://explicit", env=env)
    assert config.rpc_url == "https://explicit"


def test_env_url_beats_network():
    env = {"SUI_RPC_URL": "https://env", "SUI_NETWORK": "mainnet"}
    assert resolve_config(env=env).rpc_url == "https://env"


def test_env_network_alias():
    config = resolve_config(env={"SUI_NETWORK": "Testnet"})
    assert config.rpc_url == NETWORKS["testnet"]
    assert config.network == "testnet"


def test_unknown_network():
    with pytest.raises(ConfigError):
        network_url("moonnet")


def test_env_timeout():
    assert resolve_config(env={"SUI_RPC_TIMEOUT": "15"}).timeout == 15.0


def test_bad_timeout():
    with pytest.raises(ConfigError):
        resolve_config(env={"SUI_RPC_TIMEOUT": "soon"})
    with pytest.raises(ConfigError):
        resolve_config(env={"SUI_RPC_TIMEOUT": "-1"})


def test_publish_writes_default_file(tmp_path):
    path = publish_config(tmp_path / "config")
    assert path.name == "sui.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == SuiConfig().to_dict()


def test_publish_does_not_overwrite(tmp_path):
    path = tmp_path / "sui.json"
    path.write_text(json.dumps({"rpc_url": "https://mine"}), encoding="utf-8")

    publish_config(tmp_path)
    assert json.loads(path.read_text(encoding="utf-8")) == {"rpc_url": "https://mine"}

    publish_config(tmp_path, force=True)
    assert json.loads(path.read_text(encoding="utf-8"))["rpc_url"] == DEFAULT_RPC_URL


def test_config_file_used_when_env_empty(tmp_path):
    path = tmp_path / "sui.json"
    path.write_text(json.dumps({"rpc_url": "https://from-file", "timeout": 5}), encoding="utf-8")
    config = resolve_config(config_path=path, env={})
    assert config.rpc_url == "https://from-file"
    assert config.timeout == 5.0


def test_config_file_network(tmp_path):
    path = tmp_path / "sui.json"
    path.write_text(json.dumps({"rpc_url": None, "network": "mainnet"}), encoding="utf-8")
    assert resolve_config(config_path=path, env={}).rpc_url == NETWORKS["mainnet"]


def test_env_beats_config_file(tmp_path):
    path = tmp_path / "sui.json"
    path.write_text(json.dumps({"rpc_url": "https://from-file"}), encoding="utf-8")
    config = resolve_config(config_path=path, env={"SUI_RPC_URL": "https://env"})
    assert config.rpc_url == "https://env"


def test_missing_config_file_falls_back(tmp_path):
    config = resolve_config(config_path=tmp_path / "nope.json", env={})
    assert config.rpc_url == DEFAULT_RPC_URL


def test_malformed_config_file(tmp_path):
    path = tmp_path / "sui.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_file(path)

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_file(path)


def test_config_file_not_utf8(tmp_path):
    path = tmp_path / "sui.json"
    path.write_bytes(b'{"rpc_url": "\xff\xfe"}')
    with pytest.raises(ConfigError):
        resolve_config(config_path=path, env={})
