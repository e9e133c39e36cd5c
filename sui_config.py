"""
SuiKit - Configuration

Resolves the JSON-RPC endpoint and publishes the `sui.json` config file.

Resolution order for the endpoint:
    1. explicit argument
    2. SUI_RPC_URL environment variable
    3. SUI_NETWORK environment variable (mainnet/testnet/devnet/localnet)
    4. rpc_url / network from a config file
    5. DEFAULT_RPC_URL

The request timeout is unset by default, so the transport default applies.
SUI_RPC_TIMEOUT (or "timeout" in the config file) is an opt-in extension
for deployments that need a bound on each request.
"""
import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

log = logging.getLogger("suikit.config")

NETWORKS = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}

DEFAULT_NETWORK = "devnet"
DEFAULT_RPC_URL = NETWORKS[DEFAULT_NETWORK]
CONFIG_FILENAME = "sui.json"

ENV_RPC_URL = "SUI_RPC_URL"
ENV_NETWORK = "SUI_NETWORK"
ENV_TIMEOUT = "SUI_RPC_TIMEOUT"


class ConfigError(ValueError):
    """Invalid network name, timeout, or config file."""


@dataclass
class SuiConfig:
    rpc_url: str = DEFAULT_RPC_URL
    network: Optional[str] = DEFAULT_NETWORK
    timeout: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


def network_url(network: str) -> str:
    try:
        return NETWORKS[network.lower()]
    except KeyError:
        raise ConfigError(
            f"Unknown Sui network '{network}'. Expected one of: {', '.join(NETWORKS)}"
        ) from None


def _parse_timeout(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout: {value!r}") from None
    if timeout <= 0:
        raise ConfigError(f"Invalid timeout: {value!r}. Must be positive.")
    return timeout


def load_config_file(path: str | Path) -> dict:
    """Read a published config file. Returns its raw mapping."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Malformed config file {path}: expected a JSON object")
    return data


def resolve_config(
    rpc_url: Optional[str] = None,
    config_path: Optional[str | Path] = None,
    env: Optional[dict] = None,
) -> SuiConfig:
    """Build a SuiConfig from arguments, environment, and an optional config file."""
    env = os.environ if env is None else env
    file_data = {}
    if config_path is not None and Path(config_path).exists():
        file_data = load_config_file(config_path)

    timeout = _parse_timeout(env.get(ENV_TIMEOUT) or file_data.get("timeout"))

    if rpc_url:
        return SuiConfig(rpc_url=rpc_url, network=None, timeout=timeout)
    if env.get(ENV_RPC_URL):
        return SuiConfig(rpc_url=env[ENV_RPC_URL], network=None, timeout=timeout)
    if env.get(ENV_NETWORK):
        network = env[ENV_NETWORK].lower()
        return SuiConfig(rpc_url=network_url(network), network=network, timeout=timeout)
    if file_data.get("rpc_url"):
        return SuiConfig(rpc_url=file_data["rpc_url"], network=file_data.get("network"), timeout=timeout)
    if file_data.get("network"):
        network = file_data["network"].lower()
        return SuiConfig(rpc_url=network_url(network), network=network, timeout=timeout)
    return SuiConfig(timeout=timeout)


def publish_config(dest_dir: str | Path, force: bool = False) -> Path:
    """
    Write the default `sui.json` into `dest_dir`.

    An existing file is left untouched unless `force` is set.
    Returns the path of the config file.
    """
    dest = Path(dest_dir) / CONFIG_FILENAME
    if dest.exists() and not force:
        log.info(f"Config already published at {dest}, skipping")
        return dest

    dest.parent.mkdir(parents=True, exist_ok=True)
    with open(dest, "w", encoding="utf-8") as f:
        json.dump(SuiConfig().to_dict(), f, indent=2)
    log.info(f"Published Sui config to {dest}")
    return dest
