"""
SuiKit - Service Provider

Registers the Sui client in a small service container so application code
can resolve it by name instead of constructing it.

Usage:
    container = Container()
    provider = SuiServiceProvider(container)
    provider.register()
    provider.boot("config/")

    sui = container.make("sui")
    sui.get_balance("0x...")
"""
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional

from sui_client import SuiClient
from sui_config import CONFIG_FILENAME, SuiConfig, publish_config, resolve_config

log = logging.getLogger("suikit.provider")

SERVICE_NAME = "sui"


class Container:
    """Maps service names to factories. Singletons are built once, on first make()."""

    def __init__(self):
        self._factories: dict[str, Callable[["Container"], Any]] = {}
        self._shared: set[str] = set()
        self._instances: dict[str, Any] = {}
        # Re-entrant: factories may make() their own dependencies
        self._lock = threading.RLock()

    def bind(self, name: str, factory: Callable[["Container"], Any]) -> None:
        """Register a factory; every make() builds a new instance."""
        with self._lock:
            self._factories[name] = factory
            self._shared.discard(name)
            self._instances.pop(name, None)

    def singleton(self, name: str, factory: Callable[["Container"], Any]) -> None:
        with self._lock:
            self._factories[name] = factory
            self._shared.add(name)
            self._instances.pop(name, None)

    def bound(self, name: str) -> bool:
        return name in self._factories

    def make(self, name: str) -> Any:
        with self._lock:
            if name not in self._factories:
                raise KeyError(f"No service bound for '{name}'")
            if name in self._instances:
                return self._instances[name]
            instance = self._factories[name](self)
            if name in self._shared:
                self._instances[name] = instance
            return instance


class SuiServiceProvider:
    """Binds SuiClient into a Container and publishes its config file."""

    def __init__(
        self,
        container: Container,
        config: Optional[SuiConfig] = None,
        config_path: Optional[str | Path] = None,
    ):
        self.container = container
        self.config = config
        self.config_path = config_path

    def register(self) -> None:
        self.container.singleton(SERVICE_NAME, self._make_client)

    def _make_client(self, container: Container) -> SuiClient:
        config = self.config or resolve_config(config_path=self.config_path)
        log.info(f"Creating Sui client for {config.rpc_url}")
        return SuiClient(config.rpc_url, timeout=config.timeout)

    def boot(self, config_dir: str | Path, force: bool = False) -> Path:
        """Publish sui.json into `config_dir`; later clients read it unless overridden."""
        path = publish_config(config_dir, force=force)
        if self.config_path is None:
            self.config_path = Path(config_dir) / CONFIG_FILENAME
        return path
