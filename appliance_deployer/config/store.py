"""
Persistent CLI configuration store.

Keeps the last targeted appliance and login credentials in a small YAML
file in the user's home directory so ``target`` and ``login`` survive
between invocations.
"""

from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

import httpx
import yaml
from loguru import logger

from appliance_deployer.core.constants import (
    CONFIG_STORE_DIRNAME,
    CONFIG_STORE_FILENAME,
)

SECRET_KEYS = frozenset({"password"})
MASKED_VALUE = "********"


def default_store_path() -> Path:
    return Path.home() / CONFIG_STORE_DIRNAME / CONFIG_STORE_FILENAME


def is_reachable(address: str, timeout: float = 5.0) -> bool:
    """Any HTTP answer from ``https://<address>`` counts as reachable."""
    try:
        httpx.get(f"https://{address}", verify=False, timeout=timeout)
        return True
    except httpx.HTTPError as e:
        logger.debug(f"{address} is not reachable: {e}")
        return False


class ConfigStore:
    """YAML-backed key/value store for target and credentials."""

    def __init__(
        self,
        path: Union[str, Path, None] = None,
        ping: Optional[Callable[[str], bool]] = None,
    ):
        self.path = Path(path) if path is not None else default_store_path()
        self._ping = ping or is_reachable

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r") as handle:
            return yaml.safe_load(handle) or {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w") as handle:
            yaml.safe_dump(data, handle, default_flow_style=False)

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(str(key))

    def set(self, key: str, value: Any) -> None:
        """Merge ``key`` into the store, announcing changes to existing values."""
        data = self._read()
        key = str(key)
        previous = data.get(key)
        if previous is not None and previous != value:
            shown = MASKED_VALUE if key in SECRET_KEYS else value
            print(f"Changing {key} to {shown}")
        data[key] = value
        self._write(data)

    def target(self, address: str) -> bool:
        """Store ``address`` as the target if it answers over HTTPS."""
        if not self._ping(address):
            logger.error(f"❌ Unable to reach {address}, target not changed")
            return False
        self.set("target", address)
        return True

    def login(self, username: str, password: str) -> None:
        self.set("username", username)
        self.set("password", password)

    def target_and_login(self, config: Mapping[str, Any]) -> None:
        """Apply target and credentials from a mapping when they are present."""
        if config.get("target"):
            self.target(config["target"])
        if config.get("username") and config.get("password"):
            self.login(config["username"], config["password"])
