"""
Configuration Sources
======================

Concrete ``IConfigSource`` providers:
- In-memory mappings (tests, programmatic setup)
- YAML files
- Environment variables with ``__`` nesting
- Layered composition, later layers overriding earlier ones
"""

import os
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml

from docstore.application.interfaces import IConfigSource
from docstore.config import AppSettings, ENV_NESTING_DELIMITER
from docstore.core import ConfigurationError
from docstore.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class MappingConfigSource(IConfigSource):
    """Configuration held in a plain nested mapping."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Mapping[str, Any] = data or {}

    def as_tree(self) -> Mapping[str, Any]:
        return self._data

    def __repr__(self) -> str:
        return f"MappingConfigSource(keys={list(self._data)})"


class YamlConfigSource(IConfigSource):
    """
    Configuration read from a YAML file.

    The file is parsed on first use and cached. An optional source whose
    file does not exist contributes an empty tree; a required one raises.
    """

    def __init__(self, path: Path, optional: bool = False):
        self.path = Path(path)
        self.optional = optional
        self._data: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    def as_tree(self) -> Mapping[str, Any]:
        with self._lock:
            if self._data is None:
                self._data = self._load_from_file()
            return self._data

    def reload(self) -> None:
        """Drop the cached tree so the next read parses the file again."""
        with self._lock:
            self._data = None

    def _load_from_file(self) -> Dict[str, Any]:
        """Load and parse YAML config file."""
        if not self.path.exists():
            if self.optional:
                logger.debug(f"Optional config file not found: {self.path}")
                return {}
            raise ConfigurationError(
                f"Configuration file not found: {self.path}",
                {"path": str(self.path)}
            )

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Configuration file is not valid YAML: {self.path}",
                {"path": str(self.path), "error": str(e)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping at the top level: {self.path}",
                {"path": str(self.path)}
            )

        logger.info(f"Loaded configuration file: {self.path}")
        return data

    def __repr__(self) -> str:
        return f"YamlConfigSource(path={str(self.path)!r}, optional={self.optional})"


class EnvironmentConfigSource(IConfigSource):
    """
    Configuration read from environment variables.

    ``DOCSTORE__Settings__Urls__0=mongodb://db:27017`` becomes
    ``{"Settings": {"Urls": {"0": "mongodb://db:27017"}}}``. Only variables
    carrying the prefix are read; the prefix is matched case-insensitively.
    """

    def __init__(
        self,
        prefix: str = "DOCSTORE__",
        environ: Optional[Mapping[str, str]] = None
    ):
        self.prefix = prefix
        self._environ = environ

    def as_tree(self) -> Mapping[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        tree: Dict[str, Any] = {}
        folded_prefix = self.prefix.casefold()

        for name, value in environ.items():
            if not name.casefold().startswith(folded_prefix):
                continue
            path = [part for part in name[len(self.prefix):].split(ENV_NESTING_DELIMITER) if part]
            if not path:
                continue
            _assign(tree, path, value)

        return tree

    def __repr__(self) -> str:
        return f"EnvironmentConfigSource(prefix={self.prefix!r})"


class LayeredConfigSource(IConfigSource):
    """
    Several sources merged key by key.

    Later sources win. Mappings are merged recursively; any other value
    replaces what earlier layers held.
    """

    def __init__(self, sources: Sequence[IConfigSource]):
        self.sources = list(sources)

    def as_tree(self) -> Mapping[str, Any]:
        merged: Dict[str, Any] = {}
        for source in self.sources:
            _merge(merged, source.as_tree())
        return merged

    def __repr__(self) -> str:
        return f"LayeredConfigSource(sources={self.sources!r})"


def build_config_source(app_settings: AppSettings) -> IConfigSource:
    """
    Build the default configuration chain for the host.

    Order (later wins):
    1. ``appsettings.yaml`` under the content root
    2. ``appsettings.{environment}.yaml`` (optional)
    3. environment variables with ``config_env_prefix``

    Args:
        app_settings: Host settings

    Returns:
        IConfigSource: The layered source
    """
    return LayeredConfigSource([
        YamlConfigSource(app_settings.config_path, optional=True),
        YamlConfigSource(app_settings.environment_config_path, optional=True),
        EnvironmentConfigSource(prefix=app_settings.config_env_prefix),
    ])


# ========== Tree helpers ==========

def _assign(tree: Dict[str, Any], path: Sequence[str], value: Any) -> None:
    node = tree
    for part in path[:-1]:
        key = _existing_key(node, part)
        existing = node.get(key)
        if not isinstance(existing, dict):
            existing = {}
            node[key] = existing
        node = existing
    node[_existing_key(node, path[-1])] = value


def _merge(target: Dict[str, Any], overlay: Mapping[str, Any]) -> None:
    for key, value in overlay.items():
        existing_key = _existing_key(target, key)
        existing = target.get(existing_key)
        if isinstance(value, Mapping) and isinstance(existing, list):
            # Indexed overrides (Urls__0) replace single list items
            existing = {str(i): item for i, item in enumerate(existing)}
            target[existing_key] = existing
        if isinstance(value, Mapping) and isinstance(existing, dict):
            _merge(existing, value)
        elif isinstance(value, Mapping):
            copy: Dict[str, Any] = {}
            _merge(copy, value)
            target[existing_key] = copy
        else:
            target[existing_key] = value


def _existing_key(tree: Mapping[str, Any], key: str) -> str:
    """Key already present in ``tree`` that matches ``key`` ignoring case."""
    folded = str(key).casefold()
    for candidate in tree:
        if str(candidate).casefold() == folded:
            return candidate
    return key
