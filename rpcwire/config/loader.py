"""Configuration loading with fail-fast behavior and layered merging.

Layers, later ones overriding earlier ones via deep merge:
    1. Global user config (~/.rpcwire/config.json)
    2. Project local config (cwd/.rpcwire/config.json)

An explicit path (argument or $RPCWIRE_CONFIG) skips layering entirely and
must exist. Every failure is a ConfigError naming the layer and file that
caused it, so a bad global file is not mistaken for a bad project file.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from rpcwire.config.schema import Config
from rpcwire.core.constants import (
    CONFIG_ENV_VAR,
    CONFIG_FILE_NAME,
    RPCWIRE_DIR_NAME,
    get_default_config_path,
)
from rpcwire.core.errors import ConfigError
from rpcwire.core.utils import deep_merge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigLayer:
    """One config file and the role it plays.

    Attributes:
        name: Layer name used in messages ("global", "local", "explicit",
            or the environment variable that named the file).
        path: File location.
        required: True if a missing file is an error.
    """

    name: str
    path: Path
    required: bool = False

    def fail(self, detail: str) -> ConfigError:
        return ConfigError(f"{self.name} config {self.path}: {detail}", layer=self.name, path=self.path)


def config_layers(cwd: Path | None = None) -> list[ConfigLayer]:
    """Layers consulted when no explicit file is given, lowest priority first.

    The local layer is dropped when it resolves to the global file (running
    from the home directory).
    """
    global_path = get_default_config_path()
    local_path = (cwd or Path.cwd()) / RPCWIRE_DIR_NAME / CONFIG_FILE_NAME
    layers = [ConfigLayer("global", global_path)]
    if local_path.resolve() != global_path.resolve():
        layers.append(ConfigLayer("local", local_path))
    return layers


def read_layer(layer: ConfigLayer) -> dict[str, Any] | None:
    """Read one layer's JSON object.

    Returns:
        The parsed object ({} for an empty file), or None if an optional
        layer's file does not exist.

    Raises:
        ConfigError: If the file is required but missing, unreadable, not
            valid JSON, or not a JSON object.
    """
    resolved = layer.path.expanduser().resolve()
    if not resolved.is_file():
        if layer.required:
            raise layer.fail("File not found")
        logger.debug("No %s config at %s", layer.name, layer.path)
        return None

    try:
        # utf-8-sig strips a leading BOM
        content = resolved.read_text(encoding="utf-8-sig").strip()
    except OSError as e:
        raise layer.fail(f"Failed to read file: {e}") from e
    if not content:
        return {}

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise layer.fail(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise layer.fail(f"Expected object, got {type(data).__name__}")

    logger.debug("Loaded %s config from %s", layer.name, resolved)
    return data


def _validate_layer(layer: ConfigLayer, data: dict[str, Any]) -> None:
    # All fields have defaults, so each layer validates on its own
    try:
        Config.model_validate(data)
    except ValidationError as e:
        raise layer.fail(f"Config validation failed: {e}") from e


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load configuration from file with layered merging.

    Args:
        path: Explicit config file path. If provided, skips layered loading.
            Falls back to $RPCWIRE_CONFIG when unset.
        cwd: Working directory for the local layer. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If any layer is unreadable, holds invalid JSON, or fails
            validation. ``error.layer`` and ``error.path`` name the culprit.
    """
    if path is not None:
        layers = [ConfigLayer("explicit", path, required=True)]
    elif os.environ.get(CONFIG_ENV_VAR):
        layers = [ConfigLayer(f"${CONFIG_ENV_VAR}", Path(os.environ[CONFIG_ENV_VAR]), required=True)]
    else:
        layers = config_layers(cwd)

    merged: dict[str, Any] = {}
    loaded_from: list[ConfigLayer] = []
    for layer in layers:
        data = read_layer(layer)
        if data is None:
            continue
        _validate_layer(layer, data)
        merged = deep_merge(merged, data)
        loaded_from.append(layer)

    if not loaded_from:
        logger.debug("No config files found, using defaults")
        return Config()

    logger.info("Config loaded from: %s", ", ".join(f"{layer.name} ({layer.path})" for layer in loaded_from))
    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        sources = ", ".join(str(layer.path) for layer in loaded_from)
        raise ConfigError(f"Config validation failed (merged from {sources}): {e}") from e
