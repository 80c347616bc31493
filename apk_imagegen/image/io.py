"""Image configuration loading and export.

This module reads image configuration manifests (YAML) into validated
ImageConfiguration instances, and renders configurations back to YAML/JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from apk_imagegen.errors import ConfigurationIOError, ConfigurationParseError
from apk_imagegen.image.schema import ImageConfiguration


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as a dictionary.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return data


def parse_image_configuration(data: dict[str, Any]) -> ImageConfiguration:
    """Parse configuration data using the schema.

    Args:
        data: Dictionary containing configuration data.

    Returns:
        ImageConfiguration instance (not yet normalized or validated).

    Raises:
        ConfigurationParseError: If data does not match the schema.
    """
    try:
        return ImageConfiguration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationParseError(
            f"failed to parse image configuration: {e}"
        ) from e


def load_image_configuration(path: Path) -> ImageConfiguration:
    """Load an image configuration from a YAML file.

    Args:
        path: Path to the configuration file.

    Returns:
        ImageConfiguration instance (not yet normalized or validated).

    Raises:
        ConfigurationIOError: If the file cannot be read.
        ConfigurationParseError: If the file is not a valid configuration.
    """
    try:
        data = load_yaml(path)
    except OSError as e:
        raise ConfigurationIOError(
            f"failed to read image configuration file {path}: {e}"
        ) from e
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigurationParseError(
            f"failed to parse image configuration {path}: {e}"
        ) from e
    return parse_image_configuration(data)


def configuration_to_yaml_string(config: ImageConfiguration) -> str:
    """Render a configuration as a YAML string.

    Args:
        config: ImageConfiguration instance to convert.

    Returns:
        YAML string representation.
    """
    data = config.model_dump(by_alias=True)
    result: str = yaml.dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False
    )
    return result


def configuration_to_json_string(config: ImageConfiguration) -> str:
    """Render a configuration as a JSON string.

    Args:
        config: ImageConfiguration instance to convert.

    Returns:
        JSON string representation.
    """
    data = config.model_dump(by_alias=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


__all__ = [
    "configuration_to_json_string",
    "configuration_to_yaml_string",
    "load_image_configuration",
    "load_yaml",
    "parse_image_configuration",
]
