"""Image configuration module.

This module handles:
- The image configuration schema (contents, entrypoint, accounts, archs)
- Normalization and validation of configurations
- Architecture parsing and platform mapping
- Loading configurations from YAML
"""

from apk_imagegen.image.architecture import (
    ALL_ARCHITECTURES,
    Architecture,
    Platform,
    canonical_architecture,
    parse_architectures,
    select_architecture,
)
from apk_imagegen.image.io import (
    configuration_to_json_string,
    configuration_to_yaml_string,
    load_image_configuration,
    parse_image_configuration,
)
from apk_imagegen.image.schema import (
    SUPERVISION_COMMAND,
    SUPERVISION_PACKAGE,
    Accounts,
    Contents,
    Entrypoint,
    Group,
    ImageConfiguration,
    User,
)

__all__ = [
    # Architecture
    "ALL_ARCHITECTURES",
    "Architecture",
    "Platform",
    "canonical_architecture",
    "parse_architectures",
    "select_architecture",
    # Schema
    "SUPERVISION_COMMAND",
    "SUPERVISION_PACKAGE",
    "Accounts",
    "Contents",
    "Entrypoint",
    "Group",
    "ImageConfiguration",
    "User",
    # IO functions
    "configuration_to_json_string",
    "configuration_to_yaml_string",
    "load_image_configuration",
    "parse_image_configuration",
]
