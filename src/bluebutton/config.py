"""SDK configuration: credentials, callback URL, API version and target server.

A :class:`BlueButtonConfig` is an immutable value passed explicitly into
every authorization operation. :func:`load_config` builds one from any of
the supported sources:

* ``None`` -- reads ``.bluebutton-config.json`` from the working directory.
* ``str`` / ``Path`` -- reads the given JSON file.
* a mapping -- keys in camelCase (as in the JSON file) or snake_case.
* an existing :class:`BlueButtonConfig` -- returned unchanged.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_snake

from bluebutton.auth.client.models.errors import (
    ConfigError,
    ConfigFileError,
    MissingConfigValueError,
)
from bluebutton.constants import DEFAULT_API_VERSION, DEFAULT_CONFIG_FILENAME, Environment

logger = logging.getLogger(__name__)

ConfigSource = Union["BlueButtonConfig", Mapping[str, Any], str, os.PathLike, None]

_REQUIRED_KEYS = ("clientId", "clientSecret", "callbackUrl")


class BlueButtonConfig(BaseModel):
    """Client credentials and server location for the Blue Button API."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    client_id: str
    client_secret: str
    callback_url: str
    version: str = DEFAULT_API_VERSION
    environment: Environment = Environment.SANDBOX
    base_url: str

    @model_validator(mode="before")
    @classmethod
    def default_base_url(cls, data: Any) -> Any:
        """Derive ``base_url`` from the environment unless given explicitly."""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        if not (data.get("baseUrl") or data.get("base_url")):
            environment = data.get("environment", Environment.SANDBOX)
            data["base_url"] = Environment(environment).base_url
        return data

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> str:
        if v is None or v == "":
            return DEFAULT_API_VERSION
        return str(v)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def authorization_url(self) -> str:
        """Authorization endpoint the user's browser is sent to."""
        return f"{self.base_url}/v{self.version}/o/authorize"

    @property
    def token_url(self) -> str:
        """Token endpoint for code exchange and refresh."""
        return f"{self.base_url}/v{self.version}/o/token/"

    def __repr__(self) -> str:
        return (
            f"BlueButtonConfig(client_id={self.client_id!r}, client_secret='***', "
            f"callback_url={self.callback_url!r}, version={self.version!r}, "
            f"base_url={self.base_url!r})"
        )


def load_config(source: ConfigSource = None) -> BlueButtonConfig:
    """Build a :class:`BlueButtonConfig` from a file, mapping or existing config.

    Args:
        source: Config object, mapping, path to a JSON file, or ``None`` for
            the default ``.bluebutton-config.json`` in the working directory

    Returns:
        BlueButtonConfig: Validated, immutable configuration

    Raises:
        ConfigFileError: If the file cannot be read or is not a JSON object
        MissingConfigValueError: If clientId, clientSecret or callbackUrl is absent
        ConfigError: If any other value fails validation
    """
    if isinstance(source, BlueButtonConfig):
        return source

    if source is None:
        source = Path.cwd() / DEFAULT_CONFIG_FILENAME

    if isinstance(source, (str, os.PathLike)):
        return config_from_mapping(_read_config_file(Path(source)))

    if isinstance(source, Mapping):
        return config_from_mapping(source)

    raise ConfigError(f"Unsupported config source type: {type(source).__name__}")


def config_from_mapping(data: Mapping[str, Any]) -> BlueButtonConfig:
    """Validate a camelCase or snake_case mapping into a config."""
    for key in _REQUIRED_KEYS:
        if not (data.get(key) or data.get(to_snake(key))):
            raise MissingConfigValueError(key)

    try:
        return BlueButtonConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid Blue Button configuration: {e}") from e


def _read_config_file(path: Path) -> dict[str, Any]:
    logger.debug(f"Loading Blue Button config from {path}")
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigFileError(str(path)) from e

    if not isinstance(data, dict):
        raise ConfigFileError(str(path))
    return data
