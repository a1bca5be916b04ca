"""YAML policy configuration.

A configuration names the interceptors to register, in chain order::

    version: "1.0"
    policies:
      - factory: "dynguard.trace:TracingInterceptor"
      - factory: "myapp.sandbox:Allowlist"
        options:
          allowed: ["str.upper"]
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from jsonschema import validators
from jsonschema.exceptions import ValidationError
from packaging.version import InvalidVersion, Version

from . import registry
from .errors import ConfigError
from .interceptor import Interceptor

__all__ = [
    "CONFIG_SCHEMA",
    "SUPPORTED_MAJOR_VERSION",
    "PolicyConfig",
    "PolicySpec",
    "install",
    "load_config",
    "parse_config",
    "resolve_factory",
]

LOGGER = logging.getLogger(__name__)

SUPPORTED_MAJOR_VERSION = 1

CONFIG_SCHEMA: Mapping[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["version", "policies"],
    "additionalProperties": False,
    "properties": {
        "version": {"type": "string", "minLength": 1},
        "policies": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["factory"],
                "additionalProperties": False,
                "properties": {
                    "factory": {
                        "type": "string",
                        "pattern": r"^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$",
                    },
                    "options": {"type": "object"},
                },
            },
        },
    },
}


@dataclass(frozen=True)
class PolicySpec:
    """One configured interceptor: a ``module:attribute`` factory plus options."""

    factory: str
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def build(self) -> Interceptor:
        factory = resolve_factory(self.factory)
        try:
            policy = factory(**self.options)
        except TypeError as exc:
            raise ConfigError(f"Policy factory '{self.factory}' rejected its options: {exc}") from exc
        if not isinstance(policy, Interceptor):
            raise ConfigError(
                f"Policy factory '{self.factory}' returned {type(policy).__name__},"
                " which is not an Interceptor"
            )
        return policy


@dataclass(frozen=True)
class PolicyConfig:
    version: str
    policies: tuple[PolicySpec, ...]
    source_path: Path | None = None

    def build(self) -> list[Interceptor]:
        return [spec.build() for spec in self.policies]


def resolve_factory(entrypoint: str) -> Callable[..., Any]:
    """Import the callable named by ``"package.module:Attribute"``."""

    module_name, sep, attr_name = entrypoint.partition(":")
    if not sep or not module_name or not attr_name:
        raise ConfigError(f"Policy factory '{entrypoint}' must use 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Policy factory module '{module_name}' failed to import: {exc}") from exc

    target: Any = module
    for part in attr_name.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ConfigError(
                f"Policy factory module '{module_name}' has no attribute '{attr_name}'"
            ) from exc

    if not callable(target):
        raise ConfigError(f"Policy factory '{entrypoint}' is not callable")
    return target


def _validate_version(version: str, source: str) -> None:
    try:
        parsed = Version(version)
    except InvalidVersion as exc:
        raise ConfigError(f"Config {source} has an invalid version: {exc}") from exc
    if parsed.major != SUPPORTED_MAJOR_VERSION:
        raise ConfigError(
            f"Config {source} version {version} is not supported"
            f" (expected {SUPPORTED_MAJOR_VERSION}.x)"
        )


def parse_config(data: Any, source_path: Path | None = None) -> PolicyConfig:
    """Validate an already-parsed document and turn it into a :class:`PolicyConfig`."""

    source = str(source_path) if source_path is not None else "<memory>"
    validator_cls = validators.validator_for(CONFIG_SCHEMA)
    try:
        validator_cls(CONFIG_SCHEMA).validate(data)
    except ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(f"Config {source} failed validation at {location}: {exc.message}") from exc

    _validate_version(data["version"], source)
    policies = tuple(
        PolicySpec(
            factory=entry["factory"],
            options=MappingProxyType(dict(entry.get("options") or {})),
        )
        for entry in data["policies"]
    )
    return PolicyConfig(version=data["version"], policies=policies, source_path=source_path)


def load_config(path: Path | str) -> PolicyConfig:
    config_path = Path(path).expanduser().resolve()
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigError(f"Failed to read config {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML for config {config_path}: {exc}") from exc

    config = parse_config(data, config_path)
    LOGGER.debug("loaded %d policy spec(s) from %s", len(config.policies), config_path)
    return config


def install(config: PolicyConfig) -> list[Interceptor]:
    """Build every configured policy and register it in the calling context.

    Nothing is registered unless every policy builds.
    """

    policies = config.build()
    for policy in policies:
        registry.register(policy)
    return policies
