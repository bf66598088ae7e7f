"""Configuration provider over a YAML or JSON document."""

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Tuple, Type, TypeVar, runtime_checkable

import yaml
from pydantic import BaseModel, ValidationError

from ..audit import AuditLogger
from ..exceptions import ConfigError, ConfigValidationError
from ..policy.registry import PolicyRegistry
from .settings import PolicySettings


logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

SUPPORTED_SUFFIXES = ('.yaml', '.yml', '.json')


@runtime_checkable
class Validatable(Protocol):
    """Configuration models that check themselves after decoding."""

    def self_validate(self) -> None:
        ...


def _known_fields(model_cls: Type[BaseModel]) -> set:
    names = set()
    for name, field in model_cls.model_fields.items():
        names.add(name)
        if field.alias:
            names.add(field.alias)
    return names


class ConfigProvider:
    """
    Read-only access to named configuration subtrees.

    Paths are dot-separated (e.g. "ca.authority"). get() decodes a subtree
    into a fresh model instance, so no value survives from an earlier load.
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = dict(data)

    @classmethod
    def from_file(cls, path: str) -> "ConfigProvider":
        """
        Load configuration from a .yaml/.yml/.json file.

        Raises:
            ConfigError: If the file is missing, unsupported or malformed
        """
        file_path = Path(path)
        logger.info(f"Loading configuration from {file_path}")

        if file_path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ConfigError(f"Unsupported configuration format: {file_path.suffix}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                if file_path.suffix.lower() == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {file_path}: {e}") from e
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Malformed configuration file {file_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")
        return cls(data)

    def _lookup(self, path: str) -> Tuple[bool, Any]:
        value: Any = self._data
        for key in path.split('.'):
            if not isinstance(value, Mapping) or key not in value:
                return False, None
            value = value[key]
        return True, value

    def exists(self, path: str) -> bool:
        found, value = self._lookup(path)
        return found and value is not None

    def get(self, path: str, model_cls: Type[T]) -> T:
        """
        Decode a configuration subtree into a model.

        Args:
            path: Dot-separated path to the subtree
            model_cls: Pydantic model to decode into

        Returns:
            New, validated model instance

        Raises:
            ConfigError: Path absent, unrecognised fields or decode failure
            ConfigValidationError: Model's own validation failed
        """
        if not self.exists(path):
            raise ConfigError(f"Path {path} is not found in configuration")

        _, value = self._lookup(path)
        if not isinstance(value, Mapping):
            raise ConfigError(f"Path {path} is not a configuration section")

        unknown = sorted(set(value) - _known_fields(model_cls))
        if unknown:
            raise ConfigError(f"Unrecognized fields under {path}: {', '.join(map(str, unknown))}")

        try:
            cfg = model_cls.model_validate(dict(value))
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration at {path}: {e}") from e

        if isinstance(cfg, Validatable):
            try:
                cfg.self_validate()
            except ValueError as e:
                raise ConfigValidationError(f"Configuration at {path} failed validation: {e}") from e
        return cfg


def load_registry(
    provider: ConfigProvider,
    path: str = "policy",
    previous: Optional[PolicyRegistry] = None,
    audit: Optional[AuditLogger] = None
) -> PolicyRegistry:
    """
    Build the policy registry from configuration.

    Falls back to built-in policy when the path is absent. On a bad
    configuration the previous registry is kept; without one the error
    propagates, since issuing under a half-built policy is not safe.
    """
    if not provider.exists(path):
        logger.info(f"No '{path}' section configured, using built-in policy")
        return PolicyRegistry.default()

    try:
        registry = provider.get(path, PolicySettings).to_registry()
    except ConfigError as e:
        if previous is None:
            raise
        logger.error(f"Policy reload failed, keeping previous policy: {e}")
        return previous

    logger.info(
        f"Loaded policy: {len(registry.key_algorithms)} key algorithms, "
        f"{len(registry.signatures)} signatures, {len(registry.profiles)} profiles"
    )
    if audit:
        audit.log_policy_loaded(
            len(registry.key_algorithms), len(registry.signatures), len(registry.profiles)
        )
    return registry
