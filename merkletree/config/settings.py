"""
Configuration management for merkletree.

Loads YAML configuration from file with sensible defaults and validation.
Supports environment variable substitution using ${ENV_VAR} syntax.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from merkletree.exceptions import HashFunctionError, InvalidConfigurationError
from merkletree.logging_config import get_logger, setup_logging
from merkletree.merkle.hashing import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGEST_SIZE,
    HashFunction,
    get_hash_function,
)

logger = get_logger(__name__)

CONFIG_PATH_ENV_VAR = "MERKLETREE_CONFIG"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _expand_env_vars(value: Any) -> Any:
    """
    Recursively expand environment variables in configuration values.

    Supports ${ENV_VAR} syntax with optional default values: ${ENV_VAR:default}

    Examples:
        "${MERKLE_HASH}" -> value of MERKLE_HASH env var
        "${MERKLE_HASH:blake2b}" -> value of MERKLE_HASH or "blake2b" if not set
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class HashingConfig:
    """Hash primitive configuration."""

    algorithm: str = DEFAULT_ALGORITHM
    digest_size: Optional[int] = DEFAULT_DIGEST_SIZE  # None: default size for the algorithm


@dataclass
class TreeConfig:
    """Tree construction configuration."""

    preserve_order: bool = False
    use_parallel: bool = True
    parallel_threshold: int = 100  # Minimum layer length for parallel reduction
    max_workers: int = 4


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    json_format: bool = False


@dataclass
class MerkleTreeConfig:
    """Main merkletree configuration."""

    hashing: HashingConfig = field(default_factory=HashingConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_hash_function(self) -> HashFunction:
        """Build the configured hash primitive."""
        return get_hash_function(self.hashing.algorithm, self.hashing.digest_size)


def get_default_config_path() -> str:
    """Get the default configuration file path."""
    return os.environ.get(CONFIG_PATH_ENV_VAR) or os.path.expanduser("~/.merkletree/config.yaml")


def get_default_config() -> MerkleTreeConfig:
    """
    Get default configuration with sensible defaults.

    Returns:
        MerkleTreeConfig: Default configuration object
    """
    return MerkleTreeConfig()


def load_config(config_path: Optional[str] = None) -> MerkleTreeConfig:
    """
    Load configuration from YAML file with validation.

    If config file is not found, returns default configuration.
    If config file is malformed or invalid, raises InvalidConfigurationError.

    Args:
        config_path: Path to configuration file. If None, uses default path.

    Returns:
        MerkleTreeConfig: Loaded and validated configuration

    Raises:
        InvalidConfigurationError: If configuration is invalid or malformed
    """
    if config_path is None:
        config_path = get_default_config_path()

    config_path = os.path.expanduser(str(config_path))

    if not os.path.exists(config_path):
        logger.info(f"Configuration file not found at {config_path}, using defaults")
        return get_default_config()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
        logger.debug(f"Loaded configuration from {config_path}")
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration file '{config_path}': {e}", exc_info=True)
        raise InvalidConfigurationError(
            f"Failed to parse YAML configuration file '{config_path}': {e}"
        ) from e
    except OSError as e:
        logger.error(f"Failed to read configuration file '{config_path}': {e}", exc_info=True)
        raise InvalidConfigurationError(
            f"Failed to read configuration file '{config_path}': {e}"
        ) from e

    if config_data is None:
        logger.info(f"Configuration file {config_path} is empty, using defaults")
        return get_default_config()

    if not isinstance(config_data, dict):
        raise InvalidConfigurationError(
            f"Configuration file '{config_path}' must contain a mapping at top level"
        )

    config_data = _expand_env_vars(config_data)

    try:
        config = _build_config_from_dict(config_data)
        _validate_config(config)
    except InvalidConfigurationError as e:
        logger.error(f"Invalid configuration in '{config_path}': {e}")
        raise
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid configuration in '{config_path}': {e}", exc_info=True)
        raise InvalidConfigurationError(
            f"Invalid configuration in '{config_path}': {e}"
        ) from e

    logger.info(f"Successfully loaded and validated configuration from {config_path}")
    return config


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off", ""):
            return False
    raise InvalidConfigurationError(f"{name} must be a boolean, got {value!r}")


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_data.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidConfigurationError(f"'{name}' section must be a mapping")
    return section


def _build_config_from_dict(config_data: Dict[str, Any]) -> MerkleTreeConfig:
    """
    Build MerkleTreeConfig from dictionary loaded from YAML.

    Merges user configuration with defaults. Values expanded from
    environment variables arrive as strings and are coerced here.

    Args:
        config_data: Dictionary loaded from YAML file

    Returns:
        MerkleTreeConfig: Configuration object
    """
    default_config = get_default_config()

    hashing_data = _section(config_data, 'hashing')
    digest_size = hashing_data.get('digest_size', default_config.hashing.digest_size)
    hashing = HashingConfig(
        algorithm=str(hashing_data.get('algorithm', default_config.hashing.algorithm)),
        digest_size=None if digest_size in (None, "") else int(digest_size),
    )

    tree_data = _section(config_data, 'tree')
    tree = TreeConfig(
        preserve_order=_parse_bool(
            tree_data.get('preserve_order', default_config.tree.preserve_order),
            'tree.preserve_order',
        ),
        use_parallel=_parse_bool(
            tree_data.get('use_parallel', default_config.tree.use_parallel),
            'tree.use_parallel',
        ),
        parallel_threshold=int(
            tree_data.get('parallel_threshold', default_config.tree.parallel_threshold)
        ),
        max_workers=int(tree_data.get('max_workers', default_config.tree.max_workers)),
    )

    logging_data = _section(config_data, 'logging')
    logging = LoggingConfig(
        level=str(logging_data.get('level', default_config.logging.level)),
        file=os.path.expanduser(str(logging_data.get('file', default_config.logging.file) or "")),
        json_format=_parse_bool(
            logging_data.get('json_format', default_config.logging.json_format),
            'logging.json_format',
        ),
    )

    return MerkleTreeConfig(hashing=hashing, tree=tree, logging=logging)


def _validate_config(config: MerkleTreeConfig) -> None:
    """
    Validate configuration values.

    Args:
        config: Configuration to validate

    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    if config.hashing.digest_size is not None and config.hashing.digest_size < 1:
        raise InvalidConfigurationError(
            f"digest_size must be positive, got {config.hashing.digest_size}"
        )

    # Building the hash function checks the algorithm/size pair
    try:
        config.get_hash_function()
    except HashFunctionError as e:
        raise InvalidConfigurationError(f"Invalid hashing configuration: {e}") from e

    if config.tree.parallel_threshold < 2:
        raise InvalidConfigurationError(
            f"parallel_threshold must be at least 2, got {config.tree.parallel_threshold}"
        )
    if config.tree.max_workers < 1:
        raise InvalidConfigurationError(
            f"max_workers must be at least 1, got {config.tree.max_workers}"
        )

    if config.logging.level.upper() not in VALID_LOG_LEVELS:
        raise InvalidConfigurationError(
            f"logging level must be one of {VALID_LOG_LEVELS}, "
            f"got '{config.logging.level}'"
        )


def setup_logging_from_config(config: MerkleTreeConfig) -> None:
    """Apply the logging section of a configuration."""
    log_file = Path(config.logging.file) if config.logging.file else None
    setup_logging(
        level=config.logging.level.upper(),
        log_file=log_file,
        json_format=config.logging.json_format,
    )
