"""
Configuration management for merkletree.

Handles loading and validation of configuration files.
"""

from merkletree.config.settings import (
    HashingConfig,
    LoggingConfig,
    MerkleTreeConfig,
    TreeConfig,
    get_default_config,
    get_default_config_path,
    load_config,
    setup_logging_from_config,
)

__all__ = [
    "HashingConfig",
    "LoggingConfig",
    "MerkleTreeConfig",
    "TreeConfig",
    "get_default_config",
    "get_default_config_path",
    "load_config",
    "setup_logging_from_config",
]
