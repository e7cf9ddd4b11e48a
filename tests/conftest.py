"""
Pytest configuration and shared fixtures for merkletree tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Callable, Generator, List

import pytest

from merkletree.merkle.hashing import HashFunction, get_hash_function


def create_test_config_content(temp_dir: Path, **overrides) -> str:
    """
    Generate test configuration YAML content.

    Args:
        temp_dir: Temporary directory for the log file.
        **overrides: Replacement values for the hashing algorithm and size.

    Returns:
        YAML configuration content as string.
    """
    algorithm = overrides.get("algorithm", "blake2b")
    digest_size = overrides.get("digest_size", 16)

    config = f"""
hashing:
  algorithm: {algorithm}
  digest_size: {digest_size}

tree:
  preserve_order: false
  use_parallel: true
  parallel_threshold: 64
  max_workers: 2

logging:
  level: DEBUG
  file: {temp_dir}/merkletree.log
  json_format: true
"""
    return config


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to temporary directory that is cleaned up after test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def hash_function() -> HashFunction:
    """BLAKE2b-128, the package default hash primitive."""
    return get_hash_function("blake2b", 16)


@pytest.fixture
def make_digests(hash_function: HashFunction) -> Callable[[int], List[bytes]]:
    """
    Factory fixture producing distinct leaf digests.

    Usage:
        def test_something(make_digests):
            leaves = make_digests(5)
    """
    def _make(count: int, prefix: str = "leaf") -> List[bytes]:
        return [hash_function(f"{prefix}{i}".encode()) for i in range(count)]
    return _make


@pytest.fixture
def sample_config_path(temp_dir: Path) -> Path:
    """
    Create a sample configuration file for testing.

    Returns:
        Path to sample config file.
    """
    config_path = temp_dir / "config.yaml"
    config_path.write_text(create_test_config_content(temp_dir))
    return config_path


# Hypothesis settings for property-based tests
from hypothesis import settings, Verbosity

settings.register_profile("merkletree", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("merkletree-ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("merkletree-dev", max_examples=10, verbosity=Verbosity.verbose)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "merkletree"))
