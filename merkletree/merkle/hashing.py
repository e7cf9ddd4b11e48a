"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
merkletree, a product of Garudex Labs

Hash primitives for Merkle tree construction.

The tree is generic over a deterministic function ``bytes -> digest`` with a
fixed output length. This module adapts ``hashlib`` algorithms to that shape
and provides the pairwise combination rule shared by tree construction and
proof verification:

- ordered mode: hash(first + second), in the order given
- unordered mode: hash(max(first, second) + min(first, second)), which makes
  every combine step independent of left/right position
"""

import hashlib
from dataclasses import dataclass, field
from typing import Callable, Optional

from merkletree.exceptions import HashFunctionError


# BLAKE2b truncated to 128 bits
DEFAULT_ALGORITHM = "blake2b"
DEFAULT_DIGEST_SIZE = 16

# Algorithms whose output length is chosen at construction time
_BLAKE2_MAX_DIGEST_SIZE = {"blake2b": 64, "blake2s": 32}
_EXTENDABLE_OUTPUT = {"shake_128", "shake_256"}


@dataclass(frozen=True)
class HashFunction:
    """
    A deterministic hash primitive with a fixed digest size.

    Two hash functions compare equal when their name and digest size match.

    Attributes:
        name: Algorithm name (e.g. "blake2b", "sha256", or a custom label)
        digest_size: Length in bytes of every digest produced
        func: Callable hashing raw bytes to a digest
    """
    name: str
    digest_size: int
    func: Callable[[bytes], bytes] = field(compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.digest_size, int) or self.digest_size < 1:
            raise HashFunctionError(
                f"Digest size must be a positive integer, got {self.digest_size!r}"
            )

    @classmethod
    def from_callable(
        cls,
        func: Callable[[bytes], bytes],
        digest_size: int,
        name: str = "custom",
    ) -> "HashFunction":
        """
        Wrap an arbitrary hashing callable.

        Args:
            func: Deterministic function mapping bytes to a digest
            digest_size: Length in bytes of the digests ``func`` returns
            name: Label used in logs and comparisons

        Returns:
            HashFunction wrapping ``func``
        """
        return cls(name=name, digest_size=digest_size, func=func)

    def digest(self, data: bytes) -> bytes:
        """
        Hash raw bytes.

        Raises:
            HashFunctionError: If the wrapped callable returns a digest of the
                wrong length
        """
        result = bytes(self.func(bytes(data)))
        if len(result) != self.digest_size:
            raise HashFunctionError(
                f"Hash function '{self.name}' returned {len(result)} bytes, "
                f"expected {self.digest_size}"
            )
        return result

    def __call__(self, data: bytes) -> bytes:
        return self.digest(data)


def get_hash_function(
    algorithm: str = DEFAULT_ALGORITHM,
    digest_size: Optional[int] = None,
) -> HashFunction:
    """
    Build a HashFunction backed by ``hashlib``.

    BLAKE2 variants accept any digest size up to their maximum, SHAKE
    variants require an explicit size, and every other algorithm has a fixed
    size that ``digest_size`` (when given) must match.

    Called without arguments it builds the package default, BLAKE2b-128.

    Args:
        algorithm: hashlib algorithm name (case-insensitive)
        digest_size: Digest length in bytes. None selects the package
            default size for the default algorithm and the native size
            for every other one

    Returns:
        HashFunction for the requested algorithm

    Raises:
        HashFunctionError: If the algorithm is unknown or the digest size is
            not achievable with it

    Example:
        >>> get_hash_function("blake2b", 16).digest_size
        16
    """
    name = algorithm.lower().replace("-", "_")

    if name in _BLAKE2_MAX_DIGEST_SIZE:
        max_size = _BLAKE2_MAX_DIGEST_SIZE[name]
        size = digest_size
        if size is None:
            size = DEFAULT_DIGEST_SIZE if name == DEFAULT_ALGORITHM else max_size
        if not isinstance(size, int) or not 1 <= size <= max_size:
            raise HashFunctionError(
                f"{name} digest size must be between 1 and {max_size}, got {size!r}"
            )
        constructor = getattr(hashlib, name)
        return HashFunction(
            name=name,
            digest_size=size,
            func=lambda data: constructor(data, digest_size=size).digest(),
        )

    if name in _EXTENDABLE_OUTPUT:
        if digest_size is None:
            raise HashFunctionError(f"{name} requires an explicit digest size")
        size = digest_size
        return HashFunction(
            name=name,
            digest_size=size,
            func=lambda data: hashlib.new(name, data).digest(size),
        )

    try:
        native_size = hashlib.new(name).digest_size
    except ValueError as e:
        raise HashFunctionError(f"Unsupported hash algorithm '{algorithm}'") from e

    if digest_size is not None and digest_size != native_size:
        raise HashFunctionError(
            f"{name} produces {native_size}-byte digests, cannot use digest size {digest_size}"
        )

    return HashFunction(
        name=name,
        digest_size=native_size,
        func=lambda data: hashlib.new(name, data).digest(),
    )


DEFAULT_HASH_FUNCTION = get_hash_function()


def combine(
    first: bytes,
    second: bytes,
    hash_function: Optional[HashFunction] = None,
    preserve_order: bool = False,
) -> bytes:
    """
    Combine two digests into their parent digest.

    Args:
        first: Left child digest
        second: Right child digest
        hash_function: Hash primitive (defaults to BLAKE2b-128)
        preserve_order: If True, hash ``first + second``. If False, the
            lexicographically larger digest is placed first.

    Returns:
        Parent digest
    """
    if hash_function is None:
        hash_function = DEFAULT_HASH_FUNCTION

    if not preserve_order and first < second:
        first, second = second, first

    return hash_function(first + second)
