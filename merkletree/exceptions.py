"""
Exception hierarchy for merkletree.

All custom exceptions inherit from MerkleTreeError base class.
"""


class MerkleTreeError(Exception):
    """Base exception for all merkletree errors."""
    pass


# Construction Errors
class ConstructionError(MerkleTreeError):
    """Base exception for errors raised while building a tree."""
    pass


class EmptyInputError(ConstructionError):
    """Raised when no valid leaves remain after normalization."""
    pass


class InvalidElementSizeError(ConstructionError):
    """Raised when a non-empty leaf does not have the configured digest size."""

    def __init__(self, index: int, size: int, expected_size: int):
        self.index = index
        self.size = size
        self.expected_size = expected_size
        super().__init__(
            f"Element size is {size}, it must be {expected_size} "
            f"(element at position {index})"
        )


# Query Errors
class QueryError(MerkleTreeError):
    """Base exception for errors raised by proof queries against a tree."""
    pass


class ElementNotFoundError(QueryError):
    """Raised when a queried digest is not in the leaf layer."""
    pass


class IndexMismatchError(QueryError):
    """Raised when a 1-based position does not hold the supplied digest."""
    pass


# Hashing and Encoding Errors
class HashFunctionError(MerkleTreeError):
    """Raised when a hash function cannot be built or misbehaves."""
    pass


class EncodingError(MerkleTreeError):
    """Raised when hex text cannot be decoded into digests."""
    pass


# Configuration Errors
class ConfigurationError(MerkleTreeError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid or malformed."""
    pass
