"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
merkletree, a product of Garudex Labs

merkletree - Content-addressed binary hash trees

Builds Merkle trees over fixed-size digests, computes their root commitment,
and produces and verifies compact membership proofs.
"""

from merkletree._version import __version__
from merkletree.exceptions import (
    ElementNotFoundError,
    EmptyInputError,
    IndexMismatchError,
    InvalidElementSizeError,
    MerkleTreeError,
)
from merkletree.merkle import (
    HashFunction,
    MerkleTree,
    check_proof,
    check_proof_ordered,
    combine,
    get_hash_function,
    merkle_root,
)

__all__ = [
    "__version__",
    "MerkleTree",
    "merkle_root",
    "check_proof",
    "check_proof_ordered",
    "combine",
    "HashFunction",
    "get_hash_function",
    "MerkleTreeError",
    "EmptyInputError",
    "InvalidElementSizeError",
    "ElementNotFoundError",
    "IndexMismatchError",
]
