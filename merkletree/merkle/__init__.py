"""
Merkle tree implementation over fixed-size digests.

This module provides Merkle tree construction, membership proof generation
and proof verification, in unordered (permutation-invariant) and ordered
(position-binding) modes.
"""

from merkletree.merkle.encoding import from_hex, proof_from_hex, proof_to_hex, to_hex
from merkletree.merkle.hashing import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGEST_SIZE,
    DEFAULT_HASH_FUNCTION,
    HashFunction,
    combine,
    get_hash_function,
)
from merkletree.merkle.leaves import normalize_leaves
from merkletree.merkle.tree import MerkleTree, merkle_root
from merkletree.merkle.verifier import check_proof, check_proof_ordered

__all__ = [
    "MerkleTree",
    "merkle_root",
    "check_proof",
    "check_proof_ordered",
    "normalize_leaves",
    "HashFunction",
    "get_hash_function",
    "combine",
    "DEFAULT_ALGORITHM",
    "DEFAULT_DIGEST_SIZE",
    "DEFAULT_HASH_FUNCTION",
    "to_hex",
    "from_hex",
    "proof_to_hex",
    "proof_from_hex",
]
