"""
Unit tests for Merkle tree implementation.

Tests cover:
- Tree construction from leaf digests
- Layer structure and carry-forward of unpaired elements
- Root computation in ordered and unordered modes
- Proof generation by digest and by position
- Edge cases (single leaf, power of 2, odd number of leaves)
"""

import hashlib
import math

import pytest

from merkletree.exceptions import (
    ElementNotFoundError,
    EmptyInputError,
    IndexMismatchError,
    InvalidElementSizeError,
)
from merkletree.merkle.hashing import combine, get_hash_function
from merkletree.merkle.tree import MerkleTree, merkle_root
from merkletree.merkle.verifier import check_proof, check_proof_ordered


def blake(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=16).digest()


def parent(first: bytes, second: bytes) -> bytes:
    """Unordered parent: larger digest first."""
    return blake(max(first, second) + min(first, second))


class TestMerkleTreeConstruction:
    """Test Merkle tree construction."""

    def test_single_leaf(self):
        """Scenario A: a single leaf is its own root."""
        leaf = blake(bytes([7, 7, 7]))
        tree = MerkleTree([leaf])

        assert tree.get_root() == leaf
        assert tree.depth == 1
        assert tree.get_layers() == ((leaf,),)

    def test_two_leaves_unordered(self, make_digests):
        """Scenario B: root combines the larger digest first."""
        h0, h1 = make_digests(2)
        tree = MerkleTree([h0, h1])

        assert tree.get_root() == parent(h0, h1)
        assert tree.get_root() == blake(max(h0, h1) + min(h0, h1))

    def test_two_leaves_ordered(self, make_digests):
        """Test ordered root hashes left then right."""
        h0, h1 = make_digests(2)
        tree = MerkleTree([h0, h1], preserve_order=True)

        assert tree.get_root() == blake(h0 + h1)

    def test_three_leaves_ordered_carries_last_leaf(self, make_digests):
        """Test odd leaf is promoted unchanged, not hashed with itself."""
        h0, h1, h2 = make_digests(3)
        tree = MerkleTree([h0, h1, h2], preserve_order=True)

        layers = tree.get_layers()
        assert layers[0] == (h0, h1, h2)
        assert layers[1] == (blake(h0 + h1), h2)
        assert tree.get_root() == blake(blake(h0 + h1) + h2)

    def test_five_leaves_ordered_layers(self, make_digests):
        """Test carry-forward across several layers."""
        h = make_digests(5)
        tree = MerkleTree(h, preserve_order=True)

        a = blake(h[0] + h[1])
        b = blake(h[2] + h[3])
        layers = tree.get_layers()

        assert layers[1] == (a, b, h[4])
        assert layers[2] == (blake(a + b), h[4])
        assert tree.get_root() == blake(blake(a + b) + h[4])

    def test_every_pair_is_consumed(self, make_digests):
        """Test that each window of two produces one parent."""
        h = make_digests(8)
        tree = MerkleTree(h, preserve_order=True)

        expected = tuple(blake(h[i] + h[i + 1]) for i in range(0, 8, 2))
        assert tree.get_layers()[1] == expected

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 7, 8, 9, 16, 17, 33])
    def test_layer_lengths(self, make_digests, count):
        """Test that each layer halves the previous one, rounding up."""
        tree = MerkleTree(make_digests(count), preserve_order=True)
        layers = tree.get_layers()

        for lower, upper in zip(layers, layers[1:]):
            assert len(upper) == math.ceil(len(lower) / 2)
        assert len(layers[-1]) == 1
        assert layers[-1][0] == tree.get_root()

    def test_empty_leaves_raises_error(self):
        """Scenario D: empty input is rejected."""
        with pytest.raises(EmptyInputError):
            MerkleTree([])

    def test_only_empty_buffers_raises_error(self):
        """Test that input made only of empty buffers is rejected."""
        with pytest.raises(EmptyInputError):
            MerkleTree([b"", bytearray()])

    def test_empty_buffers_are_skipped(self, make_digests):
        """Test empty buffers do not become leaves."""
        h0, h1 = make_digests(2)
        tree = MerkleTree([b"", h0, b"", h1], preserve_order=True)

        assert tree.leaves == (h0, h1)

    def test_wrong_element_size_raises_error(self, make_digests):
        """Test that a leaf of the wrong size is rejected."""
        h0 = make_digests(1)[0]

        with pytest.raises(InvalidElementSizeError, match="Element size is 3, it must be 16"):
            MerkleTree([h0, b"abc"])

    def test_deterministic_root(self, make_digests):
        """Test that same leaves produce same root."""
        leaves = make_digests(7)

        assert MerkleTree(leaves).get_root() == MerkleTree(leaves).get_root()

    def test_different_leaves_different_root(self, make_digests):
        """Test that different leaves produce different roots."""
        leaves = make_digests(4)
        other = leaves[:3] + make_digests(1, prefix="other")

        assert MerkleTree(leaves).get_root() != MerkleTree(other).get_root()

    def test_order_matters_in_ordered_mode(self, make_digests):
        """Test that leaf order affects the ordered root."""
        leaves = make_digests(3)

        forward = MerkleTree(leaves, preserve_order=True)
        backward = MerkleTree(list(reversed(leaves)), preserve_order=True)

        assert forward.get_root() != backward.get_root()

    def test_order_ignored_in_unordered_mode(self, make_digests):
        """Test that leaf order does not affect the unordered root."""
        leaves = make_digests(6)

        assert MerkleTree(leaves).get_root() == MerkleTree(list(reversed(leaves))).get_root()

    def test_unordered_leaves_sorted_and_unique(self, make_digests):
        """Test normalization of the unordered leaf layer."""
        h = make_digests(3)
        tree = MerkleTree([h[2], h[0], h[2], h[1], h[0]])

        assert tree.leaves == tuple(sorted(h))
        assert tree.leaf_count == 3

    def test_ordered_keeps_duplicates(self, make_digests):
        """Test ordered mode keeps caller order and duplicates."""
        h = make_digests(2)
        tree = MerkleTree([h[1], h[0], h[1]], preserve_order=True)

        assert tree.leaves == (h[1], h[0], h[1])
        assert len(tree) == 3

    def test_custom_hash_function(self):
        """Test construction with a 32-byte SHA-256 primitive."""
        sha = get_hash_function("sha256")
        leaves = [sha(b"a"), sha(b"b")]
        tree = MerkleTree(leaves, hash_function=sha)

        assert tree.digest_size == 32
        assert tree.get_root() == combine(leaves[0], leaves[1], sha)

    def test_leaf_size_checked_against_hash_function(self, make_digests):
        """Test that 16-byte leaves are rejected by a 32-byte tree."""
        sha = get_hash_function("sha256")

        with pytest.raises(InvalidElementSizeError):
            MerkleTree(make_digests(2), hash_function=sha)

    def test_merkle_root_helper(self, make_digests):
        """Test the free root function matches the tree."""
        leaves = make_digests(5)

        assert merkle_root(leaves) == MerkleTree(leaves).get_root()
        assert merkle_root(leaves, preserve_order=True) == \
            MerkleTree(leaves, preserve_order=True).get_root()


class TestParallelConstruction:
    """Test that parallel layer reduction matches sequential reduction."""

    @pytest.mark.parametrize("preserve_order", [False, True])
    def test_parallel_matches_sequential(self, make_digests, preserve_order):
        leaves = make_digests(301)

        parallel = MerkleTree(
            leaves,
            preserve_order=preserve_order,
            parallel_threshold=8,
            max_workers=3,
        )
        sequential = MerkleTree(leaves, preserve_order=preserve_order, use_parallel=False)

        assert parallel.get_layers() == sequential.get_layers()

    @pytest.mark.parametrize("count", [1, 5, 99, 100])
    def test_default_settings_match_sequential(self, make_digests, count):
        leaves = make_digests(count)

        default = MerkleTree(leaves, preserve_order=True)
        sequential = MerkleTree(leaves, preserve_order=True, use_parallel=False)

        assert default.get_layers() == sequential.get_layers()
        assert default.get_root() == sequential.get_root()


class TestMerkleProofGeneration:
    """Test Merkle proof generation."""

    def test_generate_proof_single_leaf(self):
        """Scenario A: a single leaf has an empty proof."""
        leaf = blake(bytes([7, 7, 7]))
        tree = MerkleTree([leaf])

        assert tree.get_proof(leaf) == []
        assert tree.get_proof_ordered(leaf, 1) == []

    def test_generate_proof_two_leaves(self, make_digests):
        """Scenario B: each leaf's proof is the other leaf."""
        h0, h1 = make_digests(2)
        tree = MerkleTree([h0, h1])

        assert tree.get_proof(h0) == [h1]
        assert tree.get_proof(h1) == [h0]

    def test_generate_proof_ordered_three_leaves(self, make_digests):
        """Scenario C: proof for the middle of three ordered leaves."""
        h0, h1, h2 = make_digests(3)
        tree = MerkleTree([h0, h1, h2], preserve_order=True)

        assert tree.get_proof_ordered(h1, 2) == [h0, h2]

    def test_unpaired_leaf_skips_layer(self, make_digests):
        """Test that a carried-forward leaf gets no sibling at that layer."""
        h0, h1, h2 = make_digests(3)
        tree = MerkleTree([h0, h1, h2], preserve_order=True)

        assert tree.get_proof_ordered(h2, 3) == [blake(h0 + h1)]

    def test_generate_proof_four_leaves(self, make_digests):
        """Test each proof in a perfect tree has two siblings."""
        leaves = make_digests(4)
        tree = MerkleTree(leaves)

        for leaf in leaves:
            assert len(tree.get_proof(leaf)) == 2

    def test_proof_element_not_found(self, make_digests):
        """Test that an absent digest raises ElementNotFoundError."""
        leaves = make_digests(3)
        tree = MerkleTree(leaves)

        with pytest.raises(ElementNotFoundError):
            tree.get_proof(make_digests(1, prefix="missing")[0])

    def test_proof_element_not_found_ordered_tree(self, make_digests):
        tree = MerkleTree(make_digests(3), preserve_order=True)

        with pytest.raises(ElementNotFoundError):
            tree.get_proof(make_digests(1, prefix="missing")[0])

    @pytest.mark.parametrize("index", [0, -1, 4, 100])
    def test_proof_ordered_index_out_of_range(self, make_digests, index):
        leaves = make_digests(3)
        tree = MerkleTree(leaves, preserve_order=True)

        with pytest.raises(IndexMismatchError):
            tree.get_proof_ordered(leaves[0], index)

    def test_proof_ordered_wrong_element(self, make_digests):
        """Test that the digest must be at the given position."""
        leaves = make_digests(3)
        tree = MerkleTree(leaves, preserve_order=True)

        with pytest.raises(IndexMismatchError):
            tree.get_proof_ordered(leaves[1], 1)

        with pytest.raises(IndexMismatchError):
            tree.get_proof_ordered(leaves[1], 3)

    def test_proof_ordered_non_integer_index(self, make_digests):
        leaves = make_digests(3)
        tree = MerkleTree(leaves, preserve_order=True)

        with pytest.raises(IndexMismatchError):
            tree.get_proof_ordered(leaves[0], "1")

    def test_index_of_first_occurrence(self, make_digests):
        h = make_digests(2)
        tree = MerkleTree([h[0], h[1], h[1]], preserve_order=True)

        assert tree.index_of(h[1]) == 2
        assert h[0] in tree
        assert make_digests(1, prefix="x")[0] not in tree

    def test_proof_bytes_like_element(self, make_digests):
        leaves = make_digests(4)
        tree = MerkleTree(leaves)

        assert tree.get_proof(bytearray(leaves[2])) == tree.get_proof(leaves[2])


class TestMerkleTreeRoundTrip:
    """Test generating proofs and verifying them against the root."""

    @pytest.mark.parametrize("count", list(range(1, 34)))
    def test_unordered_all_leaves(self, make_digests, count):
        leaves = make_digests(count)
        tree = MerkleTree(leaves)
        root = tree.get_root()

        for leaf in leaves:
            assert check_proof(tree.get_proof(leaf), root, leaf)

    @pytest.mark.parametrize("count", list(range(1, 34)))
    def test_ordered_all_positions(self, make_digests, count):
        leaves = make_digests(count)
        tree = MerkleTree(leaves, preserve_order=True)
        root = tree.get_root()

        for index, leaf in enumerate(leaves, start=1):
            proof = tree.get_proof_ordered(leaf, index)
            assert check_proof_ordered(proof, root, leaf, index)

    def test_ordered_duplicates_each_position(self, make_digests):
        h = make_digests(2)
        leaves = [h[0], h[1], h[0], h[0], h[1]]
        tree = MerkleTree(leaves, preserve_order=True)
        root = tree.get_root()

        for index, leaf in enumerate(leaves, start=1):
            proof = tree.get_proof_ordered(leaf, index)
            assert check_proof_ordered(proof, root, leaf, index)

    def test_proof_fails_after_tampering(self, make_digests):
        """Test that a proof does not verify against a modified tree."""
        leaves = make_digests(4)
        tree = MerkleTree(leaves)
        proof = tree.get_proof(leaves[0])

        tampered = MerkleTree(leaves[:3] + make_digests(1, prefix="tampered"))

        assert check_proof(proof, tree.get_root(), leaves[0])
        assert not check_proof(proof, tampered.get_root(), leaves[0])
