"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
merkletree, a product of Garudex Labs

Merkle tree implementation over fixed-size digests.

This module implements a binary Merkle tree built layer by layer from
normalized leaf digests. It supports:
- Unordered trees (deduplicated, sorted leaves, position-independent combine)
- Ordered trees (caller order and duplicates kept, left/right combine)
- Membership proof generation by digest or by digest and 1-based position
- Parallel layer reduction for large trees

An unpaired element at the end of an odd-length layer is carried up
unchanged; it is never hashed with itself.
"""

import bisect
import concurrent.futures
import time
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

from merkletree.exceptions import ElementNotFoundError, IndexMismatchError
from merkletree.logging_config import (
    get_logger,
    log_merkle_root_computation,
    log_proof_generation,
)
from merkletree.merkle.encoding import to_hex
from merkletree.merkle.hashing import DEFAULT_HASH_FUNCTION, HashFunction, combine
from merkletree.merkle.leaves import BytesLike, normalize_leaves

if TYPE_CHECKING:
    from merkletree.config.settings import MerkleTreeConfig

logger = get_logger(__name__)

Layer = Tuple[bytes, ...]


class MerkleTree:
    """
    Immutable binary Merkle tree.

    The tree is stored as a tuple of layers, where:
    - layers[0] is the leaf layer
    - layers[-1] is the root layer (single digest)

    Once built, a tree holds no mutable state and may be queried from
    several threads at once.

    Example:
        >>> h = get_hash_function("blake2b", 16)
        >>> leaves = [h(b"a"), h(b"b"), h(b"c")]
        >>> tree = MerkleTree(leaves, hash_function=h)
        >>> proof = tree.get_proof(leaves[0])
        >>> check_proof(proof, tree.get_root(), leaves[0], hash_function=h)
        True
    """

    # Layers with at least this many elements are reduced in a thread pool
    PARALLEL_THRESHOLD = 100

    MAX_WORKERS = 4

    def __init__(
        self,
        elements: Iterable[BytesLike],
        preserve_order: bool = False,
        hash_function: Optional[HashFunction] = None,
        use_parallel: bool = True,
        parallel_threshold: Optional[int] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Build a Merkle tree from leaf digests.

        Args:
            elements: Leaf digests, each ``hash_function.digest_size`` bytes
                long. Empty buffers are skipped.
            preserve_order: Keep caller order and duplicates, and combine
                pairs left then right (default: False)
            hash_function: Hash primitive (default: BLAKE2b-128)
            use_parallel: Enable parallel reduction for large layers
            parallel_threshold: Minimum layer length for parallel reduction
            max_workers: Thread pool size for parallel reduction

        Raises:
            EmptyInputError: If no leaves remain after normalization
            InvalidElementSizeError: If a leaf has the wrong size
        """
        started = time.perf_counter()

        self._hash_function = hash_function or DEFAULT_HASH_FUNCTION
        self._preserve_order = bool(preserve_order)
        self._parallel_threshold = parallel_threshold or self.PARALLEL_THRESHOLD
        self._max_workers = max_workers or self.MAX_WORKERS

        self._leaves: Layer = normalize_leaves(
            elements,
            self._hash_function.digest_size,
            preserve_order=self._preserve_order,
        )
        self._use_parallel = use_parallel and len(self._leaves) >= self._parallel_threshold

        self._layers: Tuple[Layer, ...] = self._build_layers()

        duration_ms = (time.perf_counter() - started) * 1000
        log_merkle_root_computation(
            logger,
            leaf_count=len(self._leaves),
            layer_count=len(self._layers),
            merkle_root=to_hex(self.get_root()),
            preserve_order=self._preserve_order,
            duration_ms=round(duration_ms, 3),
            hash_function=self._hash_function.name,
            parallel=self._use_parallel,
        )

    @classmethod
    def from_config(
        cls,
        elements: Iterable[BytesLike],
        config: "MerkleTreeConfig",
        preserve_order: Optional[bool] = None,
    ) -> "MerkleTree":
        """
        Build a tree using the hashing and tree sections of a configuration.

        Args:
            elements: Leaf digests
            config: Loaded configuration
            preserve_order: Overrides ``config.tree.preserve_order`` when given

        Returns:
            Built MerkleTree
        """
        if preserve_order is None:
            preserve_order = config.tree.preserve_order

        return cls(
            elements,
            preserve_order=preserve_order,
            hash_function=config.get_hash_function(),
            use_parallel=config.tree.use_parallel,
            parallel_threshold=config.tree.parallel_threshold,
            max_workers=config.tree.max_workers,
        )

    def _hash_pair(self, pair: Tuple[bytes, bytes]) -> bytes:
        return combine(pair[0], pair[1], self._hash_function, self._preserve_order)

    def _build_next_layer(
        self,
        layer: Layer,
        executor: Optional[concurrent.futures.Executor] = None,
    ) -> Layer:
        """
        Reduce one layer into the next.

        Consecutive elements are paired at positions (2i, 2i+1). A trailing
        unpaired element is carried forward as is.

        Args:
            layer: Current layer
            executor: Thread pool used for large layers, if any

        Returns:
            Next layer, ceil(len(layer) / 2) elements long
        """
        pairs = [(layer[i], layer[i + 1]) for i in range(0, len(layer) - 1, 2)]

        if executor is not None and len(layer) >= self._parallel_threshold:
            # map() keeps input order
            parents = list(executor.map(self._hash_pair, pairs))
        else:
            parents = [self._hash_pair(pair) for pair in pairs]

        if len(layer) % 2 == 1:
            parents.append(layer[-1])

        return tuple(parents)

    def _build_layers(self) -> Tuple[Layer, ...]:
        """
        Build all layers bottom-up until a single digest remains.

        Returns:
            Tuple of layers, leaf layer first and root layer last
        """
        layers = [self._leaves]

        if self._use_parallel:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                while len(layers[-1]) > 1:
                    layers.append(self._build_next_layer(layers[-1], executor))
        else:
            while len(layers[-1]) > 1:
                layers.append(self._build_next_layer(layers[-1]))

        return tuple(layers)

    @property
    def leaves(self) -> Layer:
        """Leaf layer after normalization."""
        return self._leaves

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    @property
    def depth(self) -> int:
        """Number of layers, leaf and root layers included."""
        return len(self._layers)

    @property
    def preserve_order(self) -> bool:
        return self._preserve_order

    @property
    def hash_function(self) -> HashFunction:
        return self._hash_function

    @property
    def digest_size(self) -> int:
        return self._hash_function.digest_size

    def get_root(self) -> bytes:
        """
        Get the Merkle root digest.

        For a single-leaf tree the root is the leaf itself.
        """
        return self._layers[-1][0]

    def get_layers(self) -> Tuple[Layer, ...]:
        """Get every layer of the tree, leaf layer first."""
        return self._layers

    def index_of(self, element: BytesLike) -> int:
        """
        Get the 1-based position of a digest in the leaf layer.

        In ordered trees holding duplicates, the first occurrence wins.

        Raises:
            ElementNotFoundError: If the digest is not a leaf
        """
        return self._find(element) + 1

    def _find(self, element: BytesLike) -> int:
        if not isinstance(element, (bytes, bytearray, memoryview)):
            raise ElementNotFoundError(
                f"Element must be bytes-like, got {type(element).__name__}"
            )
        element = bytes(element)

        if self._preserve_order:
            try:
                return self._leaves.index(element)
            except ValueError:
                pass
        else:
            # unordered leaves are sorted and unique
            position = bisect.bisect_left(self._leaves, element)
            if position < len(self._leaves) and self._leaves[position] == element:
                return position

        raise ElementNotFoundError(f"Element {to_hex(element)} is not in the Merkle tree")

    def _proof_for_position(self, position: int) -> List[bytes]:
        """
        Collect sibling digests for the leaf at a 0-based position.

        Layers where the node is the unpaired last element contribute no
        sibling; the position is halved after every layer either way.
        """
        proof: List[bytes] = []

        for layer in self._layers[:-1]:
            sibling = position - 1 if position % 2 == 1 else position + 1
            if sibling < len(layer):
                proof.append(layer[sibling])
            position //= 2

        return proof

    def get_proof(self, element: BytesLike) -> List[bytes]:
        """
        Generate a membership proof for a leaf digest.

        The proof lists sibling digests from the leaf's pair up to just
        below the root. Verify it with ``check_proof`` for unordered trees,
        or with ``check_proof_ordered`` and ``index_of(element)`` for
        ordered trees.

        Args:
            element: Leaf digest to prove

        Returns:
            List of sibling digests, bottom-up

        Raises:
            ElementNotFoundError: If the digest is not in the leaf layer
        """
        position = self._find(element)
        proof = self._proof_for_position(position)

        log_proof_generation(logger, position=position + 1, proof_length=len(proof), ordered=False)

        return proof

    def get_proof_ordered(self, element: BytesLike, index: int) -> List[bytes]:
        """
        Generate a membership proof for a leaf at a given position.

        Args:
            element: Leaf digest to prove
            index: 1-based position of ``element`` in the leaf layer

        Returns:
            List of sibling digests, bottom-up

        Raises:
            IndexMismatchError: If ``index`` is out of range or the leaf at
                ``index`` is not ``element``
        """
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexMismatchError(f"Index must be an integer, got {index!r}")

        if index < 1 or index > len(self._leaves):
            raise IndexMismatchError(
                f"Index {index} out of range [1, {len(self._leaves)}]"
            )

        if not isinstance(element, (bytes, bytearray, memoryview)) or \
                self._leaves[index - 1] != bytes(element):
            raise IndexMismatchError(f"Element at index {index} does not match the given element")

        proof = self._proof_for_position(index - 1)

        log_proof_generation(logger, position=index, proof_length=len(proof), ordered=True)

        return proof

    def __len__(self) -> int:
        return len(self._leaves)

    def __contains__(self, element: object) -> bool:
        try:
            self._find(element)
        except ElementNotFoundError:
            return False
        return True

    def __repr__(self) -> str:
        return (
            f"MerkleTree(leaf_count={len(self._leaves)}, "
            f"preserve_order={self._preserve_order}, "
            f"hash_function={self._hash_function.name!r}, "
            f"root={to_hex(self.get_root())!r})"
        )


def merkle_root(
    elements: Sequence[BytesLike],
    preserve_order: bool = False,
    hash_function: Optional[HashFunction] = None,
) -> bytes:
    """
    Compute the Merkle root of a collection of leaf digests.

    Args:
        elements: Leaf digests
        preserve_order: Build an ordered tree (default: False)
        hash_function: Hash primitive (default: BLAKE2b-128)

    Returns:
        Root digest

    Raises:
        EmptyInputError: If no leaves remain after normalization
        InvalidElementSizeError: If a leaf has the wrong size
    """
    return MerkleTree(elements, preserve_order=preserve_order, hash_function=hash_function).get_root()
