"""
Leaf normalization for Merkle tree construction.

Turns caller-supplied candidate digests into the tree's leaf layer:
empty candidates are skipped, every other candidate must have the configured
digest size, and in unordered mode the result is deduplicated and sorted.
"""

from typing import Iterable, Tuple, Union

from merkletree.exceptions import EmptyInputError, InvalidElementSizeError
from merkletree.logging_config import get_logger

logger = get_logger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def normalize_leaves(
    elements: Iterable[BytesLike],
    digest_size: int,
    preserve_order: bool = False,
) -> Tuple[bytes, ...]:
    """
    Validate and normalize candidate leaf digests.

    Args:
        elements: Candidate digests, in caller order
        digest_size: Required length in bytes of each non-empty candidate
        preserve_order: If True, keep caller order and duplicates. If False,
            remove duplicates and sort ascending.

    Returns:
        Tuple of leaf digests (layer 0 of the tree)

    Raises:
        TypeError: If a candidate is not bytes-like
        InvalidElementSizeError: If a non-empty candidate has the wrong size
        EmptyInputError: If no leaves remain after skipping empty candidates
    """
    leaves = []
    for index, element in enumerate(elements):
        if not isinstance(element, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"Leaf elements must be bytes-like, got {type(element).__name__} "
                f"at position {index}"
            )

        element = bytes(element)
        if not element:
            # empty buffers are ignored rather than rejected
            continue

        if len(element) != digest_size:
            logger.warning(
                "invalid_leaf_size",
                position=index,
                size=len(element),
                expected_size=digest_size,
            )
            raise InvalidElementSizeError(index, len(element), digest_size)

        leaves.append(element)

    if not leaves:
        raise EmptyInputError("Cannot build a Merkle tree without at least one element")

    if preserve_order:
        return tuple(leaves)

    return tuple(sorted(set(leaves)))
