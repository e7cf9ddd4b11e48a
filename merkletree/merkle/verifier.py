"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
merkletree, a product of Garudex Labs

Merkle proof verification.

Verification replays the combination rule over a proof and compares the
result with a claimed root. It needs only the proof, the root and the leaf
(plus its 1-based position for ordered trees), never the tree itself.

Both verifiers are pure: malformed or mismatching input yields False and
never raises, so they can be exposed to untrusted callers.
"""

from typing import List, Optional, Sequence

from merkletree.merkle.hashing import DEFAULT_HASH_FUNCTION, HashFunction, combine


def _as_digest(value: object, digest_size: int) -> Optional[bytes]:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        return None
    value = bytes(value)
    if len(value) != digest_size:
        return None
    return value


def _as_digests(proof: object, digest_size: int) -> Optional[List[bytes]]:
    if isinstance(proof, (str, bytes, bytearray, memoryview)) or \
            not isinstance(proof, (list, tuple)):
        return None

    digests = []
    for sibling in proof:
        digest = _as_digest(sibling, digest_size)
        if digest is None:
            return None
        digests.append(digest)
    return digests


def sibling_layers(position: int, proof_length: int) -> Optional[List[bool]]:
    """
    Reconstruct at which layers a leaf had a sibling.

    Unpaired last elements are carried up without a sibling, so a proof
    skips those layers. For a node at 0-based ``position`` in a tree whose
    last leaf index is N, let j be the highest bit where ``position`` and N
    differ (-1 if equal). Every layer k <= j has a sibling; a layer k > j
    has one iff bit k of ``position`` is set. The sibling count
    (j + 1) + popcount(position >> (j + 1)) strictly increases over the
    admissible j (j == -1 or bit j of ``position`` clear), so the proof
    length picks exactly one layout.

    Args:
        position: 0-based leaf position
        proof_length: Number of siblings in the proof

    Returns:
        One flag per layer, bottom-up, ending at the last layer with a
        sibling; None if no tree layout yields ``proof_length`` siblings
    """
    if position < 0 or proof_length < 0:
        return None

    for highest_diff in range(-1, proof_length):
        if highest_diff >= 0 and (position >> highest_diff) & 1:
            continue
        upper_bits = bin(position >> (highest_diff + 1)).count("1")
        if highest_diff + 1 + upper_bits == proof_length:
            break
    else:
        return None

    layers: List[bool] = []
    remaining = proof_length
    layer = 0
    while remaining:
        has_sibling = layer <= highest_diff or bool((position >> layer) & 1)
        layers.append(has_sibling)
        remaining -= has_sibling
        layer += 1

    return layers


def check_proof(
    proof: Sequence[bytes],
    root: bytes,
    element: bytes,
    hash_function: Optional[HashFunction] = None,
) -> bool:
    """
    Verify a membership proof produced by an unordered tree.

    Each step combines the running digest with the next sibling using the
    position-independent rule (larger digest first).

    Args:
        proof: Sibling digests, bottom-up
        root: Claimed Merkle root
        element: Leaf digest being proven
        hash_function: Hash primitive the tree was built with

    Returns:
        True if the proof reconstructs ``root``, False otherwise
    """
    hash_function = hash_function or DEFAULT_HASH_FUNCTION
    size = hash_function.digest_size

    current = _as_digest(element, size)
    expected_root = _as_digest(root, size)
    siblings = _as_digests(proof, size)
    if current is None or expected_root is None or siblings is None:
        return False

    for sibling in siblings:
        current = combine(current, sibling, hash_function, preserve_order=False)

    return current == expected_root


def check_proof_ordered(
    proof: Sequence[bytes],
    root: bytes,
    element: bytes,
    index: int,
    hash_function: Optional[HashFunction] = None,
) -> bool:
    """
    Verify a membership proof produced by an ordered tree.

    The running digest is the right child when its position in the current
    layer is odd and the left child when it is even. The position is halved
    after every layer, including layers where the leaf's ancestor was
    carried up without a sibling.

    Args:
        proof: Sibling digests, bottom-up
        root: Claimed Merkle root
        element: Leaf digest being proven
        index: 1-based position of ``element`` among the leaves
        hash_function: Hash primitive the tree was built with

    Returns:
        True if the proof reconstructs ``root`` with ``element`` at
        ``index``, False otherwise
    """
    hash_function = hash_function or DEFAULT_HASH_FUNCTION
    size = hash_function.digest_size

    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        return False

    current = _as_digest(element, size)
    expected_root = _as_digest(root, size)
    siblings = _as_digests(proof, size)
    if current is None or expected_root is None or siblings is None:
        return False

    position = index - 1
    layers = sibling_layers(position, len(siblings))
    if layers is None:
        return False

    remaining = iter(siblings)
    for has_sibling in layers:
        if has_sibling:
            sibling = next(remaining)
            if position % 2 == 1:
                current = combine(sibling, current, hash_function, preserve_order=True)
            else:
                current = combine(current, sibling, hash_function, preserve_order=True)
        position //= 2

    return current == expected_root
