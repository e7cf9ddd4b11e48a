"""
Hex text form for digests and proofs.

Digests are rendered as ``0x``-prefixed lowercase hex. A proof is rendered as
one ``0x`` prefix followed by the hex of every sibling digest, concatenated in
proof order, for transport in text-based protocols.
"""

from typing import List, Sequence

from merkletree.exceptions import EncodingError


HEX_PREFIX = "0x"


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return HEX_PREFIX + bytes(data).hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        EncodingError: If the string doesn't start with 0x, has odd length,
            or contains invalid hex characters
    """
    if not isinstance(hex_string, str) or not hex_string.startswith(HEX_PREFIX):
        raise EncodingError(
            f"Hex string must start with '{HEX_PREFIX}' prefix, got: {str(hex_string)[:10]}..."
        )

    hex_content = hex_string[len(HEX_PREFIX):]

    if len(hex_content) % 2 != 0:
        raise EncodingError(
            f"Hex string must have even length after {HEX_PREFIX} prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise EncodingError(f"Invalid hex characters in string: {e}") from e


def proof_to_hex(proof: Sequence[bytes]) -> str:
    """
    Render a proof as one prefixed hex string.

    An empty proof renders as ``"0x"``.
    """
    return HEX_PREFIX + "".join(bytes(digest).hex() for digest in proof)


def proof_from_hex(hex_string: str, digest_size: int) -> List[bytes]:
    """
    Parse a proof rendered by ``proof_to_hex``.

    Args:
        hex_string: Prefixed hex string
        digest_size: Length in bytes of each digest in the proof

    Returns:
        List of sibling digests

    Raises:
        EncodingError: If the text is malformed or its length is not a
            multiple of ``digest_size``
    """
    if digest_size < 1:
        raise EncodingError(f"Digest size must be positive, got {digest_size}")

    raw = from_hex(hex_string)
    if len(raw) % digest_size != 0:
        raise EncodingError(
            f"Proof length {len(raw)} is not a multiple of digest size {digest_size}"
        )

    return [raw[offset:offset + digest_size] for offset in range(0, len(raw), digest_size)]
