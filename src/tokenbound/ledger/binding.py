from __future__ import annotations

"""tokenbound.ledger.binding

Immutable token binding of an account.

The binding is carried as a fixed 128-byte footer written once when the
account is constructed:

  word 0: salt
  word 1: chain_id
  word 2: registry address (20 bytes, left padded)
  word 3: token_id

Each word is 32 bytes, big-endian. The footer is the only place the binding
lives; readers decode it on every access.
"""

from dataclasses import dataclass
from typing import Tuple

from tokenbound.runtime.abi import normalize_address

WORD = 32
FOOTER_SIZE = 4 * WORD
_MAX_WORD = (1 << (8 * WORD)) - 1


def _word(v: int) -> bytes:
    if v < 0 or v > _MAX_WORD:
        raise ValueError(f"value out of range for a 32-byte word: {v}")
    return int(v).to_bytes(WORD, "big")


@dataclass(frozen=True, slots=True)
class TokenBinding:
    chain_id: int
    registry: str
    token_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "registry", normalize_address(self.registry))
        object.__setattr__(self, "chain_id", int(self.chain_id))
        object.__setattr__(self, "token_id", int(self.token_id))
        _word(self.chain_id)
        _word(self.token_id)

    def as_tuple(self) -> Tuple[int, str, int]:
        return self.chain_id, self.registry, self.token_id


def encode_footer(binding: TokenBinding, *, salt: int = 0) -> bytes:
    registry_b = bytes.fromhex(binding.registry[2:])
    return _word(int(salt)) + _word(binding.chain_id) + bytes(WORD - 20) + registry_b + _word(binding.token_id)


def decode_footer(footer: bytes) -> Tuple[int, TokenBinding]:
    """Return (salt, binding). Raises ValueError on a malformed footer."""
    raw = bytes(footer)
    if len(raw) != FOOTER_SIZE:
        raise ValueError(f"footer must be {FOOTER_SIZE} bytes; got {len(raw)}")
    words = [raw[i * WORD : (i + 1) * WORD] for i in range(4)]
    if any(words[2][: WORD - 20]):
        raise ValueError("registry word has non-zero padding")
    salt = int.from_bytes(words[0], "big")
    binding = TokenBinding(
        chain_id=int.from_bytes(words[1], "big"),
        registry="0x" + words[2][WORD - 20 :].hex(),
        token_id=int.from_bytes(words[3], "big"),
    )
    return salt, binding
