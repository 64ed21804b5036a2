"""SHA-256 digest value type."""

import re
from dataclasses import dataclass

DIGEST_SIZE = 32

_HEX_DIGEST = re.compile(r"[0-9a-f]{64}")


@dataclass(frozen=True, order=True)
class Sha256Digest:
    """A 32-octet SHA-256 digest.
    
    Ordering is lexicographic over the octets. The textual form is always
    64 lowercase hexadecimal characters.
    """
    value: bytes
    
    def __post_init__(self) -> None:
        if not isinstance(self.value, bytes):
            raise TypeError(f"digest must be bytes, got {type(self.value).__name__}")
        if len(self.value) != DIGEST_SIZE:
            raise ValueError(f"digest must be {DIGEST_SIZE} bytes, got {len(self.value)}")
    
    @classmethod
    def from_hex(cls, text: str) -> "Sha256Digest":
        """Parse a 64-character lowercase hexadecimal digest.
        
        Raises:
            ValueError: If the text is not exactly 64 lowercase hex characters
        """
        if not isinstance(text, str) or _HEX_DIGEST.fullmatch(text) is None:
            raise ValueError(f"invalid sha256 hex digest: {text!r}")
        return cls(bytes.fromhex(text))
    
    def hex(self) -> str:
        return self.value.hex()
    
    def __str__(self) -> str:
        return self.value.hex()
