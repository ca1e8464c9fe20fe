"""
Module containing a fixed-capacity bit set for pressed key positions, stored as an arena of
64-bit words so that keyboards of any size fit, with bit `i` standing for key index `i`.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

WORD_BITS = 64
_WORD_MASK = (1 << WORD_BITS) - 1


def word_count(capacity: int) -> int:
    """Number of words needed to hold `capacity` bits."""
    return -(-capacity // WORD_BITS)


def byte_count(capacity: int) -> int:
    """Number of bytes needed to hold `capacity` bits when packed."""
    return -(-capacity // 8)


@dataclass(frozen=True, slots=True)
class KeyBitset:
    """Immutable set of key indices in `range(capacity)`."""

    capacity: int
    words: tuple[int, ...]

    def __post_init__(self) -> None:
        if self.capacity < 0:
            raise ValueError(f"Bit set capacity must not be negative, got {self.capacity}")
        if len(self.words) != word_count(self.capacity):
            raise ValueError(f"Need {word_count(self.capacity)} words for {self.capacity} bits, got {len(self.words)}")
        if any(not 0 <= word <= _WORD_MASK for word in self.words):
            raise ValueError("Bit set words must be unsigned 64-bit values")
        if self.words and self.words[-1] >> (self.capacity - (len(self.words) - 1) * WORD_BITS):
            raise ValueError(f"Bit set has bits set past its capacity of {self.capacity}")

    @classmethod
    def empty(cls, capacity: int) -> "KeyBitset":
        """Bit set with no keys pressed."""
        return cls(capacity, (0,) * word_count(capacity))

    @classmethod
    def from_indices(cls, indices: Iterable[int], capacity: int) -> "KeyBitset":
        """Bit set with the given key indices set. Raises IndexError for indices outside of the capacity."""
        words = [0] * word_count(capacity)
        for index in indices:
            if not 0 <= index < capacity:
                raise IndexError(f"Key index {index} is out of range for {capacity} keys")
            words[index // WORD_BITS] |= 1 << (index % WORD_BITS)
        return cls(capacity, tuple(words))

    @classmethod
    def from_bytes(cls, data: bytes, capacity: int) -> "KeyBitset":
        """
        Unpack little-endian bit-packed bytes, bit 0 of byte 0 being key 0. Missing bytes count as zeros,
        bits at or past `capacity` are dropped.
        """
        words = []
        for ind in range(word_count(capacity)):
            word = int.from_bytes(data[ind * 8 : (ind + 1) * 8], "little")
            remaining = capacity - ind * WORD_BITS
            if remaining < WORD_BITS:
                word &= (1 << remaining) - 1
            words.append(word)
        return cls(capacity, tuple(words))

    def to_bytes(self) -> bytes:
        """Pack into `ceil(capacity / 8)` little-endian bytes, the inverse of `from_bytes`."""
        packed = b"".join(word.to_bytes(8, "little") for word in self.words)
        return packed[: byte_count(self.capacity)]

    def __contains__(self, index: object) -> bool:
        if not isinstance(index, int) or not 0 <= index < self.capacity:
            return False
        return bool(self.words[index // WORD_BITS] >> (index % WORD_BITS) & 1)

    def __iter__(self) -> Iterator[int]:
        for ind, word in enumerate(self.words):
            while word:
                low = word & -word
                yield ind * WORD_BITS + low.bit_length() - 1
                word ^= low

    def __len__(self) -> int:
        return sum(word.bit_count() for word in self.words)

    def __repr__(self) -> str:
        return f"KeyBitset(capacity={self.capacity}, pressed={list(self)})"
