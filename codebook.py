"""
Code book: a small open-hashing map from a character to its bit sequence.

Buckets are sorted arrays searched with bisection, and the whole table grows
(with a full rehash) when too many buckets are in use or a single bucket gets
crowded. Nothing is ever removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from bitarray import bitarray

INITIAL_CAPACITY = 16
MAX_LOAD_FACTOR = 0.6
MAX_BUCKET_SIZE = 4


def grown(capacity: int) -> int:
    return capacity * 3 // 2 + 1


class MissingSymbolError(KeyError):
    """Raised by a strict encode when the text holds a character with no code."""

    def __init__(self, symbol: str):
        super().__init__(symbol)
        self.symbol = symbol

    def __str__(self):
        return f"no code for symbol {self.symbol!r}"


@dataclass(frozen=True)
class CodeEntry:
    key: str
    data: bitarray

    def __str__(self):
        return f"{self.key}={self.data.to01()}"


class CodeSet: # one bucket: entries sorted by key, no duplicate keys
    def __init__(self):
        self._slots: List[Optional[CodeEntry]] = [None] * 2
        self._size = 0

    def __len__(self):
        return self._size

    def __iter__(self) -> Iterator[CodeEntry]:
        for i in range(self._size):
            yield self._slots[i]

    def __str__(self):
        return "[" + ",".join(str(entry) for entry in self) + "]"

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def add(self, entry: CodeEntry) -> None:
        index = self._insert_index(entry.key)
        if index < self._size and self._slots[index].key == entry.key:
            self._slots[index] = entry # overwrite in place, order is unchanged
            return

        self._shift_right(index)
        self._slots[index] = entry

    def get(self, key: str) -> Optional[CodeEntry]:
        index = self._search(key)
        return None if index == -1 else self._slots[index]

    def entry_at(self, index: int) -> Optional[CodeEntry]:
        if index < 0 or index >= self._size:
            return None
        return self._slots[index]

    def contains_key(self, key: str) -> bool:
        # the table keeps buckets short, so this is constant time in practice
        return self._search(key) != -1

    def _insert_index(self, key: str) -> int:
        # first slot whose key is >= key
        lo, hi = 0, self._size
        while lo < hi:
            mid = (lo + hi) // 2
            if self._slots[mid].key < key:
                lo = mid + 1
            else:
                hi = mid
        return lo

    def _search(self, key: str) -> int:
        lo, hi = 0, self._size - 1
        while lo <= hi:
            mid = (lo + hi) // 2
            mid_key = self._slots[mid].key
            if key == mid_key:
                return mid
            elif key < mid_key:
                hi = mid - 1
            else:
                lo = mid + 1
        return -1

    def _shift_right(self, index: int) -> None:
        if self._size == len(self._slots):
            self._grow()
        for i in range(self._size, index, -1):
            self._slots[i] = self._slots[i - 1]
        self._size += 1

    def _grow(self) -> None:
        self._slots.extend([None] * (grown(len(self._slots)) - len(self._slots)))


class CodeBook:
    """Maps single characters to bit sequences.

    Keys hash to ``ord(key) % capacity``. After every insert the table grows
    to ``capacity * 3 // 2 + 1`` buckets when more than 60% of the buckets
    are in use or the bucket just written holds more than four entries.
    Iteration yields keys by bucket index, then in sorted order inside a
    bucket; that order changes whenever the table grows.

    Not thread safe.
    """

    def __init__(self, capacity: int = INITIAL_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._buckets: List[Optional[CodeSet]] = [None] * capacity
        self._occupied = 0 # number of non-empty buckets
        self._count = 0
        self._resizes = 0

    @classmethod
    def from_mapping(cls, mapping) -> "CodeBook":
        book = cls()
        for key, seq in mapping.items():
            book.insert(key, seq)
        return book

    # Introspection

    @property
    def capacity(self) -> int:
        return len(self._buckets)

    @property
    def occupied(self) -> int:
        return self._occupied

    @property
    def load_factor(self) -> float:
        return self._occupied / len(self._buckets)

    @property
    def max_bucket_size(self) -> int:
        return max((len(b) for b in self._buckets if b is not None), default=0)

    @property
    def resize_count(self) -> int:
        return self._resizes

    def buckets(self) -> Iterator[CodeSet]:
        """Yield the non-empty buckets in index order."""
        for bucket in self._buckets:
            if bucket is not None:
                yield bucket

    # Map operations

    def insert(self, key: str, seq: bitarray) -> None:
        if not isinstance(key, str) or len(key) != 1:
            raise ValueError(f"key must be a single character, got {key!r}")

        bucket = self._place(CodeEntry(key, seq))
        if self.load_factor > MAX_LOAD_FACTOR or len(bucket) > MAX_BUCKET_SIZE:
            self._increase_size()

    def contains(self, key: str) -> bool:
        bucket = self._buckets[self._index(key)]
        return bucket is not None and bucket.contains_key(key)

    def __contains__(self, key) -> bool:
        return isinstance(key, str) and len(key) == 1 and self.contains(key)

    def contains_all(self, text: Iterable[str]) -> bool:
        return all(self.contains(ch) for ch in text)

    def lookup(self, key: str) -> Optional[bitarray]:
        bucket = self._buckets[self._index(key)]
        if bucket is None:
            return None
        entry = bucket.get(key)
        return entry.data if entry is not None else None

    def encode(self, text: str, strict: bool = False) -> bitarray:
        """Concatenate the codes of every character in ``text``.

        Characters without a code are skipped. With ``strict`` the text is
        checked first and the first unknown character raises
        :class:`MissingSymbolError`.
        """
        if strict and not self.contains_all(text):
            raise MissingSymbolError(next(ch for ch in text if not self.contains(ch)))

        out = bitarray()
        for ch in text:
            seq = self.lookup(ch)
            if seq is not None:
                out.extend(seq)
        return out

    def __len__(self):
        return self._count

    def __iter__(self) -> Iterator[str]:
        return CodeBookIterator(self._buckets, self._occupied)

    def __str__(self):
        return "[\n" + ",\n".join(str(b) for b in self.buckets()) + "\n]"

    def __repr__(self):
        return f"CodeBook(symbols={self._count}, capacity={self.capacity}, occupied={self._occupied})"

    # Internals

    def _index(self, key: str) -> int:
        return ord(key) % len(self._buckets)

    def _place(self, entry: CodeEntry) -> CodeSet:
        index = self._index(entry.key)
        bucket = self._buckets[index]
        if bucket is None:
            bucket = self._buckets[index] = CodeSet()
            self._occupied += 1

        before = len(bucket)
        bucket.add(entry)
        self._count += len(bucket) - before
        return bucket

    def _increase_size(self) -> None:
        old = self._buckets
        self._buckets = [None] * grown(len(old))
        self._occupied = 0
        self._count = 0
        self._resizes += 1

        # replay in discovery order; no growth checks until the rehash is done
        for bucket in old:
            if bucket is None:
                continue
            for entry in bucket:
                self._place(entry)


class CodeBookIterator:
    """Walks the keys of a bucket array: bucket index first, then bucket order."""

    def __init__(self, buckets: List[Optional[CodeSet]], occupied: int):
        self._buckets = buckets
        self._occupied = occupied
        self._bucket_index = 0
        self._list_index = 0
        self._finished_buckets = 0

    def __iter__(self):
        return self

    def has_next(self) -> bool:
        return self._finished_buckets < self._occupied

    def __next__(self) -> str:
        if not self.has_next():
            raise StopIteration

        # skip empty slots
        while self._buckets[self._bucket_index] is None:
            self._bucket_index += 1

        bucket = self._buckets[self._bucket_index]
        key = bucket.entry_at(self._list_index).key

        self._list_index += 1
        if self._list_index >= len(bucket):
            self._list_index = 0
            self._bucket_index += 1
            self._finished_buckets += 1
        return key
