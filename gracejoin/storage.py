"""Simulated disk and memory pages used by the Grace hash join."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

RECORDS_PER_PAGE = 32
MEM_SIZE_IN_PAGE = 16
DISK_SIZE_IN_PAGE = 999

_MODULAR = 1_000_000


class StorageError(Exception):
    """Raised when a page, disk or memory operation is not possible."""


def _stable_hash(text: str) -> int:
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big")


@dataclass(frozen=True, order=True)
class Record:
    """A key/data pair; records are joined on their key."""

    key: str
    data: str

    def partition_hash(self) -> int:
        """Hash of the key used to pick a partition (h1)."""
        return _stable_hash(self.key) % _MODULAR

    def probe_hash(self) -> int:
        """Hash of the key used to build the probe table (h2)."""
        return _stable_hash("key:" + self.key) % _MODULAR

    def joins_with(self, other: Record) -> bool:
        """Return whether both records share a key.

        Only records that land in the same probe-table slot may be compared.
        """
        slots = MEM_SIZE_IN_PAGE - 2
        if self.probe_hash() % slots != other.probe_hash() % slots:
            raise StorageError(
                "cannot compare two records with different probe hash values of key"
            )
        return self.key == other.key

    def __str__(self) -> str:
        return f"Record with key={self.key} and data={self.data}"


class Page:
    """A fixed-capacity page of records."""

    capacity = RECORDS_PER_PAGE

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: list[Record] = []
        for record in records:
            self.add_record(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    def __repr__(self) -> str:
        return f"Page({self._records!r})"

    def is_empty(self) -> bool:
        return not self._records

    def is_full(self) -> bool:
        return len(self._records) == self.capacity

    def reset(self) -> None:
        self._records.clear()

    def add_record(self, record: Record) -> None:
        if len(self._records) >= self.capacity:
            raise StorageError("cannot add record into full page")
        self._records.append(record)

    def add_pair(self, left: Record, right: Record) -> None:
        """Store a matching pair of records, taking two slots."""
        if len(self._records) >= self.capacity - 1:
            raise StorageError("cannot add record into full page")
        self._records.extend((left, right))

    def load_page(self, other: Page) -> None:
        """Replace this page's contents with a copy of another page's."""
        self._records = list(other)

    def copy(self) -> Page:
        page = Page()
        page.load_page(self)
        return page

    def describe(self) -> str:
        return "".join(f"{record}\n" for record in self._records)


class Disk:
    """An append-only store of pages addressed by page id."""

    def __init__(self, capacity: int = DISK_SIZE_IN_PAGE) -> None:
        self.capacity = capacity
        self._pages: list[Page] = []

    def __len__(self) -> int:
        return len(self._pages)

    def write(self, page: Page) -> int:
        """Store a copy of the page and return its new disk page id."""
        if len(self._pages) >= self.capacity:
            raise StorageError("cannot write to the disk: out of disk space")
        self._pages.append(page.copy())
        return len(self._pages) - 1

    def read(self, page_id: int) -> Page:
        if not 0 <= page_id < len(self._pages):
            raise StorageError("accessing invalid disk page")
        return self._pages[page_id]

    def load_relation(self, path: str | Path) -> range:
        """Load a relation from a text file of "key data" lines.

        Returns the range of disk page ids that hold the relation.
        """
        text = Path(path).read_bytes().decode("utf-8")
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()

        start = len(self._pages)
        self._pages.append(Page())
        for line in lines:
            if self._pages[-1].is_full():
                self._pages.append(Page())
            key, sep, data = line.partition(" ")
            if not sep:
                data = line
            self._pages[-1].add_record(Record(key, data))
        return range(start, len(self._pages))

    def describe(self, page_id: int | None = None) -> str:
        """Describe one page, or every page on the disk."""
        if page_id is not None:
            return self.read(page_id).describe()
        return "".join(
            f"Disk page id: {index}\n{page.describe()}"
            for index, page in enumerate(self._pages)
        )


class Mem:
    """A fixed number of in-memory page buffers."""

    def __init__(self, size: int = MEM_SIZE_IN_PAGE) -> None:
        self._pages = [Page() for _ in range(size)]
        self.load_count = 0
        self.flush_count = 0

    def __len__(self) -> int:
        return len(self._pages)

    def reset(self) -> None:
        for page in self._pages:
            page.reset()

    def page(self, mem_page_id: int) -> Page:
        if not 0 <= mem_page_id < len(self._pages):
            raise StorageError("accessing invalid memory page")
        return self._pages[mem_page_id]

    def load_from_disk(self, disk: Disk, disk_page_id: int, mem_page_id: int) -> None:
        """Copy a disk page into a memory page."""
        source = disk.read(disk_page_id)
        self.page(mem_page_id).load_page(source)
        self.load_count += 1

    def flush_to_disk(self, disk: Disk, mem_page_id: int) -> int:
        """Write a memory page to disk, empty it, and return the disk page id."""
        page = self.page(mem_page_id)
        disk_page_id = disk.write(page)
        page.reset()
        self.flush_count += 1
        return disk_page_id

    def describe(self) -> str:
        return "".join(
            f"PageID {index} in Mem:\n{page.describe()}"
            for index, page in enumerate(self._pages)
        )


@dataclass
class Bucket:
    """One partition: the disk pages of each relation and their record counts."""

    disk: Disk = field(repr=False)
    left_pages: list[int] = field(default_factory=list)
    right_pages: list[int] = field(default_factory=list)
    left_record_count: int = 0
    right_record_count: int = 0

    def add_left_page(self, page_id: int) -> None:
        self.left_pages.append(page_id)
        self.left_record_count += len(self.disk.read(page_id))

    def add_right_page(self, page_id: int) -> None:
        self.right_pages.append(page_id)
        self.right_record_count += len(self.disk.read(page_id))