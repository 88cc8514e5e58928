"""Partition and probe phases of the Grace hash join."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .storage import MEM_SIZE_IN_PAGE, Bucket, Disk, Mem, Record

NUM_BUCKETS = MEM_SIZE_IN_PAGE - 1
PROBE_TABLE_SIZE = MEM_SIZE_IN_PAGE - 2

_OUTPUT_MEM_PAGE = 0
_SCAN_MEM_PAGE = 1


def _partition_relation(
    disk: Disk,
    mem: Mem,
    page_ids: Iterable[int],
    add_page: Callable[[int, int], None],
) -> None:
    """Hash every record of one relation into the bucket buffers.

    Full buffers and, at the end, partly filled ones are flushed to disk.
    add_page(bucket_index, disk_page_id) records each flushed page.
    """
    scratch_id = NUM_BUCKETS
    for page_id in page_ids:
        mem.load_from_disk(disk, page_id, scratch_id)
        scratch = mem.page(scratch_id)
        for record in scratch:
            index = record.partition_hash() % NUM_BUCKETS
            buffer = mem.page(index)
            buffer.add_record(record)
            if buffer.is_full():
                add_page(index, mem.flush_to_disk(disk, index))
        scratch.reset()

    for index in range(NUM_BUCKETS):
        if not mem.page(index).is_empty():
            add_page(index, mem.flush_to_disk(disk, index))


def partition(
    disk: Disk, mem: Mem, left_range: Iterable[int], right_range: Iterable[int]
) -> list[Bucket]:
    """Split both relations into MEM_SIZE_IN_PAGE - 1 buckets on disk.

    left_range and right_range are the disk page ids of each relation,
    as returned by Disk.load_relation.
    """
    buckets = [Bucket(disk) for _ in range(NUM_BUCKETS)]
    _partition_relation(
        disk, mem, left_range, lambda i, pid: buckets[i].add_left_page(pid)
    )
    _partition_relation(
        disk, mem, right_range, lambda i, pid: buckets[i].add_right_page(pid)
    )
    return buckets


def probe(disk: Disk, mem: Mem, buckets: Iterable[Bucket]) -> list[int]:
    """Join each bucket's two sides and return the disk page ids of the result.

    Each result page holds matching pairs; the record from the bucket's
    smaller side comes first in every pair.
    """
    result: list[int] = []
    output = mem.page(_OUTPUT_MEM_PAGE)

    for bucket in buckets:
        if bucket.left_record_count <= bucket.right_record_count:
            smaller, larger = bucket.left_pages, bucket.right_pages
        else:
            smaller, larger = bucket.right_pages, bucket.left_pages

        table: list[list[Record]] = [[] for _ in range(PROBE_TABLE_SIZE)]
        for page_id in smaller:
            mem.load_from_disk(disk, page_id, _SCAN_MEM_PAGE)
            for record in mem.page(_SCAN_MEM_PAGE):
                table[record.probe_hash() % PROBE_TABLE_SIZE].append(record)

        for page_id in larger:
            mem.load_from_disk(disk, page_id, _SCAN_MEM_PAGE)
            for record in mem.page(_SCAN_MEM_PAGE):
                for candidate in table[record.probe_hash() % PROBE_TABLE_SIZE]:
                    if record.joins_with(candidate):
                        output.add_pair(candidate, record)
                        if output.is_full():
                            result.append(mem.flush_to_disk(disk, _OUTPUT_MEM_PAGE))

    if not output.is_empty():
        result.append(mem.flush_to_disk(disk, _OUTPUT_MEM_PAGE))
    return result