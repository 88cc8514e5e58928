import pytest

from gracejoin.storage import (
    DISK_SIZE_IN_PAGE,
    MEM_SIZE_IN_PAGE,
    RECORDS_PER_PAGE,
    Bucket,
    Disk,
    Mem,
    Page,
    Record,
    StorageError,
)

SLOTS = MEM_SIZE_IN_PAGE - 2


def _keys_by_slot():
    by_slot = {}
    for n in range(200):
        record = Record(f"k{n}", "x")
        by_slot.setdefault(record.probe_hash() % SLOTS, []).append(record)
    return by_slot


def _full_page(prefix="r"):
    return Page(Record(f"{prefix}{n}", str(n)) for n in range(RECORDS_PER_PAGE))


def test_page_and_memory_sizes_match_source():
    page = Page()
    for n in range(32):
        assert not page.is_full()
        page.add_record(Record(str(n), "d"))
    assert page.is_full()
    with pytest.raises(StorageError):
        page.add_record(Record("extra", "d"))
    assert len(Mem()) == 16


def test_hashes_are_deterministic_and_bounded():
    a = Record("alpha", "1")
    b = Record("alpha", "other")
    assert a.partition_hash() == b.partition_hash()
    assert a.probe_hash() == b.probe_hash()
    for n in range(50):
        r = Record(str(n), "")
        assert 0 <= r.partition_hash() < 1_000_000
        assert 0 <= r.probe_hash() < 1_000_000


def test_joins_with_same_key():
    assert Record("k", "a").joins_with(Record("k", "b")) is True


def test_joins_with_same_slot_different_key():
    group = next(v for v in _keys_by_slot().values() if len(v) >= 2)
    assert group[0].joins_with(group[1]) is False


def test_joins_with_different_slot_raises():
    by_slot = _keys_by_slot()
    slots = sorted(by_slot)
    with pytest.raises(StorageError):
        by_slot[slots[0]][0].joins_with(by_slot[slots[1]][0])


def test_record_ordering_and_equality():
    assert Record("a", "z") < Record("b", "a")
    assert Record("a", "a") < Record("a", "b")
    assert Record("a", "b") == Record("a", "b")
    assert Record("a", "b") != Record("a", "c")


def test_record_str():
    assert str(Record("k", "v")) == "Record with key=k and data=v"


def test_page_fill_and_reset():
    page = Page()
    assert page.is_empty()
    for n in range(RECORDS_PER_PAGE):
        page.add_record(Record(str(n), "d"))
    assert page.is_full()
    assert len(page) == RECORDS_PER_PAGE
    assert page[3] == Record("3", "d")
    with pytest.raises(StorageError):
        page.add_record(Record("x", "y"))
    page.reset()
    assert page.is_empty() and len(page) == 0


def test_page_add_pair_limits():
    page = Page()
    for n in range(RECORDS_PER_PAGE // 2):
        page.add_pair(Record(str(n), "l"), Record(str(n), "r"))
    assert page.is_full()
    assert list(page)[:2] == [Record("0", "l"), Record("0", "r")]

    almost = Page(Record(str(n), "") for n in range(RECORDS_PER_PAGE - 1))
    with pytest.raises(StorageError):
        almost.add_pair(Record("a", ""), Record("b", ""))


def test_page_load_page_copies():
    source = Page([Record("a", "1"), Record("b", "2")])
    target = Page([Record("z", "9")])
    target.load_page(source)
    assert list(target) == list(source)
    source.reset()
    assert len(target) == 2


def test_page_describe():
    page = Page([Record("a", "1"), Record("b", "2")])
    assert page.describe() == (
        "Record with key=a and data=1\nRecord with key=b and data=2\n"
    )


def test_disk_write_stores_copy():
    disk = Disk()
    page = Page([Record("a", "1")])
    page_id = disk.write(page)
    assert page_id == 0
    page.reset()
    assert list(disk.read(page_id)) == [Record("a", "1")]
    assert disk.write(page) == 1
    assert len(disk) == 2


def test_disk_read_invalid_raises():
    disk = Disk()
    with pytest.raises(StorageError):
        disk.read(0)
    with pytest.raises(StorageError):
        disk.read(-1)


def test_disk_out_of_space():
    disk = Disk(capacity=2)
    disk.write(Page())
    disk.write(Page())
    with pytest.raises(StorageError):
        disk.write(Page())


def test_default_disk_capacity():
    disk = Disk()
    for _ in range(DISK_SIZE_IN_PAGE):
        disk.write(Page())
    with pytest.raises(StorageError):
        disk.write(Page())


def test_load_relation_paginates(tmp_path):
    path = tmp_path / "rel.txt"
    count = RECORDS_PER_PAGE * 2 + 5
    path.write_text("".join(f"k{n} data {n}\n" for n in range(count)))
    disk = Disk()
    disk.write(Page())
    pages = disk.load_relation(path)
    assert pages == range(1, 4)
    records = [r for page_id in pages for r in disk.read(page_id)]
    assert len(records) == count
    assert records[0] == Record("k0", "data 0")
    assert all(disk.read(i).is_full() for i in pages[:-1])


def test_load_relation_line_without_space(tmp_path):
    path = tmp_path / "rel.txt"
    path.write_text("lonely\nkey value")
    disk = Disk()
    pages = disk.load_relation(path)
    assert list(disk.read(pages[0])) == [
        Record("lonely", "lonely"),
        Record("key", "value"),
    ]


def test_load_relation_empty_file(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("")
    disk = Disk()
    pages = disk.load_relation(path)
    assert len(pages) == 1
    assert disk.read(pages[0]).is_empty()


def test_disk_describe(tmp_path):
    disk = Disk()
    disk.write(Page([Record("a", "1")]))
    disk.write(Page([Record("b", "2")]))
    assert disk.describe(1) == "Record with key=b and data=2\n"
    assert disk.describe() == (
        "Disk page id: 0\nRecord with key=a and data=1\n"
        "Disk page id: 1\nRecord with key=b and data=2\n"
    )


def test_mem_load_and_flush():
    disk = Disk()
    mem = Mem()
    assert len(mem) == MEM_SIZE_IN_PAGE
    source_id = disk.write(Page([Record("a", "1"), Record("b", "2")]))
    mem.load_from_disk(disk, source_id, 3)
    assert mem.load_count == 1
    assert list(mem.page(3)) == list(disk.read(source_id))

    new_id = mem.flush_to_disk(disk, 3)
    assert new_id == source_id + 1
    assert mem.flush_count == 1
    assert mem.page(3).is_empty()
    assert list(disk.read(new_id)) == [Record("a", "1"), Record("b", "2")]


def test_mem_invalid_page_raises():
    mem = Mem()
    with pytest.raises(StorageError):
        mem.page(MEM_SIZE_IN_PAGE)


def test_mem_reset_clears_all_pages():
    mem = Mem()
    mem.page(0).add_record(Record("a", "1"))
    mem.page(5).add_record(Record("b", "2"))
    mem.reset()
    assert all(mem.page(i).is_empty() for i in range(MEM_SIZE_IN_PAGE))


def test_mem_describe_lists_every_page():
    mem = Mem()
    mem.page(1).add_record(Record("a", "1"))
    text = mem.describe()
    assert text.startswith("PageID 0 in Mem:\nPageID 1 in Mem:\n")
    assert "Record with key=a and data=1\n" in text
    assert text.count("in Mem:") == MEM_SIZE_IN_PAGE


def test_bucket_counts_records():
    disk = Disk()
    full_id = disk.write(_full_page())
    small_id = disk.write(Page([Record("x", "1"), Record("y", "2")]))
    bucket = Bucket(disk)
    bucket.add_left_page(full_id)
    bucket.add_left_page(small_id)
    bucket.add_right_page(small_id)
    assert bucket.left_pages == [full_id, small_id]
    assert bucket.right_pages == [small_id]
    assert bucket.left_record_count == RECORDS_PER_PAGE + 2
    assert bucket.right_record_count == 2


def test_bucket_invalid_page_raises():
    bucket = Bucket(Disk())
    with pytest.raises(StorageError):
        bucket.add_left_page(0)