import sqlite3

import pytest

from house_tg.errors import StoreError
from house_tg.stores import RecipientStore, SeenListingStore


def test_seen_store_add_and_contains(seen):
    assert not seen.contains(101)
    assert seen.add(101) is True
    assert seen.contains(101)
    assert not seen.contains(102)


def test_seen_store_survives_reopen(tmp_path):
    path = tmp_path / "houses.db"
    SeenListingStore(path).add(101)

    reopened = SeenListingStore(path)
    assert reopened.contains(101)
    assert reopened.count() == 1


def test_seen_store_count_and_ids(seen):
    assert seen.count() == 0
    for listing_id in (103, 101, 102):
        seen.add(listing_id)
    assert seen.count() == 3
    assert seen.ids() == [101, 102, 103]


def test_recipient_add_is_idempotent(recipients):
    assert recipients.add(555) is True
    assert recipients.add(555) is False
    assert recipients.list_all() == [555]
    assert recipients.count() == 1


def test_recipient_list_all_is_a_fresh_read(recipients):
    first = recipients.list_all()
    recipients.add(1)
    recipients.add(-100200300)
    assert first == []
    assert sorted(recipients.list_all()) == [-100200300, 1]


def test_stores_can_share_one_file(tmp_path):
    path = tmp_path / "watcher.db"
    seen = SeenListingStore(path)
    chats = RecipientStore(path)
    seen.add(7)
    chats.add(8)
    assert seen.ids() == [7]
    assert chats.list_all() == [8]


def test_uses_single_column_tables(tmp_path):
    SeenListingStore(tmp_path / "houses.db")
    conn = sqlite3.connect(tmp_path / "houses.db")
    try:
        columns = conn.execute("PRAGMA table_info(houses)").fetchall()
    finally:
        conn.close()
    assert [(c[1], c[2], c[5]) for c in columns] == [("id", "INTEGER", 1)]


def test_creates_parent_directory(tmp_path):
    store = RecipientStore(tmp_path / "data" / "chats.db")
    store.add(1)
    assert (tmp_path / "data" / "chats.db").exists()


def test_sqlite_errors_become_store_errors(tmp_path):
    path = tmp_path / "houses.db"
    store = SeenListingStore(path)
    conn = sqlite3.connect(path)
    try:
        conn.execute("DROP TABLE houses")
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(StoreError):
        store.contains(1)
    with pytest.raises(StoreError):
        store.add(1)


def test_unopenable_path_raises_store_error(tmp_path):
    # a directory cannot be opened as a database file
    directory = tmp_path / "not-a-file.db"
    directory.mkdir()
    with pytest.raises(StoreError):
        SeenListingStore(directory)


def test_uncreatable_parent_directory_raises_store_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(StoreError):
        SeenListingStore(blocker / "data" / "houses.db")
