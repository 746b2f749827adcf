import logging
import sqlite3

import pytest

from errors import StorageOpenError, StorageReadError, StorageWriteError
from ledger import LEDGER_FILE_NAME, LedgerCache, MemoryLedgerStore, SqliteLedgerStore


class TestSqliteLedgerStore:

    def test_creates_store_file(self, tmp_path):
        store = SqliteLedgerStore.open(tmp_path)
        store.close()
        assert (tmp_path / LEDGER_FILE_NAME).is_file()

    def test_insert_then_exists(self, tmp_path):
        store = SqliteLedgerStore.open(tmp_path)
        assert not store.exists("a.jpg")
        store.insert("a.jpg")
        assert store.exists("a.jpg")
        assert not store.exists("A.JPG")
        store.close()

    def test_entries_survive_reopen(self, tmp_path):
        store = SqliteLedgerStore.open(tmp_path)
        store.insert("a.jpg")
        store.close()
        reopened = SqliteLedgerStore.open(tmp_path)
        assert reopened.exists("a.jpg")
        reopened.close()

    def test_reads_existing_table_layout(self, tmp_path):
        conn = sqlite3.connect(tmp_path / LEDGER_FILE_NAME)
        conn.execute("CREATE TABLE files (name TEXT PRIMARY KEY)")
        conn.execute("INSERT INTO files (name) VALUES ('old.png')")
        conn.commit()
        conn.close()
        store = SqliteLedgerStore.open(tmp_path)
        assert store.exists("old.png")
        store.close()

    def test_duplicate_insert_fails(self, tmp_path):
        store = SqliteLedgerStore.open(tmp_path)
        store.insert("a.jpg")
        with pytest.raises(StorageWriteError) as excinfo:
            store.insert("a.jpg")
        assert isinstance(excinfo.value.__cause__, sqlite3.IntegrityError)
        store.close()

    def test_corrupt_store(self, tmp_path):
        (tmp_path / LEDGER_FILE_NAME).write_bytes(b"definitely not sqlite " * 50)
        with pytest.raises(StorageOpenError) as excinfo:
            SqliteLedgerStore.open(tmp_path)
        assert LEDGER_FILE_NAME in str(excinfo.value)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(StorageOpenError):
            SqliteLedgerStore.open(tmp_path / "does-not-exist")

    def test_close_twice(self, tmp_path):
        store = SqliteLedgerStore.open(tmp_path)
        store.close()
        store.close()
        assert store.conn is None

    def test_missing_table_is_a_read_error(self, tmp_path):
        store = SqliteLedgerStore.open(tmp_path)
        store.conn.execute("DROP TABLE files")
        with pytest.raises(StorageReadError) as excinfo:
            store.exists("a.jpg")
        assert isinstance(excinfo.value.__cause__, sqlite3.Error)
        assert "a.jpg" in str(excinfo.value)
        store.close()

    def test_close_error_is_only_logged(self, tmp_path, caplog):
        class LockedConnection:
            def close(self):
                raise sqlite3.OperationalError("database is locked")

        store = SqliteLedgerStore(LockedConnection(), str(tmp_path / LEDGER_FILE_NAME))
        with caplog.at_level(logging.WARNING, logger="igcopy"):
            store.close()
        assert store.conn is None
        assert "database is locked" in caplog.text


class TestMemoryLedgerStore:

    def test_factory_shares_names_per_directory(self, tmp_path):
        open_store = MemoryLedgerStore.factory()
        open_store(tmp_path / "a").insert("x.png")
        assert open_store(tmp_path / "a").exists("x.png")
        assert not open_store(tmp_path / "b").exists("x.png")
        assert open_store.tables == {str(tmp_path / "a"): {"x.png"}, str(tmp_path / "b"): set()}

    def test_separate_factories_do_not_share(self, tmp_path):
        MemoryLedgerStore.factory()(tmp_path).insert("x.png")
        assert not MemoryLedgerStore.factory()(tmp_path).exists("x.png")
        assert not MemoryLedgerStore.open(tmp_path).exists("x.png")

    def test_duplicate_insert_fails(self, tmp_path):
        store = MemoryLedgerStore.open(tmp_path)
        store.insert("x.png")
        with pytest.raises(StorageWriteError):
            store.insert("x.png")


class TestLedgerCache:

    def test_opens_once_per_directory(self, tmp_path):
        opened = []

        def factory(directory, logger=None):
            opened.append(directory)
            return MemoryLedgerStore.open(directory)

        cache = LedgerCache(store_factory=factory)
        first = cache.get_or_open(tmp_path / "a")
        assert cache.get_or_open(str(tmp_path / "a")) is first
        cache.get_or_open(tmp_path / "b")
        assert len(opened) == 2

    def test_close_all_closes_each_once(self, tmp_path):
        cache = LedgerCache(store_factory=MemoryLedgerStore.open)
        stores = [cache.get_or_open(tmp_path / d) for d in ("a", "b")]
        cache.close_all()
        cache.close_all()
        assert all(store.closed for store in stores)
        assert cache.stores == {}

    def test_context_manager_closes_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with LedgerCache(store_factory=MemoryLedgerStore.open) as cache:
                store = cache.get_or_open(tmp_path)
                raise RuntimeError("boom")
        assert store.closed

    def test_default_factory_is_sqlite(self, tmp_path):
        with LedgerCache() as cache:
            store = cache.get_or_open(tmp_path)
            assert isinstance(store, SqliteLedgerStore)
        assert store.conn is None
