"""
Per-directory record of the image names already copied into that directory.

Every destination directory owns its own igcopy.db, so an output folder can be
moved or archived together with the list of what it already holds.
"""
import logging
import os
import sqlite3

from errors import StorageOpenError, StorageReadError, StorageWriteError
from shared_methods import log_debug, log_warning

LEDGER_FILE_NAME = 'igcopy.db'
LEDGER_TABLE = 'files'
LEDGER_COLUMN = 'name'

default_logger = logging.getLogger('igcopy')


class LedgerStore:
    """Interface shared by the ledger implementations: open, exists, insert, close."""

    @classmethod
    def open(cls, directory, logger=None):
        raise NotImplementedError

    def exists(self, name):
        raise NotImplementedError

    def insert(self, name):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError


class SqliteLedgerStore(LedgerStore):
    def __init__(self, conn, path, logger=None):
        self.conn = conn
        self.path = path
        self.logger = logger or default_logger

    @classmethod
    def open(cls, directory, logger=None):
        """
        Opens (or creates) the ledger file inside a directory and makes sure its table exists.

        Args:
        - directory (str or Path): The destination directory that owns the ledger.
        - logger (optional): A logging object used for logging information and errors.

        Returns:
        - SqliteLedgerStore: An open ledger.

        Raises:
        - StorageOpenError: If the file cannot be opened, is not a database, or the table cannot be created.
        """
        path = os.path.join(directory, LEDGER_FILE_NAME)
        conn = None
        try:
            conn = sqlite3.connect(path)
            c = conn.cursor()
            c.execute(f"CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} ({LEDGER_COLUMN} TEXT PRIMARY KEY)")
            conn.commit()
        except sqlite3.Error as e:
            if conn:
                conn.close()
            raise StorageOpenError(path, e) from e
        log_debug(logger or default_logger, f"Opened ledger: {path}")
        return cls(conn, path, logger)

    def exists(self, name):
        try:
            c = self.conn.cursor()
            c.execute(f"SELECT 1 FROM {LEDGER_TABLE} WHERE {LEDGER_COLUMN} = ?", (name,))
            return c.fetchone() is not None
        except sqlite3.Error as e:
            raise StorageReadError(os.path.join(os.path.dirname(self.path), name), e) from e

    def insert(self, name):
        # A duplicate name violates the primary key and is reported, not ignored
        try:
            c = self.conn.cursor()
            c.execute(f"INSERT INTO {LEDGER_TABLE} ({LEDGER_COLUMN}) VALUES (?)", (name,))
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(os.path.join(os.path.dirname(self.path), name), e) from e

    def close(self):
        if self.conn is None:
            return
        try:
            self.conn.close()
            log_debug(self.logger, f"Closed ledger: {self.path}")
        except sqlite3.Error as e:
            log_warning(self.logger, f"Error closing ledger \"{self.path}\": {e}")
        finally:
            self.conn = None


class MemoryLedgerStore(LedgerStore):
    """
    Ledger kept in memory, for runs where nothing should touch the disk.

    open() gives a standalone empty ledger. factory() returns an opener whose ledgers
    share one dict of names per directory (exposed as opener.tables), so a second
    run with the same opener sees what the first one recorded.
    """

    def __init__(self, directory, names=None):
        self.directory = str(directory)
        self.names = set() if names is None else names
        self.closed = False

    @classmethod
    def open(cls, directory, logger=None):
        return cls(directory)

    @classmethod
    def factory(cls, tables=None):
        tables = {} if tables is None else tables

        def open_store(directory, logger=None):
            return cls(directory, tables.setdefault(str(directory), set()))

        open_store.tables = tables
        return open_store

    def exists(self, name):
        return name in self.names

    def insert(self, name):
        if name in self.names:
            raise StorageWriteError(os.path.join(self.directory, name), "UNIQUE constraint failed")
        self.names.add(name)

    def close(self):
        self.closed = True


class LedgerCache:
    """
    Open ledgers for one run, keyed by destination directory.

    The first request for a directory opens its ledger; later requests reuse it. Use it as a
    context manager so every ledger is closed exactly once when the run ends, however it ends.
    Not safe to share between threads.
    """

    def __init__(self, store_factory=None, logger=None):
        self.logger = logger or default_logger
        self.store_factory = store_factory or SqliteLedgerStore.open
        self.stores = {}

    def get_or_open(self, directory):
        key = os.path.normpath(str(directory))
        store = self.stores.get(key)
        if store is None:
            store = self.store_factory(key, logger=self.logger)
            self.stores[key] = store
        return store

    def close_all(self):
        stores, self.stores = self.stores, {}
        for store in stores.values():
            store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close_all()
        return False
