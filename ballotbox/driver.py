'''External ballot store drivers.

Very large elections may keep their ballots outside the Python process
memory. A driver is a keyed map of ballot payloads (JSON text) that the
:class:`ballotbox.store.BallotStore` pages ballots into and fetches them from
on demand. Attach a driver with
:meth:`ballotbox.election.Election.set_external_driver`.

Drivers are treated as transactional: every call either fully succeeds or
raises, and no call may lose data silently. The store never closes a driver;
the driver's owner is responsible for calling :meth:`close`.
'''

import abc
import logging
from typing import Dict, Iterable, List, Optional

import duckdb


logger = logging.getLogger(__name__)


class BallotStoreDriver(metaclass=abc.ABCMeta):
    '''Keyed storage of serialized ballots.

    Base class, not intended for direct use. Keys are integers assigned by
    the ballot store in ascending order.
    '''
    @abc.abstractmethod
    def get(self, key: int) -> Optional[str]:
        '''Return the payload stored under the key, or None if missing.'''
        raise NotImplementedError

    @abc.abstractmethod
    def put(self, key: int, payload: str) -> None:
        '''Store the payload under the key, replacing any previous one.'''
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, key: int) -> None:
        '''Delete the payload stored under the key, if any.'''
        raise NotImplementedError

    @abc.abstractmethod
    def count(self) -> int:
        '''Return the number of stored payloads.'''
        raise NotImplementedError

    @abc.abstractmethod
    def keys(self) -> List[int]:
        '''Return all stored keys in insertion (ascending) order.'''
        raise NotImplementedError

    def put_many(self, payloads: Dict[int, str]) -> None:
        '''Store multiple payloads at once.'''
        for key, payload in payloads.items():
            self.put(key, payload)

    def close(self) -> None:
        '''Release any resources held by the driver.'''
        pass


class MemoryDriver(BallotStoreDriver):
    '''A driver keeping the payloads in a dictionary.

    Mostly useful for testing the paging machinery; it keeps the ballots
    serialized, which saves some memory compared to ballot objects.
    '''
    def __init__(self):
        self._payloads = {}

    def get(self, key: int) -> Optional[str]:
        return self._payloads.get(key)

    def put(self, key: int, payload: str) -> None:
        self._payloads[key] = payload

    def delete(self, key: int) -> None:
        self._payloads.pop(key, None)

    def count(self) -> int:
        return len(self._payloads)

    def keys(self) -> List[int]:
        return sorted(self._payloads)


class DuckDBDriver(BallotStoreDriver):
    '''A driver storing the payloads in a DuckDB table.

    :param database: Path to the DuckDB database file; the default keeps the
        database in memory (outside of Python objects).
    :param table: Name of the table to store the ballots in. It is created
        if it does not exist.
    :param connection: An existing DuckDB connection to use instead of
        opening a new one. The driver does not close connections it did not
        open.
    '''
    def __init__(self,
                 database: str = ':memory:',
                 table: str = 'ballots',
                 connection: Optional[duckdb.DuckDBPyConnection] = None,
                 ):
        if not table.isidentifier():
            raise ValueError(f'invalid table name: {table!r}')
        self.database = database
        self.table = table
        self._owns_connection = connection is None
        if connection is None:
            connection = duckdb.connect(database)
            logger.debug('opened DuckDB connection to %s', database)
        self._conn = connection
        self._conn.execute(
            f'CREATE TABLE IF NOT EXISTS {self.table} '
            '(key BIGINT PRIMARY KEY, payload VARCHAR NOT NULL)'
        )

    def get(self, key: int) -> Optional[str]:
        row = self._conn.execute(
            f'SELECT payload FROM {self.table} WHERE key = ?', [key]
        ).fetchone()
        return None if row is None else row[0]

    def put(self, key: int, payload: str) -> None:
        self._conn.execute(
            f'INSERT OR REPLACE INTO {self.table} VALUES (?, ?)',
            [key, payload]
        )

    def put_many(self, payloads: Dict[int, str]) -> None:
        if payloads:
            self._conn.executemany(
                f'INSERT OR REPLACE INTO {self.table} VALUES (?, ?)',
                [[key, payload] for key, payload in payloads.items()]
            )

    def delete(self, key: int) -> None:
        self._conn.execute(f'DELETE FROM {self.table} WHERE key = ?', [key])

    def count(self) -> int:
        return self._conn.execute(
            f'SELECT COUNT(*) FROM {self.table}'
        ).fetchone()[0]

    def keys(self) -> List[int]:
        return [
            row[0] for row in self._conn.execute(
                f'SELECT key FROM {self.table} ORDER BY key'
            ).fetchall()
        ]

    def close(self) -> None:
        if self._owns_connection and self._conn is not None:
            self._conn.close()
            logger.debug('closed DuckDB connection to %s', self.database)
        self._conn = None


def payloads_of(driver: BallotStoreDriver,
                keys: Iterable[int],
                ) -> Dict[int, str]:
    '''Fetch payloads for the given keys, failing on any missing one.'''
    fetched = {}
    for key in keys:
        payload = driver.get(key)
        if payload is None:
            raise KeyError(f'ballot {key} missing from external driver')
        fetched[key] = payload
    return fetched
