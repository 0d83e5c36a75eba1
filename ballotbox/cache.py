'''Memoization of method results.

The election keeps one :class:`ResultCache`. Each entry is keyed by the
method name and a fingerprint of the method options, so results of the same
method with different options coexist. The cache never holds partially
stale data: any mutation of ballots, candidates or election settings clears
it as a whole.
'''

import logging
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from ballotbox.persist import serialize_value
from ballotbox.result import Result


logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]


def fingerprint(options: Dict[str, Any]) -> str:
    '''Return a stable textual fingerprint of method options.'''
    return repr(sorted(
        (name, repr(serialize_value(value))) for name, value in options.items()
    ))


class ResultCache:
    '''Results of election methods computed on the current ballots.'''
    def __init__(self):
        self._entries: Dict[CacheKey, Result] = {}

    def get_or_compute(self,
                       method: str,
                       options: Dict[str, Any],
                       compute: Callable[[], Result],
                       ) -> Result:
        '''Return a copy of the cached result, computing and storing it first
        if it is missing.

        :param method: Canonical name of the method.
        :param options: Options of the method.
        :param compute: Called without arguments to compute the result on
            a cache miss.
        '''
        key = (method, fingerprint(options))
        if key in self._entries:
            logger.debug('cached result for %s %s', *key)
            return self._entries[key].copy()
        result = compute()
        self._entries[key] = result
        return result.copy()

    def get(self,
            method: str,
            options: Optional[Dict[str, Any]] = None,
            ) -> Result:
        '''Return a copy of a cached result.

        :raises KeyError: If the result is not cached.
        '''
        if options is None:
            options = {}
        return self._entries[method, fingerprint(options)].copy()

    def invalidate(self) -> None:
        '''Drop all cached results.'''
        if self._entries:
            logger.debug('invalidating %d cached results', len(self._entries))
        self._entries.clear()

    def items(self) -> Iterator[Tuple[CacheKey, Result]]:
        return iter(list(self._entries.items()))

    def restore(self, key: CacheKey, result: Result) -> None:
        '''Put back a result loaded from a snapshot.'''
        self._entries[tuple(key)] = result

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        if isinstance(key, str):
            return any(method == key for method, _ in self._entries)
        return tuple(key) in self._entries
