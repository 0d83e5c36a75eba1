'''Ballot storage of an election.

The :class:`BallotStore` owns all ballots registered in an election. Ballots
are kept in memory by default; an external driver (see
:mod:`ballotbox.driver`) can be attached to page them out, in which case
only a bounded number of recently registered ballots stays in memory and the
rest is fetched from the driver on demand.

Every insertion and removal is announced to the store listeners; this is how
the owning election keeps its pairwise matrix and result cache consistent.

Iteration is lazy: the list of keys is taken when the iteration starts and
the ballots are then fetched one by one. Ballots removed while an iteration
is running are skipped; ballots added meanwhile are not yielded.
'''

import json
import logging
import weakref
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from ballotbox.driver import BallotStoreDriver, payloads_of
from ballotbox.errors import HandlerError, StateError, ValidationError
from ballotbox.vote import (
    Ballot, InvalidBallotError, VoteTypeError, WeightType, normalize_tags
)


logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 100


class UnknownBallotError(ValidationError, KeyError):
    '''No ballot is stored under the given key.'''
    def __init__(self, key: Any):
        self.key = key
        super().__init__(f'no ballot stored under key {key!r}')

    def __str__(self) -> str:
        return self.args[0]


class BallotLimitError(StateError):
    '''The election already holds the maximum allowed number of ballots.'''
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f'maximum number of ballots reached: {limit}')


class HandlerAlreadyInUseError(HandlerError):
    '''An external driver is already attached to the store.'''
    def __init__(self):
        super().__init__('an external ballot store driver is already in use')


class NoHandlerInUseError(HandlerError):
    '''No external driver is attached to the store.'''
    def __init__(self):
        super().__init__('no external ballot store driver is in use')


class StoreListener:
    '''Receives notifications about ballot store mutations.

    :meth:`before_insert` may raise to veto the insertion; the other methods
    are called after the mutation has been applied.
    '''
    def before_insert(self, ballot: Ballot) -> None:
        pass

    def inserted(self, key: int, ballot: Ballot) -> None:
        pass

    def removed(self, key: int, ballot: Ballot) -> None:
        pass


TagSelector = Union[str, Iterable[str], None]


def tags_match(ballot: Ballot,
               tags: Optional[frozenset],
               match_all: bool = True,
               ) -> bool:
    '''Decide whether the ballot is selected by the tags.

    :param tags: Selecting tags; None selects all ballots.
    :param match_all: If True, select ballots having all the given tags.
        If False, select ballots having none of them.
    '''
    if tags is None:
        return True
    elif match_all:
        return tags <= ballot.tags
    else:
        return tags.isdisjoint(ballot.tags)


class BallotStore:
    '''Keyed, optionally paged storage of ballots of a single election.

    :param election: The owning election. Only a weak reference is kept; the
        election provides the registered candidates, the weighting rule,
        the constraints and the ballot limit for validation and aggregation.
    :param cache_size: Maximum number of ballots kept in memory while an
        external driver is attached.
    '''
    def __init__(self, election, cache_size: int = DEFAULT_CACHE_SIZE):
        self._election = weakref.ref(election)
        self.cache_size = cache_size
        self._container: Dict[int, Ballot] = {}
        self._driver: Optional[BallotStoreDriver] = None
        self._next_key = 0
        self._listeners: List[StoreListener] = []

    @property
    def election(self):
        election = self._election()
        if election is None:
            raise ReferenceError('the owning election no longer exists')
        return election

    @property
    def next_key(self) -> int:
        return self._next_key

    @property
    def driver(self) -> Optional[BallotStoreDriver]:
        return self._driver

    def is_using_driver(self) -> bool:
        return self._driver is not None

    def subscribe(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    def add(self, ballot: Ballot) -> int:
        '''Register a ballot and return its key.

        :raises InvalidBallotError: If the ballot is invalid in the election
            or is already bound to a key.
        :raises BallotLimitError: If the election's ballot limit is reached.
        '''
        if not isinstance(ballot, Ballot):
            raise VoteTypeError(ballot, 'Ballot')
        if ballot.key is not None:
            raise InvalidBallotError(ballot, 'already registered')
        for listener in self._listeners:
            listener.before_insert(ballot)
        election = self.election
        ballot.validate(
            frozenset(election.candidate_names()), election.weight_allowed
        )
        max_ballots = election.config.max_ballots
        if max_ballots is not None and len(self) >= max_ballots:
            raise BallotLimitError(max_ballots)
        key = self._next_key
        self._next_key += 1
        bound = ballot.bind(key)
        self._container[key] = bound
        logger.debug('stored ballot %d: %s', key, bound)
        if self._driver is not None and len(self._container) > self.cache_size:
            self._flush()
        for listener in self._listeners:
            listener.inserted(key, bound)
        return key

    def remove(self,
               selector: Union[int, TagSelector],
               match_all: bool = True,
               ) -> int:
        '''Remove ballots and return their count.

        :param selector: An integer key of a single ballot, or tags selecting
            the ballots to remove (a string is split at commas).
        :param match_all: For tag selection: if True, remove ballots having
            all the given tags; if False, remove ballots having none of them.
        :raises UnknownBallotError: If no ballot is stored under the key.
        '''
        if isinstance(selector, int) and not isinstance(selector, bool):
            if selector not in self:
                raise UnknownBallotError(selector)
            keys = [selector]
        else:
            keys = [
                ballot.key for ballot in self.iterate(selector, match_all)
            ]
        for key in keys:
            ballot = self._pop(key)
            logger.debug('removed ballot %d: %s', key, ballot)
            for listener in self._listeners:
                listener.removed(key, ballot)
        return len(keys)

    def get(self, key: int) -> Ballot:
        '''Return the ballot stored under the key.

        :raises UnknownBallotError: If there is no such ballot.
        '''
        ballot = self._fetch(key)
        if ballot is None:
            raise UnknownBallotError(key)
        return ballot

    def keys(self) -> List[int]:
        '''Return the keys of all stored ballots in insertion order.'''
        if self._driver is None:
            return list(self._container)
        return sorted(set(self._driver.keys()).union(self._container))

    def iterate(self,
                tags: TagSelector = None,
                match_all: bool = True,
                ) -> Iterator[Ballot]:
        '''Lazily yield stored ballots in insertion order.

        :param tags: Tags selecting the ballots; None yields all of them.
        :param match_all: If True, yield ballots having all the given tags;
            if False, yield ballots having none of them.
        '''
        tagset = None if tags is None else normalize_tags(tags)
        for key in self.keys():
            ballot = self._fetch(key)
            if ballot is not None and tags_match(ballot, tagset, match_all):
                yield ballot

    def iterate_valid(self,
                      tags: TagSelector = None,
                      match_all: bool = True,
                      ) -> Iterator[Ballot]:
        '''Like :meth:`iterate`, but skip ballots failing any constraint.'''
        election = self.election
        for ballot in self.iterate(tags, match_all):
            if election.test_ballot(ballot):
                yield ballot

    def count(self, tags: TagSelector = None, match_all: bool = True) -> int:
        '''Count the ballots, optionally only those selected by tags.'''
        if tags is None:
            return len(self)
        return sum(1 for ballot in self.iterate(tags, match_all))

    def count_invalid(self) -> int:
        '''Count the ballots failing any of the election's constraints.'''
        election = self.election
        return sum(
            1 for ballot in self.iterate() if not election.test_ballot(ballot)
        )

    def sum_weight(self, only_valid: bool = False) -> WeightType:
        '''Sum the effective weights of the ballots.

        :param only_valid: Whether to skip ballots failing any constraint.
        '''
        weight_allowed = self.election.weight_allowed
        ballots = self.iterate_valid() if only_valid else self.iterate()
        return sum(
            ballot.effective_weight(weight_allowed) for ballot in ballots
        )

    def attach(self, driver: BallotStoreDriver) -> None:
        '''Start paging ballots into an external driver.

        All ballots currently in memory are moved to the driver.

        :raises HandlerAlreadyInUseError: If a driver is already attached.
        :raises HandlerError: If the driver already contains ballots.
        '''
        if self._driver is not None:
            raise HandlerAlreadyInUseError()
        if driver.count() > 0:
            raise HandlerError('the external ballot store driver is not empty')
        self._driver = driver
        self._flush()
        logger.info('attached external ballot store driver %r', driver)

    def detach(self) -> BallotStoreDriver:
        '''Stop using the external driver and load all ballots into memory.

        The ballots are moved out of the driver, which is returned (but not
        closed).

        :raises NoHandlerInUseError: If no driver is attached.
        '''
        if self._driver is None:
            raise NoHandlerInUseError()
        driver = self._driver
        paged_keys = driver.keys()
        loaded = {
            key: self._decode(key, payload)
            for key, payload in payloads_of(driver, paged_keys).items()
        }
        loaded.update(self._container)
        self._container = {key: loaded[key] for key in sorted(loaded)}
        self._driver = None
        for key in paged_keys:
            driver.delete(key)
        logger.info('detached external ballot store driver %r, loaded %d'
                    ' ballots', driver, len(paged_keys))
        return driver

    def load(self, ballots: Iterable[Ballot], next_key: int) -> None:
        '''Fill an empty store with already bound ballots, without notifying
        the listeners. Used when restoring snapshots.'''
        if len(self):
            raise StateError('cannot load ballots into a non-empty store')
        for ballot in ballots:
            self._container[ballot.key] = ballot
        self._next_key = next_key

    def _pop(self, key: int) -> Ballot:
        if key in self._container:
            return self._container.pop(key)
        ballot = self._fetch(key)
        self._driver.delete(key)
        return ballot

    def _fetch(self, key: int) -> Optional[Ballot]:
        ballot = self._container.get(key)
        if ballot is None and self._driver is not None:
            payload = self._driver.get(key)
            if payload is not None:
                ballot = self._decode(key, payload)
        return ballot

    def _flush(self) -> None:
        if self._container:
            self._driver.put_many({
                key: self._encode(ballot)
                for key, ballot in self._container.items()
            })
            logger.debug('paged %d ballots out to the external driver',
                         len(self._container))
            self._container = {}

    @staticmethod
    def _encode(ballot: Ballot) -> str:
        return json.dumps(ballot.to_dict(), sort_keys=True)

    @staticmethod
    def _decode(key: int, payload: str) -> Ballot:
        return Ballot.from_dict(json.loads(payload)).bind(key)

    def __len__(self) -> int:
        if self._driver is None:
            return len(self._container)
        return len(self._container) + self._driver.count()

    def __contains__(self, key: Any) -> bool:
        return self._fetch(key) is not None

    def __iter__(self) -> Iterator[Ballot]:
        return self.iterate()
