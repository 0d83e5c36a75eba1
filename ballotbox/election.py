'''The election: candidates, ballots, settings and results in one object.

An :class:`Election` goes through three states (see :class:`ElectionState`):

1.  ``CANDIDATE_REGISTRATION`` - candidates can be added and removed.
2.  ``BALLOT_REGISTRATION`` - entered with the first ballot (or by
    :meth:`Election.set_state_to_vote`); the list of candidates is frozen and
    ballots can be added and removed.
3.  ``RESULTS_COMPUTED`` - entered when a result is requested; any further
    ballot mutation returns the election to ``BALLOT_REGISTRATION``.

The election owns a :class:`ballotbox.store.BallotStore` with the ballots,
a :class:`ballotbox.pairwise.PairwiseMatrix` aggregating them and
a :class:`ballotbox.cache.ResultCache` of method results. The store notifies
the election of every ballot insertion and removal; once built, the matrix is
then updated incrementally and the cached results are dropped. Changing
a setting that affects the pairwise semantics (implicit ranking, vote
weighting, constraints) drops the matrix, which is then rebuilt from the
ballots when next needed.

A simple session::

    election = Election(candidates=['A', 'B', 'C'])
    election.add_ballot('A > B > C')
    election.add_ballots('B > C > A * 2')
    election.get_winner('Schulze')
'''

import enum
import logging
import weakref
import collections
import dataclasses
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import ballotbox
import ballotbox.evaluate
import ballotbox.evaluate.condorcet
import ballotbox.io.notation
from ballotbox.cache import ResultCache
from ballotbox.candidate import (
    Candidate, CandidateError, UnknownCandidateError, automatic_names,
    candidate_name, validate_name,
)
from ballotbox.constraint import Constraint, ConstraintError
from ballotbox.driver import BallotStoreDriver
from ballotbox.errors import StateError, ValidationError
from ballotbox.evaluate.core import StatsVerbosity
from ballotbox.pairwise import PairwiseMatrix
from ballotbox.persist import check_version, deserialize_value, serialize_value
from ballotbox.result import Result
from ballotbox.store import (
    BallotLimitError, BallotStore, StoreListener, TagSelector
)
from ballotbox.vote import Ballot, InvalidBallotError, WeightType


logger = logging.getLogger(__name__)


class VotingAlreadyStartedError(StateError):
    '''Candidates cannot be changed once ballot registration has begun.'''
    def __init__(self, operation: str = 'change candidates'):
        self.operation = operation
        super().__init__(f'cannot {operation}, voting has already started')


class NoCandidatesError(StateError):
    '''Ballot registration requires at least one registered candidate.'''
    def __init__(self):
        super().__init__('no candidates registered')


class ResultRequestedWithoutVotesError(StateError):
    '''A result was requested before any ballot was registered.'''
    def __init__(self):
        super().__init__('results requested without any ballots registered')


class NoSeatsError(ValidationError):
    '''The number of seats must be a positive integer.'''
    def __init__(self, n_seats: Any):
        self.n_seats = n_seats
        super().__init__(f'invalid number of seats: {n_seats!r}, must be >= 1')


class ElectionState(enum.Enum):
    CANDIDATE_REGISTRATION = 1
    BALLOT_REGISTRATION = 2
    RESULTS_COMPUTED = 3


@dataclasses.dataclass(frozen=True)
class ElectionConfig:
    '''Settings of an election.

    The configuration is immutable; the election replaces it as a whole when
    its settings change.

    :param implicit_ranking: Whether candidates not ranked by a ballot are
        considered ranked equally last. Otherwise, they are left out of the
        pairwise comparisons of that ballot.
    :param weight_allowed: Whether ballot weights are taken into account.
    :param n_seats: Number of seats for apportionment methods.
    :param default_method: Name of the method used when a result is requested
        without naming one.
    :param stats_verbosity: How much detail the methods attach to their
        results.
    :param cache_size: Maximum number of ballots kept in memory while an
        external ballot store driver is used.
    :param max_ballots: Maximum number of ballots in the election; None for
        no limit.
    '''
    implicit_ranking: bool = True
    weight_allowed: bool = False
    n_seats: int = 100
    default_method: str = 'schulze'
    stats_verbosity: StatsVerbosity = StatsVerbosity.STD
    cache_size: int = 100
    max_ballots: Optional[int] = None

    def __post_init__(self):
        if (isinstance(self.n_seats, bool)
                or not isinstance(self.n_seats, int) or self.n_seats < 1):
            raise NoSeatsError(self.n_seats)
        if self.max_ballots is not None and self.max_ballots < 0:
            raise ValueError(f'invalid ballot limit: {self.max_ballots}')
        object.__setattr__(
            self, 'stats_verbosity', StatsVerbosity(self.stats_verbosity)
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dataclasses.asdict(self)
        out['stats_verbosity'] = int(self.stats_verbosity)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ElectionConfig':
        return cls(**data)


class _ElectionListener(StoreListener):
    def __init__(self, election: 'Election'):
        self._election = weakref.ref(election)

    def before_insert(self, ballot: Ballot) -> None:
        self._election()._before_ballot_insert()

    def inserted(self, key: int, ballot: Ballot) -> None:
        self._election()._ballot_inserted(ballot)

    def removed(self, key: int, ballot: Ballot) -> None:
        self._election()._ballot_removed(ballot)


class Election:
    '''A ranked ballot election.

    :param config: Settings of the election; the defaults of
        :class:`ElectionConfig` are used if not given.
    :param candidates: Candidates to register right away.
    :param constraints: Ballot constraints to activate right away.
    '''
    def __init__(self,
                 config: Optional[ElectionConfig] = None,
                 candidates: Iterable[Union[str, Candidate]] = (),
                 constraints: Iterable[Constraint] = (),
                 ):
        self._config = config if config is not None else ElectionConfig()
        self._state = ElectionState.CANDIDATE_REGISTRATION
        self._candidates: Dict[int, Candidate] = collections.OrderedDict()
        self._next_candidate_key = 0
        self._auto_names = automatic_names()
        self._constraints: List[Constraint] = []
        self._store = BallotStore(self, self._config.cache_size)
        self._store.subscribe(_ElectionListener(self))
        self._pairwise: Optional[PairwiseMatrix] = None
        self._cache = ResultCache()
        for candidate in candidates:
            self.add_candidate(candidate)
        for constraint in constraints:
            self.add_constraint(constraint)

    @property
    def config(self) -> ElectionConfig:
        return self._config

    @property
    def state(self) -> ElectionState:
        return self._state

    @property
    def store(self) -> BallotStore:
        return self._store

    @property
    def cache(self) -> ResultCache:
        return self._cache

    # candidates

    def add_candidate(self,
                      candidate: Union[str, Candidate, None] = None,
                      ) -> Candidate:
        '''Register a candidate.

        :param candidate: The candidate or its name. If None, a name is
            generated automatically (A, B, ..., Z, AA, AB...).
        :raises VotingAlreadyStartedError: If ballot registration has begun.
        :raises CandidateError: If the name is invalid or already taken.
        '''
        self._check_candidates_mutable()
        if candidate is None:
            name = next(
                name for name in self._auto_names
                if not self.has_candidate(name)
            )
        else:
            name = validate_name(candidate)
            if self.has_candidate(name):
                raise CandidateError(name, 'duplicate candidate name')
        created = candidate if isinstance(candidate, Candidate) else Candidate(name)
        key = self._next_candidate_key
        self._next_candidate_key += 1
        self._candidates[key] = created
        logger.debug('registered candidate %d: %s', key, name)
        return created

    def add_candidates(self,
                       candidates: Iterable[Union[str, Candidate]],
                       ) -> List[Candidate]:
        '''Register several candidates; none is added if any is invalid.'''
        self._check_candidates_mutable()
        names = [validate_name(candidate) for candidate in candidates]
        for name in names:
            if self.has_candidate(name) or names.count(name) > 1:
                raise CandidateError(name, 'duplicate candidate name')
        return [self.add_candidate(name) for name in names]

    def remove_candidate(self, candidate: Union[str, Candidate]) -> Candidate:
        '''Unregister a candidate and return it.

        :raises VotingAlreadyStartedError: If ballot registration has begun.
        :raises UnknownCandidateError: If the candidate is not registered.
        '''
        self._check_candidates_mutable()
        key = self.get_candidate_key(candidate)
        removed = self._candidates.pop(key)
        logger.debug('unregistered candidate %d: %s', key, removed)
        return removed

    def _check_candidates_mutable(self) -> None:
        if self._state != ElectionState.CANDIDATE_REGISTRATION:
            raise VotingAlreadyStartedError()

    def get_candidates(self) -> List[Candidate]:
        return list(self._candidates.values())

    def candidate_names(self) -> List[str]:
        '''Return the names of the candidates in registration order.'''
        return [candidate.name for candidate in self._candidates.values()]

    def candidate_keys(self) -> Dict[int, str]:
        '''Return the candidate names by their keys.'''
        return {
            key: candidate.name for key, candidate in self._candidates.items()
        }

    def get_candidate_key(self, candidate: Union[str, Candidate]) -> int:
        name = candidate_name(candidate)
        for key, registered in self._candidates.items():
            if registered.name == name:
                return key
        raise UnknownCandidateError(candidate)

    def has_candidate(self, candidate: Union[str, Candidate]) -> bool:
        name = candidate_name(candidate)
        return any(reg.name == name for reg in self._candidates.values())

    def count_candidates(self) -> int:
        return len(self._candidates)

    # state

    def set_state_to_vote(self) -> None:
        '''Move the election to the ballot registration state.

        From candidate registration, this freezes the candidates. From the
        computed results state, this drops the cached results (but keeps the
        pairwise matrix).

        :raises NoCandidatesError: If no candidates are registered.
        '''
        if not self._candidates:
            raise NoCandidatesError()
        if self._state == ElectionState.CANDIDATE_REGISTRATION:
            logger.info('candidate registration closed with %d candidates',
                        len(self._candidates))
        elif self._state == ElectionState.RESULTS_COMPUTED:
            self._cache.invalidate()
        self._set_state(ElectionState.BALLOT_REGISTRATION)

    def _set_state(self, state: ElectionState) -> None:
        if state != self._state:
            logger.info('election state: %s -> %s',
                        self._state.name, state.name)
            self._state = state

    def _before_ballot_insert(self) -> None:
        if not self._candidates:
            raise NoCandidatesError()

    def _ballot_inserted(self, ballot: Ballot) -> None:
        if self._state == ElectionState.CANDIDATE_REGISTRATION:
            self.set_state_to_vote()
        if self._pairwise is not None and self.test_ballot(ballot):
            self._pairwise.apply_insertion(ballot)
        self._ballots_changed()

    def _ballot_removed(self, ballot: Ballot) -> None:
        if self._pairwise is not None and self.test_ballot(ballot):
            self._pairwise.apply_removal(ballot)
        self._ballots_changed()

    def _ballots_changed(self) -> None:
        self._cache.invalidate()
        if self._state == ElectionState.RESULTS_COMPUTED:
            self._set_state(ElectionState.BALLOT_REGISTRATION)

    def _settings_changed(self, drop_pairwise: bool) -> None:
        if drop_pairwise and self._pairwise is not None:
            logger.debug('dropping pairwise matrix')
            self._pairwise = None
        self._ballots_changed()

    # ballots

    def add_ballot(self,
                   ballot: Union[Ballot, str, Iterable[Any]],
                   weight: Any = 1,
                   tags: TagSelector = None,
                   ) -> int:
        '''Register a ballot and return its key.

        :param ballot: A ballot object, a ballot in text notation
            (e.g. ``'A > B = C ^2'``, see :mod:`ballotbox.io.notation`)
            or a ranking to create the ballot from.
        :param weight: Weight of the ballot, if not given by a ballot object
            or the notation.
        :param tags: Tags of the ballot, if not given by a ballot object or
            the notation.
        :raises InvalidBallotError: If the ballot is invalid.
        :raises NoCandidatesError: If no candidates are registered.
        :raises BallotLimitError: If the ballot limit has been reached.
        '''
        return self._store.add(self._make_ballot(ballot, weight, tags))

    def add_ballots(self,
                    ballots: Union[str, Iterable[Union[Ballot, str]]],
                    ) -> List[int]:
        '''Register several ballots and return their keys.

        All ballots are checked before any is registered, so that either all
        of them or none are added.

        :param ballots: Ballots as objects, ballot notation lines, or
            a multiline notation text (which may use the ``* n`` repetition
            suffix).
        '''
        if isinstance(ballots, str):
            prepared = ballotbox.io.notation.parse_ballots(ballots)
        else:
            prepared = []
            for ballot in ballots:
                if isinstance(ballot, str):
                    prepared.extend(ballotbox.io.notation.parse_ballots(ballot))
                else:
                    prepared.append(self._make_ballot(ballot))
        self._before_ballot_insert()
        names = frozenset(self.candidate_names())
        for ballot in prepared:
            if ballot.key is not None:
                raise InvalidBallotError(ballot, 'already registered')
            ballot.validate(names, self.weight_allowed)
        max_ballots = self._config.max_ballots
        n_after = len(self._store) + len(prepared)
        if max_ballots is not None and n_after > max_ballots:
            raise BallotLimitError(max_ballots)
        return [self._store.add(ballot) for ballot in prepared]

    @staticmethod
    def _make_ballot(ballot: Any,
                     weight: Any = 1,
                     tags: TagSelector = None,
                     ) -> Ballot:
        if isinstance(ballot, Ballot):
            return ballot
        elif isinstance(ballot, str):
            return ballotbox.io.notation.parse_ballot(ballot)
        else:
            return Ballot(ballot, weight=weight, tags=tags)

    def remove_ballot(self, key: int) -> None:
        '''Remove the ballot stored under the key.

        :raises UnknownBallotError: If there is no such ballot.
        '''
        self._store.remove(key)

    def remove_ballots(self, tags: TagSelector, match_all: bool = True) -> int:
        '''Remove ballots selected by tags and return their count.

        :param match_all: If True, remove ballots having all the given tags;
            if False, remove ballots having none of them.
        '''
        return self._store.remove(tags, match_all)

    def remove_all_ballots(self) -> int:
        return self._store.remove(None)

    def get_ballot(self, key: int) -> Ballot:
        return self._store.get(key)

    def get_ballots(self,
                    tags: TagSelector = None,
                    match_all: bool = True,
                    ) -> List[Ballot]:
        return list(self._store.iterate(tags, match_all))

    def iterate_ballots(self,
                        tags: TagSelector = None,
                        match_all: bool = True,
                        ) -> Iterator[Ballot]:
        return self._store.iterate(tags, match_all)

    def iterate_valid_ballots(self,
                              tags: TagSelector = None,
                              match_all: bool = True,
                              ) -> Iterator[Ballot]:
        '''Yield the ballots satisfying all constraints.'''
        return self._store.iterate_valid(tags, match_all)

    def count_ballots(self,
                      tags: TagSelector = None,
                      match_all: bool = True,
                      ) -> int:
        return self._store.count(tags, match_all)

    def count_valid_ballots(self) -> int:
        return len(self._store) - self._store.count_invalid()

    def count_invalid_ballots(self) -> int:
        return self._store.count_invalid()

    def sum_weight(self, only_valid: bool = False) -> WeightType:
        '''Sum the effective weights of the ballots.

        Without vote weighting, this equals the number of ballots.
        '''
        return self._store.sum_weight(only_valid)

    def test_ballot(self, ballot: Ballot) -> bool:
        '''Return True if the ballot satisfies all constraints.'''
        return all(
            constraint.is_allowed(self, ballot)
            for constraint in self._constraints
        )

    # settings

    @property
    def implicit_ranking(self) -> bool:
        return self._config.implicit_ranking

    @implicit_ranking.setter
    def implicit_ranking(self, value: bool) -> None:
        self._reconfigure(True, implicit_ranking=bool(value))

    @property
    def weight_allowed(self) -> bool:
        return self._config.weight_allowed

    @weight_allowed.setter
    def weight_allowed(self, value: bool) -> None:
        self._reconfigure(True, weight_allowed=bool(value))

    @property
    def n_seats(self) -> int:
        return self._config.n_seats

    @n_seats.setter
    def n_seats(self, value: int) -> None:
        self._reconfigure(False, n_seats=value)

    @property
    def stats_verbosity(self) -> StatsVerbosity:
        return self._config.stats_verbosity

    @stats_verbosity.setter
    def stats_verbosity(self, value: Union[StatsVerbosity, int]) -> None:
        self._reconfigure(False, stats_verbosity=StatsVerbosity(value))

    def _reconfigure(self, affects_pairwise: bool, **changes) -> None:
        new_config = dataclasses.replace(self._config, **changes)
        if new_config != self._config:
            logger.info('election settings changed: %s', changes)
            self._config = new_config
            self._settings_changed(drop_pairwise=affects_pairwise)

    @property
    def constraints(self) -> List[Constraint]:
        return list(self._constraints)

    def add_constraint(self, constraint: Union[Constraint, type]) -> None:
        '''Activate a ballot constraint.

        :param constraint: A constraint object, or a constraint class to be
            instantiated with its default parameters.
        :raises ConstraintError: If the object is not a constraint or an equal
            constraint is already active.
        '''
        if isinstance(constraint, type) and issubclass(constraint, Constraint):
            constraint = constraint()
        if not isinstance(constraint, Constraint):
            raise ConstraintError(constraint, 'not a ballot constraint')
        if constraint in self._constraints:
            raise ConstraintError(constraint, 'already active')
        self._constraints.append(constraint)
        logger.info('constraint added: %r', constraint)
        self._settings_changed(drop_pairwise=True)

    def remove_constraint(self, constraint: Union[Constraint, type]) -> None:
        if isinstance(constraint, type):
            matching = [c for c in self._constraints if type(c) is constraint]
        else:
            matching = [c for c in self._constraints if c == constraint]
        if not matching:
            raise ConstraintError(constraint, 'not active')
        for found in matching:
            self._constraints.remove(found)
        self._settings_changed(drop_pairwise=True)

    def clear_constraints(self) -> None:
        if self._constraints:
            self._constraints.clear()
            self._settings_changed(drop_pairwise=True)

    # external storage

    def set_external_driver(self, driver: BallotStoreDriver) -> None:
        '''Page the ballots out into an external store driver.

        :raises HandlerAlreadyInUseError: If a driver is already in use.
        '''
        self._store.attach(driver)

    def remove_external_driver(self) -> BallotStoreDriver:
        '''Load all ballots back into memory and return the released driver.

        :raises NoHandlerInUseError: If no driver is in use.
        '''
        return self._store.detach()

    # results

    def get_pairwise(self) -> PairwiseMatrix:
        '''Return the pairwise matrix of the valid ballots.

        The matrix is the live object maintained by the election; do not
        modify it.

        :raises ResultRequestedWithoutVotesError: If the election is still
            in the candidate registration state.
        '''
        if self._state == ElectionState.CANDIDATE_REGISTRATION:
            raise ResultRequestedWithoutVotesError()
        return self._ensure_pairwise()

    def get_explicit_pairwise(self) -> Dict[str, Dict[str, Dict[str, WeightType]]]:
        return self.get_pairwise().as_explicit_mapping()

    def _ensure_pairwise(self) -> PairwiseMatrix:
        if self._pairwise is None:
            matrix = PairwiseMatrix(
                self.candidate_keys(),
                implicit_ranking=self.implicit_ranking,
                weight_allowed=self.weight_allowed,
            )
            matrix.rebuild(self._store.iterate_valid())
            self._pairwise = matrix
        return self._pairwise

    def get_result(self,
                   method: Union[str, 'ballotbox.evaluate.Method', None] = None,
                   **options,
                   ) -> Result:
        '''Compute the result of the election, or return a cached one.

        :param method: Name of the method (see
            :data:`ballotbox.evaluate.METHODS`) or a method object. If None,
            the default method of the election is used.
        :param options: Options for the method constructor.
        :raises ResultRequestedWithoutVotesError: If there are no ballots.
        :raises UnknownMethodError: If the method name is not registered.
        '''
        if (self._state == ElectionState.CANDIDATE_REGISTRATION
                or len(self._store) == 0):
            raise ResultRequestedWithoutVotesError()
        if method is None:
            method = self._config.default_method
        method_obj = ballotbox.evaluate.construct(method, **options)
        self._ensure_pairwise()

        def compute() -> Result:
            logger.info('computing %s result', method_obj.name)
            result = method_obj.compute(self)
            result.stats = method_obj.stats(self)
            return result

        result = self._cache.get_or_compute(
            method_obj.name, method_obj.options(), compute
        )
        self._set_state(ElectionState.RESULTS_COMPUTED)
        return result

    def get_winner(self, method: Union[str, None] = None, **options
                   ) -> Optional[str]:
        '''Return the single winner by the method, None if tied.'''
        return self.get_result(method, **options).winner

    def get_loser(self, method: Union[str, None] = None, **options
                  ) -> Optional[str]:
        '''Return the single loser by the method, None if tied.'''
        return self.get_result(method, **options).loser

    def get_condorcet_winner(self) -> Optional[str]:
        '''Return the candidate beating all others pairwise, if any.'''
        return ballotbox.evaluate.condorcet.condorcet_winner(
            self.get_pairwise().win_counts(), self.candidate_names()
        )

    def get_condorcet_loser(self) -> Optional[str]:
        '''Return the candidate beaten by all others pairwise, if any.'''
        return ballotbox.evaluate.condorcet.condorcet_loser(
            self.get_pairwise().win_counts(), self.candidate_names()
        )

    def has_result(self, method: str, **options) -> bool:
        '''Return True if the result of the method is cached.'''
        method_obj = ballotbox.evaluate.construct(method, **options)
        try:
            self._cache.get(method_obj.name, method_obj.options())
        except KeyError:
            return False
        return True

    # snapshots

    def to_dict(self) -> Dict[str, Any]:
        '''Return a JSON-ready snapshot of the election.

        The snapshot contains the candidates, ballots, settings, constraints,
        the pairwise matrix and the cached results. External store drivers
        are not part of it; their ballots are included.
        '''
        return {
            'version': ballotbox.__version__,
            'config': self._config.to_dict(),
            'state': self._state.name,
            'candidates': [
                [key, candidate.name]
                for key, candidate in self._candidates.items()
            ],
            'next_candidate_key': self._next_candidate_key,
            'constraints': [
                serialize_value(constraint) for constraint in self._constraints
            ],
            'ballots': [
                [ballot.key, ballot.to_dict()]
                for ballot in self._store.iterate()
            ],
            'next_ballot_key': self._store.next_key,
            'pairwise': (
                None if self._pairwise is None else self._pairwise.to_dict()
            ),
            'results': [
                [method, fingerprint, result.to_dict()]
                for (method, fingerprint), result in self._cache.items()
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Election':
        '''Restore an election from a snapshot made by :meth:`to_dict`.

        :raises VersionMismatchError: If the snapshot was made by a version
            of the library with a different major or minor version number.
        '''
        check_version(data.get('version'), ballotbox.__version__)
        election = cls(ElectionConfig.from_dict(data['config']))
        for key, name in data['candidates']:
            election._candidates[key] = Candidate(name)
        election._next_candidate_key = data['next_candidate_key']
        election._constraints = [
            deserialize_value(constraint) for constraint in data['constraints']
        ]
        election._store.load(
            (Ballot.from_dict(ballot).bind(key)
             for key, ballot in data['ballots']),
            data['next_ballot_key'],
        )
        election._state = ElectionState[data['state']]
        if data.get('pairwise') is not None:
            election._pairwise = PairwiseMatrix.from_dict(data['pairwise'])
        for method, fingerprint, result in data.get('results', []):
            election._cache.restore(
                (method, fingerprint), Result.from_dict(result)
            )
        logger.info('restored election with %d candidates and %d ballots',
                    len(election._candidates), len(election._store))
        return election

    def copy(self) -> 'Election':
        '''Return an independent copy of the election.

        The copy has its own ballot store (kept in memory), pairwise matrix
        and result cache.
        '''
        return type(self).from_dict(self.to_dict())

    def __repr__(self) -> str:
        return (
            f'<Election({self._state.name}, {len(self._candidates)}'
            f' candidates, {len(self._store)} ballots)>'
        )
