'''General election method machinery.

An election method is a strategy object turning the ballots of an election
into a :class:`ballotbox.result.Result`. Methods read the election through
its public interface - mostly the pairwise matrix
(:meth:`ballotbox.election.Election.get_pairwise`) or the stream of valid
ballots (:meth:`ballotbox.election.Election.iterate_valid_ballots`) - and
never modify it. The election memoizes their results, so a method is only run
again after the ballots or settings change.

Methods are registered under one or more names in the ``METHODS`` register;
name lookup ignores case, spaces and dashes. To add a custom method,
subclass :class:`Method`, list its names and decorate it with
:func:`method_mark`.
'''

import abc
import enum
import collections
import weakref
from typing import Any, Dict, List, Optional, Union

import ballotbox.component.core
from ballotbox.errors import ValidationError
from ballotbox.result import Result, ranking_from_scores
from ballotbox.vote import WeightType


class UnknownMethodError(ballotbox.component.core.UnknownComponentError,
                         ValidationError):
    '''No election method is registered under the given name.'''
    pass


class StatsVerbosity(enum.IntEnum):
    '''How much detail the methods report in their statistics.'''
    NONE = 0
    STD = 1
    FULL = 2


METHODS: Dict[str, type] = {}


def method_mark(cls: type) -> type:
    '''Register a method class under all of its names.'''
    for name in cls.names:
        METHODS[ballotbox.component.core.normalize_key(name)] = cls
    return cls


get = ballotbox.component.core.getter(
    METHODS, 'election method', type, error=UnknownMethodError
)


def construct(method: Union[str, 'Method'], **options) -> 'Method':
    '''Construct a method instance from its name and options.

    Method instances are passed through unchanged (options must not be
    given then).
    '''
    if isinstance(method, Method):
        if options:
            raise ValueError('options cannot be given for a method instance')
        return method
    return get(method)(**options)


class Method(metaclass=abc.ABCMeta):
    '''Compute a result of an election.

    Base class, not intended for direct use. Subclasses define ``names``
    (the first one is canonical and used as the cache key and result label),
    store their options as attributes named like their constructor
    parameters (see :meth:`options`), and implement :meth:`compute`.

    A method instance keeps only a weak reference to the last election it
    computed; statistics are produced from the state of that computation.
    '''
    names: List[str] = NotImplemented

    @property
    def name(self) -> str:
        return self.names[0]

    @property
    def election(self):
        election = self._election() if hasattr(self, '_election') else None
        if election is None:
            raise ReferenceError('the method is not bound to an election')
        return election

    def bind(self, election) -> None:
        self._election = weakref.ref(election)

    def options(self) -> Dict[str, Any]:
        '''Return the options of the method (its serialized parameters).'''
        out = self.to_dict()
        del out['class']
        return out

    @abc.abstractmethod
    def compute(self, election) -> Result:
        '''Compute the result of the election.'''
        raise NotImplementedError

    def stats(self, election) -> Optional[Dict[str, Any]]:
        '''Return statistics of the last computation, gated by the
        election's stats verbosity. None if the method provides none.'''
        return None

    def __repr__(self) -> str:
        return f'<{type(self).__name__}({self.options()})>'


def first_preferences(election) -> Dict[str, WeightType]:
    '''Sum the weights of valid ballots by their single first choice.

    Ballots whose first rank (after resolving implicit ranking) is shared by
    more than one candidate are ignored. Candidates with no first choices are
    included with zero.
    '''
    totals = collections.OrderedDict(
        (cand, 0) for cand in election.candidate_names()
    )
    weight_allowed = election.weight_allowed
    for ballot in election.iterate_valid_ballots():
        ranking = ballot.contextual_ranking(
            totals.keys(), election.implicit_ranking
        )
        if ranking and len(ranking[0]) == 1:
            first, = ranking[0]
            totals[first] += ballot.effective_weight(weight_allowed)
    return dict(totals)


@method_mark
class Plurality(Method):
    '''Plurality (first past the post) ranking by first preferences.

    Ballots ranking several candidates equally first are ignored.
    '''
    names = ['Plurality', 'First Past The Post', 'FPTP']

    def to_dict(self) -> Dict[str, Any]:
        return {'class': 'ballotbox.evaluate.core.Plurality'}

    def compute(self, election) -> Result:
        self.bind(election)
        self._totals = first_preferences(election)
        return Result(
            self.name,
            ranking_from_scores(self._totals, election.candidate_names()),
        )

    def stats(self, election) -> Optional[Dict[str, Any]]:
        if election.config.stats_verbosity < StatsVerbosity.STD:
            return None
        return {'first_preferences': dict(self._totals)}
