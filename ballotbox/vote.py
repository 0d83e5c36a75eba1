'''Ranked ballots and their validation.

A ballot is a ranking of candidates, represented (as in most of Ballotbox)
by a tuple of rank groups. Each rank group is a frozen set of candidate names
that the voter ranks equally; a ranking without ties thus consists of
singleton groups only. For convenience, the ranking may be given as a tuple
of candidate names, candidate objects or sets thereof::

    Ballot(('A', frozenset(['B', 'C']), 'D'), weight=2, tags=['north'])

The ballot also carries a weight (used only if the election allows vote
weighting), a set of tags used to select ballots for removal or iteration,
and an optional override of the election's implicit ranking rule.

Ballots are immutable. When a ballot is registered in an election, the ballot
store binds a copy of it to an integer key (see :meth:`Ballot.bind`); the key
is the only link between the ballot and the election.

Ballots are validated against the registered candidates upon registration
(:meth:`Ballot.validate`); if they are invalid, a subclass of
:class:`InvalidBallotError` is raised.
'''

import collections.abc
from fractions import Fraction
from decimal import Decimal, InvalidOperation
from numbers import Number
from typing import (
    Any, Tuple, FrozenSet, Dict, Union, Optional, Iterable, Collection
)

from ballotbox.candidate import Candidate, CandidateError, candidate_name
from ballotbox.errors import ValidationError


class InvalidBallotError(ValidationError):
    '''A ballot is invalid given the election rules.

    :param ballot: The ballot (or its part) found to be invalid.
    :param reason: Why the ballot is invalid.
    '''
    def __init__(self, ballot: Any, reason: str = None):
        self.ballot = ballot
        self.reason = reason
        message = f'invalid ballot: {ballot}'
        if reason:
            message += f', {reason}'
        super().__init__(message)


VoteError = InvalidBallotError


class VoteTypeError(InvalidBallotError):
    '''A ballot component is of an invalid type.

    :param value: The value detected as invalid.
    :param expected: Description of the expected type.
    '''
    def __init__(self, value: Any, expected: str = None):
        self.value = value
        self.expected = expected
        super().__init__(
            value,
            f'invalid type {type(value).__name__}'
            + (f', must be {expected}' if expected else '')
        )


class VoteValueError(InvalidBallotError):
    '''An explicitly given ballot value (such as a weight) is invalid.

    :param value: The invalid value.
    :param allowed: A description of allowed values.
    '''
    def __init__(self, value: Any, allowed: Any = None):
        self.value = value
        self.allowed = allowed
        super().__init__(
            value,
            'invalid value' + (f', allowed: {allowed}' if allowed else '')
        )


RankGroup = FrozenSet[str]
RankingType = Tuple[RankGroup, ...]
RankedInputType = Iterable[Union[str, Candidate, Collection[Union[str, Candidate]]]]
WeightType = Union[int, Fraction]


def exact_weight(weight: Any) -> WeightType:
    '''Convert a weight to an exact number (int or Fraction).

    Floats are converted through their shortest decimal representation so
    that e.g. ``1.1`` becomes ``Fraction(11, 10)``.

    :raises VoteTypeError: If the weight is not a number.
    :raises VoteValueError: If the weight is lower than one.
    '''
    if isinstance(weight, bool):
        raise VoteTypeError(weight, 'number')
    elif isinstance(weight, (int, Fraction)):
        exact = Fraction(weight)
    elif isinstance(weight, float):
        exact = Fraction(repr(weight))
    elif isinstance(weight, (Decimal, str)):
        try:
            exact = Fraction(weight)
        except (ValueError, InvalidOperation) as err:
            raise VoteValueError(weight, 'exact number') from err
    elif isinstance(weight, Number):
        exact = Fraction(weight)
    else:
        raise VoteTypeError(weight, 'number')
    if exact < 1:
        raise VoteValueError(weight, 'weight >= 1')
    return exact.numerator if exact.denominator == 1 else exact


def normalize_ranking(ranking: RankedInputType) -> RankingType:
    '''Convert the ranking to a tuple of frozen sets of candidate names.'''
    if isinstance(ranking, (str, Candidate)) or not isinstance(
        ranking, collections.abc.Iterable
    ):
        raise VoteTypeError(ranking, 'sequence of rank groups')
    groups = []
    for item in ranking:
        if isinstance(item, (str, Candidate)):
            names = [item]
        elif isinstance(item, collections.abc.Set):
            names = list(item)
        else:
            raise VoteTypeError(item, 'candidate or set of candidates')
        try:
            group = frozenset(candidate_name(cand) for cand in names)
        except CandidateError as err:
            raise VoteTypeError(item, 'candidate or set of candidates') from err
        if not group or '' in group:
            raise InvalidBallotError(ranking, 'empty rank')
        groups.append(group)
    return tuple(groups)


def normalize_tags(tags: Union[str, Iterable[str], None]) -> FrozenSet[str]:
    '''Convert tags to a frozen set of stripped non-empty strings.'''
    if tags is None:
        return frozenset()
    if isinstance(tags, str):
        tags = tags.split(',')
    normalized = set()
    for tag in tags:
        if not isinstance(tag, str):
            raise VoteTypeError(tag, 'string tag')
        tag = tag.strip()
        if tag:
            normalized.add(tag)
    return frozenset(normalized)


class Ballot:
    '''A single voter's ranking of candidates.

    :param ranking: The ranking - a sequence of rank groups, each either
        a candidate (name or object) or a set of candidates ranked equally.
        The first group is the most preferred.
    :param weight: Weight of the ballot; an exact number no smaller than one.
        Only taken into account if the election allows vote weighting.
    :param tags: Labels of the ballot used to select it for iteration or
        removal; a string is split at commas.
    :param implicit_ranking: Whether candidates not ranked by the ballot
        should be considered ranked equally last. None (default) defers to
        the election setting.
    '''
    def __init__(self,
                 ranking: RankedInputType,
                 weight: Any = 1,
                 tags: Union[str, Iterable[str], None] = None,
                 implicit_ranking: Optional[bool] = None,
                 ):
        self._ranking = normalize_ranking(ranking)
        self._weight = exact_weight(weight)
        self._tags = normalize_tags(tags)
        self._implicit_ranking = implicit_ranking
        self._key = None

    @property
    def ranking(self) -> RankingType:
        return self._ranking

    @property
    def weight(self) -> WeightType:
        return self._weight

    @property
    def tags(self) -> FrozenSet[str]:
        return self._tags

    @property
    def implicit_ranking(self) -> Optional[bool]:
        return self._implicit_ranking

    @property
    def key(self) -> Optional[int]:
        '''Key of the ballot in the election store, None if unregistered.'''
        return self._key

    @property
    def candidates(self) -> FrozenSet[str]:
        '''Names of all candidates ranked by the ballot.'''
        return frozenset().union(*self._ranking)

    def bind(self, key: int) -> 'Ballot':
        '''Return a copy of the ballot bound to the given store key.'''
        bound = Ballot.__new__(Ballot)
        bound._ranking = self._ranking
        bound._weight = self._weight
        bound._tags = self._tags
        bound._implicit_ranking = self._implicit_ranking
        bound._key = key
        return bound

    def effective_weight(self, weight_allowed: bool) -> WeightType:
        '''Weight to count the ballot with under the given weighting rule.'''
        return self._weight if weight_allowed else 1

    def has_tie(self) -> bool:
        '''Return True if any explicit rank group contains more than one
        candidate.'''
        return any(len(group) > 1 for group in self._ranking)

    def contextual_ranking(self,
                           candidates: Iterable[str],
                           implicit_ranking: bool = True,
                           ) -> RankingType:
        '''Resolve the ranking against the candidates of an election.

        :param candidates: Names of all candidates registered in the election,
            in registration order.
        :param implicit_ranking: The election's implicit ranking rule; ignored
            if the ballot overrides it. If it applies, candidates not ranked
            by the ballot are appended as a single rank group at the end.
        '''
        if self._implicit_ranking is not None:
            implicit_ranking = self._implicit_ranking
        if not implicit_ranking:
            return self._ranking
        ranked = self.candidates
        unranked = frozenset(
            cand for cand in candidates if cand not in ranked
        )
        if unranked:
            return self._ranking + (unranked, )
        else:
            return self._ranking

    def validate(self,
                 candidates: Collection[str],
                 weight_allowed: bool = False,
                 ) -> None:
        '''Check that the ballot may be registered in an election.

        :param candidates: Names of candidates registered in the election.
        :param weight_allowed: Whether the election allows vote weighting.
        :raises InvalidBallotError: If any candidate is ranked more than once
            or is not registered in the election, or the weight is lower
            than one while weighting is allowed.
        '''
        seen = set()
        for group in self._ranking:
            for cand in group:
                if cand in seen:
                    raise InvalidBallotError(
                        self, f'duplicated candidate {cand!r}'
                    )
                if cand not in candidates:
                    raise InvalidBallotError(
                        self, f'unknown candidate {cand!r}'
                    )
                seen.add(cand)
        if weight_allowed and self._weight < 1:
            raise VoteValueError(self._weight, 'weight >= 1')

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'ranking': [sorted(group) for group in self._ranking],
            'weight': (
                self._weight if isinstance(self._weight, int)
                else str(self._weight)
            ),
            'tags': sorted(self._tags),
        }
        if self._implicit_ranking is not None:
            out['implicit_ranking'] = self._implicit_ranking
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Ballot':
        return cls(
            [frozenset(group) for group in data['ranking']],
            weight=data.get('weight', 1),
            tags=data.get('tags', ()),
            implicit_ranking=data.get('implicit_ranking'),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Ballot):
            return NotImplemented
        return (
            self._ranking == other._ranking
            and self._weight == other._weight
            and self._tags == other._tags
            and self._implicit_ranking == other._implicit_ranking
        )

    def __hash__(self) -> int:
        return hash((self._ranking, self._weight, self._tags))

    def __str__(self) -> str:
        return ' > '.join(
            ' = '.join(sorted(group)) for group in self._ranking
        )

    def __repr__(self) -> str:
        return (
            f'<Ballot({self}'
            + (f' ^{self._weight}' if self._weight != 1 else '')
            + (f', key={self._key}' if self._key is not None else '')
            + ')>'
        )
