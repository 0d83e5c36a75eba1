'''Ballot constraints.

A constraint is a predicate deciding whether a registered ballot should be
counted. Ballots failing any of the election's constraints stay stored (and
can be iterated, counted or removed) but are excluded from the pairwise
matrix and from all result computations.

Constraints are evaluated every time the ballots are aggregated; they are not
cached on the ballots. They should therefore be deterministic functions of
the ballot and the election settings.
'''

import abc
from typing import Any

from ballotbox.errors import ValidationError
from ballotbox.persist import simple_serialization
from ballotbox.vote import Ballot


class ConstraintError(ValidationError):
    '''A constraint cannot be used in the given election.

    :param constraint: The offending constraint.
    :param reason: Why it cannot be used.
    '''
    def __init__(self, constraint: Any, reason: str = None):
        self.constraint = constraint
        message = f'invalid constraint: {constraint!r}'
        if reason:
            message += f', {reason}'
        super().__init__(message)


class Constraint(metaclass=abc.ABCMeta):
    '''Decide whether a ballot is counted in the election.

    Base class, not intended for direct use.
    '''
    @abc.abstractmethod
    def is_allowed(self, election, ballot: Ballot) -> bool:
        '''Return True if the ballot is counted in the election.'''
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f'<{type(self).__name__}>'


@simple_serialization
class NoTie(Constraint):
    '''Reject ballots that rank any candidates equally.

    Only explicit ties are considered; the implicit last rank group formed by
    unranked candidates does not make a ballot invalid.
    '''
    def is_allowed(self, election, ballot: Ballot) -> bool:
        return not ballot.has_tie()


@simple_serialization
class MinimumRanked(Constraint):
    '''Reject ballots ranking fewer than a given number of candidates.

    :param n_ranked: Minimum number of candidates the ballot must rank
        explicitly.
    '''
    def __init__(self, n_ranked: int = 1):
        if n_ranked < 0:
            raise ConstraintError(self, 'n_ranked must be non-negative')
        self.n_ranked = n_ranked

    def is_allowed(self, election, ballot: Ballot) -> bool:
        return len(ballot.candidates) >= self.n_ranked
