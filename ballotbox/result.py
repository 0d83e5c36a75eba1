'''Election results.

A :class:`Result` holds the outcome of a single method applied to an
election: a ranking of candidates (a list of rank groups, ties allowed) and,
for apportionment methods, the number of seats allocated to each candidate.
It also carries the method statistics, if the election's stats verbosity
asks for them.
'''

import copy
from typing import Any, Dict, List, Optional, Iterable

from ballotbox.persist import serialize_value, deserialize_value


class Result:
    '''Outcome of an election method.

    :param method: Name of the method that produced the result.
    :param ranking: Candidate names ordered from the best; each item is
        a list of candidates ranked equally (a single candidate may be given
        directly).
    :param seats: Seat allocation by candidate name, for apportionment
        methods.
    :param stats: Method statistics (a JSON-like dictionary), if any.
    '''
    def __init__(self,
                 method: str,
                 ranking: Iterable[Any],
                 seats: Optional[Dict[str, int]] = None,
                 stats: Optional[Dict[str, Any]] = None,
                 ):
        self.method = method
        self.ranking = [
            [item] if isinstance(item, str) else list(item)
            for item in ranking
        ]
        self.seats = seats
        self.stats = stats

    def copy(self) -> 'Result':
        '''Return an independent deep copy of the result.'''
        return copy.deepcopy(self)

    @property
    def ranks(self) -> Dict[str, int]:
        '''Rank of each candidate (1 = best); tied candidates share a rank.'''
        return {
            cand: rank_i + 1
            for rank_i, group in enumerate(self.ranking)
            for cand in group
        }

    @property
    def winner(self) -> Optional[str]:
        '''The single best candidate, or None if the first rank is tied.'''
        if self.ranking and len(self.ranking[0]) == 1:
            return self.ranking[0][0]
        return None

    @property
    def loser(self) -> Optional[str]:
        '''The single worst candidate, or None if the last rank is tied.'''
        if self.ranking and len(self.ranking[-1]) == 1:
            return self.ranking[-1][0]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'ranking': self.ranking,
            'seats': self.seats,
            'stats': serialize_value(self.stats),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Result':
        return cls(
            data['method'],
            data['ranking'],
            seats=data.get('seats'),
            stats=deserialize_value(data.get('stats')),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return (
            self.method == other.method
            and self.ranking == other.ranking
            and self.seats == other.seats
        )

    def __repr__(self) -> str:
        shown = ' > '.join(' = '.join(group) for group in self.ranking)
        return f'<Result({self.method}: {shown})>'


def ranking_from_scores(scores: Dict[str, Any],
                        order: List[str],
                        descending: bool = True,
                        ) -> List[List[str]]:
    '''Group candidates into ranks by their scores.

    :param scores: Score of each candidate; candidates in ``order`` missing
        from the scores are ranked last together.
    :param order: All candidates in registration order, which is kept within
        rank groups.
    :param descending: Whether higher scores rank better.
    '''
    scored = [cand for cand in order if cand in scores]
    values = sorted(set(scores[cand] for cand in scored), reverse=descending)
    ranking = [
        [cand for cand in scored if scores[cand] == value]
        for value in values
    ]
    unscored = [cand for cand in order if cand not in scores]
    if unscored:
        ranking.append(unscored)
    return ranking
