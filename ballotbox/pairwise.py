'''Pairwise comparison matrix.

For every ordered pair of distinct candidates (A, B), the matrix counts the
total weight of ballots that

-   rank A strictly before B (``win``),
-   rank A and B in the same rank group (``tie``),
-   rank B strictly before A (``lose``).

So ``win[A][B] == lose[B][A]`` always holds. The three counts of a pair add
up to the total weight of the ballots expressing both candidates, which is
the total weight of all ballots unless implicit ranking is off and some
ballots leave candidates unranked.

This is the sufficient statistic for all Condorcet methods. The matrix can be
built from a full scan of the ballots (:meth:`PairwiseMatrix.rebuild`) or
updated incrementally as single ballots are added or removed
(:meth:`PairwiseMatrix.apply_insertion`,
:meth:`PairwiseMatrix.apply_removal`). Both paths use the same per-ballot
contribution, so the matrix only depends on the current set of ballots, not
on the order of the mutations that produced it.

All counts are exact (integers or fractions) so that any number of
insertions and removals leaves no rounding residue.
'''

import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Tuple

from ballotbox.candidate import Candidate, UnknownCandidateError
from ballotbox.persist import serialize_value, deserialize_value
from ballotbox.vote import Ballot, WeightType


logger = logging.getLogger(__name__)

RELATIONS = ('win', 'tie', 'lose')


class PairwiseCount(NamedTuple):
    '''Weights of ballots ranking a candidate over/equal to/under another.'''
    win: WeightType
    tie: WeightType
    lose: WeightType


class PairwiseMatrix:
    '''Pairwise win/tie/lose tallies over the candidates of an election.

    :param candidates: Mapping of candidate keys to candidate names, in
        registration order.
    :param implicit_ranking: Whether ballots not ranking some candidates
        place them equally last (unless the ballot overrides the rule).
    :param weight_allowed: Whether ballot weights are taken into account.
    '''
    def __init__(self,
                 candidates: Dict[int, str],
                 implicit_ranking: bool = True,
                 weight_allowed: bool = False,
                 ):
        self._names = dict(candidates)
        self._keys = {name: key for key, name in self._names.items()}
        self.implicit_ranking = implicit_ranking
        self.weight_allowed = weight_allowed
        self._reset()

    def _reset(self) -> None:
        self._win = self._empty_tally()
        self._tie = self._empty_tally()
        self._lose = self._empty_tally()
        self._total = 0

    def _empty_tally(self) -> Dict[int, Dict[int, WeightType]]:
        return {
            key: {other: 0 for other in self._names if other != key}
            for key in self._names
        }

    @property
    def candidates(self) -> List[str]:
        '''Names of the candidates in registration order.'''
        return list(self._names.values())

    @property
    def total_weight(self) -> WeightType:
        '''Total weight of the ballots counted in the matrix.'''
        return self._total

    def rebuild(self, ballots: Iterable[Ballot]) -> None:
        '''Recompute the matrix from scratch.

        :param ballots: All ballots to be counted (i.e. the currently valid
            ones).
        '''
        self._reset()
        n_ballots = 0
        for ballot in ballots:
            self._apply(ballot, 1)
            n_ballots += 1
        logger.info('pairwise matrix rebuilt from %d ballots', n_ballots)

    def apply_insertion(self, ballot: Ballot) -> None:
        '''Add the contribution of a single ballot.'''
        self._apply(ballot, 1)

    def apply_removal(self, ballot: Ballot) -> None:
        '''Subtract the contribution of a single previously added ballot.'''
        self._apply(ballot, -1)

    def _apply(self, ballot: Ballot, sign: int) -> None:
        weight = sign * ballot.effective_weight(self.weight_allowed)
        groups = [
            sorted(self._key_of(name) for name in group)
            for group in ballot.contextual_ranking(
                self._names.values(), self.implicit_ranking
            )
        ]
        later = [key for group in groups for key in group]
        for group in groups:
            later = later[len(group):]
            for upper in group:
                win_row = self._win[upper]
                tie_row = self._tie[upper]
                for equal in group:
                    if equal != upper:
                        tie_row[equal] += weight
                for lower in later:
                    win_row[lower] += weight
                    self._lose[lower][upper] += weight
        self._total += weight

    def _key_of(self, candidate: Any) -> int:
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            if candidate in self._names:
                return candidate
        elif isinstance(candidate, (str, Candidate)):
            name = str(candidate).strip()
            if name in self._keys:
                return self._keys[name]
        raise UnknownCandidateError(candidate)

    def query(self, upper: Any, lower: Any) -> PairwiseCount:
        '''Return the pairwise tallies of one candidate against another.

        :param upper: The candidate whose wins are counted; a key, a name or
            a candidate object.
        :param lower: The candidate compared against.
        :raises UnknownCandidateError: If either candidate is not registered.
        '''
        upper_key = self._key_of(upper)
        lower_key = self._key_of(lower)
        if upper_key == lower_key:
            raise ValueError(f'cannot compare candidate {upper!r} to itself')
        return PairwiseCount(
            self._win[upper_key][lower_key],
            self._tie[upper_key][lower_key],
            self._lose[upper_key][lower_key],
        )

    def row(self, candidate: Any) -> Dict[str, Dict[str, WeightType]]:
        '''Return the tallies of a candidate against all others by name.'''
        key = self._key_of(candidate)
        out = {relation: {} for relation in RELATIONS}
        for other, other_name in self._names.items():
            if other != key:
                out['win'][other_name] = self._win[key][other]
                out['tie'][other_name] = self._tie[key][other]
                out['lose'][other_name] = self._lose[key][other]
        return out

    def as_explicit_mapping(self) -> Dict[str, Dict[str, Dict[str, WeightType]]]:
        '''Return the whole matrix as nested dictionaries.

        The result maps each candidate name to a dictionary with ``win``,
        ``tie`` and ``lose`` keys, each mapping the names of all other
        candidates to the respective counts. Candidates are listed in
        registration order.
        '''
        return {name: self.row(key) for key, name in self._names.items()}

    def win_counts(self) -> Dict[Tuple[str, str], WeightType]:
        '''Return the win counts of all ordered candidate pairs by name.

        This is the input form of the Condorcet evaluators in
        :mod:`ballotbox.evaluate.condorcet`.
        '''
        return {
            (self._names[upper], self._names[lower]): count
            for upper, row in self._win.items()
            for lower, count in row.items()
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidates': [[key, name] for key, name in self._names.items()],
            'implicit_ranking': self.implicit_ranking,
            'weight_allowed': self.weight_allowed,
            'total': serialize_value(self._total),
            'win': self._tally_to_list(self._win),
            'tie': self._tally_to_list(self._tie),
            'lose': self._tally_to_list(self._lose),
        }

    @staticmethod
    def _tally_to_list(tally: Dict[int, Dict[int, WeightType]]) -> List[list]:
        return [
            [upper, lower, serialize_value(count)]
            for upper, row in tally.items()
            for lower, count in row.items()
            if count
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PairwiseMatrix':
        matrix = cls(
            {key: name for key, name in data['candidates']},
            implicit_ranking=data['implicit_ranking'],
            weight_allowed=data['weight_allowed'],
        )
        matrix._total = deserialize_value(data['total'])
        tallies = zip(RELATIONS, (matrix._win, matrix._tie, matrix._lose))
        for relation, tally in tallies:
            for upper, lower, count in data[relation]:
                tally[upper][lower] = deserialize_value(count)
        return matrix

    def __getitem__(self, candidate: Any) -> Dict[str, Dict[str, WeightType]]:
        return self.row(candidate)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PairwiseMatrix):
            return NotImplemented
        return (
            self._names == other._names
            and self._total == other._total
            and self._win == other._win
            and self._tie == other._tie
            and self._lose == other._lose
        )

    def __repr__(self) -> str:
        return (
            f'<PairwiseMatrix({len(self._names)} candidates,'
            f' total weight {self._total})>'
        )
