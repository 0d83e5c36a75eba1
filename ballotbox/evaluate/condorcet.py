'''Condorcet election methods.

These methods work by examining pairwise orderings between candidates (how
much voting weight prefers one candidate to another). They read the win
counts of the election's pairwise matrix
(:meth:`ballotbox.pairwise.PairwiseMatrix.win_counts`), so they are cheap to
recompute once the matrix is current, regardless of the number of ballots.

All of the methods in this module reliably rank a Condorcet winner first
when there is one.
'''

import collections
from typing import Any, Dict, List, Optional, Tuple, Union, Callable
from numbers import Number

import ballotbox.component.pairwin_scorer
from ballotbox.component.pairwin_scorer import WinCounts
from ballotbox.evaluate.core import Method, StatsVerbosity, method_mark
from ballotbox.persist import simple_serialization
from ballotbox.result import Result, ranking_from_scores


def pairwise_wins(counts: WinCounts,
                  include_ties: bool = False,
                  ) -> List[Tuple[str, str]]:
    """Select pairs of candidates where the first is preferred to the second.

    :param counts: Pairwise win counts.
    :param include_ties: Whether to include pairs of candidates that are tied.
        Such a pair will be included in both directions.
    :returns: Ordered pairs from the input that are generally preferred to the
        opposite ranking (i.e. listed in this order by more voting weight).
    """
    wins = []
    for pair, count in counts.items():
        upper_cand, lower_cand = pair
        anti_count = counts.get((lower_cand, upper_cand), 0)
        if anti_count < count or include_ties and anti_count == count:
            wins.append(pair)
    return wins


def condorcet_winner(counts: WinCounts,
                     candidates: List[str],
                     ) -> Optional[str]:
    '''Return the candidate beating all others pairwise, if any.

    :param counts: Pairwise win counts.
    :param candidates: All candidates of the election.
    '''
    return _beating_all(pairwise_wins(counts), candidates, 0)


def condorcet_loser(counts: WinCounts,
                    candidates: List[str],
                    ) -> Optional[str]:
    '''Return the candidate beaten by all others pairwise, if any.'''
    return _beating_all(pairwise_wins(counts), candidates, 1)


def _beating_all(wins: List[Tuple[str, str]],
                 candidates: List[str],
                 side: int,
                 ) -> Optional[str]:
    if len(candidates) < 2:
        return None
    n_wins = collections.Counter(pair[side] for pair in wins)
    for cand in candidates:
        if n_wins[cand] == len(candidates) - 1:
            return cand
    return None


def _nested(pairs: Dict[Tuple[str, str], Number],
            candidates: List[str],
            ) -> Dict[str, Dict[str, Number]]:
    return {
        upper: {
            lower: pairs.get((upper, lower), 0)
            for lower in candidates if lower != upper
        }
        for upper in candidates
    }


@method_mark
@simple_serialization
class Copeland(Method):
    '''Copeland (count of pairwise wins) Condorcet method.

    Calculates the pairwise wins, constructs the Copeland score by taking
    ``number_of_pairwise_wins - number_of_pairwise_losses`` for each candidate,
    and uses this score to rank candidates. This often produces ties, which
    can be broken by second order tiebreaking - by preferring the candidates
    who have pairwise beaten the candidates with the highest total Copeland
    score.

    :param second_order: Whether to use second-order Copeland tiebreaking.
    '''
    names = ['Copeland']

    def __init__(self, second_order: bool = False):
        self.second_order = second_order

    def compute(self, election) -> Result:
        self.bind(election)
        candidates = election.candidate_names()
        wins = pairwise_wins(election.get_pairwise().win_counts())
        scores = self.scores(wins, candidates)
        if self.second_order:
            second = collections.defaultdict(int)
            for winner, loser in wins:
                second[winner] += scores[loser]
            ranked = {
                cand: (score, second[cand]) for cand, score in scores.items()
            }
        else:
            ranked = scores
        self._scores = scores
        return Result(self.name, ranking_from_scores(ranked, candidates))

    @staticmethod
    def scores(wins: List[Tuple[str, str]],
               candidates: List[str],
               ) -> Dict[str, int]:
        scores = {cand: 0 for cand in candidates}
        for winner, loser in wins:
            scores[winner] += 1
            scores[loser] -= 1
        return scores

    def stats(self, election) -> Optional[Dict[str, Any]]:
        if election.config.stats_verbosity < StatsVerbosity.STD:
            return None
        return {'scores': dict(self._scores)}


@method_mark
@simple_serialization
class Schulze(Method):
    '''Schulze (beatpath) Condorcet method.

    Also called Schwartz Sequential dropping or path voting. Finds paths
    between pairs of candidates in which each candidate pairwise beats the next
    and then ranks the candidates by the number of others they beat through
    their strongest paths.

    :param pairwin_scoring: A pairwise win scorer callable measuring the
        strength of the individual links. Most common variants are found in
        the :mod:`ballotbox.component.pairwin_scorer` module and can be
        referred to by their names.
    '''
    names = ['Schulze', 'Schulze Winning', 'Beatpath']

    def __init__(self,
                 pairwin_scoring: Union[str, Callable] = 'winning_votes',
                 ):
        self.pairwin_scoring = ballotbox.component.pairwin_scorer.construct(
            pairwin_scoring
        )

    def compute(self, election) -> Result:
        self.bind(election)
        candidates = election.candidate_names()
        counts = election.get_pairwise().win_counts()
        self._paths = self.widest_paths(self.pairwin_scoring(counts))
        scores = {cand: 0 for cand in candidates}
        for winner, loser in pairwise_wins(self._paths):
            scores[winner] += 1
        return Result(self.name, ranking_from_scores(scores, candidates))

    @staticmethod
    def widest_paths(strengths: Dict[Tuple[str, str], Number]
                     ) -> Dict[Tuple[str, str], Number]:
        '''Compute the strengths of the strongest paths between candidates.

        :param strengths: Strengths of the direct links; only links stronger
            than their reverse counterparts are used.
        '''
        paths = {}
        all_candidates = []
        for pair, strength in strengths.items():
            for cand in pair:
                if cand not in all_candidates:
                    all_candidates.append(cand)
            if strengths.get(tuple(reversed(pair)), 0) < strength:
                paths[pair] = strength
        for cand1 in all_candidates:
            for cand2 in all_candidates:
                if cand1 != cand2:
                    for cand_aug in all_candidates:
                        if cand_aug not in (cand1, cand2):
                            paths[cand2, cand_aug] = max(
                                paths.get((cand2, cand_aug), 0),
                                min(
                                    paths.get((cand2, cand1), 0),
                                    paths.get((cand1, cand_aug), 0),
                                )
                            )
        return paths

    def stats(self, election) -> Optional[Dict[str, Any]]:
        if election.config.stats_verbosity < StatsVerbosity.STD:
            return None
        return {'paths': _nested(self._paths, election.candidate_names())}


@method_mark
@simple_serialization
class MinimaxCondorcet(Method):
    '''Minimax Condorcet method.

    Also known as successive reversal or Simpson-Kramer method.
    Ranks the candidates by their greatest pairwise defeat, smallest first.

    The magnitude of the pairwise defeat can be measured in different ways
    according to the pairwise win scorer provided.

    :param pairwin_scoring: A pairwise win scorer callable, as for
        :class:`Schulze`.
    '''
    names = ['Minimax', 'Minimax Winning', 'Simpson-Kramer']

    def __init__(self,
                 pairwin_scoring: Union[str, Callable] = 'winning_votes',
                 ):
        self.pairwin_scoring = ballotbox.component.pairwin_scorer.construct(
            pairwin_scoring
        )

    def compute(self, election) -> Result:
        self.bind(election)
        scored = self.pairwin_scoring(election.get_pairwise().win_counts())
        max_counterscore = {}
        for (upper, lower), score in scored.items():
            if lower not in max_counterscore or max_counterscore[lower] < score:
                max_counterscore[lower] = score
        self._defeats = max_counterscore
        return Result(self.name, ranking_from_scores(
            max_counterscore, election.candidate_names(), descending=False
        ))

    def stats(self, election) -> Optional[Dict[str, Any]]:
        if election.config.stats_verbosity < StatsVerbosity.STD:
            return None
        return {'worst_defeats': dict(self._defeats)}


@method_mark
@simple_serialization
class RankedPairs(Method):
    '''Tideman's ranked pairs Condorcet method.

    Ranks pairwise wins by their magnitude and sequentially locks pairs of
    who beats whom in descending order into a ranking, discarding pairs that
    would contradict previously established rankings (i.e. create a cycle).
    Candidates that no locked pair separates are ranked equally.

    The magnitude of the pairwise win can be measured in different ways
    according to the pairwise win scorer provided.

    :param pairwin_scoring: A pairwise win scorer callable, as for
        :class:`Schulze`.
    '''
    names = ['Ranked Pairs', 'Tideman', 'Ranked Pairs Winning']

    def __init__(self,
                 pairwin_scoring: Union[str, Callable] = 'winning_votes',
                 ):
        self.pairwin_scoring = ballotbox.component.pairwin_scorer.construct(
            pairwin_scoring
        )

    def compute(self, election) -> Result:
        self.bind(election)
        candidates = election.candidate_names()
        counts = election.get_pairwise().win_counts()
        scored = self.pairwin_scoring(counts)
        pairwise_winners = pairwise_wins(counts)
        pairwise_winners.sort(key=counts.get, reverse=True)
        pairwise_winners.sort(key=scored.get, reverse=True)
        self._locked = self._lock_pairs(pairwise_winners)
        return Result(self.name, self._build_ranking(self._locked, candidates))

    @classmethod
    def _lock_pairs(cls,
                    pairs: List[Tuple[str, str]]
                    ) -> List[Tuple[str, str]]:
        locked_pairs = []
        for pair in pairs:
            if not cls._is_path(locked_pairs, pair[1], pair[0]):
                locked_pairs.append(pair)
        return locked_pairs

    @staticmethod
    def _is_path(pairs: List[Tuple[str, str]],
                 source: str,
                 sink: str,
                 ) -> bool:
        visited = set([source])
        while True:
            last_len = len(visited)
            for from_cand, to_cand in pairs:
                if from_cand in visited and to_cand not in visited:
                    visited.add(to_cand)
                    if to_cand == sink:
                        return True
            if len(visited) == last_len:
                return False

    @staticmethod
    def _build_ranking(locked_pairs: List[Tuple[str, str]],
                       candidates: List[str],
                       ) -> List[List[str]]:
        remaining = list(candidates)
        edges = locked_pairs[:]
        ranking = []
        while remaining:
            losers = set(loser for winner, loser in edges)
            group = [cand for cand in remaining if cand not in losers]
            ranking.append(group)
            remaining = [cand for cand in remaining if cand in losers]
            edges = [edge for edge in edges if edge[0] not in group]
        return ranking

    def stats(self, election) -> Optional[Dict[str, Any]]:
        if election.config.stats_verbosity < StatsVerbosity.STD:
            return None
        return {'locked_pairs': [list(pair) for pair in self._locked]}
