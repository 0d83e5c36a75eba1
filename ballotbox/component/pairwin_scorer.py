'''Functions to score magnitudes of wins between pairs of candidates.

These are used in some Condorcet methods to determine ranking priority. They
take the win counts produced by
:meth:`ballotbox.pairwise.PairwiseMatrix.win_counts`.
'''

from typing import Callable, Dict, Tuple

import ballotbox.component.core
from ballotbox.vote import WeightType


WinCounts = Dict[Tuple[str, str], WeightType]

PAIRWIN_SCORERS = {}


pairwin_scorer_mark, get, construct = \
    ballotbox.component.core.register_functions(
        PAIRWIN_SCORERS, 'pairwise win scorer', Callable[[WinCounts], WinCounts]
    )


@pairwin_scorer_mark
def winning_votes(counts: WinCounts) -> WinCounts:
    '''Winning votes pairwise win scorer. Counts wins fully, zero otherwise.

    When the weight of ballots preferring the pair in one direction is larger
    than in the other direction, assigns all that weight as the pairwise win
    strength.

    :param counts: Pairwise win counts.
    '''
    return {
        pair: (count if count > counts.get(tuple(reversed(pair)), 0) else 0)
        for pair, count in counts.items()
    }


@pairwin_scorer_mark
def margins(counts: WinCounts) -> WinCounts:
    '''Margins pairwise win scorer. Takes the difference from reverse option.

    Assigns the weight of ballots ranking the pair in the given order minus
    the weight of ballots doing the reverse as the win strength (which is
    thus negative for pairwise losses).

    :param counts: Pairwise win counts.
    '''
    return {
        pair: count - counts.get(tuple(reversed(pair)), 0)
        for pair, count in counts.items()
    }


@pairwin_scorer_mark
def pairwise_opposition(counts: WinCounts) -> WinCounts:
    '''Pairwise opposition win scorer. Returns the win counts unchanged.

    :param counts: Pairwise win counts.
    '''
    return counts
