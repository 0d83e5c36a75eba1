'''Proportional apportionment methods.

These methods distribute the seats of the election (see
:attr:`ballotbox.election.ElectionConfig.n_seats`) among the candidates
(usually representing parties) according to their first preferences, as
counted by :func:`ballotbox.evaluate.core.first_preferences`.
'''

import logging
from fractions import Fraction
from numbers import Number
from typing import Any, Dict, List, Optional, Union, Callable

import ballotbox.component.divisor
from ballotbox.evaluate.core import (
    Method, StatsVerbosity, first_preferences, method_mark
)
from ballotbox.persist import simple_serialization, serialize_value
from ballotbox.result import Result, ranking_from_scores


logger = logging.getLogger(__name__)


@method_mark
@simple_serialization
class HighestAverages(Method):
    '''Distribute seats proportionally by ordering divided vote counts.

    Divides the first preference weight of each candidate by an increasing
    sequence of divisors (usually small integers) and awards the seats one by
    one to the candidate with the highest current quotient. When several
    candidates share the highest quotient, the one registered first gets the
    seat.

    This includes some popular proportional party-list systems like D'Hondt or
    Sainte-Laguë/Webster. The result is usually quite close to proportionality
    and avoids the Alabama paradox of largest remainder systems. However, it
    usually favors either large or smaller parties, depending on the choice
    of the divisor function.

    The result ranks the candidates by the number of seats obtained; the
    order in which the seats were awarded is reported in the statistics.

    :param divisor_function: A callable producing the divisor from the number
        of seats awarded to the candidate so far. The common divisor
        functions can be referenced by string name from the
        :mod:`ballotbox.component.divisor` module.
    '''
    names = ['Highest Averages']

    def __init__(self,
                 divisor_function: Union[
                     str, Callable[[int], Number]
                 ] = 'd_hondt',
                 ):
        self.divisor_function = ballotbox.component.divisor.construct(
            divisor_function
        )

    def compute(self, election) -> Result:
        self.bind(election)
        candidates = election.candidate_names()
        self._votes = first_preferences(election)
        self._seats = {cand: 0 for cand in candidates}
        self._rounds = []
        for round_i in range(election.n_seats):
            quotients = {
                cand: self.quotient(self._votes[cand], self._seats[cand])
                for cand in candidates
            }
            best = None
            for cand in candidates:
                if best is None or quotients[cand] > quotients[best]:
                    best = cand
            if best is None or quotients[best] <= 0:
                logger.info('%s: no votes left to award seat %d',
                            self.name, round_i + 1)
                break
            self._rounds.append({
                'quotients': quotients,
                'seats_before': dict(self._seats),
                'winner': best,
            })
            self._seats[best] += 1
        return Result(
            self.name,
            ranking_from_scores(self._seats, candidates),
            seats=dict(self._seats),
        )

    def quotient(self, votes: Number, seats: int) -> Number:
        '''Return the quotient of a candidate holding the given seats.'''
        divisor = self.divisor_function(seats)
        if divisor <= 0:
            return 0
        return Fraction(votes) / divisor

    def stats(self, election) -> Optional[Dict[str, Any]]:
        verbosity = election.config.stats_verbosity
        if verbosity < StatsVerbosity.STD:
            return None
        stats = {
            'votes': dict(self._votes),
            'seats': dict(self._seats),
            'allocation_order': [rnd['winner'] for rnd in self._rounds],
            'rounds': self._rounds_stats(),
        }
        return stats

    def _rounds_stats(self) -> List[Dict[str, Any]]:
        return [
            {
                cand: {
                    'quotient': quotient,
                    'seats_before': rnd['seats_before'][cand],
                }
                for cand, quotient in rnd['quotients'].items()
            }
            for rnd in self._rounds
        ]


@method_mark
class Jefferson(HighestAverages):
    '''Jefferson (D'Hondt) highest averages apportionment.

    Uses the divisor sequence 1, 2, 3...
    '''
    names = ['Jefferson', 'D\'Hondt', 'Hagenbach-Bischoff']

    def __init__(self):
        super().__init__('d_hondt')

    def to_dict(self) -> Dict[str, Any]:
        return {'class': 'ballotbox.evaluate.proportional.Jefferson'}


@method_mark
class SainteLague(HighestAverages):
    '''Sainte-Laguë (Webster) highest averages apportionment.

    Uses the divisor sequence 1, 3, 5...; the first divisor can be raised
    to make the first seat harder to obtain (1.4 in Norway and Sweden).

    :param first_divisor: The divisor applied to candidates with no seats.
    '''
    names = ['Sainte-Laguë', 'SainteLague', 'Webster']

    def __init__(self, first_divisor: Number = 1):
        self.first_divisor = first_divisor
        if Fraction(first_divisor) == 1:
            divisor = ballotbox.component.divisor.sainte_lague
        else:
            divisor = ballotbox.component.divisor.modified_first_coef(
                ballotbox.component.divisor.sainte_lague, first_divisor
            )
        super().__init__(divisor)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'class': 'ballotbox.evaluate.proportional.SainteLague',
            'first_divisor': serialize_value(self.first_divisor),
        }
