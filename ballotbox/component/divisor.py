'''Divisor functions used in highest-averages apportionment methods.

This provides arguments for the
:class:`ballotbox.evaluate.proportional.HighestAverages` method.

A divisor function takes the order number (the number of seats allocated to
the candidate so far) and returns the divisor by which to divide the
candidate's votes. The candidate with the largest quotient then gets the next
seat. All divisors here are exact (integers or fractions) so that quotient
comparisons never suffer from rounding.

Some systems use a mathematically defined divisor but artificially change the
result for candidates with no seats so far (`order == 0`) to make the first
seat harder to obtain. Use :func:`modified_first_coef` for that.

All supported divisor functions are assembled in the `DIVISORS` dictionary
keyed by their name. `get()` retrieves from this dictionary by string key;
`construct()` also accepts callables and passes them through.
'''

from fractions import Fraction
from typing import Callable, Union

import ballotbox.component.core
from ballotbox.persist import simple_serialization


ExactNumber = Union[int, Fraction]

DIVISORS = {}


divisor_mark, get, construct = ballotbox.component.core.register_functions(
    DIVISORS, 'divisor', Callable[[int], ExactNumber]
)


@divisor_mark
def d_hondt(order: int) -> int:
    '''D'Hondt (Jefferson) divisor, the most commonly used divisor.

    Forms a simple sequence 1, 2, 3...

    Known to slightly favor larger candidates.
    '''
    return order + 1


@divisor_mark
def sainte_lague(order: int) -> int:
    '''Sainte-Laguë (Webster) divisor.

    Forms a sequence 1, 3, 5...

    Known to favor mid-sized candidates.
    '''
    return 2 * order + 1


@divisor_mark
def imperiali(order: int) -> Fraction:
    '''Imperiali divisor.

    Forms a sequence 1, 1.5, 2...
    '''
    return Fraction(order, 2) + 1


@divisor_mark
def danish(order: int) -> int:
    '''Danish divisor.

    Forms a sequence 1, 4, 7...

    Extremely favors smaller candidates.
    '''
    return 3 * order + 1


@simple_serialization
class ModifiedFirstDivisor:
    '''A divisor function with a fixed divisor for the zeroth order.

    Created by :func:`modified_first_coef`; unlike a closure, it can be
    serialized, so methods using it can be cached and saved.

    :param divisor_fx: The ordinary divisor function used for subsequent
        orders.
    :param first_coef: The divisor used when order == 0.
    '''
    def __init__(self,
                 divisor_fx: Callable[[int], ExactNumber],
                 first_coef: ExactNumber,
                 ):
        self.divisor_fx = divisor_fx
        self.first_coef = first_coef

    def __call__(self, order: int) -> ExactNumber:
        return self.divisor_fx(order) if order > 0 else self.first_coef

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, ModifiedFirstDivisor)
            and self.divisor_fx == other.divisor_fx
            and self.first_coef == other.first_coef
        )

    def __hash__(self) -> int:
        return hash((self.divisor_fx, self.first_coef))


def modified_first_coef(divisor_fx: Callable[[int], ExactNumber],
                        first_coef: ExactNumber = Fraction(7, 5),
                        ) -> ModifiedFirstDivisor:
    '''Modify the divisor for the zeroth order to an apriori coefficient.

    The modified Sainte-Laguë method used in Norway and Sweden uses 1.4 as
    the first divisor.

    :param divisor_fx: The ordinary divisor function to be wrapped and used for
        the first order and subsequent ones.
    :param first_coef: The coefficient to be used when order == 0. Floats are
        taken by their decimal representation.
    '''
    if isinstance(first_coef, float):
        first_coef = Fraction(repr(first_coef))
    else:
        first_coef = Fraction(first_coef)
    return ModifiedFirstDivisor(divisor_fx, first_coef)
