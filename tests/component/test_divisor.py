import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import ballotbox.component.divisor as d
from ballotbox.component.core import UnknownComponentError
from ballotbox.election import Election, ElectionConfig

TEST_ORDERS = list(range(10)) + [100, 1000, 10000]

@pytest.mark.parametrize(
    'order', TEST_ORDERS
)
def test_result(order):
    for fx in d.DIVISORS.values():
        divisor = fx(order)
        assert divisor > 0
        assert isinstance(divisor, (int, Fraction))


def test_sequences():
    assert [d.d_hondt(i) for i in range(4)] == [1, 2, 3, 4]
    assert [d.sainte_lague(i) for i in range(4)] == [1, 3, 5, 7]
    assert [d.imperiali(i) for i in range(3)] == [1, Fraction(3, 2), 2]
    assert [d.danish(i) for i in range(3)] == [1, 4, 7]


def test_modified_first_coef():
    for fx in d.DIVISORS.values():
        modif = d.modified_first_coef(fx, 8654)
        assert modif(0) == 8654
        for i in TEST_ORDERS[1:]:
            assert modif(i) == fx(i)


def test_modified_first_coef_exact():
    modif = d.modified_first_coef(d.sainte_lague, 1.4)
    assert modif(0) == Fraction(7, 5)


def test_get():
    for fx_name, fx in d.DIVISORS.items():
        assert d.get(fx_name) == fx
    assert d.get('D\'Hondt') == d.d_hondt
    for bad_name in ('oapsdjf', '', None):
        with pytest.raises(KeyError):
            d.get(bad_name)


def test_construct():
    for fx_name, fx in d.DIVISORS.items():
        assert d.construct(fx_name) == d.get(fx_name) == fx
    for bad_name in ('oapsdjf', '', None):
        with pytest.raises(UnknownComponentError):
            d.construct(bad_name)
    def own_divf(ord):
        return ord + 2
    assert d.construct(own_divf) == own_divf


def test_modified_first_coef_default():
    election = Election(
        ElectionConfig(weight_allowed=True, n_seats=20),
        candidates=['muncip1', 'muncip2'],
    )
    election.add_ballots(['muncip1 ^20', 'muncip2 ^10'])
    result = election.get_result(
        'Highest Averages',
        divisor_function=d.modified_first_coef(d.sainte_lague),
    )
    assert sum(result.seats.values()) == 20
    assert result.seats['muncip1'] > result.seats['muncip2']


def test_modified_first_coef_cached_separately():
    election = Election(
        ElectionConfig(weight_allowed=True, n_seats=2),
        candidates=['A', 'B'],
    )
    election.add_ballots(['A ^10', 'B ^6'])
    low = election.get_result(
        'Highest Averages',
        divisor_function=d.modified_first_coef(d.d_hondt, 1),
    )
    high = election.get_result(
        'Highest Averages',
        divisor_function=d.modified_first_coef(d.d_hondt, 3),
    )
    assert len(election.cache) == 2
    assert low.seats == {'A': 1, 'B': 1}
    assert high.seats == {'A': 2, 'B': 0}
