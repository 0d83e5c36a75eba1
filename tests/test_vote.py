import sys
import os
from fractions import Fraction
from decimal import Decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox.vote
from ballotbox.vote import Ballot, InvalidBallotError
from ballotbox.candidate import Candidate

CANDIDATES = frozenset('ABCD')

VALID = [
    tuple(),
    ('A',),
    tuple('AB'),
    tuple('ABCD'),
    (frozenset('AB'), 'C', 'D'),
    ('A', frozenset('BC'), 'D'),
    (Candidate('A'), {'B', Candidate('C')}),
]

INVALID = [
    tuple('AA'),
    ('A', frozenset('AB')),
    ('A', 'E'),
    (frozenset('BX'), ),
]


@pytest.mark.parametrize('ranking', VALID)
def test_valid_ballots(ranking):
    ballot = Ballot(ranking)
    ballot.validate(CANDIDATES)
    assert all(isinstance(group, frozenset) for group in ballot.ranking)
    assert ballot.key is None


@pytest.mark.parametrize('ranking', INVALID)
def test_invalid_ballots(ranking):
    with pytest.raises(InvalidBallotError):
        Ballot(ranking).validate(CANDIDATES)


@pytest.mark.parametrize('ranking', ['ABC', 5, ('A', ['B', 'C']), ('A', set())])
def test_malformed_ranking(ranking):
    with pytest.raises(InvalidBallotError):
        Ballot(ranking)


@pytest.mark.parametrize(('weight', 'exact'), [
    (1, 1),
    (3, 3),
    (Fraction(3, 2), Fraction(3, 2)),
    (1.1, Fraction(11, 10)),
    (Decimal('2.5'), Fraction(5, 2)),
    ('7/4', Fraction(7, 4)),
    (2.0, 2),
])
def test_exact_weight(weight, exact):
    converted = ballotbox.vote.exact_weight(weight)
    assert converted == exact
    assert type(converted) == type(exact)


@pytest.mark.parametrize('weight', [0, -1, Fraction(1, 2), 0.99, '0.5'])
def test_weight_below_one(weight):
    with pytest.raises(ballotbox.vote.VoteValueError):
        Ballot(('A', ), weight=weight)


@pytest.mark.parametrize('weight', [True, None, 'abc', [1]])
def test_weight_invalid(weight):
    with pytest.raises(InvalidBallotError):
        Ballot(('A', ), weight=weight)


def test_tags():
    assert Ballot(('A', ), tags='x, y,,z ').tags == frozenset('xyz')
    assert Ballot(('A', ), tags=['x', ' y']).tags == frozenset('xy')
    assert Ballot(('A', )).tags == frozenset()
    with pytest.raises(InvalidBallotError):
        Ballot(('A', ), tags=[1])


def test_contextual_ranking():
    ballot = Ballot(('B', frozenset('AC')))
    assert ballot.contextual_ranking('ABCDE') == (
        frozenset('B'), frozenset('AC'), frozenset('DE')
    )
    assert ballot.contextual_ranking('ABCDE', False) == ballot.ranking
    assert ballot.contextual_ranking('ABC') == ballot.ranking


def test_contextual_ranking_override():
    explicit = Ballot(('B', ), implicit_ranking=False)
    assert explicit.contextual_ranking('ABC', True) == (frozenset('B'), )
    implicit = Ballot(('B', ), implicit_ranking=True)
    assert implicit.contextual_ranking('ABC', False) == (
        frozenset('B'), frozenset('AC')
    )


def test_has_tie():
    assert Ballot(('A', frozenset('BC'))).has_tie()
    assert not Ballot(tuple('ABC')).has_tie()


def test_bind():
    ballot = Ballot(tuple('AB'), weight=2, tags='x')
    bound = ballot.bind(7)
    assert bound.key == 7
    assert ballot.key is None
    assert bound == ballot
    assert bound.weight == 2
    assert bound.tags == frozenset(['x'])


def test_effective_weight():
    ballot = Ballot(tuple('AB'), weight=Fraction(5, 2))
    assert ballot.effective_weight(True) == Fraction(5, 2)
    assert ballot.effective_weight(False) == 1


def test_str():
    assert str(Ballot(('A', frozenset('CB'), 'D'))) == 'A > B = C > D'


@pytest.mark.parametrize('ballot', [
    Ballot(('A', frozenset('BC'))),
    Ballot(tuple('AB'), weight=Fraction(3, 2), tags='x,y'),
    Ballot(('C', ), implicit_ranking=False),
])
def test_dict_roundtrip(ballot):
    assert Ballot.from_dict(ballot.to_dict()) == ballot


def test_error_hierarchy():
    assert ballotbox.vote.VoteError is InvalidBallotError
    assert issubclass(ballotbox.vote.VoteValueError, ballotbox.vote.VoteError)
    assert issubclass(ballotbox.vote.VoteTypeError, ballotbox.vote.VoteError)
