import sys
import os
import itertools

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox.candidate
from ballotbox.candidate import Candidate, CandidateError


@pytest.mark.parametrize(('name', 'normalized'), [
    ('A', 'A'),
    ('  Barack Obama ', 'Barack Obama'),
    ('x' * 30, 'x' * 30),
    (Candidate('Greens'), 'Greens'),
])
def test_valid_name(name, normalized):
    assert ballotbox.candidate.validate_name(name) == normalized


@pytest.mark.parametrize('name', [
    '', '   ', 'x' * 31, 'A > B', 'A=B', 'A;B', 'A^2', 'A*2', 'A|B', '#A',
    'A,B', 'A\nB', None, 5,
])
def test_invalid_name(name):
    with pytest.raises(CandidateError):
        ballotbox.candidate.validate_name(name)


def test_candidate_equality():
    cand = Candidate(' Angela Merkel')
    assert cand.name == 'Angela Merkel'
    assert cand == Candidate('Angela Merkel')
    assert cand == 'Angela Merkel'
    assert cand != Candidate('Olaf Scholz')
    assert {cand: 1}['Angela Merkel'] == 1
    assert str(cand) == 'Angela Merkel'


def test_unknown_candidate_is_key_error():
    err = ballotbox.candidate.UnknownCandidateError('Z')
    assert isinstance(err, KeyError)
    assert isinstance(err, CandidateError)
    assert 'Z' in str(err)


def test_automatic_names():
    names = list(itertools.islice(ballotbox.candidate.automatic_names(), 30))
    assert names[:3] == ['A', 'B', 'C']
    assert names[25] == 'Z'
    assert names[26:30] == ['AA', 'AB', 'AC', 'AD']
    assert len(set(names)) == len(names)


def test_automatic_names_three_letters():
    names = list(itertools.islice(
        ballotbox.candidate.automatic_names(), 26 + 26 * 26 + 1
    ))
    assert names[-2] == 'ZZ'
    assert names[-1] == 'AAA'
