import sys
import os
import gc

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import ballotbox.evaluate
import ballotbox.evaluate.core
import ballotbox.evaluate.condorcet
import ballotbox.evaluate.proportional
from ballotbox.election import Election, ElectionConfig
from ballotbox.errors import ValidationError


def test_abstract():
    with pytest.raises(TypeError):
        ballotbox.evaluate.core.Method()


@pytest.mark.parametrize(('name', 'cls'), [
    ('Schulze', ballotbox.evaluate.condorcet.Schulze),
    ('beatpath', ballotbox.evaluate.condorcet.Schulze),
    ('Simpson-Kramer', ballotbox.evaluate.condorcet.MinimaxCondorcet),
    ('ranked_pairs', ballotbox.evaluate.condorcet.RankedPairs),
    ('TIDEMAN', ballotbox.evaluate.condorcet.RankedPairs),
    ('copeland', ballotbox.evaluate.condorcet.Copeland),
    ('First past the post', ballotbox.evaluate.core.Plurality),
    ('Hagenbach-Bischoff', ballotbox.evaluate.proportional.Jefferson),
    ('Sainte-Laguë', ballotbox.evaluate.proportional.SainteLague),
    ('highest averages', ballotbox.evaluate.proportional.HighestAverages),
])
def test_get(name, cls):
    assert ballotbox.evaluate.get(name) is cls


@pytest.mark.parametrize('bad_name', ['borda', '', None])
def test_get_unknown(bad_name):
    with pytest.raises(ballotbox.evaluate.UnknownMethodError):
        ballotbox.evaluate.get(bad_name)


def test_unknown_method_error_kinds():
    election = Election(candidates='AB')
    election.add_ballot('A > B')
    with pytest.raises(ValidationError):
        election.get_result('instant runoff')
    with pytest.raises(KeyError):
        election.get_result('instant runoff')


def test_construct():
    method = ballotbox.evaluate.construct('minimax', pairwin_scoring='margins')
    assert isinstance(method, ballotbox.evaluate.condorcet.MinimaxCondorcet)
    assert method.options() == {
        'pairwin_scoring': {'callable': 'ballotbox.component.pairwin_scorer.margins'}
    }
    assert ballotbox.evaluate.construct(method) is method
    with pytest.raises(ValueError):
        ballotbox.evaluate.construct(method, pairwin_scoring='margins')


def test_method_name():
    assert ballotbox.evaluate.condorcet.Schulze().name == 'Schulze'
    assert ballotbox.evaluate.proportional.Jefferson().name == 'Jefferson'


def test_unbound_election():
    with pytest.raises(ReferenceError):
        ballotbox.evaluate.condorcet.Copeland().election


def test_bound_election_weak():
    election = Election(candidates='AB')
    election.add_ballot('A > B')
    method = ballotbox.evaluate.condorcet.Copeland()
    election.get_result(method)
    assert method.election is election
    del election
    gc.collect()
    with pytest.raises(ReferenceError):
        method.election


def test_method_object_shares_cache():
    election = Election(candidates='AB')
    election.add_ballot('A > B')
    first = election.get_result(ballotbox.evaluate.condorcet.Copeland())
    assert election.get_result('Copeland') == first
    assert len(election.cache) == 1
    assert election.has_result('copeland', second_order=False)
    assert not election.has_result('copeland', second_order=True)


def test_first_preferences():
    election = Election(ElectionConfig(weight_allowed=True), candidates='ABCD')
    election.add_ballots('''
        A > B ^3
        B > A * 2
        C = D > A
        C
    ''')
    assert ballotbox.evaluate.core.first_preferences(election) == {
        'A': 3, 'B': 2, 'C': 1, 'D': 0,
    }


def test_first_preferences_implicit():
    election = Election(candidates='AB')
    election.add_ballots(['A > B', 'A = B'])
    election.add_ballot(['A'])
    assert ballotbox.evaluate.core.first_preferences(election) == {
        'A': 2, 'B': 0,
    }


def test_plurality():
    election = Election(candidates='ABC')
    election.add_ballots('''
        A > B * 3
        B > A * 3
        C > A * 2
        A = B
    ''')
    result = election.get_result('FPTP')
    assert result.method == 'Plurality'
    assert result.ranking == [['A', 'B'], ['C']]
    assert result.winner is None
    assert result.loser == 'C'
    assert result.stats == {'first_preferences': {'A': 3, 'B': 3, 'C': 2}}


def test_method_repr():
    assert 'margins' in repr(
        ballotbox.evaluate.condorcet.Schulze(pairwin_scoring='margins')
    )
