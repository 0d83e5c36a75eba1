
import sys
import os
import itertools

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import ballotbox.evaluate.condorcet
from ballotbox.election import Election, ElectionConfig
from ballotbox.evaluate.core import StatsVerbosity


VOTES = {
    'schulze': (
        'ABCDE',
        '''
        A > C > B > E > D * 5
        A > D > E > C > B * 5
        B > E > D > A > C * 8
        C > A > B > E > D * 3
        C > A > E > B > D * 7
        C > B > A > D > E * 2
        D > C > E > B > A * 7
        E > B > A > D > C * 8
        '''
    ),
    'tennessee': (
        'MNCK',
        '''
        M > N > C > K * 42
        N > C > K > M * 26
        C > K > N > M * 15
        K > C > N > M * 17
        '''
    ),
    'noncw1': (
        'ABCDE',
        '''
        A > E > C > D > B * 31
        B > A > E * 30
        C > D > B * 29
        D > A > E * 10
        '''
    ),
    'noncw_minimax': (
        'ABC',
        '''
        A > C > B * 47
        C > B > A * 43
        A = C > B * 4
        B > A = C * 6
        '''
    ),
    'noncw_minimax_2': (
        'ABCD',
        '''
        A > C > B > D * 30
        D > B > A > C * 15
        D > B > C > A * 14
        B > C > A > D * 6
        D > C > A = B * 4
        C > A = B * 16
        B > C * 14
        C > A * 3
        '''
    ),
    'cw_wiki_mj': (
        'ABC',
        '''
        A > B > C * 35
        C > B > A * 34
        B > C > A * 31
        '''
    ),
    'cw_wiki_borda': (
        'ABC',
        '''
        A > B > C * 3
        B > C > A * 2
        '''
    ),
}

CONDORCET_WINNERS = {
    'tennessee': 'N',
    'noncw_minimax': 'A',
    'cw_wiki_mj': 'B',
    'cw_wiki_borda': 'A',
}

CONDORCET_LOSERS = {
    'tennessee': 'M',
    'noncw_minimax': 'B',
    'noncw_minimax_2': 'D',
    'cw_wiki_mj': 'A',
    'cw_wiki_borda': 'C',
}

# methods that need not rank the Condorcet winner first
NONCONDORCET = [('Minimax', {'pairwin_scoring': 'pairwise_opposition'})]

METHODS = [
    ('Copeland', {}),
    ('Copeland', {'second_order': True}),
    ('Schulze', {}),
    ('Schulze', {'pairwin_scoring': 'margins'}),
    ('Minimax', {}),
    ('Minimax', {'pairwin_scoring': 'margins'}),
    ('Minimax', {'pairwin_scoring': 'pairwise_opposition'}),
    ('Ranked Pairs', {}),
    ('Ranked Pairs', {'pairwin_scoring': 'margins'}),
]

RESULTS = {
    'schulze': [
        ('Schulze', {}, [['E'], ['A'], ['C'], ['B'], ['D']]),
    ],
    'tennessee': [
        ('Copeland', {}, [['N'], ['C'], ['K'], ['M']]),
        ('Copeland', {'second_order': True}, [['N'], ['C'], ['K'], ['M']]),
        ('Schulze', {}, [['N'], ['C'], ['K'], ['M']]),
        ('Ranked Pairs', {}, [['N'], ['C'], ['K'], ['M']]),
    ],
    'noncw1': [
        ('Copeland', {}, [['A'], ['B', 'C', 'E'], ['D']]),
        ('Copeland', {'second_order': True}, [['A'], ['B'], ['C', 'E'], ['D']]),
    ],
    'noncw_minimax': [
        ('Minimax', {'pairwin_scoring': 'pairwise_opposition'},
         [['C'], ['A'], ['B']]),
    ],
    'noncw_minimax_2': [
        ('Minimax', {}, [['A'], ['D'], ['C'], ['B']]),
        ('Minimax', {'pairwin_scoring': 'margins'}, [['B'], ['C'], ['D'], ['A']]),
        ('Minimax', {'pairwin_scoring': 'pairwise_opposition'},
         [['D'], ['A'], ['C'], ['B']]),
    ],
}

IMPLICIT_RANKING = {
    'noncw_minimax_2': False,
}


def build_election(vote_set_name, **config):
    candidates, text = VOTES[vote_set_name]
    election = Election(
        ElectionConfig(
            implicit_ranking=IMPLICIT_RANKING.get(vote_set_name, True),
            **config
        ),
        candidates=candidates,
    )
    election.add_ballots(text)
    return election


@pytest.mark.parametrize(('vote_set_name', 'method'),
    itertools.product(VOTES.keys(), METHODS)
)
def test_condorcet_eval(vote_set_name, method):
    method_name, options = method
    election = build_election(vote_set_name)
    result = election.get_result(method_name, **options)
    ranked = [cand for group in result.ranking for cand in group]
    assert sorted(ranked) == sorted(election.candidate_names())
    if vote_set_name in CONDORCET_WINNERS and method not in NONCONDORCET:
        assert result.ranking[0] == [CONDORCET_WINNERS[vote_set_name]]


@pytest.mark.parametrize(('vote_set_name', 'method_name', 'options', 'ranking'), [
    (vote_set_name, ) + expected
    for vote_set_name, results in RESULTS.items()
    for expected in results
])
def test_condorcet_results(vote_set_name, method_name, options, ranking):
    election = build_election(vote_set_name)
    assert election.get_result(method_name, **options).ranking == ranking


@pytest.mark.parametrize('vote_set_name', list(VOTES.keys()))
def test_condorcet_winner(vote_set_name):
    election = build_election(vote_set_name)
    assert election.get_condorcet_winner() == CONDORCET_WINNERS.get(vote_set_name)
    assert election.get_condorcet_loser() == CONDORCET_LOSERS.get(vote_set_name)


def test_pairwise_wins():
    counts = {('A', 'B'): 3, ('B', 'A'): 3, ('A', 'C'): 4, ('C', 'A'): 2,
              ('B', 'C'): 1, ('C', 'B'): 5}
    wins = ballotbox.evaluate.condorcet.pairwise_wins(counts)
    assert sorted(wins) == [('A', 'C'), ('C', 'B')]
    with_ties = ballotbox.evaluate.condorcet.pairwise_wins(counts, include_ties=True)
    assert sorted(with_ties) == [('A', 'B'), ('A', 'C'), ('B', 'A'), ('C', 'B')]


def test_condorcet_winner_single_candidate():
    assert ballotbox.evaluate.condorcet.condorcet_winner({}, ['A']) is None


def test_schulze_widest_paths():
    paths = ballotbox.evaluate.condorcet.Schulze.widest_paths({
        ('A', 'B'): 7, ('B', 'A'): 3,
        ('B', 'C'): 6, ('C', 'B'): 4,
        ('A', 'C'): 4, ('C', 'A'): 6,
    })
    assert paths[('A', 'B')] == 7
    assert paths[('A', 'C')] == 6
    assert paths[('B', 'C')] == 6
    assert paths[('C', 'A')] == 6
    assert paths[('C', 'B')] == 6


def test_ranked_pairs_cycle():
    election = Election(candidates='ABC')
    election.add_ballots('''
        A > B > C * 4
        B > C > A * 3
        C > A > B * 2
    ''')
    # C over A would close a cycle
    result = election.get_result('Ranked Pairs')
    assert result.ranking == [['A'], ['B'], ['C']]
    assert result.stats == {'locked_pairs': [['B', 'C'], ['A', 'B']]}


def test_ranked_pairs_unconnected_tie():
    election = Election(ElectionConfig(implicit_ranking=False), candidates='ABCD')
    election.add_ballots(['A > B', 'C > D'])
    assert election.get_result('Tideman').ranking == [['A', 'C'], ['B', 'D']]


def test_copeland_stats():
    election = build_election('tennessee')
    result = election.get_result('Copeland')
    assert result.stats == {'scores': {'M': -3, 'N': 3, 'C': 1, 'K': -1}}


def test_minimax_stats():
    election = build_election('noncw_minimax_2')
    result = election.get_result('Minimax')
    assert result.stats == {
        'worst_defeats': {'A': 35, 'B': 50, 'C': 45, 'D': 36}
    }


def test_schulze_stats_verbosity():
    election = build_election(
        'tennessee', stats_verbosity=StatsVerbosity.NONE
    )
    assert election.get_result('Schulze').stats is None
    election.stats_verbosity = StatsVerbosity.STD
    paths = election.get_result('Schulze').stats['paths']
    assert paths['N']['M'] == 58
    assert paths['M']['N'] == 0


@pytest.mark.parametrize('alias', ['schulze', 'Schulze Winning', 'beat-path'])
def test_method_aliases(alias):
    election = build_election('schulze')
    assert election.get_result(alias).ranking == [['E'], ['A'], ['C'], ['B'], ['D']]
