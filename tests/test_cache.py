import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from ballotbox.cache import ResultCache, fingerprint
from ballotbox.result import Result


def test_get_or_compute_memoizes():
    cache = ResultCache()
    calls = []

    def compute():
        calls.append(1)
        return Result('Schulze', ['A', 'B'])

    first = cache.get_or_compute('Schulze', {}, compute)
    second = cache.get_or_compute('Schulze', {}, compute)
    assert first == second
    assert first is not second
    assert len(calls) == 1
    assert 'Schulze' in cache
    assert ('Schulze', fingerprint({})) in cache
    assert len(cache) == 1


def test_options_distinguish_entries():
    cache = ResultCache()
    cache.get_or_compute('Schulze', {'scoring': 'margins'},
                         lambda: Result('Schulze', ['A']))
    cache.get_or_compute('Schulze', {'scoring': 'winning_votes'},
                         lambda: Result('Schulze', ['B']))
    assert len(cache) == 2
    assert cache.get('Schulze', {'scoring': 'margins'}).winner == 'A'


def test_invalidate():
    cache = ResultCache()
    cache.get_or_compute('Copeland', {}, lambda: Result('Copeland', ['A']))
    cache.invalidate()
    assert len(cache) == 0
    assert 'Copeland' not in cache
    with pytest.raises(KeyError):
        cache.get('Copeland')


def test_cached_result_not_shared():
    cache = ResultCache()
    result = cache.get_or_compute(
        'Copeland', {}, lambda: Result('Copeland', ['A', 'B'], stats={'A': 1})
    )
    result.ranking.reverse()
    result.stats['A'] = 5
    cached = cache.get('Copeland')
    assert cached.ranking == [['A'], ['B']]
    assert cached.stats == {'A': 1}


def test_fingerprint_order_insensitive():
    assert fingerprint({'a': 1, 'b': 'x'}) == fingerprint({'b': 'x', 'a': 1})
    assert fingerprint({'a': 1}) != fingerprint({'a': '1'})


def test_restore():
    cache = ResultCache()
    result = Result('Plurality', [['A', 'B'], 'C'])
    cache.restore(['Plurality', fingerprint({})], result)
    assert cache.get('Plurality') == result
    assert dict(cache.items()) == {('Plurality', fingerprint({})): result}


def test_result_ranks():
    result = Result('Copeland', [['A'], ['B', 'C'], 'D'])
    assert result.ranking == [['A'], ['B', 'C'], ['D']]
    assert result.ranks == {'A': 1, 'B': 2, 'C': 2, 'D': 3}
    assert result.winner == 'A'
    assert result.loser == 'D'
    assert Result('X', [['A', 'B']]).winner is None
    assert Result.from_dict(result.to_dict()) == result
