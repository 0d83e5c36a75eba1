import sys
import os
import json
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox
import ballotbox.persist
import ballotbox.constraint
import ballotbox.component.divisor
import ballotbox.evaluate
import ballotbox.evaluate.condorcet
import ballotbox.evaluate.proportional
from ballotbox.election import Election, ElectionConfig, ElectionState
from ballotbox.errors import VersionMismatchError


METHODS = [
    ballotbox.evaluate.Plurality(),
    ballotbox.evaluate.condorcet.Copeland(second_order=True),
    ballotbox.evaluate.condorcet.Schulze(),
    ballotbox.evaluate.condorcet.Schulze('margins'),
    ballotbox.evaluate.condorcet.RankedPairs('pairwise_opposition'),
    ballotbox.evaluate.condorcet.MinimaxCondorcet(),
    ballotbox.evaluate.proportional.HighestAverages('sainte_lague'),
    ballotbox.evaluate.proportional.Jefferson(),
    ballotbox.evaluate.proportional.SainteLague(Fraction(7, 5)),
    ballotbox.evaluate.proportional.HighestAverages(
        ballotbox.component.divisor.modified_first_coef(
            ballotbox.component.divisor.d_hondt, 2
        )
    ),
]

CONSTRAINTS = [
    ballotbox.constraint.NoTie(),
    ballotbox.constraint.MinimumRanked(2),
]


@pytest.mark.parametrize('obj', METHODS + CONSTRAINTS)
def test_roundtrip(obj):
    dict_form = ballotbox.persist.to_dict(obj)
    serial = json.dumps(dict_form)
    roundtrip_obj = ballotbox.persist.from_dict(json.loads(serial))
    roundtrip_dict_form = roundtrip_obj.to_dict()
    assert type(roundtrip_obj) is type(obj)
    assert dict_form == roundtrip_dict_form
    assert serial == json.dumps(roundtrip_dict_form)


@pytest.mark.parametrize('value', [
    {'a': Fraction(1, 3)},
    [1, 'x', None, 2.5],
    frozenset([1, 2]),
    (1, 2),
    {1: 'a', 2: 'b'},
    {'class': 1, 'B': -1},
    {'callable': 'x'},
    {'type': 'Fraction', 'value': [1, 2]},
])
def test_value_roundtrip(value):
    serial = json.dumps(ballotbox.persist.serialize_value(value))
    assert ballotbox.persist.deserialize_value(json.loads(serial)) == value


@pytest.mark.parametrize('invalid', [
    5, {'x': 1}, {'class': '.relative'}, {'class': 'not an identifier'},
    {'class': 'os.system'}, {'class': 'ballotbox.evaluate.NoSuchMethod'},
])
def test_from_dict_invalid(invalid):
    with pytest.raises(ValueError):
        ballotbox.persist.from_dict(invalid)


@pytest.mark.parametrize(('found', 'expected', 'compatible'), [
    ('0.4.0', '0.4.0', True),
    ('0.4.7', '0.4.0', True),
    ('0.4', '0.4.2', True),
    ('0.3.9', '0.4.0', False),
    ('1.4.0', '0.4.0', False),
    (None, '0.4.0', False),
    (4, '0.4.0', False),
])
def test_check_version(found, expected, compatible):
    if compatible:
        ballotbox.persist.check_version(found, expected)
    else:
        with pytest.raises(VersionMismatchError):
            ballotbox.persist.check_version(found, expected)


@pytest.fixture
def computed_election():
    election = Election(
        ElectionConfig(weight_allowed=True, n_seats=3),
        candidates=['A', 'B', 'C'],
        constraints=[ballotbox.constraint.NoTie()],
    )
    election.add_ballots([
        'x || A > B > C ^3/2',
        'B > C > A * 2',
        'C > A = B',
    ])
    election.get_result('Schulze')
    election.get_result('Jefferson')
    return election


def test_election_snapshot_roundtrip(computed_election):
    serial = json.dumps(computed_election.to_dict())
    restored = Election.from_dict(json.loads(serial))
    assert restored.state == ElectionState.RESULTS_COMPUTED
    assert restored.config == computed_election.config
    assert restored.candidate_keys() == computed_election.candidate_keys()
    assert restored.get_ballots() == computed_election.get_ballots()
    assert [b.key for b in restored.get_ballots()] == [0, 1, 2, 3]
    assert restored.constraints == computed_election.constraints
    assert restored.get_pairwise() == computed_election.get_pairwise()
    assert len(restored.cache) == 2
    assert restored.has_result('Schulze')
    assert restored.get_result('Jefferson') == \
        computed_election.get_result('Jefferson')
    assert restored.add_ballot('A > C') == 4
    assert restored.get_pairwise().query('A', 'C').win == \
        computed_election.get_pairwise().query('A', 'C').win + 1


def test_election_snapshot_version_mismatch(computed_election):
    snapshot = computed_election.to_dict()
    snapshot['version'] = '0.1.0'
    with pytest.raises(VersionMismatchError):
        Election.from_dict(snapshot)
    del snapshot['version']
    with pytest.raises(VersionMismatchError):
        Election.from_dict(snapshot)


def test_election_snapshot_patch_version(computed_election):
    snapshot = computed_election.to_dict()
    major, minor, patch = ballotbox.__version__.split('.')
    snapshot['version'] = f'{major}.{minor}.{int(patch) + 5}'
    assert Election.from_dict(snapshot).count_ballots() == 4


def test_election_snapshot_marker_names():
    election = Election(candidates=['class', 'type', 'callable'])
    election.add_ballots(['class > type', 'callable > class > type'])
    original = election.get_result('Copeland')
    election.get_result('Schulze')
    restored = Election.from_dict(json.loads(json.dumps(election.to_dict())))
    assert restored.candidate_names() == ['class', 'type', 'callable']
    assert restored.get_result('Copeland') == original
    assert restored.get_result('Copeland').stats == original.stats
    assert restored.get_result('Schulze').stats == \
        election.get_result('Schulze').stats
