'''Election methods computing the results of elections.

There are two basic kinds of methods. *Ranking methods* (plurality and the
Condorcet methods) order the candidates from the best to the worst; ties are
reported as rank groups of several candidates. *Apportionment methods*
(highest averages) distribute the seats of the election among the candidates
and rank them by the number of seats obtained.

All methods are registered in the ``METHODS`` dictionary under their names
and aliases, so the election can refer to them by name, e.g.
``election.get_result('Ranked Pairs')``. Name lookup ignores case, spaces and
dashes.

Methods never validate ballots; the election only passes them the ballots
that satisfy all of its constraints.
'''

from ballotbox.evaluate.core import *    # noqa
import ballotbox.evaluate.condorcet    # noqa
import ballotbox.evaluate.proportional    # noqa
