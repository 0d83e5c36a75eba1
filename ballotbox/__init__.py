"""Ballotbox - ranked ballot elections with incremental result computation.

Ballotbox keeps an election - its candidates, ranked ballots and settings -
as a long-lived object and computes results under many election methods,
recomputing only what the changes since the last request require.

An election consists of the following parts:

-   The candidates, registered before the voting starts (the ``candidate``
    module).
-   The ballots, immutable rankings of candidates with optional weights and
    tags (the ``vote`` module), held by a ballot store that can page them out
    to an external database (the ``store`` and ``driver`` modules).
-   The pairwise comparison matrix aggregating the ballots (the ``pairwise``
    module), updated incrementally as ballots come and go.
-   The election methods producing the results (the ``evaluate``
    subpackage), whose results are cached until the ballots or settings
    change (the ``cache`` module).

The :class:`Election` object from the :mod:`election` module ties these
together; snapshots of it can be saved and restored with the functions of the
:mod:`persist` module.
"""

__version__ = '0.4.0'

from ballotbox.election import Election, ElectionConfig, ElectionState    # noqa
from ballotbox.vote import Ballot    # noqa
from ballotbox.candidate import Candidate    # noqa
