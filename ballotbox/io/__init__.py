"""Input/output of ballots in text form.

The :mod:`notation` module reads and writes the compact ballot notation
used throughout Ballotbox (``A > B = C ^2 * 3``).
"""

from ballotbox.io.core import ParseError    # noqa
