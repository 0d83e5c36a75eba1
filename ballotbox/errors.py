'''Roots of the Ballotbox error hierarchy.

The concrete errors are defined next to the code that raises them (e.g.
:class:`ballotbox.vote.InvalidBallotError` or
:class:`ballotbox.election.VotingAlreadyStartedError`); this module only
provides the common base classes so that callers can catch whole categories:

-   :class:`ValidationError` - a candidate, ballot or setting is invalid.
-   :class:`StateError` - the operation is not allowed in the current
    election state.
-   :class:`HandlerError` - misuse of external ballot store drivers.
-   :class:`VersionMismatchError` - a snapshot was produced by an incompatible
    version.

No operation raising one of these errors leaves the election partially
modified.
'''


class BallotBoxError(Exception):
    '''Base class for all errors raised by Ballotbox.'''
    pass


class ValidationError(BallotBoxError):
    '''An input object or value is invalid.'''
    pass


class StateError(BallotBoxError):
    '''The operation is not permitted in the current election state.'''
    pass


class HandlerError(BallotBoxError):
    '''An external ballot store driver cannot be attached or detached.'''
    pass


class VersionMismatchError(BallotBoxError):
    '''A snapshot was produced by an incompatible version of Ballotbox.

    :param found: Version recorded in the snapshot.
    :param expected: Version of the running library.
    '''
    def __init__(self, found: str, expected: str):
        self.found = found
        self.expected = expected
        super().__init__(
            f'snapshot version {found} does not match library version'
            f' {expected}'
        )
