'''Election candidates.

Candidates are registered in an :class:`ballotbox.election.Election` which
assigns them a stable integer key in the order of registration. Within the
election, candidates are referred to by their names; ballots reference
candidates by name too, so that they remain readable (and storable in
external drivers) independently of any election object.
'''

import string
from typing import Any, Dict, Iterator

from ballotbox.errors import ValidationError


MAX_NAME_LENGTH = 30


class CandidateError(ValidationError):
    '''A candidate is invalid in the given context.

    E.g. an empty or too long name, or a name already used by another
    candidate of the same election.

    :param candidate: Candidate (or candidate name) found to be invalid.
    :param reason: Why the candidate is invalid.
    '''
    def __init__(self, candidate: Any, reason: str = None):
        self.candidate = candidate
        self.reason = reason
        message = f'invalid candidate: {candidate!r}'
        if reason:
            message += f', {reason}'
        super().__init__(message)


class UnknownCandidateError(CandidateError, KeyError):
    '''A candidate is not registered in the election.'''
    def __init__(self, candidate: Any):
        super().__init__(candidate, 'not registered in the election')

    def __str__(self) -> str:
        return self.args[0]


class Candidate:
    '''A candidate standing for the election.

    Candidates compare equal to other candidates of the same name and hash
    like their name, so a name and a candidate object can be used
    interchangeably as dictionary keys.

    :param name: Name of the candidate. Leading and trailing whitespace is
        stripped; the result must not be empty and must have at most
        30 characters.
    '''
    def __init__(self, name: str):
        self._name = validate_name(name)

    @property
    def name(self) -> str:
        return self._name

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self._name}

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f'<Candidate({self._name})>'

    def __eq__(self, other) -> bool:
        if isinstance(other, Candidate):
            return self._name == other._name
        elif isinstance(other, str):
            return self._name == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._name)


def validate_name(name: Any) -> str:
    '''Return the normalized candidate name or raise a CandidateError.'''
    if isinstance(name, Candidate):
        return name.name
    if not isinstance(name, str):
        raise CandidateError(name, 'name must be a string')
    name = name.strip()
    if not name:
        raise CandidateError(name, 'name must not be empty')
    if len(name) > MAX_NAME_LENGTH:
        raise CandidateError(
            name, f'name must have at most {MAX_NAME_LENGTH} characters'
        )
    if any(char in name for char in '>=;^*|#,\n'):
        raise CandidateError(name, 'name contains reserved characters')
    return name


def candidate_name(candidate: Any) -> str:
    '''Return the name of a candidate object or the stripped name itself.'''
    if isinstance(candidate, Candidate):
        return candidate.name
    elif isinstance(candidate, str):
        return candidate.strip()
    else:
        raise CandidateError(candidate, 'not a candidate or candidate name')


def automatic_names() -> Iterator[str]:
    '''Generate spreadsheet-column-like names: A, B, ... Z, AA, AB...'''
    letters = string.ascii_uppercase
    width = 1
    while True:
        indices = [0] * width
        while True:
            yield ''.join(letters[i] for i in indices)
            pos = width - 1
            while pos >= 0 and indices[pos] == len(letters) - 1:
                indices[pos] = 0
                pos -= 1
            if pos < 0:
                break
            indices[pos] += 1
        width += 1
