"""Compact text notation for ranked ballots.

Each ballot is written on a single line (or separated by semicolons) as
a ranking of candidate names from the most preferred, with ``>`` separating
the ranks and ``=`` joining candidates ranked equally::

    A > B = C > D

The ranking may be followed by a weight after a caret and by a repetition
count after an asterisk, and preceded by comma-separated tags ended by
a double bar::

    north, paper || A > B = C ^2 * 3

denotes three identical ballots of weight 2 tagged ``north`` and ``paper``.
Everything after a ``#`` is a comment; empty lines are ignored.

The per-ballot override of the implicit ranking rule is not expressible in
the notation and is not written out.
"""

import collections
from typing import Iterable, Iterator, List, Tuple

from ballotbox.io.core import ParseError, loaders, dumpers
from ballotbox.vote import Ballot, InvalidBallotError


TAG_SEPARATOR = '||'
RANK_SEPARATOR = '>'
TIE_SEPARATOR = '='
WEIGHT_MARK = '^'
REPEAT_MARK = '*'
COMMENT_MARK = '#'
BALLOT_SEPARATOR = ';'


def parse_line(line: str, lineno: int = None) -> Tuple[Ballot, int]:
    '''Parse a single ballot in notation.

    :param line: The ballot notation, without comments.
    :param lineno: Line number to report in errors.
    :returns: The ballot and the number of its repetitions.
    :raises ParseError: If the notation is malformed or describes an invalid
        ballot.
    '''
    tags = None
    body = line
    if TAG_SEPARATOR in body:
        tags, body = body.split(TAG_SEPARATOR, 1)
    count = 1
    if REPEAT_MARK in body:
        body, count_str = body.rsplit(REPEAT_MARK, 1)
        try:
            count = int(count_str.strip())
        except ValueError:
            raise ParseError(line, 'invalid repetition count', lineno)
        if count < 1:
            raise ParseError(line, 'repetition count must be positive', lineno)
    weight = 1
    if WEIGHT_MARK in body:
        body, weight = body.split(WEIGHT_MARK, 1)
        weight = weight.strip()
    groups = []
    for group in body.split(RANK_SEPARATOR):
        names = [name.strip() for name in group.split(TIE_SEPARATOR)]
        if not all(names):
            raise ParseError(line, 'empty candidate name', lineno)
        groups.append(frozenset(names))
    try:
        ballot = Ballot(groups, weight=weight, tags=tags)
    except InvalidBallotError as err:
        raise ParseError(line, str(err), lineno) from err
    return ballot, count


def parse_ballot(line: str) -> Ballot:
    '''Parse a single ballot; a repetition count other than one is an error.'''
    ballot, count = parse_line(_strip_comment(line).strip())
    if count != 1:
        raise ParseError(line, 'a single ballot expected')
    return ballot


def _strip_comment(line: str) -> str:
    return line.split(COMMENT_MARK, 1)[0]


def _chunks(lines: Iterable[str]) -> Iterator[Tuple[int, str]]:
    for lineno, line in enumerate(lines, start=1):
        for chunk in _strip_comment(line).split(BALLOT_SEPARATOR):
            chunk = chunk.strip()
            if chunk:
                yield lineno, chunk


def load_lines(lines: Iterable[str]) -> List[Ballot]:
    '''Parse ballots from lines of notation, expanding repetitions.'''
    ballots = []
    for lineno, chunk in _chunks(lines):
        ballot, count = parse_line(chunk, lineno)
        ballots.extend([ballot] * count)
    return ballots


load, loads = loaders(load_lines)


def parse_ballots(text: str) -> List[Ballot]:
    '''Parse ballots from a notation text, expanding repetitions.'''
    return loads(text)


def format_ballot(ballot: Ballot, count: int = 1) -> str:
    '''Write a ballot in notation.

    :param count: Number of repetitions to write; omitted if one.
    '''
    out = str(ballot)
    if ballot.tags:
        out = ', '.join(sorted(ballot.tags)) + f' {TAG_SEPARATOR} ' + out
    if ballot.weight != 1:
        out += f' {WEIGHT_MARK}{ballot.weight}'
    if count != 1:
        out += f' {REPEAT_MARK} {count}'
    return out


def dump_lines(ballots: Iterable[Ballot], group: bool = True
               ) -> Iterator[str]:
    '''Generate notation lines for the ballots.

    :param group: Whether to write equal ballots once, with a repetition
        count, at the position of their first occurrence.
    '''
    if group:
        counts = collections.Counter()
        order = []
        for ballot in ballots:
            if ballot not in counts:
                order.append(ballot)
            counts[ballot] += 1
        for ballot in order:
            yield format_ballot(ballot, counts[ballot])
    else:
        for ballot in ballots:
            yield format_ballot(ballot)


dump, dumps = dumpers(dump_lines)
