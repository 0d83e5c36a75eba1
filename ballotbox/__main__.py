"""A commandline tool for quick evaluation of ranked ballot elections.

Reads ballots in the Ballotbox notation (``A > B = C ^2 * 3``, one ballot per
line) and shows the results of one or more election methods.
"""

import argparse
import io
import logging
import sys
import warnings
from typing import Optional, List

import ballotbox.io.notation
from ballotbox.election import Election, ElectionConfig
from ballotbox.result import Result
from ballotbox.vote import Ballot

argparser = argparse.ArgumentParser(
    prog='ballotbox',
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load input ballots from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load input ballots from standard input',
)
argparser.add_argument(
    '-c', '--candidates',
    nargs='*',
    help=(
        'candidates of the election in registration order; default (None)'
        ' registers all candidates found in the ballots in order of'
        ' appearance'
    ),
)
argparser.add_argument(
    '-m', '--method',
    nargs='*',
    help='election methods to use; default (None) uses Schulze',
)
argparser.add_argument(
    '-n', '--n-seats',
    type=int,
    default=ElectionConfig.n_seats,
    help='number of seats to award by apportionment methods',
)
argparser.add_argument(
    '-w', '--weighting',
    action='store_true',
    help='take ballot weights into account',
)
argparser.add_argument(
    '--no-implicit',
    action='store_true',
    help='do not rank candidates missing from a ballot equally last',
)
argparser.add_argument(
    '-p', '--pairwise',
    action='store_true',
    help='show the pairwise comparison matrix',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all log messages and other info',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any log messages or other info',
)


def main(input_file: io.TextIOBase,
         use_stdin: bool = False,
         candidates: Optional[List[str]] = None,
         method: Optional[List[str]] = None,
         n_seats: int = ElectionConfig.n_seats,
         weighting: bool = False,
         no_implicit: bool = False,
         pairwise: bool = False,
         verbose: bool = False,
         quiet: bool = False,
         ) -> None:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    ballots = ballotbox.io.notation.load(input_file)
    if not ballots:
        warnings.warn('no ballots: cannot evaluate election, terminating')
        return
    election = build_election(
        ballots,
        candidates=candidates,
        config=ElectionConfig(
            implicit_ranking=not no_implicit,
            weight_allowed=weighting,
            n_seats=n_seats,
        ),
    )
    show_ballot_stats(election)
    if pairwise:
        print()
        show_pairwise(election)
    for method_name in (method if method else [None]):
        print()
        show_result(election.get_result(method_name))


def build_election(ballots: List[Ballot],
                   candidates: Optional[List[str]] = None,
                   config: Optional[ElectionConfig] = None,
                   ) -> Election:
    """Create an election with the given ballots."""
    if candidates is None:
        candidates = []
        for ballot in ballots:
            for group in ballot.ranking:
                for cand in sorted(group):
                    if cand not in candidates:
                        candidates.append(cand)
    election = Election(config, candidates=candidates)
    election.add_ballots(ballots)
    return election


def show_ballot_stats(election: Election) -> None:
    print(f'Received {election.count_ballots()} ballots'
          f' of total weight {election.sum_weight()}')
    names = election.candidate_names()
    print(f'{len(names)} candidates:')
    for cand in names:
        print(' ' * 10 + cand)


def show_pairwise(election: Election) -> None:
    """Show the pairwise wins of each candidate against the others."""
    print('Pairwise wins (row over column):')
    names = election.candidate_names()
    matrix = election.get_pairwise()
    width = max(len(name) for name in names) + 2
    print(' ' * width + ''.join(name.rjust(width) for name in names))
    for upper in names:
        cells = [
            ('-' if upper == lower else str(matrix.query(upper, lower).win))
            for lower in names
        ]
        print(upper.ljust(width) + ''.join(cell.rjust(width) for cell in cells))


def show_result(result: Result) -> None:
    """Show the ranking (and seats, if any) of a single result."""
    print(f'{result.method} result:')
    ranks = [str(i) for i in range(1, len(result.ranking) + 1)]
    n_just_chars = len(max(ranks, key=len))
    for rank, group in zip(ranks, result.ranking):
        shown = ' = '.join(group)
        if result.seats is not None:
            shown += '  (' + ', '.join(
                f'{cand}: {result.seats[cand]}' for cand in group
            ) + ')'
        print(rank.rjust(n_just_chars), ' ', shown)


if __name__ == '__main__':
    args = argparser.parse_args()
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
    else:
        main(**vars(args))
