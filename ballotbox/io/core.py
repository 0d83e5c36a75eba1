"""Shared functionality for ballot file I/O. Internal."""

import os
from typing import Any, Callable, Iterable, TextIO, Tuple, Union

from ballotbox.errors import ValidationError


Source = Union[TextIO, str, os.PathLike]


class ParseError(ValidationError):
    """An input that is invalid according to the given format was detected."""
    def __init__(self, line: str, reason: str = None, lineno: int = None):
        self.line = line
        self.reason = reason
        self.lineno = lineno
        message = f'cannot parse {line!r}'
        if lineno is not None:
            message += f' on line {lineno}'
        if reason:
            message += f': {reason}'
        super().__init__(message)


def loaders(line_loader: Callable[..., Any]
            ) -> Tuple[Callable[..., Any], Callable[..., Any]]:
    """Create load() and loads() functions from a function parsing lines.

    The load() function accepts an open text file or a path to a UTF-8
    encoded file.
    """
    def load(source: Source, **kwargs) -> Any:
        if hasattr(source, 'read'):
            return line_loader(source, **kwargs)
        with open(source, encoding='utf8') as infile:
            return line_loader(infile, **kwargs)

    def loads(text: str, **kwargs) -> Any:
        return line_loader(text.splitlines(), **kwargs)

    load.__doc__ = loads.__doc__ = line_loader.__doc__
    return load, loads


def dumpers(line_dumper: Callable[..., Iterable[str]]
            ) -> Tuple[Callable[..., None], Callable[..., str]]:
    """Create dump() and dumps() functions from a line generator function.

    The dump() function accepts an open text file or a path to write to.
    """
    def dump(target: Source, *args, **kwargs) -> None:
        if hasattr(target, 'write'):
            target.write(dumps(*args, **kwargs))
        else:
            with open(target, 'w', encoding='utf8') as outfile:
                outfile.write(dumps(*args, **kwargs))

    def dumps(*args, **kwargs) -> str:
        return ''.join(
            line.rstrip('\n') + '\n' for line in line_dumper(*args, **kwargs)
        )

    dump.__doc__ = dumps.__doc__ = line_dumper.__doc__
    return dump, dumps
