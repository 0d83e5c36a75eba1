'''Registers of named components.

Divisor functions, pairwise win scorers and election methods can all be
referred to by name, in a forgiving way: ``'D'Hondt'``, ``'d_hondt'`` and
``'DHONDT'`` are the same key. A :class:`Register` maps such keys to the
components and builds the usual trio of module-level functions around it.
'''

from typing import Any, Callable, Dict, Iterable, Tuple, Type


IGNORED_KEY_CHARS = frozenset(' -_\'’')


class UnknownComponentError(KeyError):
    '''No component of the given kind is registered under the name.'''
    def __init__(self, kind: str, name: Any, available: Iterable[str] = ()):
        self.kind = kind
        self.name = name
        message = f'unknown {kind}: {name!r}'
        available = list(available)
        if available:
            message += ', available: ' + ', '.join(available)
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


def normalize_key(name: str) -> str:
    '''Fold a component name to its register key.'''
    return ''.join(
        char for char in name.casefold() if char not in IGNORED_KEY_CHARS
    )


class Register:
    '''Components of a single kind accessible by name.

    :param entries: The dictionary to keep the components in, keyed by
        normalized names.
    :param kind: Human-readable kind of the components, for error messages.
    :param error: Exception class raised for unknown names; called with the
        kind, the name and the available keys.
    '''
    def __init__(self,
                 entries: Dict[str, Any],
                 kind: str,
                 error: Type[Exception] = UnknownComponentError,
                 ):
        self.entries = entries
        self.kind = kind
        self.error = error

    def mark(self, func: Callable) -> Callable:
        '''Decorator registering a function under its own name.'''
        self.entries[normalize_key(func.__name__)] = func
        return func

    def get(self, name: str) -> Any:
        '''Return the component registered under the name.'''
        try:
            return self.entries[normalize_key(name)]
        except (KeyError, AttributeError, TypeError):
            raise self.error(self.kind, name, sorted(self.entries))

    def construct(self, definition: Any) -> Any:
        '''Pass a callable through unchanged, otherwise look it up by name.'''
        if callable(definition):
            return definition
        return self.get(definition)


def getter(register: Dict[str, Any],
           kind: str,
           signature: Any = None,
           error: Type[Exception] = UnknownComponentError,
           ) -> Callable[[str], Any]:
    '''Return a lookup function for the register.'''
    return Register(register, kind, error).get


def register_functions(register: Dict[str, Callable],
                       kind: str,
                       signature: Any = None,
                       ) -> Tuple[Callable, Callable, Callable]:
    '''Return the marker, getter and constructer functions of a register.

    :param signature: Type of the registered functions; documentation only.
    '''
    reg = Register(register, kind)
    return reg.mark, reg.get, reg.construct
