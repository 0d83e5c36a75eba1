'''Serialization of Ballotbox objects to JSON-ready dictionaries.

Configuration objects such as methods and constraints are written as their
fully qualified class name plus their constructor parameters (see
:func:`simple_serialization`) and rebuilt by calling the class with the
parameters again. Functions (divisors, pairwise win scorers) are written by
their qualified name. Values JSON cannot represent exactly are wrapped in
typed dictionaries, so that :class:`fractions.Fraction` weights and counts
survive a roundtrip unchanged.

Whole elections are saved as *snapshots*, dictionaries tagged with the
version of the library that produced them
(:meth:`ballotbox.election.Election.to_dict`). Only snapshots with the same
major and minor version can be restored.

Loading resolves class and function names by importing their modules. To
keep snapshots from importing arbitrary code, only names from the packages
listed in ``TRUSTED_PACKAGES`` are resolved; append the name of your own
package there to restore custom methods or constraints.
'''

import inspect
import importlib
from fractions import Fraction
from typing import Any, Callable, Dict, List

from ballotbox.errors import VersionMismatchError


TRUSTED_PACKAGES: List[str] = ['ballotbox']

# keys marking typed values and objects in serialized dictionaries
RESERVED_KEYS = frozenset(['type', 'class', 'callable'])


def simple_serialization(class_: type) -> type:
    '''Add a to_dict() method serializing the constructor parameters.

    The parameter values are read from the object attributes of the same
    names, so the decorated class must keep its parameters in a form its
    constructor accepts again. Variable positional and keyword parameters
    are ignored.

    :param class_: The class to decorate.
    '''
    params = [
        name
        for name, param in inspect.signature(class_.__init__).parameters.items()
        if name != 'self'
        and param.kind not in (param.VAR_POSITIONAL, param.VAR_KEYWORD)
    ]

    def to_dict(self) -> Dict[str, Any]:
        out = {'class': qualified_name(type(self))}
        for name in params:
            out[name] = serialize_value(getattr(self, name))
        return out

    class_.to_dict = to_dict
    return class_


def serialize_value(value: Any) -> Any:
    '''Convert a value to a JSON-ready form.

    :raises ValueError: If the value is of a type that cannot be serialized.
    '''
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    elif hasattr(value, 'to_dict'):
        return value.to_dict()
    elif type(value) in ENCODERS:
        return {'type': ENCODERS[type(value)][0],
                'value': ENCODERS[type(value)][1](value)}
    elif isinstance(value, dict):
        if (all(isinstance(key, str) for key in value)
                and RESERVED_KEYS.isdisjoint(value)):
            return {key: serialize_value(val) for key, val in value.items()}
        return {'type': 'dict', 'value': _encode_items(value)}
    elif isinstance(value, (list, set)):
        return [serialize_value(item) for item in value]
    elif callable(value):
        return {'callable': qualified_name(value)}
    else:
        raise ValueError(f'cannot serialize {value!r}')


def deserialize_value(value: Any) -> Any:
    '''Rebuild a value from the form produced by :func:`serialize_value`.'''
    if isinstance(value, list):
        return [deserialize_value(item) for item in value]
    elif not isinstance(value, dict):
        return value
    elif value.get('type') in DECODERS:
        return DECODERS[value['type']](value['value'])
    elif 'class' in value:
        cls = resolve(value['class'])
        return cls(**{
            key: deserialize_value(val)
            for key, val in value.items() if key != 'class'
        })
    elif 'callable' in value:
        return resolve(value['callable'])
    else:
        return {key: deserialize_value(val) for key, val in value.items()}


def from_dict(value: Dict[str, Any]) -> Any:
    """Rebuild a method, constraint or similar object from its dictionary.

    :param value: A dictionary created by :func:`to_dict`.
    :raises ValueError: If the dictionary does not describe an object.
    """
    if not isinstance(value, dict):
        raise ValueError(f'object definition must be a dict, got {value!r}')
    elif 'class' not in value:
        raise ValueError(f'object definition has no class: {value!r}')
    return deserialize_value(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize an object providing a `to_dict()` method, such as a method
    or a constraint, to a JSON-ready dictionary."""
    return serialize_value(obj)


def qualified_name(obj: Any) -> str:
    return '.'.join((obj.__module__, obj.__qualname__))


def is_qualified_name(value: Any) -> bool:
    return (
        isinstance(value, str)
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def resolve(name: str) -> Any:
    '''Find a class or function by its qualified name.

    :raises ValueError: If the name is malformed, outside the trusted
        packages or does not exist.
    '''
    if not is_qualified_name(name) or '.' not in name:
        raise ValueError(f'invalid qualified name: {name!r}')
    if name.split('.', 1)[0] not in TRUSTED_PACKAGES:
        raise ValueError(f'refusing to load {name!r} from untrusted package')
    module_name, attr = name.rsplit('.', 1)
    try:
        return getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as err:
        raise ValueError(f'cannot resolve {name!r}') from err


def major_minor(version: str) -> str:
    '''Return the major.minor part of a version string.'''
    return '.'.join(version.split('.')[:2])


def check_version(found: Any, expected: str) -> None:
    '''Check that a snapshot version is compatible with the library version.

    Only the major and minor version numbers are compared, so snapshots
    differing in patch level can be restored.

    :param found: Version string found in the snapshot.
    :param expected: Version of the running library.
    :raises VersionMismatchError: If the versions are incompatible or the
        snapshot has no version.
    '''
    if not isinstance(found, str) or major_minor(found) != major_minor(expected):
        raise VersionMismatchError(str(found), expected)


def _encode_items(mapping: Dict[Any, Any]) -> List[List[Any]]:
    return [
        [serialize_value(key), serialize_value(val)]
        for key, val in mapping.items()
    ]


def _encode_members(members: Any) -> List[Any]:
    return [serialize_value(member) for member in members]


ENCODERS: Dict[type, tuple] = {
    Fraction: ('Fraction', lambda f: [f.numerator, f.denominator]),
    tuple: ('tuple', _encode_members),
    frozenset: ('frozenset', lambda s: _encode_members(sorted(s, key=repr))),
}

DECODERS: Dict[str, Callable[[Any], Any]] = {
    'Fraction': lambda pair: Fraction(*pair),
    'tuple': lambda items: tuple(deserialize_value(item) for item in items),
    'frozenset': lambda items: frozenset(
        deserialize_value(item) for item in items
    ),
    'dict': lambda items: {
        deserialize_value(key): deserialize_value(val) for key, val in items
    },
}
