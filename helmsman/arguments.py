r"""
Helmsman argument descriptors and kinds.

Overview
- Kinds (a closed tagged union, matched with `match`/`case` at every consumption site)
  • Flag: presence-only boolean (optionally negatable through a derived `--no-<long>`).
  • Count: integer incremented once per occurrence (`-vvv` → 3).
  • Value: a single string; the last occurrence wins.
  • Append: strings accumulated across occurrences, in input order.
  • Nargs(n): exactly n consecutive tokens per occurrence, flattened into one list.
  • Map: `key=value` entries accumulated into a mapping.

- Argument
  • One immutable descriptor: the stable result key (`name`), its spellings
    (`long`, `short`, `aliases`), its kind, and the per-value and structural
    metadata the scanner and validator enforce.
  • Updated copies are produced with `Argument.__replace__(**overrides)`; the copy
    goes through the very same sanitization as a fresh construction.

- Factories
  • flag(...), count(...), value(...), append(...), nargs(n, ...), mapping(...),
    positional(...). Named factories default `long` to the argument name.

Metadata (sanitized on construction)
- name: identifier-like string (letters, digits, '_' and inner '-').
- long / aliases: bare long names without leading dashes (e.g. "dry-run").
- short: one alphanumeric character.
- positional: value-only, no spellings, no delimiter, not persistent. Its ordinal
  `position` is assigned by the owning command at registration time.
- choices: strings; duplicates rejected unless given as a Set.
- range: (minimum, maximum) inclusive, either bound may be None (open).
- delimiter: non-empty string; valid for Value, Append and Map.
- negatable: Flag with a long name only.
- hidden / metavar / deprecated / descr: presentation metadata, carried through.

Quick example:
    >>> from helmsman.arguments import count, value, Nargs, Argument
    >>> verbose = count("verbose", short="v")
    >>> output = value("output", default="text", persistent=True)
    >>> point = Argument("point", long="point", kind=Nargs(2))
"""
import functools
import numbers
import operator
import re
from collections.abc import Iterable, Set
from typing import final

from .utils import *


class Kind:
    """
    Base of the argument kinds.

    Variants are small immutable values compared structurally; their fields are
    the names listed in __match_args__, so `case Nargs(count):` binds the arity.
    """
    __slots__ = ()
    __match_args__ = ()

    def __new__(cls, *fields):
        if cls is Kind:
            raise TypeError("type 'Kind' cannot be instantiated directly")
        if len(fields) != len(cls.__match_args__):
            raise TypeError(f"{cls.__name__}() takes {len(cls.__match_args__)} arguments but {len(fields)} were given")
        self = super().__new__(cls)
        for name, field in zip(cls.__match_args__, fields):
            object.__setattr__(self, name, field)
        return self

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def _astuple(self):
        return tuple(getattr(self, name) for name in self.__match_args__)

    def __eq__(self, other):
        if not isinstance(other, Kind):
            return NotImplemented
        return type(self) is type(other) and self._astuple() == other._astuple()

    def __hash__(self):
        return hash((type(self), self._astuple()))

    def __repr__(self):
        return f"{type(self).__name__}({', '.join(map(repr, self._astuple()))})"

    def __reduce__(self):
        return type(self), self._astuple()


@final
class Flag(Kind):
    """presence-only boolean."""
    __slots__ = ()


@final
class Count(Kind):
    """occurrence counter."""
    __slots__ = ()


@final
class Value(Kind):
    """single value; the last occurrence wins."""
    __slots__ = ()


@final
class Append(Kind):
    """values accumulated across occurrences."""
    __slots__ = ()


@final
class Nargs(Kind):
    """
    exactly `count` tokens per occurrence.

    the tokens are taken unconditionally from the stream, so values that start
    with '-' are accepted as-is.
    """
    __slots__ = ("count",)
    __match_args__ = ("count",)

    def __new__(cls, count):
        if not isinstance(count, int) or isinstance(count, bool):
            raise TypeError("nargs 'count' must be an integer")
        if count < 1:
            raise ValueError("nargs 'count' must be a positive integer")
        return super().__new__(cls, count)


@final
class Map(Kind):
    """`key=value` entries accumulated into a mapping."""
    __slots__ = ()


def takes_value(kind, /):
    """
    Return True when the kind consumes a value token (everything but Flag/Count).
    """
    match kind:
        case Flag() | Count():
            return False
        case Value() | Append() | Nargs() | Map():
            return True
    raise TypeError(f"unexpected kind {kind!r}")


class ArgumentType(type):
    """
    Metaclass that turns descriptor classes into introspectable records.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help collaborators.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in registration messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ()) if name not in namespace
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(name='verbose', long='verbose', short='v', kind=Count(), ...)
            """
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


_IDENTIFIER = re.compile(r"[^\W\d]\w*(-\w+)*")
_LONG = re.compile(r"[^\W_]\w*(-\w+)*")


def _sanitize_identity(cls, metadata, /):
    """
    Internal: validate the result key and every spelling.

    Responsibilities
    - name: required identifier-like string.
    - long: Unset or a bare long name (no leading dashes, no '=').
    - short: Unset or a single alphanumeric character.
    - aliases: iterable of bare long names; duplicates (including the long name
      itself) are rejected. Normalized into a tuple in declaration order.

    Raises
    - TypeError: wrong types.
    - ValueError: malformed or duplicated names.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not _IDENTIFIER.fullmatch(name):
        raise ValueError(f"{cls.__typename__} 'name' must be an identifier-like string, got {name!r}")

    if (long := coalesce(metadata["long"])) is not None:
        if not isinstance(long, str):
            raise TypeError(f"{cls.__typename__} 'long' must be a string")
        elif not _LONG.fullmatch(long):
            raise ValueError(f"{cls.__typename__} 'long' must be a bare long name without dashes, got {long!r}")
    metadata["long"] = long

    if (short := coalesce(metadata["short"])) is not None:
        if not isinstance(short, str):
            raise TypeError(f"{cls.__typename__} 'short' must be a string")
        elif len(short) != 1 or not short.isalnum():
            raise ValueError(f"{cls.__typename__} 'short' must be a single alphanumeric character, got {short!r}")
    metadata["short"] = short

    if not isinstance(metadata["aliases"], Iterable) or isinstance(metadata["aliases"], str):
        raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
    aliases = []
    for alias in metadata["aliases"]:
        if not isinstance(alias, str):
            raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
        elif not _LONG.fullmatch(alias):
            raise ValueError(f"{cls.__typename__} alias {alias!r} must be a bare long name without dashes")
        elif alias in aliases or alias == long:
            raise ValueError(f"{cls.__typename__} 'aliases' cannot contain duplicates")
        aliases.append(alias)
    metadata["aliases"] = tuple(aliases)


def _sanitize_shape(cls, metadata, /):
    """
    Internal: validate kind-dependent structure.

    Rules
    - kind must be a Kind variant.
    - positional: kind Value only; no long/short/aliases; no delimiter; never persistent
      nor negatable. Named arguments need at least one spelling.
    - negatable: Flag with a long name only.
    - delimiter: Unset or a non-empty string, valid for Value/Append/Map.
    """
    if not isinstance(kind := metadata["kind"], Kind):
        raise TypeError(f"{cls.__typename__} 'kind' must be one of Flag, Count, Value, Append, Nargs or Map")

    if metadata["positional"]:
        if not isinstance(kind, Value):
            raise TypeError(f"positional {cls.__typename__} must be of kind Value")
        if metadata["long"] or metadata["short"] or metadata["aliases"]:
            raise TypeError(f"positional {cls.__typename__} cannot declare long, short or aliases")
        if metadata["delimiter"]:
            raise TypeError(f"positional {cls.__typename__} cannot declare a 'delimiter'")
        if metadata["persistent"]:
            raise TypeError(f"positional {cls.__typename__} cannot be persistent")
    elif not (metadata["long"] or metadata["short"]):
        raise TypeError(f"{cls.__typename__} {metadata['name']!r} must declare a long or a short name")

    if metadata["negatable"]:
        if not isinstance(kind, Flag):
            raise TypeError(f"only flag {cls.__typename__}s can be negatable")
        if not metadata["long"]:
            raise TypeError(f"negatable {cls.__typename__} must declare a long name")

    if (delimiter := coalesce(metadata["delimiter"])) is not None:
        if not isinstance(delimiter, str):
            raise TypeError(f"{cls.__typename__} 'delimiter' must be a string")
        if not delimiter:
            raise ValueError(f"{cls.__typename__} 'delimiter' cannot be empty")
        if not isinstance(kind, Value | Append | Map):
            raise TypeError(f"{cls.__typename__} 'delimiter' requires kind Value, Append or Map")
    metadata["delimiter"] = delimiter


def _sanitize_values(cls, metadata, /):
    """
    Internal: validate per-value checks (choices, range).

    Rules
    - choices: iterable of strings; duplicates rejected unless a Set; stored as a
      tuple. Not applicable to Flag/Count.
    - range: Unset or a pair (minimum, maximum) of real numbers or None, with
      minimum <= maximum when both are bound. Not applicable to Flag/Count.
    """
    valued = takes_value(metadata["kind"])

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
    sanitized = []
    for choice in choices:
        if not isinstance(choice, str):
            raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
        if choice in sanitized:
            if isinstance(choices, Set):
                continue
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    if sanitized and not valued:
        raise TypeError(f"{cls.__typename__} 'choices' require a value-bearing kind")
    metadata["choices"] = tuple(sanitized)

    if (bounds := coalesce(metadata["range"])) is not None:
        if not valued:
            raise TypeError(f"{cls.__typename__} 'range' requires a value-bearing kind")
        try:
            minimum, maximum = bounds
        except (TypeError, ValueError):
            raise TypeError(f"{cls.__typename__} 'range' must be a (minimum, maximum) pair") from None
        for bound in (minimum, maximum):
            if bound is not None and (not isinstance(bound, numbers.Real) or isinstance(bound, bool)):
                raise TypeError(f"{cls.__typename__} 'range' bounds must be numbers or None")
        if minimum is not None and maximum is not None and minimum > maximum:
            raise ValueError(f"{cls.__typename__} 'range' minimum cannot exceed maximum")
        if minimum is None and maximum is None:
            raise ValueError(f"{cls.__typename__} 'range' must bound at least one side")
        bounds = (minimum, maximum)
    metadata["range"] = bounds


def _sanitize_presentation(cls, metadata, /):
    """
    Internal: normalize presentation-only strings (metavar, descr, deprecated).

    Each must be absent or a non-empty string after trimming; absent becomes None.
    """
    for name in ("metavar", "descr", "deprecated"):
        if (object := coalesce(metadata[name])) is None:
            metadata[name] = None
        elif not isinstance(object, str):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        else:
            metadata[name] = object

    if (position := coalesce(metadata["position"])) is not None:
        if not isinstance(position, int) or isinstance(position, bool):
            raise TypeError(f"{cls.__typename__} 'position' must be an integer")
        if not metadata["positional"]:
            raise TypeError(f"only positional {cls.__typename__}s have a 'position'")
    metadata["position"] = position


class Argument(metaclass=ArgumentType):
    """
    One argument definition.

    Highlights
    - Immutable: every field is a read-only property; __replace__ returns a new,
      re-validated descriptor.
    - `position` is None until a command registers the descriptor; the registered
      copy carries its ordinal among the command's positionals.
    - `default` is Unset when none was declared (so None remains a legal default).
    """

    __introspectable__ = (
        "name",
        "long",
        "short",
        "aliases",
        "kind",
        "positional",
        "position",
        "required",
        "default",
        "choices",
        "range",
        "delimiter",
        "negatable",
        "persistent",
        "hidden",
        "metavar",
        "deprecated",
        "descr",
    )

    __displayable__ = (
        "name",
        "long",
        "short",
        "kind",
        "positional",
        "required",
        "default",
        "persistent",
    )

    def __new__(
            cls,
            name,
            /,
            long=Unset,
            short=Unset,
            aliases=(),
            kind=Value(),
            *,
            positional=False,
            position=Unset,
            required=False,
            default=Unset,
            choices=(),
            range=Unset,
            delimiter=Unset,
            negatable=False,
            persistent=False,
            hidden=False,
            metavar=Unset,
            deprecated=Unset,
            descr=Unset
    ):
        """
        Construct an argument descriptor.

        Parameters
        - name: str
          Stable key into parse results.
        - long, short, aliases
          Spellings, see the module documentation for their grammar.
        - kind: Kind
          One of Flag(), Count(), Value(), Append(), Nargs(n), Map().
        - positional: bool
          Matched by position rather than by name.
        - position: int | Unset
          Ordinal among positionals, set by the owning command (do not pass it).
        - required, default, choices, range, delimiter, negatable, persistent
          Parsing and validation semantics.
        - hidden, metavar, deprecated, descr
          Presentation metadata; `deprecated` is the message shown when used.

        Raises
        - TypeError / ValueError on invalid combinations (see _sanitize_* passes).
        """
        metadata = {
            "name": name,
            "long": long,
            "short": short,
            "aliases": aliases,
            "kind": kind,
            "positional": bool(positional),
            "position": position,
            "required": bool(required),
            "default": default,
            "choices": choices,
            "range": range,
            "delimiter": delimiter,
            "negatable": bool(negatable),
            "persistent": bool(persistent),
            "hidden": bool(hidden),
            "metavar": metavar,
            "deprecated": deprecated,
            "descr": descr,
        }
        _sanitize_identity(cls, metadata)
        _sanitize_shape(cls, metadata)
        _sanitize_values(cls, metadata)
        _sanitize_presentation(cls, metadata)

        self = super().__new__(cls)
        object.__setattr__(self, "_metadata", metadata)
        for key, field in metadata.items():
            object.__setattr__(self, "_" + key, field)
        return self

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__typename__} is immutable, use __replace__()")

    def __replace__(self, *unused, **overrides):
        """
        Return a copy with the given fields replaced, validated like a new descriptor.

        Unknown field names raise TypeError.
        """
        assert not unused, "positional arguments are not allowed"
        metadata = self._metadata | overrides
        return type(self)(metadata.pop("name"), **metadata)

    @property
    def default(self):
        """
        declared default (Unset when none); returned as stored, callers copy collections.
        """
        return self._default

    @property
    def switches(self):
        """
        Every command-line spelling of this argument, in declaration order.

        The derived `--no-<long>` form comes last for negatable flags.
        """
        spellings = []
        if self._long:
            spellings.append("--" + self._long)
        if self._short:
            spellings.append("-" + self._short)
        spellings.extend("--" + alias for alias in self._aliases)
        if self._negatable:
            spellings.append("--no-" + self._long)
        return tuple(spellings)

    @property
    def longs(self):
        """
        Bare long names resolving to this argument (long first, then aliases).
        """
        return ((self._long,) if self._long else ()) + self._aliases

    def __rich__(self):
        return repr(self)


def flag(name, /, short=Unset, **metadata):
    """
    Build a presence-only flag; `long` defaults to the name.

    Example
    - flag("color", negatable=True) → `--color` / `--no-color`
    """
    return Argument(name, metadata.pop("long", name), short, kind=Flag(), **metadata)


def count(name, /, short=Unset, **metadata):
    """
    Build an occurrence counter; `long` defaults to the name.
    """
    return Argument(name, metadata.pop("long", name), short, kind=Count(), **metadata)


def value(name, /, short=Unset, **metadata):
    """
    Build a single-value option; `long` defaults to the name.
    """
    return Argument(name, metadata.pop("long", name), short, kind=Value(), **metadata)


def append(name, /, short=Unset, **metadata):
    """
    Build a repeatable option collecting values in order; `long` defaults to the name.
    """
    return Argument(name, metadata.pop("long", name), short, kind=Append(), **metadata)


def nargs(name, count, /, short=Unset, **metadata):
    """
    Build an option consuming exactly `count` tokens per occurrence.
    """
    return Argument(name, metadata.pop("long", name), short, kind=Nargs(count), **metadata)


def mapping(name, /, short=Unset, **metadata):
    """
    Build a repeatable `key=value` option; `long` defaults to the name.
    """
    return Argument(name, metadata.pop("long", name), short, kind=Map(), **metadata)


def positional(name, /, **metadata):
    """
    Build a positional (Value) argument; its ordinal is assigned on registration.
    """
    return Argument(name, positional=True, **metadata)


__all__ = (
    # Kinds (tagged union)
    "Kind",
    "Flag",
    "Count",
    "Value",
    "Append",
    "Nargs",
    "Map",
    "takes_value",

    # Descriptor
    "Argument",

    # Factories
    "flag",
    "count",
    "value",
    "append",
    "nargs",
    "mapping",
    "positional",
)

# Not part of the public API.
del ArgumentType
