r"""
Helmsman commands: the command tree, its registration checks and dispatch.

Overview
- Command
  • An immutable node of a strict tree: it owns its arguments and its child
    commands, and never refers back to a parent.
  • Built once, reusable for any number of parses. Updated copies come from
    Command.__replace__(**overrides) and Command.mount(*children).
  • A `help` pseudo-subcommand is mounted automatically when the command has
    children, help is enabled and no child is already called `help`.

- Registration checks (all at construction time)
  • argument names and spellings (long, short, aliases and derived `no-<long>`)
    are unique per command → RegistrationConflictError.
  • every mounted subtree is checked against the persistent arguments of the
    command it is mounted on → RegistrationConflictError.
  • constraint sets reference existing argument names and have at least two
    distinct members → ValueError.
  • with mixing disabled, a command cannot declare positionals and subcommands.

- dispatch() / parse()
  • scan one level, hand the remaining tokens to the matched child (seeding it
    with deep copies of the persistent values seen so far), synchronize the
    child's persistent values back up, fill defaults and validate.

Quick example:
    >>> from helmsman import Command, count, value, positional
    >>> search = Command("search", positional("query"))
    >>> root = Command("tool", count("verbose", short="v"), value("output", default="text", persistent=True),
    ...                subcommands=[search])
    >>> result = root.parse(["-vv", "--output", "json", "search", "x"])
    >>> result.count("verbose"), result.child.value("output")
    (2, 'json')
"""
import functools
import operator
import re
import shlex
from collections.abc import Iterable

from .arguments import Argument
from .faults import *
from .scanner import Scanner
from .utils import *
from .validator import validate


class CommandType(type):
    """
    Metaclass for command classes.

    Responsibilities
    - Add a readable __typename__ derived from the class name (e.g. "Command" -> "command").
    - Generate read-only properties (via mirror) for each name listed in __introspectable__.
    - Provide consistent __repr__ and __rich_repr__ implementations driven by
      __displayable__ (or __introspectable__ when not provided).
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
            - command(name='build', ...)
            """
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield a sequence of (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


_NAME = re.compile(r"[^\W_][\w.-]*")


def _process_strings(cls, metadata):
    """
    Normalize scalar string metadata fields (name, descr, version).

    - name: required, must look like a command word (no leading dash, no spaces).
    - descr, version: Unset or non-empty after trimming; Unset resolves to None.

    Errors
    - TypeError: when a value is not str | Unset.
    - ValueError: when a string becomes empty after trimming, or a malformed name.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not _NAME.fullmatch(name):
        raise ValueError(f"{cls.__typename__} 'name' must be a single word without leading dashes, got {name!r}")

    for name in ("descr", "version"):
        if not isinstance(object := metadata[name], str | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)


def _process_arguments(cls, metadata):
    """
    Register the arguments of a command.

    Behavior
    - every item must be an Argument.
    - positionals are re-issued with their ordinal `position` (0-based, in
      registration order); named arguments are kept as given.
    - builds the spelling lookup (long, short, aliases and `no-<long>`).

    Raises
    - TypeError: a non-Argument item.
    - RegistrationConflictError: duplicate names or spellings.
    """
    arguments, positionals, lookup, names = [], [], {}, {}
    for argument in metadata["arguments"]:
        if not isinstance(argument, Argument):
            raise TypeError(f"{cls.__typename__} arguments must be argument descriptors, got {argument!r}")
        if argument.name in names:
            raise RegistrationConflictError(
                f"{cls.__typename__} {metadata['name']!r} declares argument {argument.name!r} twice",
                names=(argument.name,)
            )
        if argument.positional:
            argument = argument.__replace__(position=len(positionals))
            positionals.append(argument)
        for spelling in argument.switches:
            if (other := lookup.setdefault(spelling, argument)) is not argument:
                raise RegistrationConflictError(
                    f"{cls.__typename__} {metadata['name']!r} spelling {spelling!r} is claimed by both "
                    f"{other.name!r} and {argument.name!r}",
                    names=(other.name, argument.name)
                )
        names[argument.name] = argument
        arguments.append(argument)

    metadata["arguments"] = tuple(arguments)
    metadata["positionals"] = tuple(positionals)
    metadata["options"] = tuple(argument for argument in arguments if not argument.positional)
    metadata["lookup"] = lookup


def _process_groups(cls, metadata):
    """
    Compile and validate constraint declarations.

    Input
    - exclusive, one_required, together: Iterable[Iterable[str]]
    - conditionals: Iterable[tuple[str, str]] as (target, condition)

    Validation rules
    - outer and inner values must be iterables, but not plain strings.
    - each member must name an argument of this command.
    - each set must contain at least two distinct names; duplicates are invalid.
    - a conditional pair has two distinct names.

    Result
    - every set is stored as a tuple, in declaration order.

    Raises
    - TypeError: malformed shapes or non-string members.
    - ValueError: unknown names, duplicates, or sets smaller than two.
    """
    known = {argument.name for argument in metadata["arguments"]}

    for group in ("exclusive", "one_required", "together"):
        if not isinstance(metadata[group], Iterable) or isinstance(metadata[group], str):
            raise TypeError(f"{cls.__typename__} {group!r} must be an iterable of iterables of strings")

        sets = []
        for members in metadata[group]:
            if isinstance(members, str) or not isinstance(members, Iterable):
                raise TypeError(f"{cls.__typename__} {group!r} must be an iterable of iterables of strings")
            normalized = []
            for name in members:
                if not isinstance(name, str):
                    raise TypeError(f"{cls.__typename__} {group!r} must be an iterable of iterables of strings")
                if name not in known:
                    raise ValueError(f"{cls.__typename__} {group!r} member {name!r} is not a valid argument")
                if name in normalized:
                    raise ValueError(f"{cls.__typename__} {group!r} sets cannot contain duplicates")
                normalized.append(name)
            if len(normalized) < 2:
                raise ValueError(f"{cls.__typename__} {group!r} sets must have at least two elements")
            sets.append(tuple(normalized))
        metadata[group] = tuple(sets)

    if not isinstance(metadata["conditionals"], Iterable) or isinstance(metadata["conditionals"], str):
        raise TypeError(f"{cls.__typename__} 'conditionals' must be an iterable of (target, condition) pairs")
    pairs = []
    for pair in metadata["conditionals"]:
        try:
            target, condition = pair
        except (TypeError, ValueError):
            raise TypeError(f"{cls.__typename__} 'conditionals' must be an iterable of (target, condition) pairs") from None
        for name in (target, condition):
            if not isinstance(name, str):
                raise TypeError(f"{cls.__typename__} 'conditionals' must be an iterable of (target, condition) pairs")
            if name not in known:
                raise ValueError(f"{cls.__typename__} conditional member {name!r} is not a valid argument")
        if target == condition:
            raise ValueError(f"{cls.__typename__} conditional {target!r} cannot depend on itself")
        pairs.append((target, condition))
    metadata["conditionals"] = tuple(pairs)


def _check_persistent(cls, persistent, command, route):
    """
    Walk a mounted subtree and reject local arguments colliding with the
    persistent arguments of its ancestors (by name or by any spelling).
    """
    taken = {}
    for argument in persistent:
        for key in (argument.name, *argument.switches):
            taken[key] = argument

    for argument in command.arguments:
        for key in (argument.name, *argument.switches):
            if (other := taken.get(key)) is not None:
                raise RegistrationConflictError(
                    f"{cls.__typename__} {' '.join(route)!r} argument {argument.name!r} collides with "
                    f"persistent argument {other.name!r} on {key!r}",
                    names=(other.name, argument.name)
                )

    persistent = persistent + tuple(argument for argument in command.arguments if argument.persistent)
    for name, child in command.subcommands.items():
        _check_persistent(cls, persistent, child, (*route, name))


def _process_subcommands(cls, metadata):
    """
    Mount child commands, enforcing unique names and persistent-flag hygiene.

    Behavior
    - every child must be a Command with a name unique among its siblings.
    - each child's whole subtree is checked against this command's persistent
      arguments (see _check_persistent).
    - a hidden `help` pseudo-subcommand is added when there are children, help is
      enabled and no child is called `help`.
    - with mixing disabled, positionals and subcommands are mutually exclusive.

    Raises
    - TypeError: a non-Command child or a mixing violation.
    - ValueError: a duplicate child name.
    - RegistrationConflictError: a persistent collision.
    """
    if not isinstance(metadata["subcommands"], Iterable) or isinstance(metadata["subcommands"], str):
        raise TypeError(f"{cls.__typename__} 'subcommands' must be an iterable of commands")

    mounted, children = [], {}
    persistent = tuple(argument for argument in metadata["arguments"] if argument.persistent)
    for child in metadata["subcommands"]:
        if not isinstance(child, Command):
            raise TypeError(f"{cls.__typename__} 'subcommands' must be an iterable of commands, got {child!r}")
        if children.setdefault(child.name, child) is not child:
            raise ValueError(f"{cls.__typename__} subcommand name {child.name!r} is already in use")
        _check_persistent(cls, persistent, child, (metadata["name"], child.name))
        mounted.append(child)

    if mounted and metadata["positionals"] and not metadata["mixing"]:
        raise TypeError(
            f"{cls.__typename__} {metadata['name']!r} cannot declare both positionals and subcommands "
            f"when mixing is disabled"
        )

    metadata["autohelp"] = bool(mounted and metadata["help"] and "help" not in children)
    if metadata["autohelp"]:
        children["help"] = Command("help", descr="show help for a subcommand", help=False, hidden=True)

    metadata["mounted"] = tuple(mounted)
    metadata["subcommands"] = children


class Command(metaclass=CommandType):
    """
    A node of the command tree.

    Responsibilities
    - Introspection: read-only view of the registered arguments, children and
      constraints for help/usage collaborators.
    - Composition: children are owned by their parent; mounting returns a copy.
    - Parsing: Command.parse(tokens) runs the dispatcher from this node.

    Lifecycle
    - Metadata is sanitized and compiled once in __new__; instances never change.
    """

    __introspectable__ = (
        "name",
        "descr",
        "version",
        "arguments",
        "positionals",
        "options",
        "subcommands",
        "exclusive",
        "one_required",
        "together",
        "conditionals",
        "negative_numbers",
        "mixing",
        "abbreviations",
        "help",
        "hidden",
    )

    __displayable__ = (
        "name",
        "descr",
        "version",
        "arguments",
        "subcommands",
        "hidden",
    )

    def __new__(
            cls,
            name,
            /,
            *arguments,
            descr=Unset,
            version=Unset,
            subcommands=(),
            exclusive=(),
            one_required=(),
            together=(),
            conditionals=(),
            negative_numbers=False,
            mixing=True,
            abbreviations=True,
            help=True,
            hidden=False
    ):
        """
        Construct a command.

        Parameters
        - name: str
          The command word (the program name for a root command).
        - *arguments: Argument
          Positionals are matched in the order given here.
        - descr, version: str | Unset
          A version enables the -V/--version trigger.
        - subcommands: Iterable[Command]
          Children mounted under this command.
        - exclusive, one_required, together: Iterable[Iterable[str]]
          Constraint sets of argument names.
        - conditionals: Iterable[tuple[str, str]]
          (target, condition): target is required whenever condition is present.
        - negative_numbers: bool
          Treat '-5'-like tokens as positionals even when a digit short option exists.
        - mixing: bool
          Allow positionals and subcommands on the same command.
        - abbreviations: bool
          Resolve unambiguous prefixes of long names.
        - help: bool
          Enable the -h/--help trigger and the help pseudo-subcommand.
        - hidden: bool
          Presentation only.

        Raises
        - TypeError / ValueError / RegistrationConflictError, see the _process_* passes.
        """
        source = {
            "name": name,
            "arguments": arguments,
            "descr": descr,
            "version": version,
            "subcommands": tuple(subcommands) if isinstance(subcommands, Iterable) else subcommands,
            "exclusive": exclusive,
            "one_required": one_required,
            "together": together,
            "conditionals": conditionals,
            "negative_numbers": bool(negative_numbers),
            "mixing": bool(mixing),
            "abbreviations": bool(abbreviations),
            "help": bool(help),
            "hidden": bool(hidden),
        }
        metadata = dict(source)
        _process_strings(cls, metadata)
        _process_arguments(cls, metadata)
        _process_groups(cls, metadata)
        _process_subcommands(cls, metadata)

        self = super().__new__(cls)
        self._source = source
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __replace__(self, *unused, **overrides):
        """
        Return a copy with the given constructor options replaced.

        'arguments' may be overridden with an iterable of arguments.
        """
        assert not unused, "positional arguments are not allowed"
        options = self._source | {"subcommands": self._mounted} | overrides
        return type(self)(options.pop("name"), *options.pop("arguments"), **options)

    def mount(self, *children):
        """
        Return a copy of this command with the given children mounted after the existing ones.
        """
        return self.__replace__(subcommands=(*self._mounted, *children))

    @property
    def autohelp(self):
        """True when the `help` child is the automatic pseudo-subcommand."""
        return self._autohelp

    @property
    def persistent(self):
        """Arguments of this command that propagate into descendants."""
        return tuple(argument for argument in self._arguments if argument.persistent)

    def lookup(self, spelling, /):
        """
        Return the argument registered under a full spelling ('--name', '-n',
        '--no-name'), or None.
        """
        return self._lookup.get(spelling)

    def child(self, name, /):
        """Return the child command called name, or None."""
        return self._subcommands.get(name)

    def parse(self, tokens, /, *, on_trigger=None):
        """
        Parse tokens against this command; see helmsman.commands.parse().
        """
        return parse(self, tokens, on_trigger=on_trigger)


def _fire(on_trigger, kind, command, path):
    if on_trigger is not None:
        on_trigger(kind, command, path)


def dispatch(command, tokens, /, *, path=(), inherited=(), seeds=(), offset=0, on_trigger=None):
    """
    Parse one command level and, recursively, the matched child.

    Parameters
    - command: Command
    - tokens: Iterable[str]
      Tokens of this level and below.
    - path: tuple[str, ...]
      Command names of the ancestors (this command's name is appended).
    - inherited: tuple[Argument, ...]
      Persistent arguments of the ancestors; they are part of this level's
      effective argument set.
    - seeds: Iterable[tuple[Argument, object]]
      Values of inherited arguments present in an ancestor (already deep-copied).
    - offset: int
      Number of tokens consumed by the ancestors.
    - on_trigger: callable(kind, command, path) | None
      Invoked once when a help/version trigger is recognized.

    Flow
    1. seed inherited values, then scan up to the end, a trigger or a child name.
    2. on `help <sibling> ...`, continue as `<sibling> ... --help`.
    3. dispatch the child with deep copies of every persistent value present here.
    4. copy the child's own persistent values up unless this level has one.
    5. fill defaults; validate unless a trigger fired anywhere in the chain.

    Returns the ParseResult of this level (its child attached).
    """
    path = (*path, command.name)
    scanner = Scanner(command, tokens, path=path, inherited=inherited, offset=offset)
    result = scanner.result
    for argument, value in seeds:
        result._seed(argument, value)
    scanner.run()

    arguments = scanner.arguments
    if result.triggered:
        _fire(on_trigger, result.triggered, command, path)
    elif scanner.child is not None:
        child, remaining = scanner.child, list(scanner.remaining)
        consumed = scanner.index

        if command.autohelp and result.subcommand == "help":
            if not remaining or remaining[0] == "help":
                result.subcommand, child = "", None
                result.triggered = "help"
                _fire(on_trigger, "help", command, path)
            elif remaining[0] not in command.subcommands:
                raise UnknownSubcommandError(
                    "unknown subcommand %r at %s position" % (remaining[0], ordinal(scanner.index + 1)),
                    code=FaultCode.UNKNOWN_SUBCOMMAND,
                    title="unknown subcommand",
                    hint="run '%s --help' to see the available subcommands" % " ".join(path),
                    path=path,
                    index=scanner.index + 1,
                    name=remaining[0],
                    available=tuple(sorted(name for name in command.subcommands if name != "help")),
                    docs=getdoc(FaultCode.UNKNOWN_SUBCOMMAND),
                )
            else:
                result.subcommand = remaining[0]
                child = command.subcommands[result.subcommand]
                remaining = [*remaining[1:], "--help"]
                consumed += 1

        if child is not None:
            persistent = tuple(inherited) + command.persistent
            seeded = tuple(
                (argument, result._extract(argument.name))
                for argument in persistent
                if result.present(argument.name)
            )
            result.child = dispatch(
                child,
                remaining,
                path=path,
                inherited=persistent,
                seeds=seeded,
                offset=consumed,
                on_trigger=on_trigger,
            )
            for argument in persistent:
                name = argument.name
                if (result.child.explicit(name) or name in result.child._synced) and not result.present(name):
                    result._adopt(argument, result.child._extract(name))

    for argument in arguments:
        result._default(argument)

    if not result.leaf.triggered:
        validate(command, arguments, result, path)
    return result


def parse(command, tokens, /, *, on_trigger=None):
    """
    Parse a token sequence against a command tree.

    Parameters
    - command: Command
      The root of the tree.
    - tokens: Iterable[str] | str
      Tokens after the program name. A string is split like a shell would
      (shlex.split). Tokens are never trimmed.
    - on_trigger: callable(kind, command, path) | None
      Called once with "help" or "version" when a trigger is recognized; the
      parse then skips validation and returns normally.

    Returns
    - ParseResult of the root, with the matched chain under .child.

    Raises
    - CommandException subclasses on any parse failure (carrying 'path').
    """
    if not isinstance(command, Command):
        raise TypeError("parse() first argument must be a command")
    if isinstance(tokens, str):
        tokens = shlex.split(tokens)
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() tokens must be strings")
    return dispatch(command, tokens, on_trigger=on_trigger)


__all__ = (
    "Command",
    "dispatch",
    "parse",
)
