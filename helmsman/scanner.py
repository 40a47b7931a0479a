r"""
Helmsman token scanner.

Overview
- A single left-to-right pass over the tokens of one command level, with one
  cursor and no backtracking. The scan stops at the end of input, at a help or
  version trigger, or at a token naming a child command (the dispatcher takes
  over from there with the remaining tokens).

States
- SCANNING: initial state, every classification rule applies.
- POSITIONAL_ONLY: entered irreversibly on a bare '--'; every later token is
  positional, verbatim.
- DONE / FAILED: terminal.

Classification (first match wins)
1. POSITIONAL_ONLY → positional, verbatim (a later '--' included).
2. '--' exactly → POSITIONAL_ONLY.
3. help trigger ('-h', '--help') or version trigger ('-V', '--version', only when
   the command has a version), unless a user argument claims that spelling.
4. '--name[=value]' → long option (exact match, then unambiguous prefix).
5. '-xyz' → signed number passthrough, or merged short options.
6. bare token → child command, else positional (or an unknown-subcommand fault
   when the command does not mix positionals and subcommands).

Faults
- Every failure raises a CommandException subclass whose options carry 'code',
  'title', 'hint', 'path' (command names from the root), 'index' (1-based token
  position) and a per-kind payload.
"""
import enum
import re
import string
from collections import deque

from .arguments import Flag, Count, Value, Append, Nargs, Map
from .faults import *
from .results import ParseResult
from .utils import ordinal

_NUMBER = re.compile(r"(\d+(\.\d+)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)

HELP_TRIGGERS = ("-h", "--help")
VERSION_TRIGGERS = ("-V", "--version")


class State(enum.Enum):
    SCANNING = enum.auto()
    POSITIONAL_ONLY = enum.auto()
    DONE = enum.auto()
    FAILED = enum.auto()


def _split(argument, raw):
    """
    split a raw value on the argument delimiter (if any).

    a single trailing empty piece is dropped, so 'a,b,' yields ['a', 'b'].
    """
    if argument.delimiter is None:
        return [raw]
    pieces = raw.split(argument.delimiter)
    if len(pieces) > 1 and not pieces[-1]:
        pieces.pop()
    return pieces


class Scanner:
    """
    Scanning state for one command level.

    Parameters
    - command: the Command being scanned.
    - tokens: iterable of raw tokens (never trimmed).
    - path: command names from the root down to (and including) this command.
    - inherited: persistent arguments contributed by ancestors.
    - offset: number of tokens consumed by ancestors (for 1-based positions).

    After run()
    - result: the ParseResult of this level (no defaults applied yet).
    - child: the matched child Command, or None.
    - remaining: deque of tokens after the child name.
    - index: 1-based position of the last consumed token.
    """

    def __init__(self, command, tokens, /, *, path=(), inherited=(), offset=0):
        self.command = command
        self.tokens = deque(tokens)
        self.path = tuple(path) or (command.name,)
        self.arguments = tuple(command.arguments) + tuple(inherited)
        self.index = offset
        self.state = State.SCANNING
        self.result = ParseResult(command.name)
        self.child = None
        self._warned = set()

        self._longs = {}
        self._shorts = {}
        for argument in self.arguments:
            for long in argument.longs:
                self._longs[long] = (argument, False)
            if argument.negatable:
                self._longs["no-" + argument.long] = (argument, True)
            if argument.short is not None:
                self._shorts[argument.short] = argument
        self._claimed = {spelling for argument in self.arguments for spelling in argument.switches}

    @property
    def remaining(self):
        return self.tokens

    @property
    def route(self):
        return " ".join(self.path)

    def _fault(self, cls, message, code, /, **options):
        """build a fault carrying the common options of this scan."""
        self.state = State.FAILED
        return cls(
            message,
            code=code,
            path=self.path,
            index=self.index,
            docs=getdoc(code),
            **options
        )

    # --- main loop ---------------------------------------------------------

    def run(self):
        """
        Scan until the end of input, a trigger or a child command.

        Returns the ParseResult of this level; raises CommandException on failure.
        """
        command = self.command
        while self.tokens:
            token = self.tokens.popleft()
            self.index += 1

            if self.state is State.POSITIONAL_ONLY:
                self._positional(token)
                continue

            if token == "--":
                self.state = State.POSITIONAL_ONLY
                continue

            if trigger := self._trigger(token):
                self.result.triggered = trigger
                break

            if token.startswith("--"):
                self._long(token)
            elif token.startswith("-") and len(token) > 1:
                if self._numeric(token):
                    self._positional(token)
                else:
                    self._short(token)
            elif token in command.subcommands:
                self.child = command.subcommands[token]
                self.result.subcommand = token
                break
            elif command.subcommands and not command.mixing:
                raise self._fault(
                    UnknownSubcommandError,
                    "unknown subcommand %r at %s position" % (token, ordinal(self.index)),
                    FaultCode.UNKNOWN_SUBCOMMAND,
                    title="unknown subcommand",
                    hint="run '%s --help' to see the available subcommands" % self.route,
                    name=token,
                    available=tuple(sorted(
                        name for name in command.subcommands if not (command.autohelp and name == "help")
                    )),
                )
            else:
                self._positional(token)

        self.state = State.DONE
        return self.result

    def _trigger(self, token):
        if token in self._claimed:
            return None
        if self.command.help and token in HELP_TRIGGERS:
            return "help"
        if self.command.version is not None and token in VERSION_TRIGGERS:
            return "version"
        return None

    def _numeric(self, token):
        """signed-number passthrough: '-5', '-.5', '-1e3' when no digit short option shadows it."""
        if not _NUMBER.fullmatch(token[1:]):
            return False
        return self.command.negative_numbers or not any(short in string.digits for short in self._shorts)

    # --- option paths ------------------------------------------------------

    def _resolve_long(self, name, token):
        """
        resolve a bare long name to (argument, negated, spelling).

        an exact long/alias/'no-<long>' match always wins; otherwise the name must be
        a strict prefix of spellings of exactly one target (argument + negation).
        """
        if name in self._longs:
            return *self._longs[name], "--" + name

        candidates = {}
        if name and self.command.abbreviations:
            for spelling, (argument, negated) in self._longs.items():
                if spelling.startswith(name):
                    candidates.setdefault((id(argument), negated), spelling)

        match len(candidates):
            case 1:
                spelling, = candidates.values()
                return *self._longs[spelling], "--" + spelling
            case 0:
                raise self._fault(
                    UnknownOptionError,
                    "unknown option %r at %s position" % (token.partition("=")[0], ordinal(self.index)),
                    FaultCode.UNKNOWN_OPTION,
                    title="unknown option",
                    hint="run '%s --help' to see all available options" % self.route,
                    option=token.partition("=")[0],
                )
            case _:
                spellings = sorted(candidates.values())
                raise self._fault(
                    AmbiguousPrefixError,
                    "option %r at %s position is ambiguous, it could be %s" % (
                        "--" + name, ordinal(self.index), ", ".join("--" + spelling for spelling in spellings)
                    ),
                    FaultCode.AMBIGUOUS_PREFIX,
                    title="ambiguous option",
                    hint="use a longer prefix or the full name, for example '--%s'" % spellings[0],
                    option="--" + name,
                    candidates=tuple(spellings),
                )

    def _long(self, token):
        name, separator, attached = token[2:].partition("=")
        argument, negated, spelling = self._resolve_long(name, token)
        self._consume(argument, spelling, attached if separator else None, negated=negated)

    def _short(self, token):
        body = token[1:]
        for offset, character in enumerate(body):
            if character == "=" and offset:
                raise self._flag_assignment("-" + body[offset - 1])
            try:
                argument = self._shorts[character]
            except KeyError:
                raise self._fault(
                    UnknownOptionError,
                    "unknown option %r at %s position" % ("-" + character, ordinal(self.index)),
                    FaultCode.UNKNOWN_OPTION,
                    title="unknown option",
                    hint="run '%s --help' to see all available options" % self.route,
                    option="-" + character,
                ) from None
            match argument.kind:
                case Flag() | Count():
                    self._consume(argument, "-" + character, None)
                case Value() | Append() | Nargs() | Map():
                    rest = body[offset + 1:]
                    if rest.startswith("="):
                        rest = rest[1:]
                    self._consume(argument, "-" + character, rest or None)
                    return

    def _flag_assignment(self, spelling):
        return self._fault(
            FlagAssignmentError,
            "flag %r at %s position cannot have an inline value" % (spelling, ordinal(self.index)),
            FaultCode.FLAG_ASSIGNMENT,
            title="flag cannot take a value",
            hint="remove everything from '=' (for example: %s)" % spelling,
            option=spelling,
        )

    # --- consumption -------------------------------------------------------

    def _take(self, argument, spelling, start):
        """take the next token unconditionally, even when it starts with '-'."""
        if not self.tokens:
            raise self._fault(
                MissingValueError,
                "option %r at %s position requires a value" % (spelling, ordinal(start)),
                FaultCode.MISSING_VALUE,
                title="missing value",
                hint="pass a value after it (for example: %s <%s>)" % (spelling, argument.metavar or argument.name),
                option=spelling,
                names=(argument.name,),
            )
        self.index += 1
        return self.tokens.popleft()

    def _consume(self, argument, spelling, attached, /, *, negated=False):
        """
        Consume the value(s) of one occurrence and record them.

        attached is the inline value ('--name=value', '-nvalue') or None.
        """
        start = self.index
        self._deprecation(argument, spelling)

        match argument.kind:
            case Flag():
                if attached is not None:
                    raise self._flag_assignment(spelling)
                produced = not negated
            case Count():
                if attached is not None:
                    raise self._flag_assignment(spelling)
                produced = None
            case Value():
                raw = attached if attached is not None else self._take(argument, spelling, start)
                if argument.delimiter is None:
                    produced = self._check(argument, spelling, raw)
                else:
                    produced = [self._check(argument, spelling, piece) for piece in _split(argument, raw)]
            case Append():
                raw = attached if attached is not None else self._take(argument, spelling, start)
                produced = [self._check(argument, spelling, piece) for piece in _split(argument, raw)]
            case Nargs(count):
                produced = [] if attached is None else [attached]
                while len(produced) < count and self.tokens:
                    produced.append(self._take(argument, spelling, start))
                if len(produced) < count:
                    raise self._fault(
                        InsufficientValuesError,
                        "option %r at %s position requires exactly %d values, got %d" % (
                            spelling, ordinal(start), count, len(produced)
                        ),
                        FaultCode.INSUFFICIENT_VALUES,
                        title="not enough values",
                        hint="pass %d values after %s" % (count, spelling),
                        option=spelling,
                        names=(argument.name,),
                        expected=count,
                        got=len(produced),
                    )
                produced = [self._check(argument, spelling, raw) for raw in produced]
            case Map():
                raw = attached if attached is not None else self._take(argument, spelling, start)
                produced = {}
                for entry in _split(argument, raw):
                    key, separator, value = entry.partition("=")
                    if not separator:
                        raise self._fault(
                            MalformedEntryError,
                            "entry %r for option %r at %s position must be of the form key=value" % (
                                entry, spelling, ordinal(self.index)
                            ),
                            FaultCode.MALFORMED_ENTRY,
                            title="malformed entry",
                            hint="write it as %s <key>=<value>" % spelling,
                            option=spelling,
                            names=(argument.name,),
                            value=entry,
                        )
                    produced[key] = self._check(argument, spelling, value)
            case kind:
                raise TypeError(f"unexpected kind {kind!r}")

        self.result._record(argument, produced)

    def _positional(self, token):
        positionals = self.command.positionals
        argument = None
        if len(self.result._positionals) < len(positionals):
            argument = positionals[len(self.result._positionals)]
            self._deprecation(argument, argument.name)
            self._check(argument, argument.name, token)
        self.result._positional(argument, token)

    # --- eager value checks -----------------------------------------------

    def _check(self, argument, spelling, value):
        """check choices and range of one produced value; return it unchanged."""
        if argument.choices and value not in argument.choices:
            raise self._fault(
                InvalidChoiceError,
                "value %r at %s position is not a valid choice for %r" % (value, ordinal(self.index), spelling),
                FaultCode.INVALID_CHOICE,
                title="invalid choice",
                hint="use one of: %s" % " · ".join(argument.choices),
                option=spelling,
                names=(argument.name,),
                value=value,
                allowed=argument.choices,
            )

        if argument.range is not None:
            minimum, maximum = argument.range
            try:
                number = float(value)
            except ValueError:
                number = None
            if number is None or not (
                (minimum is None or minimum <= number) and (maximum is None or number <= maximum)
            ):
                raise self._fault(
                    OutOfRangeError,
                    "value %r at %s position is out of range for %r" % (value, ordinal(self.index), spelling),
                    FaultCode.OUT_OF_RANGE,
                    title="value out of range",
                    hint="use a number %s" % (
                        "between %s and %s" % (minimum, maximum) if minimum is not None and maximum is not None else
                        "of at least %s" % minimum if minimum is not None else
                        "of at most %s" % maximum
                    ),
                    option=spelling,
                    names=(argument.name,),
                    value=value,
                    minimum=minimum,
                    maximum=maximum,
                )
        return value

    def _deprecation(self, argument, spelling):
        if argument.deprecated is None or argument.name in self._warned:
            return
        self._warned.add(argument.name)
        trigger(DeprecatedArgumentWarning(
            "%r at %s position is deprecated" % (spelling, ordinal(self.index)),
            code=FaultCode.DEPRECATED_ARGUMENT,
            title="deprecated argument",
            hint=argument.deprecated,
            path=self.path,
            index=self.index,
            names=(argument.name,),
            docs=getdoc(FaultCode.DEPRECATED_ARGUMENT),
        ))


def scan(command, tokens, /, *, path=(), inherited=(), offset=0):
    """
    Scan the tokens of one command level and return its ParseResult.

    The scan stops at a child command name (recorded in result.subcommand); use
    Scanner directly to reach the remaining tokens.
    """
    return Scanner(command, tokens, path=path, inherited=inherited, offset=offset).run()


__all__ = (
    "State",
    "Scanner",
    "scan",
    "HELP_TRIGGERS",
    "VERSION_TRIGGERS",
)
