"""
Helmsman faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- RegistrationConflictError: build-time failure raised while assembling a command
  tree (never produced by end-user input).
- trigger(): central entry point to surface any fault (raise, warn, or print).
- getdoc(): optional description lookup for a code from the host application.

Structure of a parse fault
- message: one lowercase sentence, position-first when a token position is known.
- options (read-only mapping): always 'code', 'title', 'hint' and 'path' (command
  names from the root to the level that failed); plus a per-kind payload, e.g.
  'candidates' for ambiguous prefixes or 'members' for exclusive groups.

Integration
- The engine raises faults directly; it never prints and never exits.
- Callers that want console output pass a fault to trigger(fault, shell=True, ...),
  which renders it via rich on stderr instead of raising.
"""
import inspect
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_SUBCOMMAND
    - options (1111x)
      • UNKNOWN_OPTION, AMBIGUOUS_PREFIX, FLAG_ASSIGNMENT, MISSING_VALUE,
        INSUFFICIENT_VALUES, MALFORMED_ENTRY
    - values (1112x)
      • INVALID_CHOICE, OUT_OF_RANGE
    - constraints (1113x)
      • MISSING_REQUIRED, TOO_MANY_POSITIONALS, MUTUALLY_EXCLUSIVE, ONE_REQUIRED,
        REQUIRED_TOGETHER, CONDITIONAL_REQUIREMENT
    - warnings (12xxx)
      • DEPRECATED_ARGUMENT
    - registration (13xxx)
      • REGISTRATION_CONFLICT

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_SUBCOMMAND          = 11101

    # --- option errors (11xxx) ---
    UNKNOWN_OPTION              = 11111
    AMBIGUOUS_PREFIX            = 11112
    FLAG_ASSIGNMENT             = 11113
    MISSING_VALUE               = 11114
    INSUFFICIENT_VALUES         = 11115
    MALFORMED_ENTRY             = 11116

    # --- value errors (11xxx) ---
    INVALID_CHOICE              = 11121
    OUT_OF_RANGE                = 11122

    # --- constraint errors (11xxx) ---
    MISSING_REQUIRED            = 11131
    TOO_MANY_POSITIONALS        = 11132
    MUTUALLY_EXCLUSIVE          = 11133
    ONE_REQUIRED                = 11134
    REQUIRED_TOGETHER           = 11135
    CONDITIONAL_REQUIREMENT     = 11136

    # --- warnings (12xxx) ---
    DEPRECATED_ARGUMENT         = 12112

    # --- registration errors (13xxx) ---
    REGISTRATION_CONFLICT       = 13101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class _Renderable:
    """
    rich rendering shared by errors and warnings.

    recognized options
    - colorful: bool, enable the palette below (host overrides via __main__.__styles__).
    - fancy: bool, wrap message and hint in a titled Panel.
    - ratio: float, shrink a fancy panel relative to the console width.
    - path: tuple[str, ...], the first element names the program in the header
      unless __main__.__prog__ is set.
    """
    __palette__ = {}
    __label__ = "error"

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, self.__palette__ | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style])

        path = self.options.get("path", ())
        prog = text(getattr(main, "__prog__", path[0] if path else "helmsman"), "prog-name")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.code.normalize() if self.code else "", "code"),
            " | ",
            text(str(self.options.get("title", self.__label__)).title(), self.__label__ + "-title"),
            " ]"
        )
        message = text(self.message, self.__label__ + "-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.options.get("hint", ""), "hint"))

        if fancy:
            width = console.width - 4
            try:
                width = int(width * self.options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(message, hint), title=header, title_align="left", width=width)

        return Group(header, message, hint)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def path(self):
        return tuple(self.options.get("path", ()))

    @property
    def hint(self):
        return self.options.get("hint")


class CommandException(_Renderable, Exception):
    """
    base class of every parse-time fault.

    a fault is fatal to the parse call that raised it; nothing is retried or
    recovered internally. the payload lives in the read-only 'options' mapping.
    """
    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "error-title": "bold #FF4DA6",  # friendly pinky title

        # body
        "error-message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
    }

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message or "")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownSubcommandError(CommandException): ...
class UnknownOptionError(CommandException): ...
class AmbiguousPrefixError(CommandException): ...
class FlagAssignmentError(CommandException): ...
class MissingValueError(CommandException): ...
class InsufficientValuesError(CommandException): ...
class MalformedEntryError(CommandException): ...
class InvalidChoiceError(CommandException): ...
class OutOfRangeError(CommandException): ...
class MissingRequiredError(CommandException): ...
class TooManyPositionalsError(CommandException): ...
class MutuallyExclusiveError(CommandException): ...
class OneRequiredError(CommandException): ...
class RequiredTogetherError(CommandException): ...
class ConditionalRequirementError(CommandException): ...


class RegistrationConflictError(ValueError):
    """
    raised while building a command tree when two declarations collide.

    'names' holds the conflicting descriptor names (or spellings for collisions
    between a persistent ancestor descriptor and a local one). this is an
    integrator error, distinct from CommandException parse failures.
    """

    def __init__(self, message, /, *, names=()):
        super().__init__(message)
        self.names = tuple(names)
        self.code = FaultCode.REGISTRATION_CONFLICT


class CommandWarning(_Renderable, ABC, Warning):
    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #FFB400",  # amber fault code for warnings
        "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

        # body
        "warning-message": "#D6D6DE",  # slightly lighter gray body
        "hint-arrow": "#B8EFAF dim",  # softer green arrow
        "hint": "italic #B8EFAF",  # softer green hint text
    }
    __label__ = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message or "")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DeprecatedArgumentWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - shell=False (default): exceptions are raised and warnings go through warnings.warn.
    - shell=True: both are printed to the stderr console; nothing is raised and the
      process is never terminated here (exit policy belongs to the caller).

    typical options
    - shell, fancy, colorful, ratio, and any context the reporter may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "UnknownSubcommandError",
    "UnknownOptionError",
    "AmbiguousPrefixError",
    "FlagAssignmentError",
    "MissingValueError",
    "InsufficientValuesError",
    "MalformedEntryError",
    "InvalidChoiceError",
    "OutOfRangeError",
    "MissingRequiredError",
    "TooManyPositionalsError",
    "MutuallyExclusiveError",
    "OneRequiredError",
    "RequiredTogetherError",
    "ConditionalRequirementError",
    "RegistrationConflictError",
    "CommandWarning",
    "DeprecatedArgumentWarning",
    "trigger",
    "getdoc",
)
