"""
Helmsman constraint validator.

validate() runs once per command level, after that level's scan and after its
child (if any) returned and synchronized persistent values. The first violation
is raised; rules are checked in a fixed order:

1. required arguments have a value or a declared default
2. supplied positionals do not outnumber the positional arguments
3. mutually exclusive sets have at most one member present
4. one-required sets have at least one member present
5. required-together sets are all-or-none
6. conditionals: when the condition is present, the target is present too

"present" is ParseResult.present(): given at this level, inherited from an
ancestor or synchronized up from a child. Defaults never count.
"""
from .faults import *
from .utils import Unset, ordinal


def _quote(names):
    return ", ".join(map(repr, names))


def validate(command, arguments, result, path, /):
    """
    Check the declared constraints of command against result.

    Parameters
    - command: the Command whose constraints are checked.
    - arguments: the effective arguments of this level (own + inherited persistent).
    - result: the ParseResult of this level.
    - path: command names from the root down to this level.

    Returns None; raises the first CommandException found.
    """
    route = " ".join(path)
    common = dict(path=tuple(path), index=None)

    for argument in arguments:
        if argument.required and not result.present(argument.name) and argument.default is Unset:
            spelling = argument.switches[0] if argument.switches else "<%s>" % (argument.metavar or argument.name)
            raise MissingRequiredError(
                "missing required argument %r" % spelling,
                code=FaultCode.MISSING_REQUIRED,
                title="missing required argument",
                hint="pass %s; run '%s --help' for details" % (spelling, route),
                name=argument.name,
                names=(argument.name,),
                docs=getdoc(FaultCode.MISSING_REQUIRED),
                **common
            )

    expected, got = len(command.positionals), len(result.positionals)
    if got > expected:
        raise TooManyPositionalsError(
            "unexpected positional %r at %s position, expected at most %d" % (
                result.positionals[expected], ordinal(expected + 1), expected
            ),
            code=FaultCode.TOO_MANY_POSITIONALS,
            title="too many positionals",
            hint="remove the extra values; run '%s --help' for usage" % route,
            expected=expected,
            got=got,
            docs=getdoc(FaultCode.TOO_MANY_POSITIONALS),
            **common
        )

    for members in command.exclusive:
        if len(present := [name for name in members if result.present(name)]) > 1:
            raise MutuallyExclusiveError(
                "%s cannot be used together" % _quote(present),
                code=FaultCode.MUTUALLY_EXCLUSIVE,
                title="mutually exclusive arguments",
                hint="keep only one of %s" % _quote(members),
                members=tuple(present),
                docs=getdoc(FaultCode.MUTUALLY_EXCLUSIVE),
                **common
            )

    for members in command.one_required:
        if not any(result.present(name) for name in members):
            raise OneRequiredError(
                "one of %s is required" % _quote(members),
                code=FaultCode.ONE_REQUIRED,
                title="one argument required",
                hint="pass at least one of %s" % _quote(members),
                members=tuple(members),
                docs=getdoc(FaultCode.ONE_REQUIRED),
                **common
            )

    for members in command.together:
        missing = [name for name in members if not result.present(name)]
        if missing and len(missing) < len(members):
            raise RequiredTogetherError(
                "%s must be used together, missing %s" % (_quote(members), _quote(missing)),
                code=FaultCode.REQUIRED_TOGETHER,
                title="arguments required together",
                hint="also pass %s" % _quote(missing),
                members=tuple(members),
                missing=tuple(missing),
                docs=getdoc(FaultCode.REQUIRED_TOGETHER),
                **common
            )

    for target, condition in command.conditionals:
        if result.present(condition) and not result.present(target):
            raise ConditionalRequirementError(
                "%r is required when %r is used" % (target, condition),
                code=FaultCode.CONDITIONAL_REQUIREMENT,
                title="conditional requirement",
                hint="also pass %r, or drop %r" % (target, condition),
                target=target,
                condition=condition,
                docs=getdoc(FaultCode.CONDITIONAL_REQUIREMENT),
                **common
            )


__all__ = (
    "validate",
)
