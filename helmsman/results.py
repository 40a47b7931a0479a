"""
Helmsman parse results.

A ParseResult is produced for every command-tree level visited by a parse. It owns
its values outright: persistent values moving between levels are deep copies, and
the child result (when a subcommand matched) is owned by its parent.

Stores (keyed by argument name)
- scalars: name → str (Value kind and positionals; last occurrence wins)
- flags: name → bool
- counts: name → int
- lists: name → list[str] (Append, Nargs and delimited Value, flattened in input order)
- maps: name → dict[str, str]

Presence
- explicit: names provided on the command line at this level.
- inherited: names seeded from an ancestor (persistent arguments only).
- synced: names copied up from the child after it returned.
- defaults fill the stores after scanning but never count as present.
"""
import copy

from .arguments import Flag, Count, Value, Append, Nargs, Map
from .utils import Unset, coalesce


class ParseResult:
    """
    Structured outcome of parsing one command level.

    Attributes
    - name: the command name of this level.
    - subcommand: matched child name, "" if none.
    - child: the child ParseResult, or None.
    - triggered: "help" / "version" when a trigger short-circuited this level, else None.
    """

    def __init__(self, name, /):
        self.name = name
        self.subcommand = ""
        self.child = None
        self.triggered = None
        self._scalars = {}
        self._flags = {}
        self._counts = {}
        self._lists = {}
        self._maps = {}
        self._positionals = []
        self._explicit = set()
        self._inherited = set()
        self._synced = set()

    # --- accessors ---------------------------------------------------------

    def value(self, name, default=None, /):
        """Return the scalar bound to name (Value kinds and positionals)."""
        return self._scalars.get(name, default)

    def flag(self, name, /):
        return self._flags.get(name, False)

    def count(self, name, /):
        return self._counts.get(name, 0)

    def values(self, name, /):
        """Return a copy of the collected list for name (empty when unset)."""
        return list(self._lists.get(name, ()))

    def mapping(self, name, /):
        """Return a copy of the collected key/value map for name (empty when unset)."""
        return dict(self._maps.get(name, {}))

    def get(self, name, default=None, /):
        """
        Return whatever is stored under name, regardless of its kind.

        Collections are returned as copies; default when nothing is stored.
        """
        for store in (self._scalars, self._flags, self._counts):
            if name in store:
                return store[name]
        if name in self._lists:
            return list(self._lists[name])
        if name in self._maps:
            return dict(self._maps[name])
        return default

    def __contains__(self, name):
        return self.present(name)

    def present(self, name, /):
        """
        True when name was given at this level, inherited from an ancestor or
        synchronized up from a child. Defaults never make a name present.
        """
        return name in self._explicit or name in self._inherited or name in self._synced

    def explicit(self, name, /):
        """True when name was given on the command line at this level."""
        return name in self._explicit

    @property
    def positionals(self):
        """Positional tokens in input order (a copy)."""
        return list(self._positionals)

    @property
    def leaf(self):
        """The deepest result of the dispatch chain."""
        result = self
        while result.child is not None:
            result = result.child
        return result

    @property
    def path(self):
        """Command names from this level down to the leaf."""
        names, result = [self.name], self
        while result.child is not None:
            result = result.child
            names.append(result.name)
        return tuple(names)

    def as_dict(self):
        """
        Return a plain, recursive dictionary snapshot of this result.
        """
        return {
            "name": self.name,
            "scalars": dict(self._scalars),
            "flags": dict(self._flags),
            "counts": dict(self._counts),
            "lists": {name: list(values) for name, values in self._lists.items()},
            "maps": {name: dict(entries) for name, entries in self._maps.items()},
            "positionals": list(self._positionals),
            "explicit": sorted(self._explicit),
            "inherited": sorted(self._inherited),
            "synced": sorted(self._synced),
            "subcommand": self.subcommand,
            "triggered": self.triggered,
            "child": None if self.child is None else self.child.as_dict(),
        }

    def __eq__(self, other):
        if not isinstance(other, ParseResult):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    __hash__ = None

    def __repr__(self):
        return f"parse-result(name={self.name!r}, subcommand={self.subcommand!r})"

    def __rich_repr__(self):
        yield "name", self.name
        for name, store in (
            ("scalars", self._scalars),
            ("flags", self._flags),
            ("counts", self._counts),
            ("lists", self._lists),
            ("maps", self._maps),
        ):
            if store:
                yield name, store
        if self._positionals:
            yield "positionals", self._positionals
        if self.triggered:
            yield "triggered", self.triggered
        if self.child is not None:
            yield "child", self.child

    # --- engine-facing mutators -------------------------------------------

    def _forget(self, name):
        for store in (self._scalars, self._flags, self._counts, self._lists, self._maps):
            store.pop(name, None)

    def _record(self, argument, produced):
        """
        Store one occurrence of argument with its kind's repetition semantics.

        produced is True/False for Flag, ignored for Count, a str for Value, a list
        for Append/Nargs and a dict for Map. An inherited seed is discarded first,
        so an explicit setting replaces rather than merges with it.
        """
        name = argument.name
        if name in self._inherited:
            self._forget(name)
            self._inherited.discard(name)
        match argument.kind:
            case Flag():
                self._flags[name] = produced
            case Count():
                self._counts[name] = self._counts.get(name, 0) + 1
            case Value() if argument.delimiter is None:
                self._scalars[name] = produced
            case Value() | Append() | Nargs():
                self._lists.setdefault(name, []).extend(produced)
            case Map():
                self._maps.setdefault(name, {}).update(produced)
        self._explicit.add(name)

    def _positional(self, argument, token):
        """Append a positional token, binding it to its descriptor when there is one."""
        self._positionals.append(token)
        if argument is not None:
            self._scalars[argument.name] = token
            self._explicit.add(argument.name)

    def _extract(self, name):
        """Return a deep copy of the stored value of name (kind-agnostic)."""
        for store in (self._scalars, self._flags, self._counts, self._lists, self._maps):
            if name in store:
                return copy.deepcopy(store[name])
        return None

    def _seed(self, argument, value):
        """Store a value inherited from an ancestor (persistent arguments only)."""
        name = argument.name
        match argument.kind:
            case Flag():
                self._flags[name] = value
            case Count():
                self._counts[name] = value
            case Value() if argument.delimiter is None:
                self._scalars[name] = value
            case Value() | Append() | Nargs():
                self._lists[name] = value
            case Map():
                self._maps[name] = value
        self._inherited.add(name)

    def _adopt(self, argument, value):
        """Store a value synchronized up from a child; it counts as present here."""
        self._seed(argument, value)
        self._inherited.discard(argument.name)
        self._synced.add(argument.name)

    def _default(self, argument):
        """
        Fill in the default of an argument that has no stored value.

        Flag → False, Count → 0, Append/Nargs → [] and Map → {} unless a default
        is declared; Value only when a default is declared. Defaults are deep
        copies and never mark the argument present.
        """
        name, default = argument.name, copy.deepcopy(argument.default)
        match argument.kind:
            case Flag():
                self._flags.setdefault(name, bool(coalesce(default, False)))
            case Count():
                self._counts.setdefault(name, coalesce(default, 0))
            case Value() if argument.delimiter is None:
                if default is not Unset:
                    self._scalars.setdefault(name, default)
            case Value() | Append() | Nargs():
                if name not in self._lists:
                    if isinstance(default, str):
                        default = [default]
                    self._lists[name] = list(coalesce(default, ()))
            case Map():
                if name not in self._maps:
                    self._maps[name] = dict(coalesce(default, {}))


__all__ = (
    "ParseResult",
)
