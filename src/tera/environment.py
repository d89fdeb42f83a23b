from typing import Dict, Iterator, Optional

from .errors import TypeMismatch, UndefinedVariable
from .values import Nothing, Value


class Environment:
    """
    One frame of the scope chain: block -> parent -> ... -> root.

    Lookup walks outward. Assignment rebinds the name in the nearest frame
    that already defines it, or creates it in this frame.
    """

    def __init__(self, parent: Optional["Environment"] = None):
        self._parent = parent
        self._bindings: Dict[str, Value] = {}

    @property
    def parent(self) -> Optional["Environment"]:
        return self._parent

    @property
    def is_root(self) -> bool:
        return self._parent is None

    def child(self) -> "Environment":
        return Environment(self)

    def _owner(self, name: str) -> Optional["Environment"]:
        frame: Optional[Environment] = self
        while frame is not None:
            if name in frame._bindings:
                return frame
            frame = frame._parent
        return None

    def lookup(self, name: str) -> Value:
        owner = self._owner(name)
        if owner is None:
            raise UndefinedVariable(f"'{name}' is not defined.")
        return owner._bindings[name]

    def assign(self, name: str, value: Value) -> Value:
        if isinstance(value, Nothing):
            raise TypeMismatch(f"Cannot assign an empty result to '{name}'.")
        owner = self._owner(name)
        (owner if owner is not None else self)._bindings[name] = value
        return value

    def define(self, name: str, value: Value) -> Value:
        """Bind name in this frame, shadowing any outer binding."""
        self._bindings[name] = value
        return value

    def __contains__(self, name: str) -> bool:
        return self._owner(name) is not None

    def local_names(self) -> Iterator[str]:
        return iter(self._bindings)

    def bindings(self) -> Dict[str, Value]:
        """A copy of this frame's own bindings."""
        return dict(self._bindings)
