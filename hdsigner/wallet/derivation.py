"""
The DerivationPath class: a generic BIP32 path such as m/0H/1/2h/2/1000000000
"""
from typing import Iterator

from hdsigner.core.exceptions import PathParseError
from hdsigner.core.formats import XKEYS
from hdsigner.wallet.child_number import ChildNumber

__all__ = ["DerivationPath", "parse_child_component"]

HARDENED_MARKERS = ("'", "h", "H")


def parse_child_component(path: str, component: str) -> ChildNumber:
    """
    Parse one path component like "44'", "0h", "7H" or "12". The full path is only used for the error message.
    """
    if not component:
        raise PathParseError(path, "empty path component", component)

    hardened = component[-1] in HARDENED_MARKERS
    digits = component[:-1] if hardened else component
    if not digits or not digits.isascii() or not digits.isdigit():
        raise PathParseError(path, f"invalid component '{component}'", component)

    index = int(digits)
    if index > XKEYS.MAX_NORMAL_INDEX:
        raise PathParseError(path, f"index out of range in component '{component}'", component)
    return ChildNumber(index, hardened)


class DerivationPath:
    __slots__ = ("_components",)

    def __init__(self, components: list[ChildNumber] | tuple[ChildNumber, ...] = ()):
        components = tuple(components)
        if len(components) > XKEYS.MAX_DEPTH:
            raise PathParseError(self._format(components), f"path exceeds maximum depth {XKEYS.MAX_DEPTH}")
        self._components = components

    @classmethod
    def master(cls) -> "DerivationPath":
        return cls()

    @classmethod
    def parse(cls, path: str) -> "DerivationPath":
        """
        Accepts "m" for the master key, or "m/" followed by slash separated components
        """
        if not isinstance(path, str):
            raise PathParseError(str(path), "path must be a string")
        parts = path.strip().split("/")
        if parts[0] != "m":
            raise PathParseError(path, "path must start with 'm'", parts[0])
        if len(parts) == 1:
            return cls.master()
        if len(parts) - 1 > XKEYS.MAX_DEPTH:
            raise PathParseError(path, f"path exceeds maximum depth {XKEYS.MAX_DEPTH}")
        return cls([parse_child_component(path, part) for part in parts[1:]])

    # --- PROPERTIES --- #
    @property
    def components(self) -> tuple[ChildNumber, ...]:
        return self._components

    @property
    def depth(self) -> int:
        return len(self._components)

    @property
    def is_master(self) -> bool:
        return not self._components

    # --- METHODS --- #
    def parent(self) -> "DerivationPath | None":
        if self.is_master:
            return None
        return DerivationPath(self._components[:-1])

    def extend(self, child: ChildNumber) -> "DerivationPath":
        return DerivationPath(self._components + (child,))

    def starts_with(self, other: "DerivationPath") -> bool:
        return self._components[:other.depth] == other.components

    def contains_hardened(self) -> bool:
        return any(c.is_hardened for c in self._components)

    def is_public_derivable(self) -> bool:
        """True when every step can be taken from an extended public key"""
        return not self.contains_hardened()

    def to_indices(self) -> list[int]:
        return [c.to_index() for c in self._components]

    # --- OVERRIDES --- #
    @staticmethod
    def _format(components) -> str:
        return "/".join(["m"] + [str(c) for c in components])

    def __str__(self):
        return self._format(self._components)

    def __repr__(self):
        return f"DerivationPath('{self}')"

    def __iter__(self) -> Iterator[ChildNumber]:
        return iter(self._components)

    def __len__(self):
        return len(self._components)

    def __getitem__(self, item):
        return self._components[item]

    def __eq__(self, other):
        if not isinstance(other, DerivationPath):
            return NotImplemented
        return self._components == other._components

    def __hash__(self):
        return hash(self._components)
