from __future__ import annotations


class UnitType:
    """The value of expressions evaluated only for effect: `()`, an empty
    block, an `if` without `else` whose condition was false."""

    __slots__ = ()

    def __repr__(self): return "()"

    # Unit is equal only to Unit
    def __eq__(self, other):
        return isinstance(other, UnitType)

    def __hash__(self):
        return hash(UnitType)


Unit = UnitType()
