from typing import Any, List, Tuple

from .enums import FirestoreOperators

FilterTuple = Tuple[str, FirestoreOperators, Any]


class FirestoreField:
    """
    Class-level stand-in for a model field that builds query filters.

    Examples
    --------
    >>> Post.calendar_id == "cal_1"
    ('calendarId', FirestoreOperators.EQ, 'cal_1')

    The stored (aliased) name is used, so ``Post.client_id`` filters on
    ``clientId``. On an instance the real value is returned instead.
    """

    def __init__(self, field_name: str):
        self.field_name = field_name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return getattr(instance, self.field_name, None)

    def __str__(self) -> str:
        return self.field_name

    __repr__ = __str__

    def __hash__(self) -> int:
        return hash(self.field_name)

    # ------------------------------------------------------------------ #
    # Comparison operators build (field, operator, value) tuples         #
    # ------------------------------------------------------------------ #

    def __eq__(self, other) -> FilterTuple:  # type: ignore[override]
        return (self.field_name, FirestoreOperators.EQ, other)

    def __ne__(self, other) -> FilterTuple:  # type: ignore[override]
        return (self.field_name, FirestoreOperators.NE, other)

    def __lt__(self, other) -> FilterTuple:
        return (self.field_name, FirestoreOperators.LT, other)

    def __le__(self, other) -> FilterTuple:
        return (self.field_name, FirestoreOperators.LTE, other)

    def __gt__(self, other) -> FilterTuple:
        return (self.field_name, FirestoreOperators.GT, other)

    def __ge__(self, other) -> FilterTuple:
        return (self.field_name, FirestoreOperators.GTE, other)

    def in_(self, values: List[Any]) -> FilterTuple:
        return (self.field_name, FirestoreOperators.IN, values)

    def array_contains(self, value: Any) -> FilterTuple:
        return (self.field_name, FirestoreOperators.ARRAY_CONTAINS, value)
