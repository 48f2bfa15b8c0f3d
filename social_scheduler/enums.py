from enum import Enum


class EntityKind(str, Enum):
    """Value of the ``type`` discriminator stored on every document."""
    CLIENT = "client"
    CALENDAR = "calendar"
    POST = "post"
    NOTIFICATION = "notification"

    def __str__(self):
        return self.value

class PostStatus(str, Enum):
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    FAILED = "failed"

    def __str__(self):
        return self.value

class FirestoreOperators(str, Enum):
    LT = "<"
    LTE = "<="
    EQ = "=="
    NE = "!="
    GT = ">"
    GTE = ">="
    IN = "in"
    NOT_IN = "not-in"
    ARRAY_CONTAINS = "array_contains"
    ARRAY_CONTAINS_ANY = "array_contains_any"

class OrderByDirection(str, Enum):
    DESCENDING = "DESCENDING"
    ASCENDING = "ASCENDING"
    def __str__(self):
        return self.value
