"""
Typed entity identifiers.

Each id kind is its own class so that a UserId never compares equal to a
ReviewCycleId holding the same UUID text. Stored as plain 36-char strings.
"""
import uuid
from dataclasses import dataclass
from typing import Type

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from app.core.exceptions import InvalidIdentifierError


@dataclass(frozen=True)
class EntityId:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidIdentifierError(f"Invalid {type(self).__name__}: ID cannot be empty")
        try:
            normalized = str(uuid.UUID(self.value.strip()))
        except ValueError:
            raise InvalidIdentifierError(f"Invalid {type(self).__name__}: {self.value!r} is not a UUID")
        object.__setattr__(self, "value", normalized)

    @classmethod
    def generate(cls):
        return cls(str(uuid.uuid4()))

    @classmethod
    def from_string(cls, value: str):
        return cls(value)

    def __str__(self) -> str:
        return self.value


class UserId(EntityId):
    pass

class ReviewCycleId(EntityId):
    pass

class SelfReviewId(EntityId):
    pass

class PeerFeedbackId(EntityId):
    pass

class ManagerEvaluationId(EntityId):
    pass

class FinalScoreId(EntityId):
    pass


class EntityIdType(TypeDecorator):
    """Maps an EntityId subclass onto a String(36) column."""

    impl = String(36)
    cache_ok = True

    def __init__(self, id_class: Type[EntityId], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.id_class = id_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, EntityId):
            return value.value
        return self.id_class(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.id_class(value)
