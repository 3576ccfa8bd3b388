"""Base helpers for polyfactory model factories."""

from datetime import UTC, datetime
from uuid import uuid4

from polyfactory.factories.pydantic_factory import ModelFactory


def utc_now() -> datetime:
    """Generate current UTC time."""
    return datetime.now(UTC)


def generate_id() -> str:
    """Opaque backend identifier."""
    return str(uuid4())


def short_suffix() -> str:
    return uuid4().hex[-8:]


class BaseFactory(ModelFactory):
    """Base factory for backend records.

    Field values are set explicitly so built records look like what the
    backend returns rather than random noise.
    """

    __is_base_factory__ = True
    __check_model__ = False
