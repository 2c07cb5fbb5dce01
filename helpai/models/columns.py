from sqlalchemy import Column, DateTime
from sqlalchemy.types import TypeDecorator

from helpai.utils.timeutils import as_utc


class UTCDateTime(TypeDecorator):
    """Guarda la fecha en UTC sin zona y la devuelve siempre con tzinfo=UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return as_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)


def utc_column(**kwargs) -> Column:
    return Column(UTCDateTime(), nullable=False, **kwargs)
