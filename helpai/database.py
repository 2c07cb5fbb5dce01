from sqlmodel import SQLModel, create_engine
from helpai.core.config import Settings

# Registra las tablas en SQLModel.metadata
import helpai.models.user  # noqa
import helpai.models.conversation  # noqa
import helpai.models.message  # noqa


def create_db_engine(settings: Settings):
    connect_args = {}
    if settings.database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(settings.database_url, echo=settings.sql_echo, connect_args=connect_args)


def create_db_and_tables(engine):
    SQLModel.metadata.create_all(engine)
