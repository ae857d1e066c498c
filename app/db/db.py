import logging
from sqlmodel import Session, SQLModel, create_engine

from app.config import DATABASE_URL

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)


def init_db(bind=None):
    # models must be imported so their tables are registered on the metadata
    from app.models import claim, disc, lost_disc, notification, profile  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables created / verified.")


def get_session():
    with Session(engine) as session:
        yield session
