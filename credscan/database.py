from sqlmodel import SQLModel, Session, create_engine

from credscan import config

connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(config.DATABASE_URL, connect_args=connect_args)


def create_db_and_tables(bind=engine):
    SQLModel.metadata.create_all(bind)


def get_session():
    with Session(engine) as session:
        yield session
