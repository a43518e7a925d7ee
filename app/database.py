from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_engine(db_url: str):
	# If using sqlite, we need to pass connect_args to allow access from the
	# event log writer thread.
	connect_args = {}
	if db_url.startswith("sqlite"):
		connect_args = {"check_same_thread": False}

	return create_engine(db_url, connect_args=connect_args, future=True)


def make_session_factory(engine):
	return sessionmaker(bind=engine, autoflush=False)
