from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from timegrid.core.config import get_settings
from timegrid.core.exceptions import ConfigurationError

settings = get_settings()

if not settings.database_url:
    raise ConfigurationError("TIMEGRID_DATABASE_URL must be set")

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
