from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Opciones del engine según el backend configurado."""
    if url.startswith("sqlite"):
        # SQLite en memoria: una sola conexión compartida entre hilos (tests)
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }


sync_engine = create_engine(
    settings.database_url,
    echo=settings.DEBUG and settings.ENVIRONMENT == "development",
    **_engine_options(settings.database_url)
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sync_engine)

Base = declarative_base()


def get_db():
    """Genera una sesión de base de datos por request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Crear todas las tablas registradas en Base (solo desarrollo).
    Los modelos deben estar importados antes (ver app/main.py).
    """
    Base.metadata.create_all(bind=sync_engine)
    logger.info("Database tables created")
