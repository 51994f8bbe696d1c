"""Create every ClearRide table directly from the models (local setup without Alembic)."""
import logging

from dotenv import load_dotenv
load_dotenv()

from app.db.session import engine
from app.db.base import Base
from app.models import *  # noqa: F401,F403

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))
