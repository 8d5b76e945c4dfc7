from app.models.database import Base, create_db_engine, create_session_factory
from app.models.order import OrderRow

__all__ = ["Base", "create_db_engine", "create_session_factory", "OrderRow"]
