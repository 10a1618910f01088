from .sqlalchemy import SQLAlchemyTool

__all__ = ["SQLAlchemyTool"]
