from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase


class Base(AsyncAttrs, DeclarativeBase):
    """Declarative base for the StoryForge tables.

    The tables are provisioned outside the service; ``metadata`` is used
    directly only by the test suite.
    """
    pass
