# Import all models to ensure they are registered with SQLAlchemy
from . import note

__all__ = [
    "note",
]
