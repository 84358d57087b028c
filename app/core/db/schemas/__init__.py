# Import models so Alembic and Base metadata are aware of them
from .generations import Generation, GenerationErrorLog  # noqa: F401
