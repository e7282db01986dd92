# Importar todos los modelos para que SQLAlchemy los registre antes de create_all()
from .kv_entry import KVEntry

__all__ = [
    "KVEntry",
]
