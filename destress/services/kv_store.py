"""
Stores clave-valor para el contador de visitas.

El tracking solo necesita tres operaciones (get, put y listar claves por
prefijo), así que cualquier backend que las implemente sirve:
- SqlKVStore: tabla kv_entries vía SQLAlchemy (producción)
- MemoryKVStore: diccionario en memoria (desarrollo y tests)
- NullKVStore: store "no configurado"; todo es no-op
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.kv_entry import KVEntry

logger = logging.getLogger(__name__)


class KVStore:
    """Interfaz mínima de un store clave-valor con valores de texto."""

    configured = True

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    def list_keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError


class NullKVStore(KVStore):
    """Store sin configurar: las lecturas devuelven vacío y las escrituras se ignoran."""

    configured = False

    def get(self, key: str) -> Optional[str]:
        return None

    def put(self, key: str, value: str) -> None:
        return None

    def list_keys(self, prefix: str = "") -> List[str]:
        return []


class MemoryKVStore(KVStore):
    def __init__(self, data: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def list_keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SqlKVStore(KVStore):
    """
    Store respaldado por la tabla kv_entries.
    Cada put hace commit inmediatamente: no hay transacciones que abarquen
    más de una escritura.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        entry = self.db.get(KVEntry, key)
        return entry.value if entry else None

    def put(self, key: str, value: str) -> None:
        try:
            entry = self.db.get(KVEntry, key)
            if entry:
                entry.value = value
            else:
                self.db.add(KVEntry(key=key, value=value))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_keys(self, prefix: str = "") -> List[str]:
        query = self.db.query(KVEntry.key)
        if prefix:
            query = query.filter(KVEntry.key.startswith(prefix, autoescape=True))
        return [row.key for row in query.order_by(KVEntry.key).all()]


# Store en memoria compartido por todo el proceso (VISITOR_STORE=memory)
_memory_store: Optional[MemoryKVStore] = None


def get_memory_store() -> MemoryKVStore:
    global _memory_store
    if _memory_store is None:
        logger.info("Usando store en memoria para el contador de visitas (se pierde al reiniciar)")
        _memory_store = MemoryKVStore()
    return _memory_store


def build_store(backend: str, db: Optional[Session] = None) -> KVStore:
    """
    Construye el store según la configuración.
    Backends desconocidos o "sql" sin sesión se tratan como store no configurado.
    """
    if backend == "sql" and db is not None:
        return SqlKVStore(db)
    if backend == "memory":
        return get_memory_store()
    if backend not in ("none", "sql"):
        logger.warning(f"⚠️ VISITOR_STORE desconocido '{backend}', el contador queda deshabilitado")
    return NullKVStore()
