from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone

from ..database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class KVEntry(Base):
    """
    Par clave-valor del contador de visitas.
    Las claves son "visitor:<fingerprint>", "totalVisitors" y "totalVisits";
    el valor siempre es texto (JSON o entero en decimal).
    """
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
