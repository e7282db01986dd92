"""
Dependencias compartidas por los routers.
"""
import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db
from .services.kv_store import KVStore, build_store
from .services.visitor_tracking import (
    client_ip,
    client_user_agent,
    compute_fingerprint,
    format_location,
    geo_from_headers,
    record_visit,
)

logger = logging.getLogger(__name__)


def get_visitor_store(db: Session = Depends(get_db)) -> KVStore:
    """
    Store del contador de visitas según VISITOR_STORE.
    Si no está configurado devuelve un NullKVStore, así los endpoints nunca
    tienen que preguntar si hay store o no.
    """
    return build_store(get_settings().visitor_store, db)


def track_page_visit(request: Request, store: KVStore = Depends(get_visitor_store)) -> None:
    """
    Registra la visita antes de renderizar una página.
    Si el tracking falla se loguea y la página se sirve igual.
    """
    ip = client_ip(request)
    user_agent = client_user_agent(request)
    location = format_location(geo_from_headers(request.headers))
    try:
        record_visit(store, ip, compute_fingerprint(ip, user_agent), user_agent, location)
    except Exception as e:
        logger.error(f"❌ Error al registrar visita en {request.url.path}: {e}", exc_info=True)
