import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..dependencies import get_visitor_store
from ..schemas.visitor_schema import StatsOut
from ..services.kv_store import KVStore
from ..services.visitor_tracking import get_current_visitor_info, get_stats

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=StatsOut)
def read_stats(store: KVStore = Depends(get_visitor_store)):
    """
    Totales de visitantes/visitas y lista de IPs (sin ordenar).
    Sin store configurado devuelve ceros y lista vacía.
    """
    try:
        return get_stats(store)
    except Exception as e:
        logger.error(f"Error al obtener estadísticas de visitas: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error al obtener estadísticas de visitas")


@router.get("/visitor")
def read_current_visitor(request: Request):
    """
    IP, fingerprint y ubicación del visitante actual.
    No toca el store; geoDetails solo aparece si el edge mandó datos geo.
    """
    return get_current_visitor_info(request).to_dict()
