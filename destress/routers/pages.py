import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from ..config import get_settings
from ..dependencies import get_visitor_store, track_page_visit
from ..services import page_service
from ..services.kv_store import KVStore
from ..services.visitor_tracking import get_stats

logger = logging.getLogger(__name__)

# Todas las páginas registran la visita antes de renderizar
router = APIRouter(
    tags=["pages"],
    default_response_class=HTMLResponse,
    dependencies=[Depends(track_page_visit)],
)


@router.get("/")
def index():
    return page_service.render_index()


@router.get("/slime")
def slime():
    return page_service.render_toy("slime")


@router.get("/bounce")
def bounce():
    return page_service.render_toy("bounce")


@router.get("/fountain")
def fountain():
    return page_service.render_toy("fountain")


@router.get("/kaleidoscope")
def kaleidoscope():
    return page_service.render_toy("kaleidoscope")


@router.get("/breathing")
def breathing():
    return page_service.render_toy("breathing")


@router.get("/cube3")
def cube3():
    return page_service.render_cube(3)


@router.get("/cube4")
def cube4():
    return page_service.render_cube(4)


@router.get("/cube5")
def cube5():
    return page_service.render_cube(5)


@router.get("/ranking")
def ranking(store: KVStore = Depends(get_visitor_store)):
    """
    Ranking de IPs por cantidad de visitas.
    El ordenamiento se hace acá: get_stats devuelve la lista sin ordenar.
    """
    try:
        stats = get_stats(store)
    except Exception as e:
        logger.error(f"Error al armar el ranking de visitas: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error al obtener estadísticas de visitas")
    return page_service.render_ranking(stats, get_settings().ranking_limit)
