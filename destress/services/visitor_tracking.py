"""
Servicio de tracking de visitantes y estadísticas.

Cada visitante se identifica por un fingerprint (hash de IP + User-Agent).
Por cada fingerprint se guarda un VisitorRecord en "visitor:<fingerprint>" y
se mantienen dos contadores globales en el mismo store:
- totalVisitors: fingerprints distintos
- totalVisits: todas las visitas registradas

Los contadores se actualizan con lectura + escritura (sin incremento atómico
ni locks), así que bajo concurrencia pueden perder incrementos. Es un contador
aproximado y se acepta así.
"""
import hashlib
import logging
import time
from typing import Iterable, List, Mapping, Optional

from pydantic import ValidationError
from fastapi import Request

from ..schemas.visitor_schema import (
    UNKNOWN_LOCATION,
    GeoDetails,
    IpStat,
    StatsOut,
    VisitorInfoOut,
    VisitorRecord,
)
from .kv_store import KVStore

logger = logging.getLogger(__name__)

VISITOR_PREFIX = "visitor:"
TOTAL_VISITORS_KEY = "totalVisitors"
TOTAL_VISITS_KEY = "totalVisits"
FINGERPRINT_LENGTH = 16

# Headers de IP en orden de preferencia (edge de Cloudflare, nginx, proxies genéricos)
IP_HEADERS = ("cf-connecting-ip", "x-real-ip", "x-forwarded-for")

# Headers de geolocalización que agrega el edge
GEO_HEADERS = {
    "city": "cf-ipcity",
    "country": "cf-ipcountry",
    "region": "cf-region",
    "continent": "cf-ipcontinent",
    "timezone": "cf-timezone",
    "latitude": "cf-iplatitude",
    "longitude": "cf-iplongitude",
}
# XX = país desconocido, T1 = red Tor
UNKNOWN_COUNTRY_CODES = ("XX", "T1")


class TrackingError(Exception):
    """Error base del tracking de visitantes."""


class CorruptVisitorRecord(TrackingError):
    """Un registro guardado no es JSON válido o no tiene la forma esperada."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Registro corrupto en '{key}': {reason}")
        self.key = key


def compute_fingerprint(ip: str, user_agent: str) -> str:
    """Primeros 16 caracteres hex del SHA-256 de "<ip>-<user_agent>"."""
    data = f"{ip}-{user_agent}".encode("utf-8")
    return hashlib.sha256(data).hexdigest()[:FINGERPRINT_LENGTH]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_configured(store: Optional[KVStore]) -> bool:
    return store is not None and getattr(store, "configured", True)


def _read_counter(store: KVStore, key: str) -> int:
    raw = store.get(key)
    if raw is None:
        return 0
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"⚠️ Contador '{key}' con valor no numérico ({raw!r}), se toma como 0")
        return 0


def _increment_counter(store: KVStore, key: str) -> int:
    # Lectura y escritura separadas: dos requests simultáneos pueden pisarse
    value = _read_counter(store, key) + 1
    store.put(key, str(value))
    return value


def _load_record(store: KVStore, key: str) -> Optional[VisitorRecord]:
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return VisitorRecord.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptVisitorRecord(key, str(e)) from e


def record_visit(
    store: Optional[KVStore],
    ip: str,
    fingerprint: str,
    user_agent: str,
    location: str = UNKNOWN_LOCATION,
    now: Optional[int] = None,
) -> None:
    """
    Registra una visita del fingerprint dado.

    - Fingerprint nuevo: crea el registro con count=1 y suma 1 a totalVisitors y totalVisits.
    - Fingerprint conocido: count+1, actualiza "last" y suma 1 solo a totalVisits.
      Si el registro no tenía ubicación (o era "Unknown") se completa con la nueva;
      una ubicación ya conocida nunca se sobrescribe.

    Sin store configurado no hace nada. Los errores del store se propagan.
    """
    if not _is_configured(store):
        return

    timestamp = now if now is not None else _now_ms()
    key = f"{VISITOR_PREFIX}{fingerprint}"
    record = _load_record(store, key)

    if record is None:
        record = VisitorRecord(
            ip=ip,
            user_agent=user_agent,
            location=location or UNKNOWN_LOCATION,
            first_seen=timestamp,
            visit_count=1,
        )
        store.put(key, record.to_json())
        _increment_counter(store, TOTAL_VISITORS_KEY)
        logger.info(f"Nuevo visitante registrado: {fingerprint}")
    else:
        record.visit_count += 1
        record.last_seen = timestamp
        if record.needs_location():
            record.location = location or UNKNOWN_LOCATION
        store.put(key, record.to_json())
        logger.debug(f"Visita repetida de {fingerprint} (#{record.visit_count})")

    _increment_counter(store, TOTAL_VISITS_KEY)


def get_stats(store: Optional[KVStore]) -> StatsOut:
    """
    Totales y lista de IPs con su cantidad de visitas.

    La lista se deduplica por IP y gana el primer registro encontrado: si una
    misma IP tiene varios fingerprints (distintos User-Agent), solo cuenta el
    count del primero, no la suma. La lista no se ordena (ver rank_ips).
    """
    if not _is_configured(store):
        return StatsOut(visitors=0, visits=0, ips=[])

    visitors = _read_counter(store, TOTAL_VISITORS_KEY)
    visits = _read_counter(store, TOTAL_VISITS_KEY)

    ips: List[IpStat] = []
    seen_ips = set()
    for key in store.list_keys(VISITOR_PREFIX):
        record = _load_record(store, key)
        if record is None or record.ip in seen_ips:
            continue
        seen_ips.add(record.ip)
        ips.append(IpStat(
            ip=record.ip,
            count=record.visit_count,
            location=record.location or UNKNOWN_LOCATION,
        ))

    return StatsOut(visitors=visitors, visits=visits, ips=ips)


def rank_ips(ips: Iterable[IpStat], limit: Optional[int] = None) -> List[IpStat]:
    """Ordena por visitas (descendente) y luego por IP; limit <= 0 o None = sin límite."""
    ranking = sorted(ips, key=lambda item: (-item.count, item.ip))
    if limit and limit > 0:
        ranking = ranking[:limit]
    return ranking


# --- Datos del visitante actual (sin acceso al store) ---

def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def client_ip(request: Request) -> str:
    for header in IP_HEADERS:
        value = _clean(request.headers.get(header))
        if value:
            # X-Forwarded-For puede traer la cadena completa de proxies
            return value.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def client_user_agent(request: Request) -> str:
    return _clean(request.headers.get("user-agent")) or "unknown"


def geo_from_headers(headers: Mapping[str, str]) -> Optional[GeoDetails]:
    values = {field: _clean(headers.get(header)) for field, header in GEO_HEADERS.items()}
    if values["country"] and values["country"].upper() in UNKNOWN_COUNTRY_CODES:
        values["country"] = None
    if not any(values.values()):
        return None
    return GeoDetails(**values)


def format_location(geo: Optional[GeoDetails]) -> str:
    """Devuelve "Ciudad, País", solo "País" o "Unknown"."""
    if geo is None or not geo.country:
        return UNKNOWN_LOCATION
    if geo.city:
        return f"{geo.city}, {geo.country}"
    return geo.country


def get_current_visitor_info(request: Request) -> VisitorInfoOut:
    """IP, fingerprint y ubicación del request actual. Nunca falla."""
    ip = client_ip(request)
    geo = geo_from_headers(request.headers)
    return VisitorInfoOut(
        ip=ip,
        fingerprint=compute_fingerprint(ip, client_user_agent(request)),
        location=format_location(geo),
        geo_details=geo,
    )
