from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_LOCATION = "Unknown"


class VisitorRecord(BaseModel):
    """
    Registro persistido en "visitor:<fingerprint>".
    Forma JSON: {ip, ua, location, first, last?, count}.
    location puede faltar en registros creados antes de guardar ubicación.
    Las claves desconocidas se conservan tal cual al volver a guardar.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    ip: str
    user_agent: str = Field(alias="ua")
    location: Optional[str] = None
    first_seen: int = Field(alias="first")
    last_seen: Optional[int] = Field(default=None, alias="last")
    visit_count: int = Field(alias="count", ge=1)

    def needs_location(self) -> bool:
        return not self.location or self.location == UNKNOWN_LOCATION

    def to_json(self) -> str:
        # Solo se omiten los campos propios vacíos; los extra van siempre
        empty = {name for name in ("location", "last_seen") if getattr(self, name) is None}
        return self.model_dump_json(by_alias=True, exclude=empty or None)


class IpStat(BaseModel):
    ip: str
    count: int
    location: str = UNKNOWN_LOCATION


class StatsOut(BaseModel):
    visitors: int = 0
    visits: int = 0
    ips: List[IpStat] = []


class GeoDetails(BaseModel):
    city: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    continent: Optional[str] = None
    timezone: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None


class VisitorInfoOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ip: str
    fingerprint: str
    location: str = UNKNOWN_LOCATION
    geo_details: Optional[GeoDetails] = Field(default=None, alias="geoDetails")

    def to_dict(self) -> Dict[str, Any]:
        """Serializa con claves camelCase; geoDetails solo aparece si hay datos geo."""
        payload = self.model_dump(by_alias=True)
        if payload.get("geoDetails") is None:
            payload.pop("geoDetails", None)
        return payload
