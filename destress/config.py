import os

DISABLED_STORE_VALUES = ("none", "off", "disabled", "")


class Settings:
    """Configuración de la aplicación que lee variables de entorno dinámicamente."""

    @property
    def app_name(self) -> str:
        return "Destress Web"

    @property
    def environment(self) -> str:
        # Detectar producción por ENV o por la presencia de PORT (plataformas tipo Railway)
        env = os.getenv("ENV", "").lower()
        if env == "production" or os.getenv("PORT"):
            return "production"
        return "development"

    @property
    def cors_origin(self) -> str:
        return os.getenv("CORS_ORIGIN", "http://localhost:3000")

    @property
    def database_url(self) -> str:
        return os.getenv("DATABASE_URL", "").strip() or "sqlite:///./destress.db"

    @property
    def visitor_store(self) -> str:
        """
        Backend del contador de visitas: "sql", "memory" o "none".
        Cualquier valor de DISABLED_STORE_VALUES deja el store sin configurar.
        """
        value = os.getenv("VISITOR_STORE", "sql").strip().lower()
        if value in DISABLED_STORE_VALUES:
            return "none"
        return value

    @property
    def ranking_limit(self) -> int:
        try:
            return int(os.getenv("RANKING_LIMIT", "50"))
        except ValueError:
            return 50


# Instancia singleton de Settings (sin cache, lee valores dinámicamente)
_settings_instance = None


def get_settings() -> Settings:
    """Retorna la instancia de Settings. Lee variables de entorno dinámicamente."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def clear_settings_cache():
    """Limpia la instancia de settings (aunque no es necesario con propiedades dinámicas)."""
    global _settings_instance
    _settings_instance = None
