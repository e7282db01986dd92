import logging
from pathlib import Path
from dotenv import load_dotenv
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import inspect

from .routers import pages, stats
from .config import get_settings, clear_settings_cache
from .database import Base, engine

# Configurar logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Cargar variables de entorno desde .env (solo en desarrollo local)
backend_dir = Path(__file__).parent.parent
env_path = backend_dir / ".env"
loaded = load_dotenv(dotenv_path=env_path)
if loaded:
    logger.info(f"Variables de entorno cargadas desde: {env_path}")
else:
    logger.warning(f"No se pudo cargar archivo .env desde: {env_path}")

# Limpiar cache de settings para asegurar que se recarguen las variables
clear_settings_cache()

# Importar los modelos para que SQLAlchemy los registre antes de create_all()
from .models.kv_entry import KVEntry  # noqa: F401,E402

app_settings = get_settings()

app = FastAPI(title=app_settings.app_name, version="0.1.0", redirect_slashes=False)

logger.info(f"🚀 Entorno: {app_settings.environment}")


def build_allowed_origins(settings) -> list:
    """
    Orígenes CORS permitidos: los locales de desarrollo más los de CORS_ORIGIN
    (separados por coma). En producción no se agregan los locales.
    """
    allowed_origins = []
    if settings.environment != "production":
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:8000",
        ]
    for origin in (o.strip() for o in settings.cors_origin.split(",")):
        if origin and origin not in allowed_origins:
            allowed_origins.append(origin)
    return allowed_origins


# Configurar CORS
allowed_origins = build_allowed_origins(app_settings)
logger.info(f"🌐 Orígenes CORS permitidos: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def create_tables():
    """Crea las tablas en la base de datos si no existen."""
    logger.info("Creando tablas en la base de datos...")
    expected_tables = list(Base.metadata.tables.keys())
    Base.metadata.create_all(bind=engine)

    existing_tables = inspect(engine).get_table_names()
    missing_tables = [t for t in expected_tables if t not in existing_tables]
    if missing_tables:
        logger.warning(f"⚠️  Tablas faltantes: {', '.join(missing_tables)}")
    else:
        logger.info("✅ Todas las tablas fueron creadas/verificadas exitosamente")


# Solo hace falta la tabla si el contador usa SQL
logger.info(f"📊 Store del contador de visitas: {app_settings.visitor_store}")
if app_settings.visitor_store == "sql":
    # Crear tablas al iniciar (no bloquear el inicio si falla)
    try:
        create_tables()
    except Exception as e:
        logger.error(f"❌ Error al crear tablas al iniciar: {str(e)}", exc_info=True)
        logger.warning("⚠️ El servidor continuará iniciando, pero el contador de visitas puede fallar")

# Include routers
app.include_router(stats.router, prefix="/api")
app.include_router(pages.router)


@app.get("/api/health", tags=["health"])  # Health check (no cuenta como visita)
async def health():
    return {"status": "ok", "server": "alive"}


@app.get("/favicon.ico", tags=["static"])
async def favicon():
    """Handle favicon.ico requests - return 204 No Content"""
    return Response(status_code=204)
