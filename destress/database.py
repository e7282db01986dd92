# Configuración de base de datos usando SQLAlchemy.
#
# La base de datos solo guarda el espacio clave-valor del contador de visitas
# (tabla kv_entries). Por defecto usa SQLite local (destress.db); si
# DATABASE_URL está configurada se usa esa URL (PostgreSQL, etc).

from pathlib import Path
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import get_settings

# Cargar variables de entorno desde .env (solo en desarrollo local)
backend_dir = Path(__file__).parent.parent
env_path = backend_dir / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = get_settings().database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    print(f"[INFO] Usando SQLite: {DATABASE_URL}")
else:
    print("[INFO] Usando base de datos externa (DATABASE_URL configurada)")

connect_args = {"check_same_thread": False} if IS_SQLITE else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Dependencia para inyectar la sesión de DB en los endpoints de FastAPI.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
