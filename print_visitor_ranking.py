#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Script para ver los totales y el ranking de visitas guardados en la base de datos.
Usa la misma configuración que la app (DATABASE_URL / .env).
Ejecutar: python print_visitor_ranking.py [limite]
"""

import sys
import io

from destress.database import Base, SessionLocal, engine
from destress.services.kv_store import SqlKVStore
from destress.services.visitor_tracking import get_stats, rank_ips

# Configurar stdout para UTF-8 en Windows
if sys.platform == 'win32':
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')


def print_ranking(limit: int) -> bool:
    """Imprime totales y las IPs con más visitas."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        stats = get_stats(SqlKVStore(db))
    except Exception as e:
        print(f"[ERROR] No se pudieron leer las estadísticas: {e}")
        return False
    finally:
        db.close()

    print(f"Visitantes únicos: {stats.visitors}")
    print(f"Visitas totales:   {stats.visits}")
    print()

    ranking = rank_ips(stats.ips, limit)
    if not ranking:
        print("[OK] Todavía no hay visitas registradas")
        return True

    print(f"{'#':>3}  {'IP':<40} {'Visitas':>8}  Ubicación")
    for position, item in enumerate(ranking, start=1):
        print(f"{position:>3}  {item.ip:<40} {item.count:>8}  {item.location}")
    return True


if __name__ == "__main__":
    try:
        limit = int(sys.argv[1]) if len(sys.argv) > 1 else 20
    except ValueError:
        print(f"[ERROR] Límite inválido: {sys.argv[1]}")
        sys.exit(1)

    print("=" * 60)
    print("Ranking de visitas")
    print("=" * 60)

    sys.exit(0 if print_ranking(limit) else 1)
