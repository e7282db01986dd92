"""
Renderizado de las páginas HTML.

Las plantillas viven en destress/pages/ y usan marcadores "{{ nombre }}".
Las páginas de los juegos son fragmentos que se insertan en layout.html
(botón de volver + widget de visitas).
"""
import html
from pathlib import Path
from typing import Dict, List, Optional

from ..schemas.visitor_schema import IpStat, StatsOut
from .visitor_tracking import rank_ips

PAGES_DIR = Path(__file__).parent.parent / "pages"

SITE_TITLE = "Juegos antiestrés"

# slug -> (título, icono, descripción, color de fondo)
TOYS: Dict[str, tuple] = {
    "slime": ("Slime infinito", "🫧", "Estirá y deformá una gota que siempre vuelve a su forma", "#1a1a2e"),
    "bounce": ("Pelotitas", "⚽", "Tocá la pantalla y mirá rebotar las pelotas", "#16213e"),
    "fountain": ("Fuente de partículas", "✨", "Mantené apretado para lanzar chispas de colores", "#0f0f23"),
    "kaleidoscope": ("Caleidoscopio", "🔮", "Dibujá con el mouse y multiplicá el trazo", "#000"),
    "breathing": ("Luces que respiran", "🌈", "Una grilla de colores que late despacio", "#000"),
}

CUBE_SIZES = (3, 4, 5)
# Distancia de cámara por tamaño para que el cubo entre en pantalla
CUBE_CAMERA_Z = {3: 8, 4: 8, 5: 12}


def load_template(name: str) -> str:
    return (PAGES_DIR / name).read_text(encoding="utf-8")


def render_template(name: str, **context) -> str:
    """Reemplaza cada "{{ clave }}" de la plantilla por str(valor)."""
    content = load_template(name)
    for key, value in context.items():
        content = content.replace("{{ " + key + " }}", str(value))
    return content


def render_index() -> str:
    cards = []
    for slug, (title, icon, description, _) in TOYS.items():
        cards.append(_card(f"/{slug}", icon, title, description))
    for size in CUBE_SIZES:
        cards.append(_card(f"/cube{size}", "🧊", f"Cubo {size}×{size}", "Giralo, mezclalo y resolvelo"))
    cards.append(_card("/ranking", "🏆", "Ranking de visitas", "Las IPs que más volvieron"))
    return render_template("index.html", title=SITE_TITLE, cards="\n".join(cards))


def _card(href: str, icon: str, title: str, description: str) -> str:
    return (
        f'      <a class="card" href="{href}">'
        f'<div class="icon">{icon}</div><h2>{title}</h2><p>{description}</p></a>'
    )


def render_toy(slug: str) -> str:
    """Página de un juego. Lanza KeyError si el slug no existe."""
    title, _, _, background = TOYS[slug]
    return render_template(
        "layout.html",
        title=title,
        background=background,
        content=load_template(f"{slug}.html"),
    )


def render_cube(size: int) -> str:
    if size not in CUBE_SIZES:
        raise ValueError(f"Tamaño de cubo no soportado: {size}")
    content = load_template("cube.html")
    content = content.replace("{{ size }}", str(size)).replace("{{ camera_z }}", str(CUBE_CAMERA_Z[size]))
    return render_template(
        "layout.html",
        title=f"Cubo {size}×{size}",
        background="#0a0a0a",
        content=content,
    )


def render_ranking(stats: StatsOut, limit: Optional[int] = None) -> str:
    """
    Tabla de IPs ordenada por cantidad de visitas (descendente).
    IPs y ubicaciones vienen de headers del cliente, así que se escapan.
    """
    ranking: List[IpStat] = rank_ips(stats.ips, limit)
    if ranking:
        rows = "\n".join(
            f"        <tr><td>{position}</td><td>{html.escape(item.ip)}</td>"
            f"<td>{html.escape(item.location)}</td><td class=\"count\">{item.count}</td></tr>"
            for position, item in enumerate(ranking, start=1)
        )
    else:
        rows = '        <tr><td class="empty" colspan="4">Todavía no hay visitas registradas</td></tr>'
    return render_template(
        "ranking.html",
        title="Ranking de visitas",
        visitors=stats.visitors,
        visits=stats.visits,
        rows=rows,
    )
