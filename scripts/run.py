#!/usr/bin/env python3
"""
Ejecuta una sola actualización completa y termina: descarga → transformación → carga.

Uso:
    # Actualización con la configuración del .env
    python scripts/run.py

    # Navegador visible y conservando el CSV descargado
    python scripts/run.py --no-headless --keep-csv

    # Mostrar 10 registros de ejemplo al terminar
    python scripts/run.py --sample 10
"""

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

# Agregar directorio raíz al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scraper.database import DatabaseService


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Descarga el listado de emisores electrónicos de DGII y lo guarda en SQLite"
    )
    parser.add_argument("--db-path", default=None, help="Ruta de la base SQLite (default: DB_PATH)")
    parser.add_argument("--download-dir", default=None, help="Directorio de descargas (default: DOWNLOAD_PATH)")
    parser.add_argument("--url", default=None, help="URL del listado (default: DGII_URL)")
    parser.add_argument(
        "--headless", dest="headless", action="store_true", default=None,
        help="Navegador sin interfaz",
    )
    parser.add_argument(
        "--no-headless", dest="headless", action="store_false",
        help="Navegador visible (útil para depurar)",
    )
    parser.add_argument("--keep-csv", action="store_true", help="No eliminar el CSV descargado")
    parser.add_argument("--sample", type=int, default=5, help="Registros de ejemplo a mostrar (default: 5)")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace):
    """Configuración del entorno con los overrides de la línea de comandos."""
    from api.config import Settings

    overrides = {}
    if args.db_path:
        overrides["db_path"] = args.db_path
    if args.download_dir:
        overrides["download_path"] = args.download_dir
    if args.url:
        overrides["dgii_url"] = args.url
    if args.headless is not None:
        overrides["browser_headless"] = args.headless
    if args.keep_csv:
        overrides["keep_downloads"] = True
    return Settings(**overrides)


def print_sample(rows) -> None:
    print(f"\n📋 Primeros {len(rows)} registros guardados:")
    print("-" * 100)
    print(f"{'RNC':<12} {'RAZÓN SOCIAL':<45} {'NOMBRE COMERCIAL':<30} {'AUTORIZACIÓN':<12}")
    print("-" * 100)
    for row in rows:
        print(
            f"{row.rnc:<12} {row.razon_social[:44]:<45} "
            f"{row.nombre_comercial[:29]:<30} {row.fecha_autorizacion:<12}"
        )


async def run_once(app_settings, sample: int) -> int:
    from api.tasks import build_orchestrator

    database = DatabaseService(app_settings.db_path)
    try:
        orchestrator = build_orchestrator(app_settings, database)
        count = await orchestrator.run_full_process()
        if sample > 0:
            print_sample(await database.get_latest(sample))
        return count
    finally:
        await database.close()


def main():
    """Función principal."""
    args = parse_args()

    try:
        app_settings = load_settings(args)
    except ValidationError as e:
        print(f"❌ Configuración inválida:\n{e}")
        sys.exit(1)

    from api.config import configure_logging
    configure_logging(app_settings.log_level)

    print("=" * 60)
    print("ACTUALIZACIÓN DE EMISORES DGII")
    print("=" * 60)
    print(f"🌐 URL: {app_settings.dgii_url}")
    print(f"💾 Base de datos: {app_settings.db_path}")
    print(f"📂 Descargas: {app_settings.download_path}")
    print()

    try:
        count = asyncio.run(run_once(app_settings, args.sample))
    except KeyboardInterrupt:
        print("\n\n⚠️  Proceso interrumpido por el usuario")
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ Error en el proceso: {e}")
        sys.exit(1)

    print(f"\n✅ {count} registros cargados")
    sys.exit(0)


if __name__ == "__main__":
    main()
