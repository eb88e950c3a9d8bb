#!/usr/bin/env python3
"""
Inicia el servidor HTTP con el programador de actualizaciones.

Uso:
    python scripts/serve.py
    python scripts/serve.py --port 8080 --force-update
"""

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

# Agregar directorio raíz al path
sys.path.insert(0, str(Path(__file__).parent.parent))


def main():
    """Función principal."""
    parser = argparse.ArgumentParser(description="Servidor REST de emisores electrónicos DGII")
    parser.add_argument("--host", default=None, help="Interfaz de escucha (default: HOST)")
    parser.add_argument("--port", type=int, default=None, help="Puerto (default: PORT)")
    parser.add_argument(
        "--force-update", action="store_true",
        help="Actualizar los datos al iniciar (equivale a FORCE_UPDATE_ON_START=true)",
    )
    args = parser.parse_args()

    try:
        from api.config import Settings, configure_logging

        overrides = {}
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port
        if args.force_update:
            overrides["force_update_on_start"] = True
        app_settings = Settings(**overrides)
    except ValidationError as e:
        print(f"❌ Configuración inválida:\n{e}")
        sys.exit(1)

    configure_logging(app_settings.log_level)

    import uvicorn
    from api.main import create_app

    app = create_app(app_settings)
    print(f"🚀 Servidor escuchando en http://{app_settings.host}:{app_settings.port}")
    print(f"📊 API: http://localhost:{app_settings.port}/api/v1/emisores")
    uvicorn.run(
        app,
        host=app_settings.host,
        port=app_settings.port,
        log_level=app_settings.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips=app_settings.forwarded_allow_ips,
    )


if __name__ == "__main__":
    main()
