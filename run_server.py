from __future__ import annotations

import argparse
import logging
import socket

from farmacia_precios.settings import Settings
from farmacia_precios.web_server import create_app


def _get_lan_ip() -> str:
    # Tries to infer the primary LAN IP by opening a UDP socket.
    # Does not send data.
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.connect(("8.8.8.8", 80))
            ip = s.getsockname()[0]
            if ip:
                return ip
        finally:
            s.close()
    except OSError:
        pass
    return "127.0.0.1"


def _ensure_port_free(host: str, port: int) -> bool:
    # Returns True if we can bind (port free), False otherwise.
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((host, port))
            return True
        finally:
            s.close()
    except OSError:
        return False


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Actualizador de precios - servidor web (LAN)")
    p.add_argument("--host", default="0.0.0.0", help="Bind host (use 0.0.0.0 for LAN)")
    p.add_argument("--port", type=int, default=8000, help="Port")
    p.add_argument("--debug", action="store_true", help="Flask debug mode")
    args = p.parse_args(argv)

    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not _ensure_port_free(args.host, args.port):
        print(f"El servidor ya está iniciado (o el puerto está ocupado): {args.host}:{args.port}")
        return 2

    app = create_app(settings)

    lan_ip = _get_lan_ip() if args.host in ("0.0.0.0", "::") else args.host
    print(
        "Servidor iniciado.\n\n"
        f"API: http://{lan_ip}:{args.port}/api/\n"
        f"(Prueba rápida: http://{lan_ip}:{args.port}/health)"
    )

    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
