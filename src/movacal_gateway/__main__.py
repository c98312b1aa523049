"""
Point d'entrée pour `python -m movacal_gateway`.
"""
import argparse
import logging

import uvicorn


def main():
    """Fonction principale."""
    parser = argparse.ArgumentParser(description="Movacal Gateway (MCP, lecture seule)")
    parser.add_argument("--host", default="127.0.0.1", help="Host (défaut: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port (défaut: 8000)")
    parser.add_argument("--reload", action="store_true", help="Activer le reload auto")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Niveau de log (défaut: info)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"🚀 Démarrage de Movacal Gateway sur {args.host}:{args.port}")

    uvicorn.run(
        "movacal_gateway.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
