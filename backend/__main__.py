"""
Lancement du backend en ligne de commande.

Usage:
    python -m backend            # sert l'API (uvicorn, backend.asgi:app)
    python -m backend init-db    # crée les tables products/carts/orders puis quitte

Variables lues: PORT (8000), HOST (0.0.0.0), UVICORN_RELOAD ("1"/"true"/"yes"),
LOG_LEVEL (niveau uvicorn), DATABASE_URL (voir backend.config).
"""
import logging
import os
import sys

import uvicorn


def _init_db() -> None:
    from backend.config import DATABASE_ECHO, DATABASE_URL
    from backend.infra.database import close_database, init_database

    logging.basicConfig(level=logging.INFO)
    db = init_database(DATABASE_URL, echo=DATABASE_ECHO, create_tables=True)
    logging.getLogger(__name__).info("Tables créées (%s)", db.engine.dialect.name)
    close_database()


def _serve() -> None:
    uvicorn.run(
        "backend.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    if sys.argv[1:] == ["init-db"]:
        _init_db()
    else:
        _serve()
