"""
ASGI entrypoint: expose `app` pour les process managers.

- En production: `gunicorn -k uvicorn.workers.UvicornWorker backend.asgi:app` (plusieurs workers:
  la cohérence du stock repose sur les transactions de la base, pas sur le process).
- Toute la configuration FastAPI est centralisée dans backend.app_setup.factory.
"""

from backend.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "backend.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
