"""
VR Benchmark API Server.

Deployment entry point: ``uvicorn server.main:app``.
"""

from vr_benchmark.config.settings import settings
from vr_benchmark.server.app import create_app

app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.SERVER_HOST, port=settings.SERVER_PORT)
