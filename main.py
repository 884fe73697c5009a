"""
main.py

Flask backend for the FileShare service: expiring share links over a
local blob store with Redis metadata and Celery maintenance tasks.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, celery, sendgrid
  - Infrastructure: Redis server

Notes:
  - API v1 endpoints at /api/v1/ with Swagger docs at /api/v1/docs
  - Expired files are swept by Celery beat, or in-process with SWEEP_MODE=inprocess
"""

import os

from app_factory import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    # The reloader would start a second in-process sweeper
    app.run(host=host, port=port, debug=debug, use_reloader=False)
