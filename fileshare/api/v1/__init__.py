"""
API v1 - FileShare REST API

Versioned endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

# Swagger UI at /api/v1/docs
api = Api(
    api_v1_bp,
    version="1.0",
    title="FileShare API",
    description="Upload files, share expiring download links and manage storage",
    doc="/docs",
)

from .namespaces import account_ns, files_ns, maintenance_ns  # noqa: E402

api.add_namespace(files_ns, path="/files")
api.add_namespace(maintenance_ns, path="/maintenance")
api.add_namespace(account_ns, path="/account")
