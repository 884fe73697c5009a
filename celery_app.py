"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory to ensure all services are properly initialized.
"""

from app_factory import create_app

# Flask app with all services initialized (including dependency container).
# Workers never run the in-process sweeper, whatever SWEEP_MODE says.
flask_app = create_app(start_sweeper=False)

celery_app = flask_app.celery

# Task modules are imported by name when the worker starts, after
# `celery_app` exists, so the task decorators can use it.
celery_app.conf.imports = ("fileshare.tasks.cleanup_task",)
