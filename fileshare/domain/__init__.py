"""
Domain layer.

Pure business logic for the expiring-file lifecycle. No Flask, Redis or
Celery imports live below this package.
"""
