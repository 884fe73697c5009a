"""
Configuration

Environment-driven settings for Redis, Celery, storage, mail and logging.
"""
