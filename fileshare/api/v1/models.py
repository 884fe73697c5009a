"""
API Models for request/response validation and Swagger documentation

Models are standalone and registered on the namespaces that use them.
"""

from flask_restx import Model, fields, reqparse
from werkzeug.datastructures import FileStorage

# =============================================================================
# Request Models
# =============================================================================

upload_parser = reqparse.RequestParser()
upload_parser.add_argument(
    "file", location="files", type=FileStorage, required=True, help="File to share"
)
upload_parser.add_argument(
    "expiry_hours", location="form", type=int, help="Hours until expiry (1-168, default 24)"
)
upload_parser.add_argument(
    "max_downloads", location="form", type=int, help="Download cap (default 100)"
)
upload_parser.add_argument(
    "sender_email", location="form", type=str, help="Address for the upload confirmation"
)
upload_parser.add_argument(
    "receiver_email", location="form", type=str, help="Address the link is sent to"
)

email_request = Model(
    "EmailRequest",
    {
        "recipient_email": fields.String(
            required=True, description="Recipient address", example="friend@example.com"
        ),
        "sender_email": fields.String(
            required=False, description="Address shown as the sender"
        ),
    },
)

scheduler_request = Model(
    "SchedulerRequest",
    {
        "action": fields.String(
            required=True, description="Scheduler transition", enum=["start", "stop"]
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

file_model = Model(
    "File",
    {
        "id": fields.String(description="Opaque file identifier"),
        "original_name": fields.String(description="Name the file was uploaded with"),
        "mime_type": fields.String(description="Content type"),
        "file_size": fields.Integer(description="Size in bytes"),
        "file_size_formatted": fields.String(description="Human readable size"),
        "created_at": fields.String(description="Upload time (ISO timestamp)"),
        "expires_at": fields.String(description="Expiry time (ISO timestamp)"),
        "time_remaining": fields.Integer(description="Seconds until expiry, 0 when expired"),
        "download_count": fields.Integer(description="Successful downloads so far"),
        "max_downloads": fields.Integer(description="Download cap"),
        "is_expired": fields.Boolean(description="Whether the file has expired"),
        "status": fields.String(
            description="Availability", enum=["available", "expired", "limit_reached"]
        ),
        "download_url": fields.String(description="Share link"),
    },
)

pagination_model = Model(
    "Pagination",
    {
        "current_page": fields.Integer,
        "page_size": fields.Integer,
        "total_pages": fields.Integer,
        "total_files": fields.Integer,
        "has_next": fields.Boolean,
        "has_prev": fields.Boolean,
    },
)

file_list_response = Model(
    "FileList",
    {
        "files": fields.List(fields.Nested(file_model)),
        "pagination": fields.Nested(pagination_model),
    },
)

sweep_stats_model = Model(
    "SweepStats",
    {
        "examined": fields.Integer(description="Expired records examined"),
        "deleted": fields.Integer(description="Records deleted"),
        "failed": fields.Integer(description="Records that failed and remain"),
        "errors": fields.List(fields.String),
    },
)

reconcile_stats_model = Model(
    "ReconcileStats",
    {
        "found": fields.Integer(description="Orphaned blobs found"),
        "deleted": fields.Integer(description="Orphaned blobs deleted"),
        "failed": fields.Integer(description="Orphaned blobs that could not be deleted"),
        "partials_removed": fields.Integer(description="Stale partial uploads removed"),
        "errors": fields.List(fields.String),
    },
)

preferences_model = Model(
    "Preferences",
    {
        "default_expiry_hours": fields.Integer(
            description="Expiry used when an upload names none", min=1, max=168
        ),
        "email_notifications": fields.Boolean(description="Send upload confirmations"),
    },
)

upload_stats_model = Model(
    "UploadStats",
    {
        "total_files": fields.Integer(description="Files uploaded"),
        "total_size": fields.Integer(description="Bytes uploaded"),
        "total_downloads": fields.Integer(description="Downloads of this user's files"),
    },
)

account_model = Model(
    "Account",
    {
        "user_id": fields.String,
        "username": fields.String,
        "email": fields.String,
        "upload_stats": fields.Nested(upload_stats_model),
        "preferences": fields.Nested(preferences_model),
    },
)

error_response = Model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short title"),
        "message": fields.String(description="User-facing message"),
        "action": fields.String(description="Suggested next step"),
    },
)

FILES_MODELS = (
    email_request,
    file_model,
    pagination_model,
    file_list_response,
    error_response,
)

MAINTENANCE_MODELS = (
    scheduler_request,
    sweep_stats_model,
    reconcile_stats_model,
    error_response,
)

ACCOUNT_MODELS = (
    preferences_model,
    upload_stats_model,
    account_model,
    error_response,
)
