"""
API Namespaces - Organized endpoint groups
"""

from flask import current_app, request, send_file
from flask_restx import Namespace, Resource
from werkzeug.exceptions import RequestEntityTooLarge

from fileshare.api.identity import current_user_id, login_required, requester_ip
from fileshare.api.validation import check_mime_type, clean_email
from fileshare.api.v1.models import (
    ACCOUNT_MODELS,
    FILES_MODELS,
    MAINTENANCE_MODELS,
    account_model,
    email_request,
    error_response,
    file_list_response,
    file_model,
    preferences_model,
    reconcile_stats_model,
    scheduler_request,
    sweep_stats_model,
    upload_parser,
)
from fileshare.application.file_service import FileService
from fileshare.config.storage_config import DEFAULT_ALLOWED_MIME_TYPES
from fileshare.domain.errors import (
    ApplicationError,
    ErrorCategory,
    FileGoneError,
    FileRecordNotFoundError,
    ForbiddenError,
    InvalidConfigurationError,
    StorageInconsistencyError,
    TransientIOError,
    category_for_gone,
    create_error_response,
)
from fileshare.domain.file_storage import FileRecord, RequesterInfo, UploadMetadata, lifecycle

APPLICATION_ERROR_STATUS = {
    ErrorCategory.EMAIL_FAILED: 502,
    ErrorCategory.INVALID_REQUEST: 400,
    ErrorCategory.INVALID_EMAIL: 400,
    ErrorCategory.FILE_TYPE_NOT_ALLOWED: 400,
    ErrorCategory.UNAUTHORIZED: 401,
    ErrorCategory.FORBIDDEN: 403,
}


def _file_service() -> FileService:
    return current_app.container.resolve(FileService)


def _serialize(record: FileRecord, service: FileService) -> dict:
    now = service.clock()
    return {
        "id": record.file_id,
        "original_name": record.original_name,
        "mime_type": record.mime_type,
        "file_size": record.file_size,
        "file_size_formatted": record.file_size_formatted,
        "created_at": record.created_at.isoformat(),
        "expires_at": record.expires_at.isoformat(),
        "time_remaining": int(lifecycle.time_remaining(record, now).total_seconds()),
        "download_count": record.download_count,
        "max_downloads": record.max_downloads,
        "is_expired": lifecycle.is_expired(record, now),
        "status": lifecycle.availability(record, now).value,
        "download_url": service.share_link(record).download_url,
    }


def _error_response(error: Exception):
    """Map a domain or application error to an HTTP error response."""
    if isinstance(error, FileRecordNotFoundError):
        return create_error_response(ErrorCategory.FILE_NOT_FOUND, str(error), status_code=404)
    if isinstance(error, FileGoneError):
        return create_error_response(category_for_gone(error), str(error), status_code=410)
    if isinstance(error, ForbiddenError):
        return create_error_response(ErrorCategory.FORBIDDEN, str(error), status_code=403)
    if isinstance(error, InvalidConfigurationError):
        return create_error_response(ErrorCategory.INVALID_EXPIRY, str(error), status_code=400)
    if isinstance(error, StorageInconsistencyError):
        current_app.logger.error(f"Storage inconsistency: {error}")
        return create_error_response(
            ErrorCategory.STORAGE_INCONSISTENCY, str(error), status_code=500
        )
    if isinstance(error, TransientIOError):
        current_app.logger.error(f"Transient storage failure: {error}")
        return create_error_response(ErrorCategory.SYSTEM_ERROR, str(error), status_code=503)
    if isinstance(error, ApplicationError):
        return create_error_response(
            error.category,
            error.technical_message,
            status_code=APPLICATION_ERROR_STATUS.get(error.category, 500),
        )

    current_app.logger.exception(f"Unexpected error: {error}")
    return create_error_response(
        ErrorCategory.SYSTEM_ERROR, f"Internal server error: {error}", status_code=500
    )


def _optional_int_field(name: str):
    """
    Read an optional integer form field.

    Raises:
        ValueError: If the field is present but not an integer
    """
    raw = request.form.get(name, "").strip()
    if not raw:
        return None
    return int(raw)


# =============================================================================
# Files Namespace - Upload, share and download
# =============================================================================

files_ns = Namespace("files", description="Shared file operations")
for _model in FILES_MODELS:
    files_ns.add_model(_model.name, _model)


@files_ns.route("/")
class FileCollection(Resource):
    """Upload files and list the caller's uploads"""

    @files_ns.doc("upload_file")
    @files_ns.expect(upload_parser)
    @files_ns.response(201, "Created", file_model)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(413, "File Too Large", error_response)
    def post(self):
        """
        Upload a file and get a share link

        Anonymous uploads are allowed; signed-in uploads appear on the
        owner's dashboard and use the owner's default expiry.
        """
        try:
            upload = request.files.get("file")
        except RequestEntityTooLarge as e:
            return create_error_response(ErrorCategory.FILE_TOO_LARGE, str(e), status_code=413)

        if upload is None or not upload.filename:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "No file uploaded", status_code=400
            )

        try:
            expiry_hours = _optional_int_field("expiry_hours")
        except ValueError:
            return create_error_response(
                ErrorCategory.INVALID_EXPIRY, "expiry_hours must be an integer", status_code=400
            )
        try:
            max_downloads = _optional_int_field("max_downloads")
        except ValueError:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "max_downloads must be an integer", status_code=400
            )

        if max_downloads is None:
            max_downloads = current_app.config.get("DEFAULT_MAX_DOWNLOADS", 100)

        allowed = current_app.config.get("ALLOWED_MIME_TYPES", DEFAULT_ALLOWED_MIME_TYPES)
        try:
            metadata = UploadMetadata(
                original_name=upload.filename,
                mime_type=check_mime_type(upload.mimetype, allowed),
                owner_id=current_user_id(),
                max_downloads=max_downloads,
                sender_email=clean_email(request.form.get("sender_email"), "sender_email"),
                receiver_email=clean_email(request.form.get("receiver_email"), "receiver_email"),
            )
        except ApplicationError as e:
            return _error_response(e)
        except InvalidConfigurationError as e:
            return create_error_response(ErrorCategory.INVALID_REQUEST, str(e), status_code=400)

        try:
            service = _file_service()
            record = service.upload_file(upload.stream, metadata, expiry_hours)
            current_app.logger.info(f"[FILES_V1] Uploaded {record.file_id}")
            return _serialize(record, service), 201
        except Exception as e:
            return _error_response(e)

    @files_ns.doc("list_files")
    @files_ns.param("page", "Page number (default 1)")
    @files_ns.param("page_size", "Files per page (default 10, max 100)")
    @files_ns.response(200, "Success", file_list_response)
    @files_ns.response(401, "Login Required", error_response)
    @login_required
    def get(self):
        """
        List the caller's uploads, newest first
        """
        try:
            page = int(request.args.get("page", 1))
            page_size = int(request.args.get("page_size", 10))
        except ValueError:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "page and page_size must be integers", status_code=400
            )

        try:
            service = _file_service()
            result = service.list_user_files(current_user_id(), page, page_size)
            return {
                "files": [_serialize(record, service) for record in result.items],
                "pagination": result.pagination_dict(),
            }, 200
        except Exception as e:
            return _error_response(e)


@files_ns.route("/<string:file_id>")
@files_ns.param("file_id", "The file identifier")
class FileItem(Resource):
    """Inspect or delete one file"""

    @files_ns.doc("get_file_info")
    @files_ns.response(200, "Success", file_model)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(410, "File Expired or Download Limit Reached", error_response)
    def get(self, file_id):
        """
        Get file details for the download page
        """
        try:
            service = _file_service()
            record = service.get_file_info(file_id)
            return _serialize(record, service), 200
        except Exception as e:
            return _error_response(e)

    @files_ns.doc("delete_file")
    @files_ns.response(204, "File deleted")
    @files_ns.response(403, "Forbidden", error_response)
    @files_ns.response(404, "File Not Found", error_response)
    def delete(self, file_id):
        """
        Delete a file

        Files with an owner can only be deleted by that owner.
        """
        try:
            _file_service().delete_file(file_id, current_user_id())
            return "", 204
        except Exception as e:
            return _error_response(e)


@files_ns.route("/<string:file_id>/download")
@files_ns.param("file_id", "The file identifier")
class FileDownloadResource(Resource):
    """Download file content"""

    @files_ns.doc("download_file")
    @files_ns.response(200, "File content")
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(410, "File Expired or Download Limit Reached", error_response)
    @files_ns.response(500, "Storage Inconsistency", error_response)
    def get(self, file_id):
        """
        Download a file and count the download
        """
        requester = RequesterInfo(
            ip_address=requester_ip(),
            user_agent=request.headers.get("User-Agent"),
        )

        try:
            download = _file_service().download_file(file_id, requester)
        except Exception as e:
            return _error_response(e)

        record = download.record
        current_app.logger.info(
            f"[FILES_V1] Serving {file_id} ({record.download_count}/{record.max_downloads})"
        )
        response = send_file(
            download.stream,
            mimetype=record.mime_type,
            as_attachment=True,
            download_name=record.original_name,
        )
        response.headers["X-Download-Count"] = str(record.download_count)
        return response


@files_ns.route("/<string:file_id>/email")
@files_ns.param("file_id", "The file identifier")
class FileEmail(Resource):
    """Email a share link"""

    @files_ns.doc("send_file_link")
    @files_ns.expect(email_request, validate=True)
    @files_ns.response(200, "Email sent")
    @files_ns.response(400, "Invalid Email", error_response)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(410, "File Expired", error_response)
    @files_ns.response(502, "Email Not Sent", error_response)
    def post(self, file_id):
        """
        Send the share link to a recipient
        """
        data = request.get_json() or {}
        try:
            recipient = clean_email(data.get("recipient_email"), "recipient_email")
            sender = clean_email(data.get("sender_email"), "sender_email")
        except ApplicationError as e:
            return _error_response(e)
        if recipient is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Missing 'recipient_email'", status_code=400
            )

        try:
            _file_service().send_file_link(file_id, recipient, sender)
            return {"message": "Email sent successfully", "recipient_email": recipient}, 200
        except Exception as e:
            return _error_response(e)


# =============================================================================
# Maintenance Namespace - Sweep, reconcile and statistics
# =============================================================================

maintenance_ns = Namespace("maintenance", description="Storage maintenance operations")
for _model in MAINTENANCE_MODELS:
    maintenance_ns.add_model(_model.name, _model)


@maintenance_ns.route("/sweep")
class Sweep(Resource):
    @maintenance_ns.doc("run_sweep")
    @maintenance_ns.response(200, "Success", sweep_stats_model)
    def post(self):
        """
        Run one expired-file sweep pass now
        """
        try:
            return _file_service().run_sweep_once().to_dict(), 200
        except Exception as e:
            return _error_response(e)


@maintenance_ns.route("/reconcile")
class Reconcile(Resource):
    @maintenance_ns.doc("reconcile_orphans")
    @maintenance_ns.response(200, "Success", reconcile_stats_model)
    def post(self):
        """
        Delete blobs that no file record references
        """
        try:
            return _file_service().reconcile_orphans().to_dict(), 200
        except Exception as e:
            return _error_response(e)


@maintenance_ns.route("/scheduler")
class Scheduler(Resource):
    @maintenance_ns.doc("control_scheduler")
    @maintenance_ns.expect(scheduler_request, validate=True)
    @maintenance_ns.response(200, "Success")
    @maintenance_ns.response(400, "Bad Request", error_response)
    def post(self):
        """
        Start or stop the in-process sweep scheduler

        Returns whether the call changed state; starting a running scheduler
        or stopping an idle one is a no-op.
        """
        action = (request.get_json() or {}).get("action")
        service = _file_service()

        if action == "start":
            changed = service.start_sweeping()
        elif action == "stop":
            changed = service.stop_sweeping()
        else:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, f"Unknown action: {action!r}", status_code=400
            )

        return {"changed": changed, "state": service.scheduler.state.value}, 200


@maintenance_ns.route("/stats")
class Stats(Resource):
    @maintenance_ns.doc("storage_stats")
    @maintenance_ns.response(200, "Success")
    def get(self):
        """
        File, disk and scheduler statistics
        """
        try:
            return _file_service().get_storage_stats(), 200
        except Exception as e:
            return _error_response(e)


# =============================================================================
# Account Namespace - Upload statistics and preferences
# =============================================================================

account_ns = Namespace("account", description="Caller's account")
for _model in ACCOUNT_MODELS:
    account_ns.add_model(_model.name, _model)


@account_ns.route("/")
class Account(Resource):
    @account_ns.doc("get_account")
    @account_ns.response(200, "Success", account_model)
    @account_ns.response(401, "Login Required", error_response)
    @login_required
    def get(self):
        """
        Upload statistics and preferences of the caller
        """
        try:
            return _file_service().get_account(current_user_id()).to_dict(), 200
        except Exception as e:
            return _error_response(e)


@account_ns.route("/preferences")
class Preferences(Resource):
    @account_ns.doc("update_preferences")
    @account_ns.expect(preferences_model, validate=True)
    @account_ns.response(200, "Success", account_model)
    @account_ns.response(400, "Bad Request", error_response)
    @account_ns.response(401, "Login Required", error_response)
    @login_required
    def put(self):
        """
        Change the caller's upload defaults

        Omitted fields keep their current value.
        """
        payload = request.get_json() or {}
        try:
            account = _file_service().update_preferences(
                current_user_id(),
                default_expiry_hours=payload.get("default_expiry_hours"),
                email_notifications=payload.get("email_notifications"),
            )
            return account.to_dict(), 200
        except Exception as e:
            return _error_response(e)
