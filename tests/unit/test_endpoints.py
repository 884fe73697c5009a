"""
Unit tests for API REST endpoints.

The namespaces run on a bare Flask app whose container holds a FileService
wired to the in-memory repositories, or a Mock where only the error
mapping is under test.
"""

import io
from unittest.mock import Mock

import pytest
from flask import Flask
from flask_restx import Api

from fileshare.api.v1.namespaces import account_ns, files_ns, maintenance_ns
from fileshare.application.dependency_container import DependencyContainer
from fileshare.application.file_service import FileService
from fileshare.domain.errors import (
    ApplicationError,
    ErrorCategory,
    TransientIOError,
)

FILES = "/api/v1/files/"
ACCOUNT = "/api/v1/account/"


def build_app(service) -> Flask:
    app = Flask(__name__)
    app.config["TESTING"] = True

    api = Api(app, version="1.0", title="FileShare API", doc="/doc")
    api.add_namespace(files_ns, path="/api/v1/files")
    api.add_namespace(maintenance_ns, path="/api/v1/maintenance")
    api.add_namespace(account_ns, path="/api/v1/account")

    container = DependencyContainer()
    container.register_singleton(FileService, service)
    app.container = container
    return app


@pytest.fixture
def flask_app(file_service):
    return build_app(file_service)


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


def upload(client, content=b"hello", name="hello.txt", headers=None, **form):
    data = {"file": (io.BytesIO(content), name)}
    data.update({key: str(value) for key, value in form.items()})
    return client.post(FILES, data=data, content_type="multipart/form-data", headers=headers or {})


class TestUpload:
    def test_created(self, client):
        response = upload(client, expiry_hours=2, max_downloads=3)

        assert response.status_code == 201
        body = response.get_json()
        assert body["original_name"] == "hello.txt"
        assert body["file_size"] == 5
        assert body["max_downloads"] == 3
        assert body["download_count"] == 0
        assert body["time_remaining"] == 2 * 3600
        assert body["status"] == "available"
        assert body["download_url"] == f"https://share.example.com/download/{body['id']}"
        assert "storage_path" not in body

    def test_missing_file(self, client):
        response = client.post(
            FILES, data={"expiry_hours": "2"}, content_type="multipart/form-data"
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    @pytest.mark.parametrize("hours", ["0", "169", "abc"])
    def test_invalid_expiry(self, client, hours):
        response = upload(client, expiry_hours=hours)
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_expiry"

    def test_zero_max_downloads_rejected(self, client):
        response = upload(client, max_downloads=0)
        assert response.status_code == 400

    def test_too_large(self, flask_app, client):
        flask_app.config["MAX_CONTENT_LENGTH"] = 16
        response = upload(client, content=b"x" * 1024)
        assert response.status_code == 413

    def test_signed_in_upload_listed(self, client):
        upload(client, headers={"X-User-Id": "alice"}, name="a.txt")
        upload(client, headers={"X-User-Id": "bob"}, name="b.txt")

        response = client.get(FILES, headers={"X-User-Id": "alice"})

        assert response.status_code == 200
        body = response.get_json()
        assert [f["original_name"] for f in body["files"]] == ["a.txt"]
        assert body["pagination"]["total_files"] == 1

    def test_disallowed_type_rejected(self, client, blob_storage):
        data = {"file": (io.BytesIO(b"MZ"), "setup.exe", "application/x-msdownload")}

        response = client.post(FILES, data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json()["error"] == "file_type_not_allowed"
        assert blob_storage.blobs == {}

    def test_configured_types_replace_defaults(self, flask_app, client):
        flask_app.config["ALLOWED_MIME_TYPES"] = frozenset(["image/png"])

        assert upload(client, name="notes.txt").status_code == 400
        assert upload(client, name="chart.png").status_code == 201

    @pytest.mark.parametrize("field", ["sender_email", "receiver_email"])
    def test_malformed_email_rejected(self, client, record_repository, field):
        response = upload(client, **{field: "not-an-email"})

        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_email"
        assert record_repository.count() == 0

    def test_emails_normalized(self, client, record_repository):
        response = upload(client, receiver_email="Friend@EXAMPLE.com")

        record = record_repository.get(response.get_json()["id"])
        assert record.receiver_email == "Friend@example.com"


class TestList:
    def test_requires_login(self, client):
        response = client.get(FILES)
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthorized"

    def test_bad_paging(self, client):
        response = client.get(f"{FILES}?page=x", headers={"X-User-Id": "alice"})
        assert response.status_code == 400


class TestInfoAndDownload:
    def test_info(self, client):
        file_id = upload(client).get_json()["id"]

        response = client.get(f"{FILES}{file_id}")

        assert response.status_code == 200
        assert response.get_json()["id"] == file_id

    def test_unknown_is_404(self, client):
        response = client.get(f"{FILES}does-not-exist")
        assert response.status_code == 404
        assert response.get_json()["error"] == "file_not_found"

    def test_expired_is_410(self, client, clock):
        file_id = upload(client, expiry_hours=1).get_json()["id"]
        clock.advance(hours=1, minutes=1)

        response = client.get(f"{FILES}{file_id}")

        assert response.status_code == 410
        assert response.get_json()["error"] == "file_expired"

    def test_download(self, client, record_repository):
        file_id = upload(client, content=b"payload").get_json()["id"]

        response = client.get(
            f"{FILES}{file_id}/download",
            headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "tests/1.0"},
        )

        assert response.status_code == 200
        assert response.data == b"payload"
        assert response.headers["X-Download-Count"] == "1"
        assert "attachment" in response.headers["Content-Disposition"]
        entry = record_repository.get(file_id).access_log[0]
        assert entry.ip_address == "203.0.113.9"
        assert entry.user_agent == "tests/1.0"

    def test_download_limit_is_410(self, client):
        file_id = upload(client, max_downloads=1).get_json()["id"]
        client.get(f"{FILES}{file_id}/download").close()

        response = client.get(f"{FILES}{file_id}/download")

        assert response.status_code == 410
        assert response.get_json()["error"] == "download_limit_reached"

    def test_missing_blob_is_500(self, client, blob_storage):
        file_id = upload(client).get_json()["id"]
        blob_storage.blobs.clear()

        response = client.get(f"{FILES}{file_id}/download")

        assert response.status_code == 500
        assert response.get_json()["error"] == "storage_inconsistency"


class TestDelete:
    def test_owner_deletes(self, client):
        file_id = upload(client, headers={"X-User-Id": "alice"}).get_json()["id"]

        response = client.delete(f"{FILES}{file_id}", headers={"X-User-Id": "alice"})

        assert response.status_code == 204
        assert client.get(f"{FILES}{file_id}").status_code == 404

    def test_other_user_forbidden(self, client):
        file_id = upload(client, headers={"X-User-Id": "alice"}).get_json()["id"]

        response = client.delete(f"{FILES}{file_id}", headers={"X-User-Id": "bob"})

        assert response.status_code == 403
        assert client.get(f"{FILES}{file_id}").status_code == 200

    def test_second_delete_is_404(self, client):
        file_id = upload(client).get_json()["id"]
        client.delete(f"{FILES}{file_id}")
        assert client.delete(f"{FILES}{file_id}").status_code == 404


class TestEmail:
    def test_sends(self, client, notifier):
        file_id = upload(client).get_json()["id"]

        response = client.post(
            f"{FILES}{file_id}/email", json={"recipient_email": "friend@example.com"}
        )

        assert response.status_code == 200
        assert notifier.links[0][1] == "friend@example.com"

    def test_rejected_by_provider_is_502(self, client, notifier):
        notifier.accept = False
        file_id = upload(client).get_json()["id"]

        response = client.post(
            f"{FILES}{file_id}/email", json={"recipient_email": "friend@example.com"}
        )

        assert response.status_code == 502
        assert response.get_json()["error"] == "email_failed"

    def test_missing_recipient(self, client):
        file_id = upload(client).get_json()["id"]
        response = client.post(f"{FILES}{file_id}/email", json={})
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "payload",
        [
            {"recipient_email": "not-an-email"},
            {"recipient_email": "friend@example.com", "sender_email": "me@"},
        ],
    )
    def test_malformed_email_rejected(self, client, notifier, payload):
        file_id = upload(client).get_json()["id"]

        response = client.post(f"{FILES}{file_id}/email", json=payload)

        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_email"
        assert notifier.links == []


class TestMaintenance:
    def test_sweep(self, client, clock):
        upload(client, expiry_hours=1)
        clock.advance(hours=2)

        response = client.post("/api/v1/maintenance/sweep")

        assert response.status_code == 200
        assert response.get_json()["deleted"] == 1

    def test_reconcile(self, client, blob_storage):
        blob_storage.blobs["stray"] = b"x"

        response = client.post("/api/v1/maintenance/reconcile")

        assert response.get_json() == {
            "found": 1, "deleted": 1, "failed": 0, "partials_removed": 0, "errors": []
        }

    def test_scheduler_transitions(self, client):
        start = client.post("/api/v1/maintenance/scheduler", json={"action": "start"})
        again = client.post("/api/v1/maintenance/scheduler", json={"action": "start"})
        stop = client.post("/api/v1/maintenance/scheduler", json={"action": "stop"})

        assert start.get_json() == {"changed": True, "state": "running"}
        assert again.get_json() == {"changed": False, "state": "running"}
        assert stop.get_json() == {"changed": True, "state": "idle"}

    def test_scheduler_unknown_action(self, client):
        response = client.post("/api/v1/maintenance/scheduler", json={"action": "pause"})
        assert response.status_code == 400

    def test_stats(self, client):
        upload(client)
        response = client.get("/api/v1/maintenance/stats")

        body = response.get_json()
        assert response.status_code == 200
        assert body["files"]["total_files"] == 1
        assert body["scheduler"]["state"] == "idle"


class TestAccount:
    def test_requires_login(self, client):
        assert client.get(ACCOUNT).status_code == 401
        assert client.put(f"{ACCOUNT}preferences", json={}).status_code == 401

    def test_stats_after_uploads(self, client):
        upload(client, content=b"abcd", headers={"X-User-Id": "alice"})
        upload(client, content=b"ef", headers={"X-User-Id": "alice"})

        response = client.get(ACCOUNT, headers={"X-User-Id": "alice"})

        assert response.status_code == 200
        body = response.get_json()
        assert body["user_id"] == "alice"
        assert body["upload_stats"] == {"total_files": 2, "total_size": 6, "total_downloads": 0}
        assert body["preferences"] == {"default_expiry_hours": 24, "email_notifications": True}

    def test_update_preferences(self, client):
        response = client.put(
            f"{ACCOUNT}preferences",
            json={"default_expiry_hours": 6},
            headers={"X-User-Id": "alice"},
        )

        assert response.status_code == 200
        assert response.get_json()["preferences"] == {
            "default_expiry_hours": 6,
            "email_notifications": True,
        }
        created = upload(client, headers={"X-User-Id": "alice"}).get_json()
        assert created["time_remaining"] == 6 * 3600

    def test_out_of_range_expiry_rejected(self, client):
        response = client.put(
            f"{ACCOUNT}preferences",
            json={"default_expiry_hours": 500},
            headers={"X-User-Id": "alice"},
        )
        assert response.status_code == 400


class TestErrorMapping:
    def mock_app(self):
        service = Mock()
        return build_app(service).test_client(), service

    def test_transient_failure_is_503(self):
        client, service = self.mock_app()
        service.get_file_info.side_effect = TransientIOError("redis down")

        response = client.get(f"{FILES}abc")

        assert response.status_code == 503
        assert response.get_json()["error"] == "system_error"

    def test_unexpected_error_is_500(self):
        client, service = self.mock_app()
        service.run_sweep_once.side_effect = RuntimeError("bug")

        assert client.post("/api/v1/maintenance/sweep").status_code == 500

    def test_application_error_status(self):
        client, service = self.mock_app()
        service.send_file_link.side_effect = ApplicationError(ErrorCategory.EMAIL_FAILED, "x")

        response = client.post(f"{FILES}abc/email", json={"recipient_email": "friend@example.com"})

        assert response.status_code == 502
