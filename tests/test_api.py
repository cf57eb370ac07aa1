"""
Tests for the HTTP API.

Covers the full submit → poll → download lifecycle against a scripted
DashScope, plus the validation, rate-limit and configuration failures that
must never reach the remote service.
"""

import os

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import VIDEO_BYTES

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _text_form(**overrides):
    form = {
        "textPrompt": "a cat walking on a beach",
        "duration": "5",
        "resolution": "720p",
        "audio": "true",
        "promptExtend": "true",
        "watermark": "false",
    }
    form.update(overrides)
    return form


class TestHealth:
    def test_health_reports_configuration_and_pricing(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["apiKeyConfigured"] is True
        assert body["pricing"]["resolution"]["1080p"] == 0.05
        assert body["pricing"]["audio"]["enabled"] == 0.01

    def test_health_without_key(self, app, client):
        app.state.settings.DASHSCOPE_API_KEY = ""
        assert client.get("/api/health").json()["apiKeyConfigured"] is False


class TestGenerateVideo:
    def test_text_submission_builds_text_payload(self, client, dashscope):
        response = client.post("/api/generate-video", data=_text_form())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["taskId"] == "task-0001"
        assert "created successfully" in body["message"]

        assert len(dashscope.submissions) == 1
        payload = dashscope.submissions[0]
        assert payload["model"] == "wan2.5-t2v-preview"
        assert payload["input"] == {"prompt": "a cat walking on a beach"}
        assert payload["parameters"]["size"] == "1280*720"
        assert payload["parameters"]["duration"] == 5
        assert payload["parameters"]["audio"] is True
        assert payload["parameters"]["watermark"] is False

        headers = dashscope.submit_headers[0]
        assert headers["Authorization"] == "Bearer sk-test"
        assert headers["X-DashScope-Async"] == "enable"

    def test_negative_prompt_is_forwarded_when_present(self, client, dashscope):
        client.post("/api/generate-video", data=_text_form(negativePrompt="blurry, low quality"))

        assert dashscope.submissions[0]["input"]["negative_prompt"] == "blurry, low quality"

    def test_empty_negative_prompt_is_omitted(self, client, dashscope):
        client.post("/api/generate-video", data=_text_form(negativePrompt=""))

        assert "negative_prompt" not in dashscope.submissions[0]["input"]

    def test_image_submission_uses_image_payload(self, client, dashscope, settings):
        response = client.post(
            "/api/generate-video",
            data={"prompt": "the penguin waves", "duration": "10", "resolution": "720p", "audio": "false"},
            files={"image": ("penguin.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["taskId"] == "task-0001"
        assert len(dashscope.submissions) == 1

        payload = dashscope.submissions[0]
        assert payload["model"] == "wan2.5-i2v-preview"
        assert payload["input"]["img_url"].startswith("data:image/png;base64,")
        assert payload["input"]["prompt"] == "the penguin waves"
        assert payload["parameters"]["resolution"] == "720P"
        assert payload["parameters"]["duration"] == 10
        assert payload["parameters"]["audio"] is False
        assert "size" not in payload["parameters"]

        stored = os.listdir(settings.UPLOAD_DIR)
        assert len(stored) == 1
        assert stored[0].endswith("-penguin.png")

    def test_image_submission_without_prompt_uses_default(self, client, dashscope):
        client.post(
            "/api/generate-video",
            files={"image": ("penguin.jpg", PNG_BYTES, "image/jpeg")},
        )

        payload = dashscope.submissions[0]
        assert payload["input"]["prompt"].startswith("A beautiful scene")
        assert payload["input"]["img_url"].startswith("data:image/jpeg;base64,")

    def test_missing_image_and_prompt_is_rejected_without_remote_call(self, client, dashscope):
        response = client.post("/api/generate-video", data={"duration": "5"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "No text prompt provided for text-to-video mode.",
        }
        assert dashscope.total_calls == 0

    def test_whitespace_prompt_is_rejected(self, client, dashscope):
        response = client.post("/api/generate-video", data=_text_form(textPrompt="   "))

        assert response.status_code == 400
        assert dashscope.total_calls == 0

    def test_non_image_upload_is_rejected(self, client, dashscope):
        response = client.post(
            "/api/generate-video",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Only image files are allowed!"
        assert dashscope.total_calls == 0

    def test_oversized_upload_is_rejected(self, app, client, dashscope):
        app.state.settings.MAX_FILE_SIZE = 16
        response = client.post(
            "/api/generate-video",
            files={"image": ("big.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("File too large")
        assert dashscope.total_calls == 0

    @pytest.mark.parametrize(
        "field,value",
        [("audio", "maybe"), ("watermark", "yes please"), ("duration", "7"), ("resolution", "4k")],
    )
    def test_malformed_fields_are_rejected(self, client, dashscope, field, value):
        response = client.post("/api/generate-video", data=_text_form(**{field: value}))

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert dashscope.total_calls == 0

    def test_missing_api_key_is_rejected_locally(self, app, client, dashscope):
        app.state.settings.DASHSCOPE_API_KEY = ""
        response = client.post("/api/generate-video", data=_text_form())

        assert response.status_code == 400
        assert "DASHSCOPE_API_KEY" in response.json()["error"]
        assert dashscope.total_calls == 0

    def test_rate_limit_rejects_third_request(self, client, dashscope):
        assert client.post("/api/generate-video", data=_text_form()).status_code == 200
        assert client.post("/api/generate-video", data=_text_form()).status_code == 200

        response = client.post("/api/generate-video", data=_text_form())

        assert response.status_code == 429
        assert response.json()["error"].startswith("Too many requests")
        assert len(dashscope.submissions) == 2

    def test_rejected_submissions_do_not_use_rate_limit(self, client, dashscope):
        for _ in range(3):
            client.post("/api/generate-video", data={"textPrompt": ""})

        assert client.post("/api/generate-video", data=_text_form()).status_code == 200

    @pytest.mark.parametrize(
        "status_code,body,expected",
        [
            (401, {"code": "InvalidApiKey"}, "API key authentication failed - please check your API key."),
            (429, {"code": "Throttling"}, "Too many requests - please wait a moment before trying again."),
            (400, {"code": "InvalidParameter", "message": "size is not supported"}, "size is not supported"),
        ],
    )
    def test_upstream_errors_are_translated(self, client, dashscope, status_code, body, expected):
        dashscope.submit_response = httpx.Response(status_code, json=body)

        response = client.post("/api/generate-video", data=_text_form())

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": expected}
        assert len(dashscope.submissions) == 1

    def test_response_without_task_id_is_protocol_error(self, client, dashscope):
        dashscope.submit_response = httpx.Response(200, json={"request_id": "req-1"})

        response = client.post("/api/generate-video", data=_text_form())

        assert response.status_code == 500
        assert response.json()["error"] == "Invalid API response format"

    def test_framework_validation_errors_use_error_shape(self, client, dashscope):
        response = client.post("/api/generate-video", data=_text_form(image="not-a-file"))

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid image")
        assert dashscope.total_calls == 0


class TestStatusAndDownload:
    def test_lifecycle_pending_running_succeeded(self, client, dashscope):
        task_id = client.post("/api/generate-video", data=_text_form()).json()["taskId"]
        dashscope.statuses[task_id] = ["PENDING", "RUNNING", "SUCCEEDED"]

        pending = client.get(f"/api/video-status/{task_id}").json()
        running = client.get(f"/api/video-status/{task_id}").json()
        done = client.get(f"/api/video-status/{task_id}").json()

        assert pending == {
            "success": True,
            "status": "PENDING",
            "progress": 10,
            "message": "Video generation pending...",
        }
        assert running["status"] == "RUNNING"
        assert running["progress"] == 50
        assert done["status"] == "SUCCEEDED"
        assert done["progress"] == 100
        assert done["videoUrl"] == f"/api/download/{task_id}"

        response = client.get(f"/api/download/{task_id}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "video/mp4"
        assert f"penguin-video-{task_id}.mp4" in response.headers["content-disposition"]
        assert response.content == VIDEO_BYTES

    def test_repeated_success_polls_download_once(self, client, dashscope):
        task_id = client.post("/api/generate-video", data=_text_form()).json()["taskId"]
        dashscope.statuses[task_id] = ["SUCCEEDED"]

        for _ in range(3):
            assert client.get(f"/api/video-status/{task_id}").json()["status"] == "SUCCEEDED"

        assert dashscope.video_fetches == 1
        assert client.get(f"/api/download/{task_id}").content == VIDEO_BYTES
        assert client.get(f"/api/download/{task_id}").content == VIDEO_BYTES
        assert dashscope.video_fetches == 1

    def test_status_never_regresses(self, client, dashscope):
        task_id = client.post("/api/generate-video", data=_text_form()).json()["taskId"]
        dashscope.statuses[task_id] = ["RUNNING", "PENDING", "RUNNING"]

        seen = [client.get(f"/api/video-status/{task_id}").json()["status"] for _ in range(3)]

        assert seen == ["RUNNING", "RUNNING", "RUNNING"]

    def test_failed_task_passes_remote_message(self, client, dashscope):
        task_id = client.post("/api/generate-video", data=_text_form()).json()["taskId"]
        dashscope.statuses[task_id] = ["FAILED"]

        response = client.get(f"/api/video-status/{task_id}")

        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "status": "FAILED",
            "error": "Content moderation rejected the input",
        }
        assert client.get(f"/api/download/{task_id}").status_code == 404

    def test_status_of_unregistered_task_is_proxied(self, client, dashscope):
        dashscope.statuses["from-before-restart"] = ["RUNNING"]

        body = client.get("/api/video-status/from-before-restart").json()

        assert body["status"] == "RUNNING"
        assert dashscope.status_calls == 1

    def test_polling_unregistered_ids_does_not_grow_registry(self, app, client, dashscope):
        for i in range(50):
            assert client.get(f"/api/video-status/bogus-{i}").status_code == 200

        assert len(app.state.registry) == 0
        assert dashscope.status_calls == 50

    def test_unknown_is_reported_for_pending_task(self, client, dashscope):
        task_id = client.post("/api/generate-video", data=_text_form()).json()["taskId"]
        dashscope.statuses[task_id] = ["UNKNOWN"]

        body = client.get(f"/api/video-status/{task_id}").json()

        assert body == {
            "success": True,
            "status": "UNKNOWN",
            "progress": 0,
            "message": "Video generation unknown...",
        }

    def test_unknown_is_reported_after_running(self, client, dashscope):
        task_id = client.post("/api/generate-video", data=_text_form()).json()["taskId"]
        dashscope.statuses[task_id] = ["RUNNING", "UNKNOWN"]

        seen = [client.get(f"/api/video-status/{task_id}").json() for _ in range(3)]

        assert [(s["status"], s["progress"]) for s in seen] == [
            ("RUNNING", 50),
            ("UNKNOWN", 0),
            ("UNKNOWN", 0),
        ]

    def test_unknown_does_not_hide_a_finished_task(self, client, dashscope):
        task_id = client.post("/api/generate-video", data=_text_form()).json()["taskId"]
        dashscope.statuses[task_id] = ["FAILED", "UNKNOWN"]

        client.get(f"/api/video-status/{task_id}")
        body = client.get(f"/api/video-status/{task_id}").json()

        assert body["status"] == "FAILED"
        assert body["success"] is False

    def test_status_upstream_auth_failure(self, client, dashscope):
        dashscope.status_response = httpx.Response(401, json={"message": "Invalid API-key provided."})

        response = client.get("/api/video-status/task-0001")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Invalid API-key provided."}

    def test_status_requires_api_key(self, app, client, dashscope):
        app.state.settings.DASHSCOPE_API_KEY = ""

        response = client.get("/api/video-status/task-0001")

        assert response.status_code == 400
        assert dashscope.total_calls == 0

    def test_status_rejects_unsafe_task_id(self, client, dashscope):
        response = client.get("/api/video-status/bad.id")

        assert response.status_code == 400
        assert dashscope.total_calls == 0

    def test_download_missing_file_is_404(self, client):
        response = client.get("/api/download/task-9999")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Video file not found"}


class TestEstimate:
    def test_estimate_defaults(self, client):
        body = client.get("/api/estimate").json()

        assert body["duration"] == 5
        assert body["resolution"] == "1080p"
        assert body["perSecond"] == 0.06
        assert body["total"] == 0.3

    def test_estimate_rejects_unknown_resolution(self, client):
        assert client.get("/api/estimate", params={"resolution": "8k"}).status_code == 400
