import requests

from app.services.worker_client import WorkerClient

APP = "http://app.test"

def make_client():
    return WorkerClient(app_url=APP, secret="s3cret", poll_interval_s=0)

def test_trigger_single_dispatch(requests_mock):
    requests_mock.post(f"{APP}/api/workers", json={"message": "Job completed", "jobId": 4, "result": {"ok": True}})

    out = make_client().trigger()

    assert out == {"success": True, "message": "Job completed", "jobId": 4, "result": {"ok": True}}
    assert requests_mock.last_request.headers["Authorization"] == "Bearer s3cret"

def test_trigger_reports_endpoint_error(requests_mock):
    requests_mock.post(f"{APP}/api/workers", status_code=500, json={"error": "Worker processing failed"})

    out = make_client().trigger()

    assert out["success"] is False
    assert out["message"] == "Worker processing failed"

def test_trigger_unreachable(requests_mock):
    requests_mock.post(f"{APP}/api/workers", exc=requests.ConnectionError("refused"))

    out = make_client().trigger()

    assert out["success"] is False
    assert out["message"].startswith("Failed to trigger worker")

def test_wait_until_job_completes(requests_mock):
    requests_mock.post(f"{APP}/api/workers", json={"message": "No jobs to process", "processed": False})
    requests_mock.get(f"{APP}/api/jobs/9", [
        {"json": {"id": 9, "status": "processing"}},
        {"json": {"id": 9, "status": "completed", "result": {"text": "done"}}},
    ])

    out = make_client().trigger(wait_for_job_id=9, user_id="user-1")

    assert out == {"success": True, "message": "Job completed successfully", "jobId": 9, "result": {"text": "done"}}
    assert requests_mock.request_history[-1].headers["X-User-Id"] == "user-1"

def test_wait_reports_failed_job(requests_mock):
    requests_mock.post(f"{APP}/api/workers", json={})
    requests_mock.get(f"{APP}/api/jobs/9", json={"id": 9, "status": "failed", "error": "quota exceeded"})

    out = make_client().trigger(wait_for_job_id=9, user_id="user-1")

    assert out == {"success": False, "message": "Job failed: quota exceeded", "jobId": 9}

def test_wait_times_out(requests_mock):
    requests_mock.post(f"{APP}/api/workers", json={})
    requests_mock.get(f"{APP}/api/jobs/9", json={"id": 9, "status": "pending"})

    out = make_client().trigger(wait_for_job_id=9, timeout_s=0.01, user_id="user-1")

    assert out == {"success": False, "message": "Job processing timed out", "jobId": 9}
