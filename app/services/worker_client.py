import time
from typing import Any, Dict, Optional

import requests
import structlog

from app.config import APP_URL, HTTP_CONNECT_TIMEOUT_S, HTTP_READ_TIMEOUT_S, WORKER_SECRET

logger = structlog.get_logger()

class WorkerClient:
    """Pokes the worker endpoint outside the beat schedule (local development, scripts)."""

    def __init__(self, app_url: str = APP_URL, secret: str = WORKER_SECRET, poll_interval_s: float = 2.0):
        self.url = app_url.rstrip("/") + "/api/workers"
        self.jobs_url = app_url.rstrip("/") + "/api/jobs"
        self.secret = secret
        self.poll_interval_s = poll_interval_s

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.secret}", "Content-Type": "application/json"}

    def _post(self) -> requests.Response:
        return requests.post(self.url, headers=self._headers(),
                             timeout=(HTTP_CONNECT_TIMEOUT_S, HTTP_READ_TIMEOUT_S))

    def trigger(self, wait_for_job_id: Optional[int] = None, timeout_s: float = 120.0,
                user_id: Optional[str] = None) -> Dict[str, Any]:
        """Run one dispatch, or keep dispatching until ``wait_for_job_id`` is terminal.

        Waiting reads the job through ``GET /api/jobs/{id}`` and therefore needs
        the owning ``user_id``.
        """
        try:
            if wait_for_job_id is None:
                resp = self._post()
                data = resp.json()
                return {
                    "success": resp.ok,
                    "message": data.get("message") or data.get("error") or resp.reason,
                    "jobId": data.get("jobId"),
                    "result": data.get("result"),
                }
            return self._wait(wait_for_job_id, timeout_s, user_id)
        except (requests.RequestException, ValueError) as e:
            logger.error("Failed to trigger worker", error=str(e))
            return {"success": False, "message": f"Failed to trigger worker: {e}"}

    def _wait(self, job_id: int, timeout_s: float, user_id: Optional[str]) -> Dict[str, Any]:
        started = time.monotonic()
        while time.monotonic() - started < timeout_s:
            try:
                self._post()
            except requests.RequestException as e:
                # the next round retries the trigger
                logger.debug("Worker trigger failed while polling", error=str(e))

            resp = requests.get(f"{self.jobs_url}/{job_id}", headers={"X-User-Id": user_id or ""},
                                timeout=(HTTP_CONNECT_TIMEOUT_S, HTTP_READ_TIMEOUT_S))
            if resp.ok:
                job = resp.json()
                if job["status"] == "completed":
                    return {"success": True, "message": "Job completed successfully",
                            "jobId": job_id, "result": job.get("result")}
                if job["status"] == "failed":
                    return {"success": False, "message": f"Job failed: {job.get('error') or 'Unknown error'}",
                            "jobId": job_id}

            time.sleep(self.poll_interval_s)

        return {"success": False, "message": "Job processing timed out", "jobId": job_id}
