import requests
from typing import Dict, Any, Optional
from app.config import SERVICES, HTTP_CONNECT_TIMEOUT_S, HTTP_READ_TIMEOUT_S

class ServiceCallError(RuntimeError):
    def __init__(self, code: str, message: str, retryable: bool, details: Optional[dict] = None):
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.details = details

class HTTPServiceClient:
    """JSON-over-HTTP client for the external services in ``SERVICES``."""

    def __init__(self, services: Optional[Dict[str, dict]] = None):
        self.services = services if services is not None else SERVICES

    def _headers(self, service_conf: dict) -> Dict[str, str]:
        h = {"Content-Type": "application/json"}
        api_key = service_conf.get("api_key")
        auth = service_conf.get("auth", {"type": "none"})
        if auth.get("type") == "api_key_header":
            if api_key:
                h[auth.get("header", "X-Internal-Key")] = api_key
        elif auth.get("type") == "bearer":
            if api_key:
                h["Authorization"] = f"Bearer {api_key}"
        return h

    def _parse_error(self, resp: requests.Response) -> dict:
        try:
            body = resp.json()
        except ValueError:
            body = None

        # Graph API style: {"error": {"message": ..., "code": ...}}
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            err = body["error"]
            return {
                "code": str(err.get("code", "SERVICE_ERROR")),
                "message": err.get("message", f"HTTP {resp.status_code}"),
                "retryable": resp.status_code >= 500,
                "details": err,
            }

        # Voyage style: {"detail": "..."}
        if isinstance(body, dict) and isinstance(body.get("detail"), str):
            return {
                "code": "SERVICE_HTTP_ERROR",
                "message": body["detail"],
                "retryable": resp.status_code >= 500,
                "details": body,
            }

        return {
            "code": "SERVICE_HTTP_ERROR",
            "message": f"Service returned HTTP {resp.status_code}",
            "retryable": resp.status_code >= 500,
            "details": body if isinstance(body, dict) else None,
        }

    def call(
        self,
        service_name: str,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        conf = self.services.get(service_name)
        if not conf:
            raise ServiceCallError("UNKNOWN_SERVICE", f"No config for {service_name}", False)

        url = conf["base_url"].rstrip("/") + "/" + path.lstrip("/")

        connect_t = HTTP_CONNECT_TIMEOUT_S
        read_t = float(timeout_s or conf.get("timeout", HTTP_READ_TIMEOUT_S))
        timeout = (connect_t, read_t)

        try:
            resp = requests.request(method, url, json=json, params=params,
                                    headers=self._headers(conf), timeout=timeout)
        except requests.Timeout as e:
            raise ServiceCallError("SERVICE_TIMEOUT", str(e), True)
        except requests.RequestException as e:
            raise ServiceCallError("SERVICE_UNREACHABLE", str(e), True)

        if resp.status_code < 200 or resp.status_code >= 300:
            err = self._parse_error(resp)

            # map common "busy" scenarios
            if resp.status_code in (429, 503):
                err["code"] = "RESOURCE_EXHAUSTED"
                err["retryable"] = True

            raise ServiceCallError(err["code"], err["message"], err["retryable"], err.get("details"))

        try:
            out = resp.json()
        except ValueError:
            raise ServiceCallError("BAD_RESPONSE", f"{service_name} returned non-JSON", True)

        if not isinstance(out, dict):
            raise ServiceCallError("BAD_RESPONSE", f"{service_name} returned a non-object body", True)
        return out
