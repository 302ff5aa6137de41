import os
from typing import Any, Dict, Optional

import requests

API_URL = os.getenv("API_URL", "http://localhost:8000")


def _friendly_message(default: str, resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        return data.get("message") or data.get("detail") or default
    return default


def _handle(resp: requests.Response) -> Any:
    if resp.ok:
        return resp.json()
    raise RuntimeError(_friendly_message("Request failed", resp))


def get(path: str, params: Optional[Dict[str, Any]] = None) -> Any:
    return _handle(requests.get(f"{API_URL}{path}", params=params, timeout=10))


def post(path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
    return _handle(requests.post(f"{API_URL}{path}", json=payload, timeout=10))


def put(path: str, payload: Dict[str, Any]) -> Any:
    return _handle(requests.put(f"{API_URL}{path}", json=payload, timeout=10))


def download(path: str) -> Optional[bytes]:
    resp = requests.get(f"{API_URL}{path}", timeout=15)
    return resp.content if resp.ok else None


def download_post(path: str, payload: Dict[str, Any]) -> Optional[bytes]:
    resp = requests.post(f"{API_URL}{path}", json=payload, timeout=15)
    return resp.content if resp.ok else None
