"""HTTP client for the school directory API plus small client-side helpers."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from .app.phone import format_georgian_phone

TokenProvider = Callable[[], Optional[str]]


class ApiError(Exception):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class SchoolDirectoryClient:
    """Minimal client for the REST endpoints exposed by ``school_directory.server``."""

    def __init__(
        self,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        timeout: int = 15,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout

    def health(self) -> dict:
        return self._request("get", "/health")

    def list_schools(
        self,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lightweight: bool = False,
    ) -> Any:
        params: Dict[str, Any] = {}
        if page is not None:
            params["page"] = page
        if page_size is not None:
            params["pageSize"] = page_size
        if lightweight:
            params["lightweight"] = "true"
        return self._request("get", "/api/schools", params=params or None)

    def get_school(self, school_id: str) -> dict:
        return self._request("get", f"/api/schools/{school_id}")

    def create_school(self, data: Dict[str, Any]) -> dict:
        return self._request("post", "/api/schools", json=data)

    def update_school(self, school_id: str, data: Dict[str, Any]) -> dict:
        return self._request("put", f"/api/schools/{school_id}", json=data)

    def delete_school(self, school_id: str) -> dict:
        return self._request("delete", f"/api/schools/{school_id}")

    def create_media(self, items: List[Dict[str, Any]]) -> dict:
        return self._request("post", "/api/media", json=items)

    def create_employee(self, email: str, password: str, role: str = "employee") -> dict:
        payload = {"email": email, "password": password, "role": role}
        return self._request("post", "/api/auth/create-employee", json=payload)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        response = requests.request(
            method, url, headers=self._headers(), timeout=self.timeout, **kwargs
        )
        if not response.ok:
            raise ApiError(response.status_code, _error_message(response))
        if response.headers.get("content-type", "").startswith("application/json"):
            return response.json()
        return {}


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP error! status: {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, str):
            return detail
    return f"HTTP error! status: {response.status_code}"


def _matches(value: Optional[str], needle: str) -> bool:
    return needle in (value or "").lower()


def filter_schools(
    schools: Iterable[Dict[str, Any]],
    search: Optional[str] = None,
    city: Optional[str] = None,
    district: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Case-insensitive filtering of API school records by name, city and district."""

    search_term = (search or "").strip().lower()
    city_term = (city or "").strip().lower()
    district_term = (district or "").strip().lower()

    filtered: List[Dict[str, Any]] = []
    for school in schools:
        address = school.get("address") or {}
        if search_term and not _matches(school.get("name"), search_term):
            continue
        if city_term and (address.get("city") or "").strip().lower() != city_term:
            continue
        if district_term and (address.get("district") or "").strip().lower() != district_term:
            continue
        filtered.append(school)
    return filtered


def display_phone(value: Optional[str]) -> str:
    if not value:
        return ""
    return format_georgian_phone(value) or value


__all__ = ["ApiError", "SchoolDirectoryClient", "display_phone", "filter_schools"]
