"""HTTP client for the profile backend (reference data and profile completion)."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Sequence
from urllib.parse import quote

import requests

import config
from constants.keys import ProfileFields
from core.errors import SubmissionError
from images.codec import as_binary_image
from wizard.navigation_types import Option, SubmissionResult

logger = logging.getLogger(__name__)

_HEADERS = {"User-Agent": "ProfileWizard/1.0", "Accept": "application/json"}
COMPLETE_PROFILE_PATH = "/users/complete-profile"

# Reference kinds with dedicated endpoints; everything else is a user attribute type.
_PATHS: Mapping[str, str] = {
    "country": "/geographic/countries",
    "city": "/geographic/countries/{parent}/cities",
    "locality": "/geographic/cities/{parent}/localities",
    "categoryInterest": "/category-interests",
    "tags": "/tags/popular",
}


def _to_option(item: Any) -> Option | None:
    if isinstance(item, str):
        return Option(id=item, label=item)
    if not isinstance(item, Mapping):
        return None
    identifier = item.get("id", item.get("categoryInterestEnum", item.get("name")))
    label = item.get("name") or item.get("label") or item.get("detail") or identifier
    if identifier is None or label is None:
        return None
    return Option(id=identifier, label=str(label))


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping) and isinstance(body.get("message"), str):
        return body["message"]
    return f"Error {response.status_code}: {response.reason}"


class ProfileApiClient:
    """Implements both the reference-data and the submission collaborator over HTTP."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self._token = token if token is not None else config.API_TOKEN
        self._timeout = timeout or config.API_TIMEOUT_SECONDS
        self._session = session or requests.Session()
        self._cache: dict[tuple[str, str | None], tuple[Option, ...]] = {}

    def _headers(self) -> dict[str, str]:
        headers = dict(_HEADERS)
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _url_for(self, kind: str, parent: int | str | None) -> str | None:
        template = _PATHS.get(kind)
        if template is None:
            return f"{self._base_url}/user-attributes/{quote(kind.upper())}"
        if "{parent}" in template:
            if parent is None or parent == "":
                return None
            template = template.format(parent=quote(str(parent)))
        return f"{self._base_url}{template}"

    def options(self, kind: str, *, parent: int | str | None = None) -> Sequence[Option]:
        """Return options for ``kind``; lookups that fail yield an empty list."""

        cache_key = (kind, None if parent is None else str(parent))
        if cache_key in self._cache:
            return self._cache[cache_key]
        url = self._url_for(kind, parent)
        if url is None:
            return ()
        try:
            response = self._session.get(url, headers=self._headers(), timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Could not load %s options: %s", kind, exc)
            return ()
        items = data if isinstance(data, list) else []
        options = tuple(option for option in (_to_option(item) for item in items) if option is not None)
        self._cache[cache_key] = options
        return options

    def _post_profile(self, payload: Mapping[str, Any]) -> SubmissionResult:
        profile = {key: value for key, value in payload.items() if key != ProfileFields.IMAGES}
        images = [as_binary_image(image) for image in payload.get(ProfileFields.IMAGES) or []]
        url = f"{self._base_url}{COMPLETE_PROFILE_PATH}"
        try:
            if images:
                files = [("profileImages", (image.name, image.data, image.mime_type)) for image in images]
                response = self._session.post(
                    url,
                    data={"profileData": json.dumps(profile, ensure_ascii=False)},
                    files=files,
                    headers=self._headers(),
                    timeout=self._timeout,
                )
            else:
                response = self._session.post(url, json=profile, headers=self._headers(), timeout=self._timeout)
        except requests.RequestException as exc:
            raise SubmissionError() from exc
        if response.ok:
            logger.info("Profile completed with %d image(s)", len(images))
            return SubmissionResult(success=True)
        message = _error_message(response)
        logger.warning("Profile completion rejected: %s", message)
        return SubmissionResult(success=False, error=message)

    async def submit(self, payload: Mapping[str, Any]) -> SubmissionResult:
        return await asyncio.to_thread(self._post_profile, payload)


__all__ = ["COMPLETE_PROFILE_PATH", "ProfileApiClient"]
