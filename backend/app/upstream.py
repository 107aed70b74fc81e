from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

USER_AGENT = "zip-area-profile/0.1"


@dataclass(frozen=True)
class ApiConfig:
    timeout: float = 10.0


class UpstreamAPIError(RuntimeError):
    kind = "UpstreamAPIError"

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
        self.message = message


class NetworkError(UpstreamAPIError):
    kind = "NetworkError"


class ProviderError(UpstreamAPIError):
    kind = "ProviderError"

    def __init__(self, stage: str, message: str, status_code: int):
        super().__init__(stage, message)
        self.status_code = status_code


class FormatError(UpstreamAPIError):
    kind = "FormatError"


class DataAbsent(UpstreamAPIError):
    kind = "DataAbsent"


class MissingAPIKeyError(UpstreamAPIError):
    kind = "ConfigurationError"


def _short_error_text(text: str, limit: int = 240) -> str:
    one_line = " ".join(text.split())
    if len(one_line) <= limit:
        return one_line
    return one_line[:limit] + "..."


def request_json(
    client: httpx.Client,
    url: str,
    *,
    params: dict[str, Any] | None,
    stage: str,
    config: ApiConfig,
    headers: dict[str, str] | None = None,
) -> Any:
    merged_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        merged_headers.update(headers)

    try:
        response = client.get(url, params=params, timeout=config.timeout, headers=merged_headers)
    except httpx.RequestError as exc:
        raise NetworkError(stage, f"Network error: {exc!s}") from exc

    status = response.status_code
    if not 200 <= status < 300:
        raise ProviderError(
            stage, f"HTTP {status}: {_short_error_text(response.text)}", status_code=status
        )

    # The Census API answers 204 with an empty body for unknown geographies.
    if status == 204 or not response.content.strip():
        raise DataAbsent(stage, f"Empty response body (HTTP {status})")

    try:
        return response.json()
    except ValueError as exc:
        raise FormatError(stage, f"Invalid JSON in upstream response (HTTP {status})") from exc

