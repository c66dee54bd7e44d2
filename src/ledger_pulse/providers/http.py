import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp


@dataclass
class HttpResponse:
    """A simple, safe data holder for the HTTP response."""

    status: int
    headers: Dict[str, str]
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        """Decodes the response body into a string."""
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        """Parses the response body as JSON and returns a Python object."""
        return json.loads(self.text())

    def body_for_log(self) -> Any:
        """The decoded JSON body when it parses, the raw text otherwise."""
        try:
            return self.json()
        except ValueError:
            return self.text()

    def __repr__(self) -> str:
        return f"<HttpResponse status={self.status}>"


async def perform_request(
    url: str,
    method: str,
    json_data: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
    verify_ssl: bool = True,
    timeout: Optional[float] = None,
) -> HttpResponse:
    """
    Performs a single HTTP request using aiohttp.

    Transport failures surface as aiohttp.ClientError or asyncio.TimeoutError.
    4xx/5xx codes are not raised; callers decide how to handle them.
    """
    request_kwargs: Dict[str, Any] = {"json": json_data}
    if not verify_ssl:
        request_kwargs["ssl"] = False

    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(headers=headers, timeout=client_timeout) as session:
        async with session.request(method, url, **request_kwargs) as response:
            body_bytes = await response.read()
            return HttpResponse(
                status=response.status,
                headers=dict(response.headers),
                body=body_bytes,
            )
