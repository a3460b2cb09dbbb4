"""Image reference helpers shared by the provider clients."""

import base64

import httpx

from ..errors import ProviderError

_LOCAL_MARKERS = ("localhost", "127.0.0.1")


def is_data_url(value: str) -> bool:
    return value.startswith("data:")


def is_local_url(value: str) -> bool:
    """Relative or loopback URLs a remote provider cannot fetch itself."""
    return value.startswith("/") or any(marker in value for marker in _LOCAL_MARKERS)


def split_data_url(value: str) -> tuple[str, str]:
    """
    Split a base64 data URL into (media_type, data).

    Raises:
        ValueError: If the value is not a base64 data URL
    """
    header, sep, data = value.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URL")
    media_type = header[len("data:") : -len(";base64")] or "application/octet-stream"
    return media_type, data


async def fetch_as_data_url(
    url: str,
    provider: str,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """
    Download an image and return it as a base64 data URL.

    Raises:
        ProviderError: If the image cannot be fetched
    """
    owns_client = http_client is None
    client = http_client or httpx.AsyncClient()
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise ProviderError(f"Failed to load image: {url}", provider, e) from e
    finally:
        if owns_client:
            await client.aclose()

    media_type = response.headers.get("content-type", "image/png").split(";")[0]
    encoded = base64.b64encode(response.content).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


async def resolve_image_content(
    content: str,
    provider: str,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """Pass data URLs and public URLs through; inline local URLs as data URLs."""
    if is_data_url(content) or not is_local_url(content):
        return content
    return await fetch_as_data_url(content, provider, http_client)
