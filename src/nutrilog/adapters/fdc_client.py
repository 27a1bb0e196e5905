"""USDA FoodData Central API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class FdcClient(Protocol):
    """Read access to FoodData Central."""

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Return the raw search payload; nutrients are per 100 g."""

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Return the raw detail payload of one food, portions included."""


@dataclass
class HttpxFdcClient(FdcClient):
    """HTTPX-backed FDC client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxFdcClient":
        """Create an FDC client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        return await self._get("/foods/search", query=query, pageSize=page_size)

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        return await self._get(f"/food/{fdc_id}", format="full")

    async def close(self) -> None:
        await self.http_client.aclose()

    async def _get(self, path: str, **params: object) -> dict[str, object]:
        """GET an API path with the key attached; HTTP errors are raised."""
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            params={"api_key": self.api_key, **params},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()
