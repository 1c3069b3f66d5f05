"""HTTP client for an optional hosted categorization service"""

from typing import List, Sequence

import httpx

from insight_engine.config import settings
from insight_engine.domain.exceptions import CategorizationOracleError
from insight_engine.domain.models import CategorySuggestion


class CategorizationOracleClient:
    """Client for an external categorization API (e.g. an LLM-backed service)"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.categorization_oracle_url or "").rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def suggest_categories(
        self,
        name: str,
        transaction_type: str,
        existing_categories: Sequence[str] = (),
    ) -> List[CategorySuggestion]:
        """
        Ask the hosted service for category suggestions.

        No retries: callers fall back to the local classifier on failure.

        Raises:
            CategorizationOracleError: On missing configuration, timeout,
                HTTP errors, or an invalid response payload
        """
        if not self.configured:
            raise CategorizationOracleError("Categorization service is not configured")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/categorize",
                    json={
                        "name": name,
                        "type": transaction_type,
                        "existing_categories": list(existing_categories),
                    },
                )
                response.raise_for_status()
                data = response.json()

                suggestions = [
                    CategorySuggestion(
                        category=str(item["name"]),
                        confidence=min(max(float(item.get("confidence", 0.0)), 0.0), 1.0),
                    )
                    for item in data.get("suggestions", [])
                ]

            except httpx.TimeoutException as e:
                raise CategorizationOracleError(f"Categorization service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise CategorizationOracleError(f"Categorization service error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise CategorizationOracleError(f"Categorization service unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise CategorizationOracleError(f"Invalid response from categorization service: {e}") from e

        return sorted(suggestions, key=lambda s: (-s.confidence, s.category))
