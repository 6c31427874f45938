"""Plan persistence.

This module provides an abstract plan repository interface, an in-memory
implementation for tests and single-process use, and a Redis implementation.
It also handles the JSON export/import format:

    {"version": "1.0", "exported_at": "<iso timestamp>", "plan": {...}}
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError

from planner.models import PlanNotFoundError, PlannerError, TravelPlan, utcnow

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


def export_plan_json(plan: TravelPlan) -> str:
    """Serialize a plan into the export format."""
    payload = {
        "version": EXPORT_VERSION,
        "exported_at": utcnow().isoformat(),
        "plan": plan.model_dump(mode="json"),
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def import_plan_json(data: str) -> TravelPlan:
    """Parse the export format (or a bare plan object) back into a plan.

    Raises:
        PlannerError: If the document is not valid JSON or not a valid plan.
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise PlannerError(f"Import data is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise PlannerError("Import data must be a JSON object")
    plan_data = payload.get("plan", payload)
    try:
        return TravelPlan.model_validate(plan_data)
    except ValidationError as e:
        raise PlannerError(f"Import data is not a valid plan: {e.error_count()} error(s)") from e


class PlanRepository(ABC):
    """Abstract base class for plan persistence."""

    @abstractmethod
    async def save(self, plan: TravelPlan) -> None:
        """Insert or replace a plan.

        Args:
            plan: The plan to store, keyed by its id.
        """
        pass

    @abstractmethod
    async def load(self, plan_id: str) -> TravelPlan:
        """Load a plan by id.

        Raises:
            PlanNotFoundError: If no plan has that id.
        """
        pass

    @abstractmethod
    async def list_plans(self) -> list[TravelPlan]:
        """All stored plans, most recently updated first."""
        pass

    @abstractmethod
    async def delete(self, plan_id: str) -> bool:
        """Delete a plan.

        Returns:
            True if the plan was deleted, False if it didn't exist.
        """
        pass

    @staticmethod
    def build_plan_key(plan_id: str) -> str:
        """Storage key for a plan.

        Example:
            >>> PlanRepository.build_plan_key("abc123")
            'plan:abc123'
        """
        return f"plan:{plan_id}"


class InMemoryPlanRepository(PlanRepository):
    """Keeps serialized plans in a dict, so stored copies never alias live ones."""

    def __init__(self) -> None:
        self._plans: dict[str, str] = {}

    async def save(self, plan: TravelPlan) -> None:
        self._plans[self.build_plan_key(plan.id)] = plan.model_dump_json()

    async def load(self, plan_id: str) -> TravelPlan:
        raw = self._plans.get(self.build_plan_key(plan_id))
        if raw is None:
            raise PlanNotFoundError(f"Plan {plan_id} does not exist")
        return TravelPlan.model_validate_json(raw)

    async def list_plans(self) -> list[TravelPlan]:
        plans = [TravelPlan.model_validate_json(raw) for raw in self._plans.values()]
        return sorted(plans, key=lambda p: p.updated_at, reverse=True)

    async def delete(self, plan_id: str) -> bool:
        return self._plans.pop(self.build_plan_key(plan_id), None) is not None


class RedisPlanRepository(PlanRepository):
    """Redis-based implementation of the plan repository.

    Each plan is stored as JSON under ``plan:{id}``; the ids of all stored
    plans are kept in the ``plans:index`` set.

    Attributes:
        _client: The Redis async client instance.
        _ttl: Expiry in seconds for stored plans, or None to keep them.
    """

    INDEX_KEY = "plans:index"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        ttl_seconds: Optional[int] = None,
        client: Optional[redis.Redis] = None,
    ) -> None:
        """Initialize the Redis plan repository.

        Args:
            redis_url: Redis connection URL. Defaults to localhost:6379.
            ttl_seconds: Optional expiry for stored plans.
            client: Pre-built client, mainly for tests.
        """
        self._redis_url = redis_url
        self._ttl = ttl_seconds
        self._client: Optional[redis.Redis] = client

    async def connect(self) -> None:
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def save(self, plan: TravelPlan) -> None:
        client = await self._ensure_connected()
        await client.set(self.build_plan_key(plan.id), plan.model_dump_json(), ex=self._ttl)
        await client.sadd(self.INDEX_KEY, plan.id)
        logger.info(f"[STORE] Saved plan {plan.id} to Redis")

    async def load(self, plan_id: str) -> TravelPlan:
        client = await self._ensure_connected()
        raw = await client.get(self.build_plan_key(plan_id))
        if raw is None:
            raise PlanNotFoundError(f"Plan {plan_id} does not exist")
        return TravelPlan.model_validate_json(raw)

    async def list_plans(self) -> list[TravelPlan]:
        client = await self._ensure_connected()
        plans: list[TravelPlan] = []
        for plan_id in await client.smembers(self.INDEX_KEY):
            raw = await client.get(self.build_plan_key(plan_id))
            if raw is None:
                # Expired; drop it from the index
                await client.srem(self.INDEX_KEY, plan_id)
                continue
            plans.append(TravelPlan.model_validate_json(raw))
        return sorted(plans, key=lambda p: p.updated_at, reverse=True)

    async def delete(self, plan_id: str) -> bool:
        client = await self._ensure_connected()
        await client.srem(self.INDEX_KEY, plan_id)
        return await client.delete(self.build_plan_key(plan_id)) > 0
