"""Tenant-scoped cache key scheme."""

from typing import Optional


class CacheKeys:
    """Every key starts with the aggregate family and the tenant id."""

    @staticmethod
    def projects(tenant_id: str, active_only: bool = False) -> str:
        return f"projects:{tenant_id}:{'active' if active_only else 'all'}"

    @staticmethod
    def stats(tenant_id: str, user_id: Optional[str] = None) -> str:
        if user_id:
            return f"stats:{tenant_id}:user:{user_id}"
        return f"stats:{tenant_id}:all"

    @staticmethod
    def stats_pattern(tenant_id: str) -> str:
        return f"stats:{tenant_id}:*"

    @staticmethod
    def generation(tenant_id: str) -> str:
        """Counter bumped by every invalidation of the tenant's aggregates."""
        return f"generation:{tenant_id}"
