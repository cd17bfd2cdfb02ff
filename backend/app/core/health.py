import asyncio
from typing import Dict, Any, Callable, Awaitable, Optional
from datetime import datetime, timedelta, timezone
from enum import Enum
from sqlalchemy import text

from app.core.database import engine
from app.core.logging import get_logger

logger = get_logger()


class ServiceStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"
    STARTING = "starting"
    DOWN = "down"


class HealthCheck:
    def __init__(self):
        self._services: Dict[str, ServiceStatus] = {}
        self._check_functions: Dict[str, Callable[[], Awaitable[bool]]] = {}
        self._last_check: Dict[str, datetime] = {}
        self._timeouts: Dict[str, float] = {}
        self._lock = asyncio.Lock()

        self._cache_duration: timedelta = timedelta(seconds=25)
        self._cache_status: Optional[Dict[str, Any]] = None
        self._last_check_time: Optional[datetime] = None

    async def add_service(
        self,
        service_name: str,
        check_function: Callable[[], Awaitable[bool]],
        timeout: float = 5.0,
    ) -> None:
        self._services[service_name] = ServiceStatus.STARTING
        self._check_functions[service_name] = check_function
        self._timeouts[service_name] = timeout
        self._last_check[service_name] = datetime.now(timezone.utc)
        logger.info(f"Service '{service_name}' registered for health checks")

    async def check_database(self) -> bool:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            self._last_check["database"] = datetime.now(timezone.utc)
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def _run_check(self, service_name: str) -> ServiceStatus:
        check = self._check_functions[service_name]
        try:
            healthy = await asyncio.wait_for(
                check(), timeout=self._timeouts[service_name]
            )
        except asyncio.TimeoutError:
            logger.warning(f"Health check for '{service_name}' timed out")
            healthy = False
        status = ServiceStatus.HEALTHY if healthy else ServiceStatus.DOWN
        self._services[service_name] = status
        return status

    async def check_all_services(self, use_cache: bool = True) -> Dict[str, Any]:
        async with self._lock:
            now = datetime.now(timezone.utc)
            if (
                use_cache
                and self._cache_status is not None
                and self._last_check_time is not None
                and now - self._last_check_time < self._cache_duration
            ):
                return self._cache_status

            services = {}
            for service_name in self._check_functions:
                services[service_name] = (await self._run_check(service_name)).value

            down = [name for name, s in services.items() if s != ServiceStatus.HEALTHY]
            if not down:
                overall = ServiceStatus.HEALTHY
            elif len(down) < len(services):
                overall = ServiceStatus.DEGRADED
            else:
                overall = ServiceStatus.UNHEALTHY

            self._cache_status = {
                "status": overall.value,
                "services": services,
                "checked_at": now.isoformat(),
            }
            self._last_check_time = now
            return self._cache_status

    async def wait_for_services(self) -> bool:
        health_status = await self.check_all_services(use_cache=False)
        return health_status["status"] == ServiceStatus.HEALTHY

    async def cleanup(self) -> None:
        self._services.clear()
        self._check_functions.clear()
        self._cache_status = None
        self._last_check_time = None


health_checker = HealthCheck()
