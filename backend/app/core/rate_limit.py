"""Rate limiting middleware for the public garage booking endpoints."""
import time
from collections import defaultdict
from typing import Dict, Optional, Tuple
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


class RateLimiter:
    """Simple in-memory sliding-window rate limiter."""

    def __init__(self, requests_per_minute: int = 30, requests_per_hour: int = 300):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.minute_requests: Dict[str, list] = defaultdict(list)
        self.hour_requests: Dict[str, list] = defaultdict(list)

    def _clean_old_requests(self, requests: list, window: int, current_time: float) -> list:
        """Remove requests outside the time window."""
        return [t for t in requests if current_time - t < window]

    def is_allowed(self, client_id: str, current_time: Optional[float] = None) -> Tuple[bool, str]:
        """Check if a request is allowed for the client, recording it if so."""
        current_time = time.time() if current_time is None else current_time

        self.minute_requests[client_id] = self._clean_old_requests(
            self.minute_requests[client_id], 60, current_time
        )
        self.hour_requests[client_id] = self._clean_old_requests(
            self.hour_requests[client_id], 3600, current_time
        )

        if len(self.minute_requests[client_id]) >= self.requests_per_minute:
            return False, f"Rate limit exceeded. Max {self.requests_per_minute} requests per minute."

        if len(self.hour_requests[client_id]) >= self.requests_per_hour:
            return False, f"Rate limit exceeded. Max {self.requests_per_hour} requests per hour."

        self.minute_requests[client_id].append(current_time)
        self.hour_requests[client_id].append(current_time)

        return True, ""


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Throttles requests whose path starts with ``path_prefix``; everything else passes."""

    def __init__(
        self,
        app,
        path_prefix: str = "/api/garage-booking",
        requests_per_minute: int = 30,
        requests_per_hour: int = 300,
    ):
        super().__init__(app)
        self.path_prefix = path_prefix
        self.limiter = RateLimiter(requests_per_minute, requests_per_hour)

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        allowed, message = self.limiter.is_allowed(client_id)

        if not allowed:
            return JSONResponse(status_code=429, content={"error": message})

        return await call_next(request)
