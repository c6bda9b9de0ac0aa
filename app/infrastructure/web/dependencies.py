"""
Request-scoped dependencies.
Application-wide components live on ``app.state``; use cases are built per request.
"""

from typing import Annotated

from fastapi import Depends, Request

from app.application.use_cases.context import TrackingServices


def get_tracking_services(request: Request) -> TrackingServices:
    """Dependency to get the application's tracking services."""
    return request.app.state.services


Services = Annotated[TrackingServices, Depends(get_tracking_services)]
