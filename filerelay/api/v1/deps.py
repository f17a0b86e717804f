from __future__ import annotations

from fastapi import Request

from filerelay.services.bundle import ServiceBundle


def get_service_bundle(request: Request) -> ServiceBundle:
    """The bundle built once by the app factory and shared by all requests."""
    return request.app.state.services
