"""
FastAPI dependency exposing the process-wide dispatcher.
"""

from __future__ import annotations

from fastapi import Request

from .dispatcher import NotificationDispatcher


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher
