"""
FastAPI dependencies.
"""
from fastapi import Request

from pantry_pos.services.register import Register


def get_register(request: Request) -> Register:
    """The application's single register, created at startup."""
    return request.app.state.register
