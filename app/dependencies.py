from fastapi import Request
from .services.state_store import StateStore


def get_store(request: Request) -> StateStore:
    return request.app.state.store


def get_settings(request: Request):
    return request.app.state.settings
