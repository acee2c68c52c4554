"""FastAPI dependencies resolving per-app collaborators."""

from fastapi import Request

from ..services.response_generator import ResponseGenerator
from .filter_gate import FilterGate


def get_filter_gate(request: Request) -> FilterGate:
    return request.app.state.filter_gate


def get_response_generator(request: Request) -> ResponseGenerator:
    return request.app.state.response_generator
