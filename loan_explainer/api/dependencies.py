"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from loan_explainer.domain.engine_config import DEFAULT_ENGINE_CONFIG, EngineConfig
from loan_explainer.infrastructure.clients.advisor import AdvisorClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_engine_config(request: Request) -> EngineConfig:
    """Engine configuration validated at application startup"""
    return getattr(request.app.state, "engine_config", DEFAULT_ENGINE_CONFIG)


def get_advisor_client() -> AdvisorClient:
    """Provide advisory service client instance"""
    return AdvisorClient()
