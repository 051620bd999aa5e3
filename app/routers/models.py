"""API routes describing the configured AI models."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.dependencies import get_environment
from app.models.domain import AnalysisEnvironment
from app.schemas.analysis import ModelEntry, ModelsResponse


router = APIRouter(prefix=f"{settings.api_v1_prefix}/models", tags=["models"])


def describe_model(model_id: str) -> dict[str, str]:
    metadata = settings.model_catalog.get(model_id, {})
    return {
        "id": model_id,
        "name": metadata.get("name") or model_id.split("/")[-1],
        "provider": metadata.get("provider", "Unknown"),
        "description": metadata.get("description", "AI model for code analysis"),
        "icon": metadata.get("icon", "🤖"),
    }


@router.get("", response_model=ModelsResponse)
def list_models(environment: AnalysisEnvironment = Depends(get_environment)) -> ModelsResponse:
    model_ids = list(dict.fromkeys(settings.available_models))
    for configured in (environment.default_model, environment.fallback_model):
        if configured and configured not in model_ids:
            model_ids.append(configured)
    entries = [
        ModelEntry(
            **describe_model(model_id),
            is_primary=model_id == environment.default_model,
            is_fallback=model_id == environment.fallback_model,
        )
        for model_id in model_ids
    ]
    return ModelsResponse(
        models=entries,
        primary_model=environment.default_model,
        fallback_model=environment.fallback_model,
    )
