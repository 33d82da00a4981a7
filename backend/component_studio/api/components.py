"""
Component API endpoints - stateless one-shot generation and the model catalogue.
"""

from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_dispatcher, get_generator
from ..llm.dispatcher import ProviderDispatcher
from ..models import GeneratedComponent, SessionSettingsUpdate
from ..services.generator import ComponentGenerator
from ..utils.auth import get_current_user_id

router = APIRouter(prefix="/components", tags=["components"])


class GenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=5000)
    settings: Optional[SessionSettingsUpdate] = None


@router.post("/generate", response_model=GeneratedComponent)
async def generate_component(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user_id),
    generator: ComponentGenerator = Depends(get_generator),
):
    """Generate a component without a session."""
    settings = generator.default_settings.model_copy(
        update=body.settings.model_dump(exclude_none=True) if body.settings else {}
    )
    return await generator.generate_component(body.prompt, [], settings)


@router.get("/models")
async def list_models(
    user_id: str = Depends(get_current_user_id),
    dispatcher: ProviderDispatcher = Depends(get_dispatcher),
):
    return {"models": dispatcher.available_models()}
