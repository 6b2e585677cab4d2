"""Generative AI endpoints. Signed-in callers only.

    POST /api/ai/transcribe         file at a URL -> text
    POST /api/ai/generate-content   prompt -> text
    POST /api/ai/extract-project    free text -> project fields (JSON object)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..core.auth import AuthContext, require_auth
from ..core.config import settings
from ..services.ai_service import MAX_PROMPT_LENGTH, AIService

router = APIRouter(prefix="/api/ai", tags=["ai"])


# --- Request/Response schemas ---


class TranscribeRequest(BaseModel):
    url: str = Field(..., min_length=1, description="http(s) URL of the file")
    prompt: str = Field(..., min_length=1, max_length=2000)

    model_config = {
        "json_schema_extra": {
            "examples": [{"url": "https://example.com/deck.pdf", "prompt": "Summarize this pitch deck"}]
        }
    }


class TranscribeResponse(BaseModel):
    result: str
    metadata: Dict[str, Any] = {}


class GenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=MAX_PROMPT_LENGTH)


class GenerateResponse(BaseModel):
    result: str
    model: str


class ExtractRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_PROMPT_LENGTH)
    prompt: Optional[str] = Field(None, max_length=2000)


class ExtractResponse(BaseModel):
    project: Dict[str, Any]
    model: str


def get_ai_service() -> AIService:
    return AIService()


# --- Endpoints ---


@router.post("/transcribe", response_model=TranscribeResponse)
def transcribe(
    body: TranscribeRequest,
    auth: AuthContext = Depends(require_auth),
    service: AIService = Depends(get_ai_service),
):
    result, metadata = service.transcribe(body.url, body.prompt)
    return TranscribeResponse(result=result, metadata=metadata)


@router.post("/generate-content", response_model=GenerateResponse)
def generate_content(
    body: GenerateRequest,
    auth: AuthContext = Depends(require_auth),
    service: AIService = Depends(get_ai_service),
):
    return GenerateResponse(result=service.generate_content(body.prompt), model=settings.ai_model)


@router.post("/extract-project", response_model=ExtractResponse)
def extract_project(
    body: ExtractRequest,
    auth: AuthContext = Depends(require_auth),
    service: AIService = Depends(get_ai_service),
):
    return ExtractResponse(project=service.extract_project(body.text, body.prompt), model=settings.ai_model)
