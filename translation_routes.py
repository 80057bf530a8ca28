"""Translation endpoints."""
from fastapi import APIRouter, HTTPException, Request

from models import BatchTranslateRequest, MixedContentRequest, TranslateRequest

router = APIRouter(prefix="/api/translate")

MAX_BATCH = 100


@router.post("")
async def translate(req: TranslateRequest, request: Request):
    if not req.text or not req.text.strip():
        raise HTTPException(400, "Text is required")
    result = await request.app.state.translation_service.translate_text(req.text, req.from_lang, req.to_lang)
    return result.model_dump(by_alias=True, exclude_none=True)


@router.post("/batch")
async def translate_batch(req: BatchTranslateRequest, request: Request):
    if not req.texts:
        raise HTTPException(400, "Texts array is required")
    if len(req.texts) > MAX_BATCH:
        raise HTTPException(400, f"Too many texts (max {MAX_BATCH})")
    results = await request.app.state.translation_service.translate_batch(req.texts, req.from_lang, req.to_lang)
    return {"translations": [r.model_dump(by_alias=True, exclude_none=True) for r in results]}


@router.post("/mixed-content")
async def mixed_content(req: MixedContentRequest, request: Request):
    mixed = await request.app.state.mixer.create_mixed_content(
        req.text, req.user_level, req.target_lang, req.source_lang, mode=req.mode,
    )
    return mixed.to_dict()


@router.get("/cache-stats")
async def cache_stats(request: Request):
    return request.app.state.translation_service.stats()
