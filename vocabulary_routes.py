"""Vocabulary report endpoints."""
from fastapi import APIRouter, HTTPException, Request

from models import VocabularyRequest, WordRequest
from vocabulary import describe_word, detect_vocabulary, is_eligible_token, vocabulary_stats

router = APIRouter(prefix="/api/vocabulary")


def _require_text(text: str) -> None:
    if not text or not text.strip():
        raise HTTPException(400, "Text is required")


@router.post("/detect")
async def detect(req: VocabularyRequest, request: Request):
    _require_text(req.text)
    entries = await detect_vocabulary(req.text, request.app.state.translation_service, req.lang, req.to_lang)
    return {"vocabulary": [e.model_dump() for e in entries]}


@router.post("/word")
async def word(req: WordRequest, request: Request):
    if not req.word.strip():
        raise HTTPException(400, "Word is required")
    return await describe_word(req.word, request.app.state.translation_service, req.type, req.from_lang, req.to_lang)


@router.post("/stats")
async def stats(req: VocabularyRequest, request: Request):
    _require_text(req.text)
    return await vocabulary_stats(req.text, request.app.state.translation_service, req.lang, req.to_lang)


@router.post("/validate")
async def validate(req: WordRequest):
    if not req.word.strip():
        raise HTTPException(400, "Word is required")
    return {"word": req.word, "isValid": is_eligible_token(req.word)}
