from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from typing import Optional

from core.sessions import SessionStore, get_session_store
from models.studio import (
    BlueprintSubmitRequest,
    EditSubmitRequest,
    ModeSwitchRequest,
    PromptUpdateRequest,
    StudioStateResponse,
    StyleUpdateRequest,
)
from services.gemini_service import GeminiService
from services.studio_controller import StudioController

router = APIRouter(prefix="/studio", tags=["studio"])

def get_gemini_service():
    return GeminiService()

def get_controller(session_id: str, store: SessionStore = Depends(get_session_store)) -> StudioController:
    """Resolve the controller that owns a session's state"""
    controller = store.get_session(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return controller

def state_response(controller: StudioController) -> StudioStateResponse:
    state = controller.snapshot()
    return StudioStateResponse(
        success=state.error is None,
        state=state,
        error=state.error
    )

@router.post("/sessions", response_model=StudioStateResponse)
async def create_session(store: SessionStore = Depends(get_session_store)):
    """Start a new studio session"""
    controller = store.create_session()
    return state_response(controller)

@router.get("/sessions/{session_id}", response_model=StudioStateResponse)
async def get_session(controller: StudioController = Depends(get_controller)):
    """Get the current state of a session"""
    return state_response(controller)

@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """End a studio session"""
    if not store.drop_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return {"success": True}

@router.post("/sessions/{session_id}/mode", response_model=StudioStateResponse)
async def switch_mode(payload: ModeSwitchRequest, controller: StudioController = Depends(get_controller)):
    """Switch between the image editor and the blueprint generator"""
    controller.switch_mode(payload.mode)
    return state_response(controller)

@router.post("/sessions/{session_id}/editor/image", response_model=StudioStateResponse)
async def upload_image(
    file: UploadFile = File(...),
    controller: StudioController = Depends(get_controller)
):
    """Select the image to edit"""
    data = await file.read()
    controller.select_file(file.filename, file.content_type, data)
    return state_response(controller)

@router.post("/sessions/{session_id}/editor/prompt", response_model=StudioStateResponse)
async def set_edit_prompt(payload: PromptUpdateRequest, controller: StudioController = Depends(get_controller)):
    controller.set_edit_prompt(payload.prompt)
    return state_response(controller)

@router.post("/sessions/{session_id}/editor/submit", response_model=StudioStateResponse)
async def submit_edit(
    payload: Optional[EditSubmitRequest] = Body(None),
    controller: StudioController = Depends(get_controller)
):
    """Edit the uploaded image, taking the prompt from the body when one is sent"""
    if payload is not None and payload.prompt is not None:
        controller.set_edit_prompt(payload.prompt)
    await controller.submit_edit()
    return state_response(controller)

@router.post("/sessions/{session_id}/generator/prompt", response_model=StudioStateResponse)
async def set_blueprint_prompt(payload: PromptUpdateRequest, controller: StudioController = Depends(get_controller)):
    controller.set_blueprint_prompt(payload.prompt)
    return state_response(controller)

@router.post("/sessions/{session_id}/generator/style", response_model=StudioStateResponse)
async def set_style(payload: StyleUpdateRequest, controller: StudioController = Depends(get_controller)):
    controller.set_style(payload.style)
    return state_response(controller)

@router.post("/sessions/{session_id}/generator/submit", response_model=StudioStateResponse)
async def submit_generation(
    payload: Optional[BlueprintSubmitRequest] = Body(None),
    controller: StudioController = Depends(get_controller)
):
    """Generate a blueprint, taking description and style from the body when sent"""
    if payload is not None:
        if payload.prompt is not None:
            controller.set_blueprint_prompt(payload.prompt)
        if payload.style is not None:
            controller.set_style(payload.style)
    await controller.submit_generation()
    return state_response(controller)

@router.get("/health")
async def check_gemini_config():
    """Check if Gemini is properly configured"""
    gemini_service = get_gemini_service()
    has_key = gemini_service.is_configured

    return {
        "configured": has_key,
        "model": gemini_service.model,
        "message": "Gemini API key configured" if has_key else "Gemini API key not set"
    }
