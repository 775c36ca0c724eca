from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.cache import cache
from app.core.exceptions import SessionNotFoundError
from app.engine.gateway import SessionGateway, is_guest_session
from app.engine.guest_gate import GuestGate, GuestQuestionCounter
from app.engine.registry import engine_registry
from app.engine.session_engine import EngineStatus, SessionEngine
from app.models.user import User
from app.schemas.practice import (
    AnswerOutcome,
    AnswerSubmission,
    CompletionResult,
    HintOutcome,
    HintRequest,
    NavigationRequest,
    PracticeState,
    SolutionOutcome,
)
from app.schemas.response import APIResponse
from app.services.learning_session import learning_session_service
from app.utils import deps

router = APIRouter()


async def get_engine(
    session_id: str,
    gateway: SessionGateway = Depends(deps.get_session_gateway),
    device_id: Optional[str] = Depends(deps.get_device_id),
    current_user: Optional[User] = Depends(deps.get_optional_user),
) -> SessionEngine:
    guest = is_guest_session(session_id)
    if guest and not device_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Guest sessions need an X-Device-ID header."
        )

    # Authorize before anything is built or registered
    live = engine_registry.peek(session_id)
    session = live.session if live is not None else await gateway.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    learning_session_service.require_owner(session, current_user)

    def build() -> SessionEngine:
        gate = GuestGate(GuestQuestionCounter(cache, device_id)) if guest else None
        return SessionEngine(session_id, gateway, guest_gate=gate)

    return await engine_registry.open(session_id, build)


def keeps_engine(engine: SessionEngine) -> bool:
    """Guest and ungraded test sessions live only in their engine."""
    return engine.is_guest or engine.rules.grade_on_submit


@router.post("/{session_id}/start", response_model=APIResponse[PracticeState])
async def start_session(engine: SessionEngine = Depends(get_engine)):
    if engine.status == EngineStatus.PAUSED:
        state = await engine.resume()
    else:
        state = engine.view()
    return APIResponse(message="Session ready", data=state)


@router.get("/{session_id}/state", response_model=APIResponse[PracticeState])
async def get_state(engine: SessionEngine = Depends(get_engine)):
    return APIResponse(message="Session state retrieved", data=engine.view())


@router.post("/{session_id}/answer", response_model=APIResponse[AnswerOutcome])
async def select_answer(answer_in: AnswerSubmission, engine: SessionEngine = Depends(get_engine)):
    outcome = await engine.select_answer(answer_in.question_id, answer_in.choice, force=answer_in.force)
    if not outcome.accepted:
        message = "Sign up to keep practicing"
    elif outcome.is_correct is None:
        message = "Answer saved"
    elif outcome.answered:
        message = "Correct answer" if outcome.is_correct else "Answer recorded"
    else:
        message = "Not quite, try again"
    return APIResponse(message=message, data=outcome)


@router.post("/{session_id}/hint", response_model=APIResponse[HintOutcome])
async def request_hint(hint_in: HintRequest, engine: SessionEngine = Depends(get_engine)):
    outcome = engine.request_hint(hint_in.level)
    message = "Hint revealed" if outcome.unlocked else "Hint not available"
    return APIResponse(message=message, data=outcome)


@router.post("/{session_id}/solution", response_model=APIResponse[SolutionOutcome])
async def toggle_solution(engine: SessionEngine = Depends(get_engine)):
    outcome = engine.toggle_solution()
    return APIResponse(message="Solution shown" if outcome.visible else "Solution hidden", data=outcome)


@router.post("/{session_id}/navigate", response_model=APIResponse[PracticeState])
async def navigate(nav_in: NavigationRequest, engine: SessionEngine = Depends(get_engine)):
    if nav_in.index is not None:
        state = engine.jump_to(nav_in.index)
    elif nav_in.direction == "next":
        state = engine.advance()
    else:
        state = engine.retreat()
    return APIResponse(message="Navigated", data=state)


@router.post("/{session_id}/pause", response_model=APIResponse[PracticeState])
async def pause_session(engine: SessionEngine = Depends(get_engine)):
    state = await engine.pause()
    if not keeps_engine(engine):
        await engine_registry.discard(engine.session_id)
    return APIResponse(message="Session paused", data=state)


@router.post("/{session_id}/resume", response_model=APIResponse[PracticeState])
async def resume_session(engine: SessionEngine = Depends(get_engine)):
    state = await engine.resume()
    return APIResponse(message="Session resumed", data=state)


@router.post("/{session_id}/complete", response_model=APIResponse[CompletionResult])
async def complete_session(engine: SessionEngine = Depends(get_engine)):
    result = await engine.complete()
    if not engine.is_guest:
        await engine_registry.discard(engine.session_id)
    return APIResponse(message="Session completed", data=result)
