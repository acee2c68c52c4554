"""
Chat Routes
===========

Child-facing endpoints. Every message passes the FilterGate on the way in
and the ResponseFilter on the way out; a blocked message never reaches
the AI response generator.
"""

from fastapi import APIRouter, Depends, Request

from ...schemas.filtering import ChatRequest, LessonStartRequest
from ...services.response_generator import ResponseGenerator
from ..dependencies import get_filter_gate, get_response_generator
from ..filter_gate import FilterGate, GateRequest

router = APIRouter(tags=["chat"])


@router.post("/chat")
async def chat(
    request: Request,
    payload: ChatRequest,
    gate: FilterGate = Depends(get_filter_gate),
    generator: ResponseGenerator = Depends(get_response_generator),
):
    """Filter the message, ask the generator, filter the reply."""
    gate_request = GateRequest.from_request(
        request, payload.model_dump(by_alias=True, exclude_none=True)
    )

    decision = gate.filter_user_input(gate_request)
    if not decision.allowed:
        return decision.to_response()
    request.state.content_filter = gate_request.state.get("content_filter")

    age_group = gate_request.resolve_age_group()
    reply = await generator.generate(
        gate_request.body["message"], age_group, gate_request.context
    )

    response_filter = gate.filter_ai_response(
        gate_request, validate_language=payload.validate_language
    )
    return response_filter.apply(
        {"content": reply, "ageGroup": age_group.value if age_group else None}
    )


@router.post("/lessons/start")
async def start_lesson(
    request: Request,
    payload: LessonStartRequest,
    gate: FilterGate = Depends(get_filter_gate),
):
    """Check that the requested topic suits the child's age group."""
    gate_request = GateRequest.from_request(
        request, payload.model_dump(by_alias=True, exclude_none=True)
    )

    decision = gate.validate_age_appropriate_access(gate_request)
    if not decision.allowed:
        return decision.to_response()

    age_group = gate_request.resolve_age_group()
    return {
        "started": True,
        "topic": payload.topic,
        "subject": payload.subject,
        "ageGroup": age_group.value if age_group else None,
    }
