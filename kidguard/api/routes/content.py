"""Direct access to the safety and readability stages."""

from fastapi import APIRouter, Depends

from ...schemas.filtering import FilterRequest, ValidateLanguageRequest
from ..dependencies import get_filter_gate
from ..filter_gate import FilterGate

router = APIRouter(tags=["content"])


@router.post("/filter")
async def filter_content(payload: FilterRequest, gate: FilterGate = Depends(get_filter_gate)):
    """Run the safety stage on a text."""
    result = gate.service.filter_content(
        payload.text, payload.age_group, payload.filter_context()
    )
    return result.to_dict()


@router.post("/validate")
async def validate_language(
    payload: ValidateLanguageRequest, gate: FilterGate = Depends(get_filter_gate)
):
    """Run the readability stage on a text."""
    result = gate.language_service.validate_language(
        payload.text, payload.age_group, payload.filter_context()
    )
    return result.to_dict()


@router.get("/stats")
async def filtering_stats(gate: FilterGate = Depends(get_filter_gate)):
    """Pattern counts and gate configuration."""
    return gate.stats()
