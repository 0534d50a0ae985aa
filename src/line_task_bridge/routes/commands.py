"""Command parsing endpoint for debugging chat syntax."""

from fastapi import APIRouter

from ..models.command import Command, ParseCommandRequest
from ..services.command_parser import parse_command

router = APIRouter(prefix="/commands", tags=["commands"])


@router.post("/parse", response_model=Command)
async def parse(request: ParseCommandRequest) -> Command:
    """
    Parse chat text into a command without executing it.

    Example inputs:
    - "/add Fix bug #mobile @high :john"
    - "創建任務：修復登入問題 | 優先級：高"
    - "list status:todo"
    """
    return parse_command(request.text)
