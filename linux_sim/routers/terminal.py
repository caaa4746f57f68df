from fastapi import APIRouter, HTTPException, Response

from linux_sim.schemas.commands import (
    CommandExecuted, CommandHistory, CommandRequest, CommandResult, SessionState
)
from linux_sim.schemas.filesystem import Statistics, TreeEntry
from linux_sim.services.session import SessionNotFoundError, session_service
from linux_sim.websocket import manager

router = APIRouter(prefix="/api/sessions", tags=["terminal"])


def _session_not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Session not found")


@router.post("/{session_id}/execute", response_model=CommandResult)
async def execute_command(session_id: str, request: CommandRequest):
    """
    Run one command line in the session's filesystem, creating it if needed.

    Command failures come back as error results, not HTTP errors.
    """
    result = session_service.execute(session_id, request.command)
    try:
        state = session_service.get_state(session_id)
    except SessionNotFoundError:
        # Evicted by a concurrent request right after running
        raise _session_not_found()

    event = CommandExecuted(
        session_id=session_id,
        command=request.command,
        error=result.error,
        clear=result.clear,
        current_path=state.current_path,
        statistics=state.statistics
    )
    await manager.broadcast_command(event)

    return result


@router.get("/{session_id}", response_model=SessionState)
async def get_session(session_id: str):
    """Current path, prompt and statistics for the display header"""
    try:
        return session_service.get_state(session_id)
    except SessionNotFoundError:
        raise _session_not_found()


@router.get("/{session_id}/tree", response_model=list[TreeEntry])
async def get_tree(session_id: str):
    """Indented listing of the current directory's descendants"""
    try:
        return session_service.get_tree(session_id)
    except SessionNotFoundError:
        raise _session_not_found()


@router.get("/{session_id}/statistics", response_model=Statistics)
async def get_statistics(session_id: str):
    try:
        return session_service.get_statistics(session_id)
    except SessionNotFoundError:
        raise _session_not_found()


@router.get("/{session_id}/history", response_model=CommandHistory)
async def get_history(session_id: str):
    try:
        return session_service.get_history(session_id)
    except SessionNotFoundError:
        raise _session_not_found()


@router.post("/{session_id}/reset", response_model=SessionState)
async def reset_session(session_id: str):
    """Throw the session's tree away and start again from the seed"""
    session_service.reset(session_id)
    try:
        return session_service.get_state(session_id)
    except SessionNotFoundError:
        raise _session_not_found()


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str):
    if not session_service.remove(session_id):
        raise _session_not_found()
    return Response(status_code=204)
