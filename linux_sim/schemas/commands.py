from pydantic import BaseModel

from linux_sim.schemas.filesystem import Statistics


class CommandRequest(BaseModel):
    """Raw command line typed by the user"""
    command: str


class CommandResult(BaseModel):
    """Outcome of a single command line"""
    output: str = ""
    error: bool = False
    clear: bool = False


class CommandHistory(BaseModel):
    """Every line passed to execute, oldest first"""
    session_id: str
    commands: list[str]


class SessionState(BaseModel):
    """Read-only view of a session used to refresh the display"""
    session_id: str
    current_path: str
    home_path: str
    prompt: str
    statistics: Statistics


class CommandExecuted(BaseModel):
    """Broadcast after every executed command"""
    session_id: str
    command: str
    error: bool
    clear: bool
    current_path: str
    statistics: Statistics
