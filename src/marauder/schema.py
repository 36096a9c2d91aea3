from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from marauder.bootstrapper import DEFAULT_SHIM


class LauncherSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    interpreter: str = "php"
    interpreter_args: List[str] = []
    shim: str = DEFAULT_SHIM
    env: Dict[str, str] = {}


class CommandDTO(BaseModel):
    executable: str
    args: List[str]
    env: Dict[str, str] = {}


class ServerInfoDTO(BaseModel):
    name: str
    version: Optional[str] = None


class ProbeResponseDTO(BaseModel):
    server_id: str
    command: CommandDTO
    server_info: Optional[ServerInfoDTO] = None
    capabilities: Dict[str, object] = {}
    exit_code: Optional[int] = None
