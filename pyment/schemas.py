from __future__ import annotations

from pydantic import BaseModel


class Info(BaseModel):
    env: str
    port: str
    endpoint: str
