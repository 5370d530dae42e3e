from pydantic import BaseModel, Field


class KeyBatchIn(BaseModel):
    game_id: str
    keys: str = Field(..., description="newline separated license keys")
