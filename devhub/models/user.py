from pydantic import BaseModel
from typing import Optional


class UserOut(BaseModel):
    id: str
    name: str
    avatar: Optional[str] = None
