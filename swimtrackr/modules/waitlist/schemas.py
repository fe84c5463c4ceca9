from pydantic import BaseModel
from typing import Optional


class WaitlistEntry(BaseModel):
    """Landing page form payload; field names follow the frontend's camelCase"""
    email: Optional[str] = None
    name: Optional[str] = None
    captchaToken: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.email and self.name and self.captchaToken)

    @property
    def first_name(self) -> str:
        return (self.name or "").split(" ")[0]

    @property
    def last_name(self) -> str:
        return " ".join((self.name or "").split(" ")[1:])


class WaitlistResponse(BaseModel):
    message: str
