from pydantic import BaseModel


class ClaimRequest(BaseModel):
    legacy_id: str
    code: str
    password: str
    display_name: str | None = None
