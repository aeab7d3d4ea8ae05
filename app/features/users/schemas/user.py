from pydantic import BaseModel


class SetDefaultSpaceRequest(BaseModel):
    space_id: str
