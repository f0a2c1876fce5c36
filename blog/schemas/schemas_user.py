# blog/schemas/schemas_user.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, constr


class UserCreate(BaseModel):
    username: constr(min_length=1, max_length=80)
    # bcrypt only looks at the first 72 bytes
    password: constr(min_length=1, max_length=72)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    password: str
    created_at: datetime
