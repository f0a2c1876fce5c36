from typing import Optional

from pydantic import BaseModel


class UserLogin(BaseModel):
    # no length rules: any wrong password must end up as "wrong credentials"
    username: str
    password: str


class LoginOut(BaseModel):
    id: int
    username: str


class SessionClaims(BaseModel):
    username: str
    id: int
    iat: int
    exp: Optional[int] = None
