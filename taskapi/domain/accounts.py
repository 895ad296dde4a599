"""Contracts for registration and sign-in."""
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SignUpBody(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: Annotated[str, Field(min_length=3, max_length=255)]
    email: EmailStr
    password: Annotated[str, Field(min_length=1, max_length=255)]


class SignInBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: EmailStr
    password: Annotated[str, Field(min_length=1, max_length=255)]


class TokenOut(BaseModel):
    token: str
