"""Uniform outcome returned by every command and query."""

from typing import Any

from pydantic import BaseModel


class Result(BaseModel):
    is_success: bool
    value: Any = None
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(is_success=True, value=value)

    @classmethod
    def failure(cls, code: str, message: str) -> "Result":
        return cls(is_success=False, error_code=code, error_message=message)

    @property
    def is_failure(self) -> bool:
        return not self.is_success
