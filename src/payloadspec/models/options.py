from __future__ import annotations
from typing import Any, Callable, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from payloadspec.binary.errors import ValidationError
from .common import Encoding


class TypeOptions(BaseModel):
    """
    Per-field read options. Validated once, when the field is added to a spec.

    `transform` may also be given as `then`; `expected` as `should_be`/`shouldBe`.
    An `expected` value only takes part in validation when it was explicitly
    supplied, so `expected=None`, `0`, `False` and `""` are all checked.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    size: int | None = Field(None, ge=0)
    encoding: Encoding = Encoding.UTF8
    terminator: int | None = None
    dp: int | None = Field(None, ge=0)
    transform: Optional[Callable[[Any], Any]] = Field(
        None, validation_alias=AliasChoices("transform", "then")
    )
    expected: Any = Field(
        None, validation_alias=AliasChoices("expected", "should_be", "shouldBe")
    )

    @field_validator("terminator", mode="before")
    @classmethod
    def _terminator_byte(cls, v):
        if v is None:
            return v
        if isinstance(v, str):
            raw = v.encode("utf-8")
            if len(raw) != 1:
                raise ValueError("terminator must be a single byte-sized character")
            return raw[0]
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError("terminator must be a byte value or a single character")
        if not 0 <= v <= 0xFF:
            raise ValueError(f"terminator byte {v} not in 0..255")
        return v

    @property
    def has_expected(self) -> bool:
        return "expected" in self.model_fields_set

    def matches(self, value: Any) -> bool:
        # booleans never equal numbers here, even though True == 1 in Python
        if isinstance(value, bool) != isinstance(self.expected, bool):
            return False
        return value == self.expected

    def finish(self, name: str, value: Any) -> Any:
        """Apply `transform`, then check against `expected` when one was given."""
        if self.transform is not None:
            value = self.transform(value)
        if self.has_expected and not self.matches(value):
            raise ValidationError(name, self.expected, value)
        return value

    @classmethod
    def of(cls, options: "TypeOptions | dict | None" = None, **kwargs) -> "TypeOptions":
        if isinstance(options, TypeOptions):
            if not kwargs:
                return options
            options = {**options.model_dump(exclude_unset=True), **kwargs}
        else:
            options = {**(options or {}), **kwargs}
        return cls.model_validate(options)
