from typing import Annotated
from pydantic import BaseModel, ConfigDict, Field, model_validator

# BSON integers are signed 64-bit
INT64_MIN = -2**63
INT64_MAX = 2**63 - 1

# --- Stored records (Public response contract) ---
# Records are returned as the store holds them, so nothing here is required

class PokemonName(BaseModel):
    model_config = ConfigDict(extra="allow")

    english: str | None = None
    french: str | None = None
    japanese: str | None = None
    chinese: str | None = None

class BaseStats(BaseModel):
    model_config = ConfigDict(extra="allow")

    HP: int | None = None
    Attack: int | None = None
    Defense: int | None = None
    SpecialAttack: int | None = None
    SpecialDefense: int | None = None
    Speed: int | None = None

class Pokemon(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | None = None
    name: PokemonName | None = None
    type: list[str] | None = None
    base: BaseStats | None = None
    image: str | None = None

# --- Request bodies (Input contract) ---

class PokemonNameInput(PokemonName):
    model_config = ConfigDict(extra="forbid")

Stat = Annotated[int, Field(ge=0, le=INT64_MAX)]

class BaseStatsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    HP: Stat
    Attack: Stat
    Defense: Stat
    SpecialAttack: Stat
    SpecialDefense: Stat
    Speed: Stat

class PokemonCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int = Field(ge=INT64_MIN, le=INT64_MAX)
    name: PokemonNameInput
    type: list[str] = Field(min_length=1)
    base: BaseStatsInput | None = None
    image: str | None = None

# `id` is the lookup key and cannot be changed by an update
class PokemonUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: PokemonNameInput | None = None
    type: list[str] | None = Field(default=None, min_length=1)
    base: BaseStatsInput | None = None
    image: str | None = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "PokemonUpdate":
        if not self.model_dump(exclude_none=True):
            raise ValueError("Update body must contain at least one field")
        return self

class PokemonPage(BaseModel):
    page: int
    limit: int
    count: int
    data: list[Pokemon]

class DeleteResponse(BaseModel):
    message: str
    id: int

class ErrorResponse(BaseModel):
    error: str
