from __future__ import annotations
from typing import Any, List, Optional
from pydantic import BaseModel, Field, StrictInt, StrictStr, field_validator
from pydantic import ConfigDict

TREE_FORMAT = "billboard-merkle-v1"

_DIGEST_HEX_LEN = 2 + 64


class LeafRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: StrictInt = Field(ge=0)
    value: List[Any]


class SerializedTree(BaseModel):
    """Persisted tree (strict).

    ``values`` keeps the original leaf order and indices; ``levels`` holds
    every digest from the leaf level up to the root as 0x-prefixed hex. The
    engine recomputes all levels from ``values`` on load and rejects the
    payload if any stored digest disagrees.
    """

    model_config = ConfigDict(extra="forbid")

    format: StrictStr
    leaf_encoding: List[StrictStr] = Field(min_length=1)
    values: List[LeafRecord] = Field(min_length=1)
    levels: List[List[StrictStr]] = Field(min_length=1)

    @field_validator("levels")
    @classmethod
    def _digests_are_hex(cls, v):  # type: ignore[override]
        for level in v:
            if not level:
                raise ValueError("empty tree level")
            for d in level:
                if len(d) != _DIGEST_HEX_LEN or not d.startswith("0x"):
                    raise ValueError("digest must be 0x-prefixed 32-byte hex")
                try:
                    bytes.fromhex(d[2:])
                except ValueError:
                    raise ValueError("digest must be 0x-prefixed 32-byte hex")
        return v


class LeafFile(BaseModel):
    """Input leaf list: field types plus ordered leaf tuples."""

    model_config = ConfigDict(extra="forbid")

    leaf_encoding: Optional[List[StrictStr]] = None
    values: List[List[Any]]


class TreeSummary(BaseModel):
    root: str
    leaf_encoding: List[str]
    size: int


class ProofEntry(BaseModel):
    index: int
    value: List[Any]
    proof: List[str]


class ProofResponse(ProofEntry):
    leaf: str
    root: str


class VerifyRequest(BaseModel):
    value: List[Any]
    proof: List[str] = Field(default_factory=list)
