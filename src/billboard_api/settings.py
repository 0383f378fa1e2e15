from __future__ import annotations
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    tree_path: str = Field(default="./out/tree.json", alias="BILLBOARD_TREE_PATH")
    leaves_path: str = Field(
        default="./data/billboard_leaves.json", alias="BILLBOARD_LEAVES_PATH"
    )

    # Comma-separated leaf types used when a leaf file is a bare array
    leaf_types: str = Field(
        default="string,address,uint256", alias="BILLBOARD_LEAF_TYPES"
    )

    # Request size limit enforced by middleware (bytes)
    max_request_bytes: int = Field(default=65536, alias="BILLBOARD_MAX_REQUEST_BYTES")

    log_level: str = Field(default="INFO", alias="BILLBOARD_LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()  # load at import
