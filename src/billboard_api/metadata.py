"""ABI encoding of token metadata for the ``metadata`` contract call.

The encoded bytes are the arguments of

    metadata((string,string,(string,string)[]) data,
             (uint32,uint32,uint256) svgTexts)

without the 4-byte selector unless asked for. The three counters are passed
explicitly; they are not scraped from the rendered image.
"""
from __future__ import annotations
import base64
import binascii
import json
from pathlib import Path
from typing import List, Optional, Union

import eth_abi
import pydantic
from eth_abi.exceptions import EncodingError
from eth_utils import function_signature_to_4byte_selector
from pydantic import BaseModel, Field, StrictStr

from .errors import ValidationError

JSON_DATA_URI_PREFIX = "data:application/json;base64,"

METADATA_SIGNATURE = "metadata((string,string,(string,string)[]),(uint32,uint32,uint256))"
METADATA_ARG_TYPES = ["(string,string,(string,string)[])", "(uint32,uint32,uint256)"]

_UINT32_MAX = (1 << 32) - 1
_UINT256_MAX = (1 << 256) - 1


class Attribute(BaseModel):
    trait_type: StrictStr
    value: StrictStr


class TokenMetadata(BaseModel):
    name: StrictStr
    description: StrictStr
    image: Optional[StrictStr] = None
    attributes: List[Attribute] = Field(default_factory=list)


class ImageCounters(BaseModel):
    log_count: int = Field(ge=0, le=_UINT32_MAX)
    transfer_count: int = Field(ge=0, le=_UINT32_MAX)
    token_id: int = Field(ge=0, le=_UINT256_MAX)


def decode_data_uri(uri: str, prefix: str = JSON_DATA_URI_PREFIX) -> bytes:
    if not uri.startswith(prefix):
        raise ValidationError(f"expected a {prefix!r} data URI")
    try:
        return base64.b64decode(uri[len(prefix):].encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValidationError("invalid base64 in data URI") from e


def parse_metadata(source: Union[str, dict]) -> TokenMetadata:
    """Accept a dict, JSON text, a base64 JSON data URI or a path to a JSON file."""
    if isinstance(source, dict):
        raw = source
    else:
        text = source.strip()
        if text.startswith(JSON_DATA_URI_PREFIX):
            try:
                text = decode_data_uri(text).decode("utf-8")
            except UnicodeDecodeError as e:
                raise ValidationError("metadata is not UTF-8 JSON") from e
        elif text.startswith("data:"):
            raise ValidationError("metadata data URI must be base64 JSON")
        elif not text.startswith("{"):
            text = Path(text).read_text(encoding="utf-8")
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"invalid metadata JSON: {e}") from e
    try:
        return TokenMetadata.model_validate(raw)
    except pydantic.ValidationError as e:
        raise ValidationError(f"invalid metadata ({e.error_count()} errors)") from e


def make_counters(log_count: int, transfer_count: int, token_id: int) -> ImageCounters:
    try:
        return ImageCounters(
            log_count=log_count, transfer_count=transfer_count, token_id=token_id
        )
    except pydantic.ValidationError as e:
        raise ValidationError(f"invalid counters ({e.error_count()} errors)") from e


def encode_metadata_call(
    metadata: TokenMetadata, counters: ImageCounters, with_selector: bool = False
) -> bytes:
    data = (
        metadata.name,
        metadata.description,
        [(a.trait_type, a.value) for a in metadata.attributes],
    )
    texts = (counters.log_count, counters.transfer_count, counters.token_id)
    try:
        encoded = eth_abi.encode(METADATA_ARG_TYPES, [data, texts])
    except EncodingError as e:
        raise ValidationError(str(e)) from e
    if with_selector:
        return function_signature_to_4byte_selector(METADATA_SIGNATURE) + encoded
    return encoded
