from __future__ import annotations
import json
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

import pydantic

from .encoding import check_leaf_encoding
from .errors import FormatError, ValidationError
from .models import LeafFile

def parse_types(spec: str) -> Tuple[str, ...]:
    """Parse a comma-separated type list such as ``string,address,uint256``."""
    return check_leaf_encoding([t.strip() for t in spec.split(",") if t.strip()])


def load_leaves(
    path: Union[str, Path],
    leaf_encoding: Optional[Sequence[str]] = None,
    default_encoding: Optional[Sequence[str]] = None,
) -> Tuple[List[List[Any]], Tuple[str, ...]]:
    """Read an ordered leaf list and its leaf encoding from a JSON file.

    Two layouts are accepted:

    - ``{"leaf_encoding": [...], "values": [[...], ...]}``
    - a bare array of leaf tuples, typed by ``leaf_encoding`` or
      ``default_encoding``.

    An explicit ``leaf_encoding`` argument overrides the one in the file.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except ValueError as e:
        raise FormatError(f"{path}: invalid JSON: {e}") from e
    if isinstance(raw, list):
        raw = {"values": raw}
    try:
        lf = LeafFile.model_validate(raw)
    except pydantic.ValidationError as e:
        raise FormatError(f"{path}: invalid leaf file ({e.error_count()} errors)") from e
    types = leaf_encoding if leaf_encoding is not None else lf.leaf_encoding
    if types is None:
        types = default_encoding
    if types is None:
        raise FormatError(f"{path}: no leaf encoding given")
    try:
        return lf.values, check_leaf_encoding(types)
    except ValidationError as e:
        raise FormatError(f"{path}: {e}") from e
