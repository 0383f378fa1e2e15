from __future__ import annotations
import os
import datetime
import logging
from pathlib import Path
from typing import Dict, List, Tuple

from fastapi import FastAPI, HTTPException

from .settings import settings
from .encoding import leaf_to_json
from .errors import FormatError, LeafIndexError, ValidationError
from .merkle import MerkleTree, read_tree, verify
from .models import ProofEntry, ProofResponse, TreeSummary, VerifyRequest
from .middleware.size_limit import SizeLimitMiddleware

log = logging.getLogger(__name__)

app = FastAPI(title="Billboard Merkle")
app.add_middleware(SizeLimitMiddleware)

_cache: Dict[str, Tuple[float, MerkleTree]] = {}


def _tree_path() -> Path:
    return Path(os.getenv("BILLBOARD_TREE_PATH", settings.tree_path))


def _load_tree() -> MerkleTree:
    path = _tree_path()
    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="tree not built")
    key = str(path.resolve())
    hit = _cache.get(key)
    if hit is not None and hit[0] == mtime:
        return hit[1]
    try:
        tree = read_tree(path)
    except FormatError as e:
        log.error("cannot load tree from %s: %s", path, e)
        raise HTTPException(status_code=500, detail="tree file is corrupt")
    _cache[key] = (mtime, tree)
    return tree


def _json_value(tree: MerkleTree, value) -> list:
    return leaf_to_json(tree.leaf_encoding, value)


@app.get("/healthz")
async def healthz():
    return {"ok": True, "ts": datetime.datetime.now(datetime.timezone.utc).isoformat()}


@app.get("/tree", response_model=TreeSummary)
async def tree_summary():
    tree = _load_tree()
    return TreeSummary(root=tree.root, leaf_encoding=list(tree.leaf_encoding), size=len(tree))


@app.get("/tree/entries", response_model=List[ProofEntry])
async def tree_entries():
    tree = _load_tree()
    return [
        ProofEntry(index=i, value=_json_value(tree, v), proof=tree.get_proof(i))
        for i, v in tree.entries()
    ]


@app.get("/tree/proof/{index}", response_model=ProofResponse)
async def tree_proof(index: int):
    tree = _load_tree()
    try:
        proof = tree.get_proof(index)
    except LeafIndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    value = tree.values[index]
    return ProofResponse(
        index=index,
        value=_json_value(tree, value),
        proof=proof,
        leaf=tree.leaf_hash(value),
        root=tree.root,
    )


@app.post("/tree/verify")
async def tree_verify(req: VerifyRequest):
    tree = _load_tree()
    try:
        ok = verify(tree.root, tree.leaf_encoding, req.value, req.proof)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"valid": bool(ok)}
