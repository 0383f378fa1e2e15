"""Domain-separated binary Merkle tree over typed leaf tuples.

- LeafHash(value) = keccak256(0x00 || abi.encode(leaf_encoding, value))
- NodeHash(a, b)  = keccak256(0x01 || min(a, b) || max(a, b))

Leaves keep their original order. An odd node at the end of a level is
carried upward unchanged. Sibling pairs are sorted before hashing, so a
proof is just the list of sibling digests and carries no left/right flags.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Sequence, Tuple, Union

import pydantic

from .crypto import digest_bytes, jcs_dumps, keccak256, to_hex
from .encoding import check_leaf_encoding, encode_leaf, leaf_to_json, normalize_leaf
from .errors import FormatError, LeafIndexError, ValidationError
from .models import TREE_FORMAT, SerializedTree

log = logging.getLogger(__name__)

LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"

Digest = Union[bytes, str]


def hash_leaf(encoded: bytes) -> bytes:
    return keccak256(LEAF_PREFIX + encoded)


def hash_pair(a: bytes, b: bytes) -> bytes:
    if b < a:
        a, b = b, a
    return keccak256(NODE_PREFIX + a + b)


def leaf_digest(value: Sequence[Any], leaf_encoding: Sequence[str]) -> bytes:
    return hash_leaf(encode_leaf(check_leaf_encoding(leaf_encoding), value))


def build_levels(leaves: List[bytes]) -> List[List[bytes]]:
    if not leaves:
        raise ValidationError("no leaves")
    lvl = list(leaves)
    levels = [lvl]
    while len(lvl) > 1:
        nxt = [hash_pair(lvl[i], lvl[i + 1]) for i in range(0, len(lvl) - 1, 2)]
        if len(lvl) % 2:
            nxt.append(lvl[-1])  # odd node promoted as-is
        levels.append(nxt)
        lvl = nxt
    return levels


def process_proof(leaf: Digest, proof: Sequence[Digest]) -> bytes:
    """Fold ``proof`` into ``leaf`` and return the implied root."""
    h = digest_bytes(leaf)
    for sibling in proof:
        h = hash_pair(h, digest_bytes(sibling))
    return h


def verify_inclusion(leaf: Digest, proof: Sequence[Digest], root: Digest) -> bool:
    return process_proof(leaf, proof) == digest_bytes(root)


def verify(
    root: Digest, leaf_encoding: Sequence[str], value: Sequence[Any], proof: Sequence[Digest]
) -> bool:
    """Check that ``value`` is included under ``root`` using only the proof."""
    return verify_inclusion(leaf_digest(value, leaf_encoding), proof, root)


@dataclass(frozen=True)
class MerkleTree:
    leaf_encoding: Tuple[str, ...]
    values: Tuple[Tuple[Any, ...], ...]
    levels: Tuple[Tuple[bytes, ...], ...]  # level 0 = leaf digests, last = (root,)

    @classmethod
    def build(cls, values: Sequence[Sequence[Any]], leaf_encoding: Sequence[str]) -> "MerkleTree":
        types = check_leaf_encoding(leaf_encoding)
        leaves = tuple(normalize_leaf(types, v) for v in values)
        if not leaves:
            raise ValidationError("no leaves")
        levels = build_levels([hash_leaf(encode_leaf(types, v)) for v in leaves])
        log.debug("built tree: %d leaves, depth %d", len(leaves), len(levels) - 1)
        return cls(types, leaves, tuple(tuple(lvl) for lvl in levels))

    @property
    def root_bytes(self) -> bytes:
        return self.levels[-1][0]

    @property
    def root(self) -> str:
        return to_hex(self.root_bytes)

    def __len__(self) -> int:
        return len(self.values)

    def entries(self) -> Iterator[Tuple[int, Tuple[Any, ...]]]:
        """Yield ``(index, value)`` in original order; each call starts over."""
        for i, value in enumerate(self.values):
            yield i, value

    def leaf_hash(self, value: Sequence[Any]) -> str:
        return to_hex(hash_leaf(encode_leaf(self.leaf_encoding, value)))

    def leaf_lookup(self, value: Sequence[Any]) -> int:
        leaf = normalize_leaf(self.leaf_encoding, value)
        for i, v in enumerate(self.values):
            if v == leaf:
                return i
        raise ValidationError("leaf is not in tree")

    def _resolve(self, index_or_value: Union[int, Sequence[Any]]) -> int:
        if isinstance(index_or_value, (list, tuple)):
            return self.leaf_lookup(index_or_value)
        if isinstance(index_or_value, bool) or not isinstance(index_or_value, int):
            raise ValidationError(f"leaf index must be an integer, got {index_or_value!r}")
        if not 0 <= index_or_value < len(self.values):
            raise LeafIndexError(
                f"leaf index {index_or_value} out of range [0, {len(self.values)})"
            )
        return index_or_value

    def get_proof(self, index_or_value: Union[int, Sequence[Any]]) -> List[str]:
        """Return sibling digests from the leaf level up to (excluding) the root."""
        idx = self._resolve(index_or_value)
        proof = []
        for level in self.levels[:-1]:
            sibling = idx ^ 1
            if sibling < len(level):
                proof.append(to_hex(level[sibling]))
            idx //= 2
        return proof

    def verify(self, index_or_value: Union[int, Sequence[Any]], proof: Sequence[Digest]) -> bool:
        idx = self._resolve(index_or_value)
        return verify_inclusion(self.levels[0][idx], proof, self.root_bytes)

    def validate(self) -> None:
        """Recompute every digest from the leaf values; raise FormatError on mismatch."""
        try:
            expected = build_levels(
                [hash_leaf(encode_leaf(self.leaf_encoding, v)) for v in self.values]
            )
        except ValidationError as e:
            raise FormatError(f"invalid leaf data: {e}") from e
        if len(expected) != len(self.levels):
            raise FormatError("tree depth does not match leaf count")
        for depth, (want, got) in enumerate(zip(expected, self.levels)):
            if tuple(want) != tuple(got):
                raise FormatError(f"digest mismatch at level {depth}")

    def render(self) -> str:
        lines = []
        top = len(self.levels) - 1
        for depth in range(top, -1, -1):
            pad = "  " * (top - depth)
            for i, d in enumerate(self.levels[depth]):
                lines.append(f"{pad}{depth}.{i}) {to_hex(d)}")
        return "\n".join(lines)

    def dump(self) -> dict:
        return {
            "format": TREE_FORMAT,
            "leaf_encoding": list(self.leaf_encoding),
            "values": [
                {"index": i, "value": leaf_to_json(self.leaf_encoding, v)}
                for i, v in self.entries()
            ],
            "levels": [[to_hex(d) for d in level] for level in self.levels],
        }

    @classmethod
    def load(cls, data: Union[dict, str, bytes]) -> "MerkleTree":
        try:
            if isinstance(data, (str, bytes)):
                st = SerializedTree.model_validate_json(data)
            else:
                st = SerializedTree.model_validate(data)
        except pydantic.ValidationError as e:
            raise FormatError(f"invalid tree payload ({e.error_count()} errors)") from e
        if st.format != TREE_FORMAT:
            raise FormatError(f"unknown tree format: {st.format!r}")
        for expected, rec in enumerate(st.values):
            if rec.index != expected:
                raise FormatError(f"leaf index {rec.index} at position {expected}")
        try:
            types = check_leaf_encoding(st.leaf_encoding)
            values = tuple(normalize_leaf(types, rec.value) for rec in st.values)
        except ValidationError as e:
            raise FormatError(f"invalid leaf data: {e}") from e
        levels = tuple(tuple(bytes.fromhex(d[2:]) for d in level) for level in st.levels)
        tree = cls(types, values, levels)
        tree.validate()
        return tree


def write_tree(tree: MerkleTree, path: Union[str, Path]) -> Path:
    """Write ``tree.dump()`` as canonical JSON, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(jcs_dumps(tree.dump()))
    return out


def read_tree(path: Union[str, Path]) -> MerkleTree:
    return MerkleTree.load(Path(path).read_bytes())
