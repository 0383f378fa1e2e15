"""Fuzz harness for tree construction & inclusion proof verification."""
from __future__ import annotations
import atheris
import sys

with atheris.instrument_imports():
    from billboard_api.merkle import MerkleTree, verify

LEAF_ENCODING = ["string", "address", "uint256"]


def TestOneInput(data: bytes):  # noqa: N802
    if not data:
        return
    # Split data deterministically into pseudo-leaves (bounded count)
    # Use fixed-size chunks to avoid quadratic blowups.
    size = max(1, min(32, data[0]))
    chunks = [data[i : i + size] for i in range(1, min(len(data), 1 + size * 32), size)]
    values = [
        [c.hex(), "0x" + c[:20].rjust(20, b"\x00").hex(), int.from_bytes(c, "big")]
        for c in chunks
        if c
    ]
    if not values:
        return
    tree = MerkleTree.build(values, LEAF_ENCODING)
    # Pick an index based on trailing byte
    idx = data[-1] % len(values)
    proof = tree.get_proof(idx)
    if not verify(tree.root, LEAF_ENCODING, values[idx], proof):
        raise RuntimeError("valid inclusion proof failed")
    if MerkleTree.load(tree.dump()).root != tree.root:
        raise RuntimeError("reloaded tree has a different root")


def main():
    atheris.Setup(sys.argv, TestOneInput, enable_python_coverage=True)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
