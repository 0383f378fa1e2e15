"""Higher-level inclusion proof fuzzing with mutated proofs."""
from __future__ import annotations
import atheris
import sys
import random

with atheris.instrument_imports():
    from billboard_api.crypto import to_hex
    from billboard_api.merkle import MerkleTree, verify

LEAF_ENCODING = ["string", "uint256"]


def TestOneInput(data: bytes):  # noqa: N802
    if len(data) < 8:
        return
    # Derive variable chunk size & mutation seed
    seed = int.from_bytes(data[:4], 'little')
    random.seed(seed)
    chunk_len = 1 + (data[4] % 32)
    body = data[5:]
    raw = [body[i:i+chunk_len] for i in range(0, min(len(body), chunk_len * 16), chunk_len)]
    values = [[x.hex(), i] for i, x in enumerate(raw) if x]
    if len(values) < 3:
        return
    tree = MerkleTree.build(values, LEAF_ENCODING)
    idx = seed % len(values)
    proof = tree.get_proof(idx)
    # With some probability, mutate one sibling to exercise negative path
    if random.random() < 0.2 and proof:
        sib = bytearray(bytes.fromhex(proof[0][2:]))
        sib[random.randrange(len(sib))] ^= 0x01
        proof[0] = to_hex(bytes(sib))
        if verify(tree.root, LEAF_ENCODING, values[idx], proof):
            raise RuntimeError("tampered proof unexpectedly verified")
    elif not verify(tree.root, LEAF_ENCODING, values[idx], proof):
        raise RuntimeError("valid proof failed")


def main():
    atheris.Setup(sys.argv, TestOneInput, enable_python_coverage=True)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
