"""Fuzz harness for loading serialized trees.

Arbitrary fuzzer bytes are fed to MerkleTree.load as JSON text. Anything other
than a clean load or a FormatError is a crash.
"""
from __future__ import annotations
import atheris
import sys

with atheris.instrument_imports():
    from billboard_api.errors import FormatError
    from billboard_api.merkle import MerkleTree


def TestOneInput(data: bytes):  # noqa: N802 (Atheris signature)
    try:
        tree = MerkleTree.load(data)
    except FormatError:
        return
    # A payload that loads must round-trip exactly
    if MerkleTree.load(tree.dump()).root != tree.root:
        raise RuntimeError("reloaded tree has a different root")
    for i, _ in tree.entries():
        if not tree.verify(i, tree.get_proof(i)):
            raise RuntimeError("loaded tree produced an invalid proof")


def main():
    atheris.Setup(sys.argv, TestOneInput, enable_python_coverage=True)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
