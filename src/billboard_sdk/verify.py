from typing import Any, Dict, Sequence
from billboard_api.errors import ValidationError
from billboard_api.merkle import verify, verify_inclusion


def verify_proof(
    root: str, leaf_encoding: Sequence[str], value: Sequence[Any], proof: Sequence[str]
) -> bool:
    """Return True if ``value`` is included under ``root``.

    Needs only the root, the leaf encoding and the proof; the tree itself is
    not required. Malformed values or proof elements yield False.
    """
    try:
        return verify(root, leaf_encoding, value, proof)
    except ValidationError:
        return False


def verify_leaf_digest(leaf: str, proof: Sequence[str], root: str) -> bool:
    """Same as verify_proof but starting from an already computed leaf digest."""
    try:
        return verify_inclusion(leaf, proof, root)
    except ValidationError:
        return False


def verify_proof_json(proof_json: Dict[str, Any], leaf_encoding: Sequence[str]) -> bool:
    """Verify a proof document as served by ``GET /tree/proof/{index}``.

    Expects ``root``, ``value`` and ``proof`` fields. When ``leaf`` is present
    it must match the digest recomputed from ``value``.
    """
    try:
        root = proof_json["root"]
        value = proof_json["value"]
        proof = proof_json["proof"]
    except KeyError:
        return False
    if "leaf" in proof_json:
        from billboard_api.crypto import digest_bytes
        from billboard_api.merkle import leaf_digest

        try:
            if digest_bytes(proof_json["leaf"]) != leaf_digest(value, leaf_encoding):
                return False
        except ValidationError:
            return False
    return verify_proof(root, leaf_encoding, value, proof)
