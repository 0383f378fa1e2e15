import pytest

from billboard_api.crypto import to_hex
from billboard_api.errors import LeafIndexError, ValidationError
from billboard_api.merkle import (
    MerkleTree,
    build_levels,
    hash_leaf,
    hash_pair,
    leaf_digest,
    process_proof,
    verify,
    verify_inclusion,
)

T = ["string", "address", "uint256"]


def _flip(digest_hex: str, pos: int) -> str:
    b = bytearray(bytes.fromhex(digest_hex[2:]))
    b[pos] ^= 0x01
    return to_hex(bytes(b))


def test_merkle_basic():
    leaves = [hash_leaf(f"leaf-{i}".encode()) for i in range(5)]
    levels = build_levels(leaves)
    assert [len(lvl) for lvl in levels] == [5, 3, 2, 1]
    # odd node promoted unchanged
    assert levels[1][2] == leaves[4]
    assert levels[2][1] == leaves[4]


def test_root_is_deterministic(billboard_values):
    a = MerkleTree.build(billboard_values, T)
    b = MerkleTree.build(billboard_values, T)
    assert a.root == b.root
    assert a.root.startswith("0x") and len(a.root) == 66


def test_root_depends_on_order(billboard_values):
    a = MerkleTree.build(billboard_values, T)
    b = MerkleTree.build(list(reversed(billboard_values)), T)
    assert a.root != b.root


def test_billboard_scenario(billboard_tree, billboard_values):
    proof = billboard_tree.get_proof(1)
    assert len(proof) == 2
    leaf = leaf_digest(billboard_values[1], T)
    assert verify_inclusion(leaf, proof, billboard_tree.root)
    assert verify(billboard_tree.root, T, billboard_values[1], proof)
    # last leaf is promoted, so its proof is one element shorter
    assert len(billboard_tree.get_proof(2)) == 1


def test_every_proof_verifies(billboard_values):
    values = billboard_values + [
        ["QmExtra%d" % i, "0x%040x" % (0x100 + i), str(i)] for i in range(6)
    ]
    tree = MerkleTree.build(values, T)
    for i, value in tree.entries():
        proof = tree.get_proof(i)
        assert tree.verify(i, proof)
        assert verify(tree.root, T, value, proof)
        assert to_hex(process_proof(tree.leaf_hash(value), proof)) == tree.root


def test_mutated_proof_fails(billboard_tree, billboard_values):
    proof = billboard_tree.get_proof(1)
    for k in range(len(proof)):
        for pos in (0, 17, 31):
            bad = list(proof)
            bad[k] = _flip(bad[k], pos)
            assert not verify(billboard_tree.root, T, billboard_values[1], bad)


def test_mutated_value_fails(billboard_tree, billboard_values):
    proof = billboard_tree.get_proof(1)
    value = list(billboard_values[1])
    value[2] = "2056"
    assert not verify(billboard_tree.root, T, value, proof)
    value = list(billboard_values[1])
    value[0] = value[0][:-1] + "f"
    assert not verify(billboard_tree.root, T, value, proof)


def test_proof_for_wrong_leaf_fails(billboard_tree, billboard_values):
    assert not verify(billboard_tree.root, T, billboard_values[0], billboard_tree.get_proof(1))


def test_pair_order_independent():
    a = hash_leaf(b"a")
    b = hash_leaf(b"b")
    assert hash_pair(a, b) == hash_pair(b, a)


def test_sibling_order_does_not_matter(billboard_tree, billboard_values):
    leaf = leaf_digest(billboard_values[0], T)
    sibling = billboard_tree.levels[0][1]
    assert process_proof(leaf, [sibling]) == process_proof(sibling, [leaf])


def test_leaf_and_node_hashes_are_separated():
    a = hash_leaf(b"a")
    b = hash_leaf(b"b")
    lo, hi = sorted([a, b])
    assert hash_pair(a, b) != hash_leaf(lo + hi)


def test_leaf_digest_binds_types():
    addr = "0x0000000000000000000000000000000000000066"
    as_uint = leaf_digest([0x66], ["uint256"])
    as_addr = leaf_digest([addr], ["address"])
    assert as_uint != as_addr


def test_empty_tree_rejected():
    with pytest.raises(ValidationError):
        MerkleTree.build([], T)
    with pytest.raises(ValidationError):
        build_levels([])


def test_single_leaf(billboard_values):
    tree = MerkleTree.build(billboard_values[:1], T)
    assert tree.root == to_hex(leaf_digest(billboard_values[0], T))
    assert tree.get_proof(0) == []
    assert tree.verify(0, [])
    assert verify(tree.root, T, billboard_values[0], [])


def test_proof_index_out_of_range(billboard_tree):
    with pytest.raises(LeafIndexError):
        billboard_tree.get_proof(3)
    with pytest.raises(IndexError):
        billboard_tree.get_proof(-1)


def test_proof_index_must_be_int(billboard_tree):
    with pytest.raises(ValidationError):
        billboard_tree.get_proof(True)
    with pytest.raises(ValidationError):
        billboard_tree.get_proof(1.0)


def test_proof_by_value(billboard_tree, billboard_values):
    assert billboard_tree.get_proof(billboard_values[2]) == billboard_tree.get_proof(2)
    assert billboard_tree.leaf_lookup(billboard_values[1]) == 1
    with pytest.raises(ValidationError):
        billboard_tree.leaf_lookup(["nope", "0x0000000000000000000000000000000000000001", 1])


def test_entries_restartable(billboard_tree, billboard_values):
    first = list(billboard_tree.entries())
    second = list(billboard_tree.entries())
    assert first == second
    assert [i for i, _ in first] == [0, 1, 2]
    assert first[0][1][2] == 1000
    assert len(billboard_tree) == 3


def test_arity_mismatch(billboard_values):
    with pytest.raises(ValidationError):
        MerkleTree.build([billboard_values[0][:2]], T)
    with pytest.raises(ValidationError):
        MerkleTree.build([billboard_values[0] + ["x"]], T)


def test_type_mismatch(billboard_values):
    bad = list(billboard_values[0])
    bad[1] = "not-an-address"
    with pytest.raises(ValidationError):
        MerkleTree.build([bad], T)
    bad = list(billboard_values[0])
    bad[2] = "-1"
    with pytest.raises(ValidationError):
        MerkleTree.build([bad], T)


def test_malformed_proof_element(billboard_tree, billboard_values):
    with pytest.raises(ValidationError):
        verify(billboard_tree.root, T, billboard_values[0], ["0x1234"])


def test_render_lists_every_digest(billboard_tree):
    out = billboard_tree.render()
    assert out.splitlines()[0] == f"2.0) {billboard_tree.root}"
    assert len(out.splitlines()) == 3 + 2 + 1


def test_billboard_root_is_pinned(billboard_tree):
    assert billboard_tree.root == "0x7dfad0d545b9b4cce1ff8f7db60fcf47d66e97924599fe1bf1918a91bfcef1a7"
    assert [to_hex(d) for d in billboard_tree.levels[0]] == [
        "0xad73e185c89d31d12d4f37d240723f41337196b98629e8961689832a41e8b9d0",
        "0x737573c06e3797dbb17de9fd158c1da75a88f951ccd393125b390690ee241014",
        "0x60cc8578b8133d34554bb322b0497d62ccc0599ed542966a54497620d053a80f",
    ]


def test_lone_surrogate_string_rejected(billboard_values):
    bad = list(billboard_values[0])
    bad[0] = "\ud800"
    with pytest.raises(ValidationError):
        MerkleTree.build([bad], T)


def test_type_tag_with_trailing_newline_rejected(billboard_values):
    with pytest.raises(ValidationError):
        MerkleTree.build(billboard_values, ["string", "address", "uint256\n"])


def test_oversized_amount_string_rejected(billboard_values):
    bad = list(billboard_values[0])
    bad[2] = "9" * 5000
    with pytest.raises(ValidationError):
        MerkleTree.build([bad], T)
