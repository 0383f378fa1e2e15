import sys
import json
from pathlib import Path

import pytest

# Ensure the 'src' directory is on sys.path for imports in tests
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

LEAF_ENCODING = ["string", "address", "uint256"]

BILLBOARD_VALUES = [
    [
        "Qmf5z5DKcwNWYUP9udvnSCTN2Se4A8kpZJY7JuUVFEqdGU",
        "0x0000000000000000000000000000000000000066",
        "1000",
    ],
    [
        "QmSAwncsWGXeqwrL5USBzQXvjqfH1nFfARLGM91sfd4NZe",
        "0x0000000000000000000000000000000000000067",
        "2055",
    ],
    [
        "QmUQQSeWxcqoNLKroGtz137c7QBWpzbNr9RcqDtVzZxJ3x",
        "0x0000000000000000000000000000000000000068",
        "6945",
    ],
]


@pytest.fixture
def billboard_values():
    return [list(v) for v in BILLBOARD_VALUES]


@pytest.fixture
def billboard_tree(billboard_values):
    from billboard_api.merkle import MerkleTree

    return MerkleTree.build(billboard_values, LEAF_ENCODING)


@pytest.fixture
def leaf_file(tmp_path, billboard_values):
    p = tmp_path / "leaves.json"
    p.write_text(json.dumps({"leaf_encoding": LEAF_ENCODING, "values": billboard_values}))
    return p
