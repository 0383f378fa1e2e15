from __future__ import annotations


class MerkleTreeError(Exception):
    """Base class for tree, leaf and metadata errors."""


class ValidationError(MerkleTreeError, ValueError):
    """Leaf values or types do not match the declared leaf encoding."""


class FormatError(MerkleTreeError, ValueError):
    """A serialized tree or leaf file is malformed or inconsistent."""


class LeafIndexError(MerkleTreeError, IndexError):
    """Requested leaf index is outside the tree."""
