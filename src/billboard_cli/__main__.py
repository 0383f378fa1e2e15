from __future__ import annotations
import json
import logging
from typing import NoReturn, Optional

import typer
from rich import print
from rich.markup import escape

from billboard_api.settings import settings
from billboard_api.errors import MerkleTreeError
from billboard_api.logutil import setup_logging

log = logging.getLogger("billboard_cli")

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _fail(msg: str) -> NoReturn:
    print(f"[red]{escape(msg)}[/red]")
    raise typer.Exit(code=1)


def _print_entries(tree, index: Optional[int] = None) -> None:
    from billboard_api.encoding import leaf_to_json

    for i, value in tree.entries():
        if index is not None and i != index:
            continue
        typer.echo(f"Value: {json.dumps(leaf_to_json(tree.leaf_encoding, value))}")
        typer.echo(f"Proof: {json.dumps(tree.get_proof(i))}")


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, help="Logging level"),
):
    setup_logging(log_level)


@app.command()
def build(
    leaves: str = typer.Option(settings.leaves_path, help="JSON file with the leaf tuples"),
    types: Optional[str] = typer.Option(
        None, help="Comma-separated leaf types; overrides the leaf file"
    ),
    out: str = typer.Option(settings.tree_path, help="Where to write the tree JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Render tree levels"),
):
    """Build a Merkle tree over the leaf file, write it, reload it and print proofs."""
    from billboard_api.leaves import load_leaves, parse_types
    from billboard_api.merkle import MerkleTree, read_tree, write_tree

    try:
        override = parse_types(types) if types else None
        values, leaf_encoding = load_leaves(
            leaves, override, default_encoding=parse_types(settings.leaf_types)
        )
        tree = MerkleTree.build(values, leaf_encoding)
    except FileNotFoundError:
        _fail(f"Leaf file not found: {leaves}")
    except MerkleTreeError as e:
        _fail(str(e))

    log.info("built tree over %d leaves, root %s", len(tree), tree.root)
    typer.echo(f"Merkle Root: {tree.root}")
    if verbose:
        typer.echo(tree.render())

    path = write_tree(tree, out)
    print(f"[green]Wrote tree to {escape(str(path))}[/green]")

    try:
        loaded = read_tree(path)
    except MerkleTreeError as e:
        _fail(str(e))
    _print_entries(loaded)


@app.command()
def proofs(
    tree_path: str = typer.Option(settings.tree_path, "--tree", help="Tree JSON file"),
    index: Optional[int] = typer.Option(None, help="Only print this leaf"),
):
    """Load a persisted tree and print every value with its proof."""
    from billboard_api.merkle import read_tree

    try:
        tree = read_tree(tree_path)
        if index is not None:
            tree.get_proof(index)
    except FileNotFoundError:
        _fail(f"Tree file not found: {tree_path}")
    except MerkleTreeError as e:
        _fail(str(e))
    typer.echo(f"Merkle Root: {tree.root}")
    _print_entries(tree, index)


@app.command()
def verify(
    root: str = typer.Option(..., help="0x-prefixed root digest"),
    value: str = typer.Option(..., help="Leaf tuple as a JSON array"),
    proof: str = typer.Option("[]", help="Proof as a JSON array of 0x digests"),
    types: str = typer.Option(settings.leaf_types, help="Comma-separated leaf types"),
):
    """Check a proof against a root without the tree."""
    from billboard_api.leaves import parse_types
    from billboard_api.merkle import verify as verify_value

    try:
        leaf = json.loads(value)
        siblings = json.loads(proof)
    except json.JSONDecodeError as e:
        _fail(f"invalid JSON: {e}")
    if not isinstance(siblings, list):
        _fail("proof must be a JSON array")
    try:
        ok = verify_value(root, parse_types(types), leaf, siblings)
    except MerkleTreeError as e:
        _fail(str(e))
    typer.echo(json.dumps({"valid": ok}))
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def encode_metadata(
    metadata: str = typer.Argument(
        ..., help="Metadata as JSON, a base64 JSON data URI or a file path"
    ),
    log_count: int = typer.Option(..., min=0, help="Log count (uint32)"),
    transfer_count: int = typer.Option(..., min=0, help="Transfer count (uint32)"),
    token_id: int = typer.Option(..., min=0, help="Token id (uint256)"),
    with_selector: bool = typer.Option(False, help="Prefix the 4-byte function selector"),
):
    """ABI-encode token metadata and counters for the metadata() call."""
    from billboard_api.metadata import encode_metadata_call, make_counters, parse_metadata

    try:
        md = parse_metadata(metadata)
        counters = make_counters(log_count, transfer_count, token_id)
        encoded = encode_metadata_call(md, counters, with_selector=with_selector)
    except FileNotFoundError:
        _fail(f"Metadata file not found: {metadata}")
    except MerkleTreeError as e:
        _fail(str(e))
    typer.echo("0x" + encoded.hex())


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8000),
):
    """Serve the persisted tree over HTTP."""
    import uvicorn

    uvicorn.run("billboard_api.main:app", host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    app()
