"""
Command-Line Interface for semaphore-signals

Inspect shard routing and zero values, compute roots and membership paths,
validate deployment files and run a local end-to-end demo.
"""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from semaphore_signals import __version__, print_disclaimer
from semaphore_signals.protocol import merkle
from semaphore_signals.protocol.config import (
    MAX_TREE_DEPTH,
    MIN_TREE_DEPTH,
    VERIFIER_SHARD_COUNT,
)
from semaphore_signals.protocol.deployment import load_deployment
from semaphore_signals.protocol.exceptions import (
    ConfigurationError,
    PreconditionError,
    SemaphoreError,
)
from semaphore_signals.protocol.factory import build_verifier_shards
from semaphore_signals.protocol.feature_flags import get_backend_type, get_root_policy
from semaphore_signals.protocol.hashing import hash_node, to_field
from semaphore_signals.protocol.router import depths_for_shard, shard_index_for_depth
from semaphore_signals.protocol.semaphore import SemaphoreProtocol
from semaphore_signals.protocol.verifiers.mock import make_mock_proof

console = Console()

DEPTH = click.IntRange(MIN_TREE_DEPTH, MAX_TREE_DEPTH)


class FieldElementParam(click.ParamType):
    """Decimal or 0x-prefixed hex field element."""

    name = "field"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            candidate = value
        else:
            text = str(value).strip()
            try:
                candidate = int(text, 16) if text.lower().startswith("0x") else int(text)
            except ValueError:
                self.fail(f"{value!r} is not an integer", param, ctx)
        try:
            return to_field(candidate, "leaf")
        except (TypeError, ValueError) as exc:
            self.fail(str(exc), param, ctx)


FIELD = FieldElementParam()


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(verbose):
    """
    semaphore-signals - anonymous group membership and signaling.

    Incremental Merkle accumulators, depth-routed verifier shards and
    nullifier-gated signals.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@main.command()
@click.argument("depth", type=int)
def shard(depth):
    """Show which verifier shard serves DEPTH."""
    try:
        index = shard_index_for_depth(depth)
    except PreconditionError as exc:
        _fail(str(exc))
    depths = depths_for_shard(index)
    click.echo(f"depth {depth} -> shard {index} (depths {depths[0]}..{depths[-1]})")


@main.command()
def shards():
    """List all verifier shards and the depths they serve."""
    table = Table(title="Verifier shards")
    table.add_column("Shard", justify="right")
    table.add_column("Depths")
    for index in range(1, VERIFIER_SHARD_COUNT + 1):
        depths = depths_for_shard(index)
        table.add_row(str(index), ", ".join(str(d) for d in depths))
    console.print(table)


@main.command()
@click.option("--depth", type=DEPTH, default=MAX_TREE_DEPTH, help="Highest level to show")
def zeros(depth):
    """Print the zero-value table Z[0..DEPTH]."""
    table = merkle.zero_values()
    for level in range(depth + 1):
        click.echo(f"Z[{level:2d}] = 0x{table[level]:064x}")


@main.command()
@click.option("--depth", type=DEPTH, required=True, help="Tree depth")
@click.argument("leaves", nargs=-1, type=FIELD)
def root(depth, leaves):
    """Compute the root after inserting LEAVES in order."""
    tree = merkle.IncrementalMerkleTree(depth)
    try:
        for leaf in leaves:
            tree.insert(leaf)
    except PreconditionError as exc:
        _fail(str(exc))
    click.echo(f"0x{tree.root:064x}")


@main.command()
@click.option("--depth", type=DEPTH, required=True, help="Tree depth")
@click.option("--index", type=int, required=True, help="Leaf index to prove")
@click.argument("leaves", nargs=-1, type=FIELD)
def path(depth, index, leaves):
    """Print the authentication path for one of LEAVES."""
    try:
        siblings, path_is_right = merkle.build_path(list(leaves), index, depth)
    except (IndexError, PreconditionError) as exc:
        _fail(str(exc))

    table = Table(title=f"Path for leaf {index}")
    table.add_column("Level", justify="right")
    table.add_column("Side")
    table.add_column("Sibling")
    for level, (sibling, is_right) in enumerate(zip(siblings, path_is_right)):
        table.add_row(str(level), "right" if is_right else "left", f"0x{sibling:064x}")
    console.print(table)
    click.echo(f"root 0x{merkle.compute_root(list(leaves), depth):064x}")


@main.command("check-config")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
def check_config(config_path):
    """Validate a deployment YAML file."""
    try:
        config = load_deployment(config_path)
    except ConfigurationError as exc:
        _fail(str(exc))

    click.echo(click.style("✓ Deployment is valid", fg="green"))
    click.echo(f"  backend: {get_backend_type(config.verifier_backend)}")
    click.echo(f"  root policy: {get_root_policy(config.root_policy)}")
    table = Table()
    table.add_column("Shard", justify="right")
    table.add_column("Identity")
    table.add_column("Depths")
    for index, identity in enumerate(config.verifier_shards, start=1):
        depths = depths_for_shard(index)
        table.add_row(str(index), identity, f"{depths[0]}..{depths[-1]}")
    console.print(table)


@main.command()
@click.option("--depth", type=DEPTH, default=16, help="Group tree depth")
@click.option("--members", type=click.IntRange(1, 64), default=4, help="Members to enroll")
def demo(depth, members):
    """Run create/enroll/signal end to end on the mock backend."""
    print_disclaimer()
    if members > 1 << depth:
        _fail(f"{members} members do not fit a depth-{depth} tree")

    shard_ids = [f"mock-shard-{i}" for i in range(1, VERIFIER_SHARD_COUNT + 1)]
    protocol = SemaphoreProtocol(
        build_verifier_shards(shard_ids, override="mock"), root_policy="strict"
    )
    group_id = 1
    admin = "demo-admin"

    try:
        protocol.create_group(admin, group_id, depth)
        commitments = [hash_node(i + 1, 0) for i in range(members)]
        protocol.add_members(admin, group_id, commitments)
    except SemaphoreError as exc:
        _fail(str(exc))

    group_root = protocol.get_root(group_id)
    shard = protocol.get_verifier_shard(depth)
    click.echo(f"\ngroup {group_id}: depth {depth}, {members} members")
    click.echo(f"root 0x{group_root:064x}")
    click.echo(f"verifier {shard.identity} (shard {shard_index_for_depth(depth)})")

    siblings, bits = merkle.build_path(commitments, 0, depth)
    in_tree = merkle.verify(group_root, commitments[0], siblings, bits)
    click.echo(f"member 0 path verifies: {'✓' if in_tree else '✗'}")

    nullifier = hash_node(commitments[0], group_id)
    message = to_field(b"hello")
    scope = group_id
    proof = make_mock_proof(depth, (group_root, nullifier, message, scope))

    protocol.signal(group_id, group_root, nullifier, message, scope, proof)
    click.echo(click.style("✓ signal accepted", fg="green"))

    try:
        protocol.signal(group_id, group_root, nullifier, message, scope, proof)
    except PreconditionError as exc:
        click.echo(click.style(f"✓ replay rejected: {exc}", fg="yellow"))
    else:
        _fail("replayed signal was accepted")


@main.command()
def version():
    """Show version and disclaimer information."""
    click.echo(f"\nsemaphore-signals v{__version__}\n")
    print_disclaimer()


if __name__ == "__main__":
    main()
