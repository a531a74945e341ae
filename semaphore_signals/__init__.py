"""
semaphore-signals: anonymous group membership and signaling.

Incremental Merkle accumulators for group membership, depth-routed proof
verification across twelve verifier shards, and nullifier-gated signals.
"""

__version__ = "0.1.0"

DISCLAIMER = (
    "The mock verifier backend accepts forgeable proofs. Use the groth16 "
    "backend with audited verifying keys for anything beyond local testing."
)


def print_disclaimer() -> None:
    print(f"WARNING: {DISCLAIMER}")
