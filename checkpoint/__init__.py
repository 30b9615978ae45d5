"""
Checkpoint pipeline: catalog manifests, Arweave uploads and ArNS pointers.

Modules:
    catalog: CatalogBuilder turning table files into a manifest
    clients: Capability interfaces for the uploader and the pointer updater
    arweave_uploader: Wallet-backed Arweave uploader
    pointer: ArNS pointer updaters
    history: Checkpoint run audit trail
    orchestrator: CheckpointOrchestrator composing the whole sequence

Usage:
    from checkpoint.orchestrator import CheckpointOrchestrator
    result = await orchestrator.create_checkpoint()
    print(result.catalog_tx_id)
"""

__all__ = [
    "CatalogBuilder",
    "CheckpointOrchestrator",
    "CheckpointResult",
    "CheckpointHistory",
    "ImmutableUploader",
    "NamePointerUpdater",
]
