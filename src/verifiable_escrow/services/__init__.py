"""Application services: use case orchestration."""

from verifiable_escrow.services.escrow_ledger import EscrowLedger
from verifiable_escrow.services.escrow_registry import EscrowRegistry
from verifiable_escrow.services.transfer_service import TransferService

__all__ = ["EscrowLedger", "EscrowRegistry", "TransferService"]
