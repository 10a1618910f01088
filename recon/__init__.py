"""
Reconciliation runs for vault and directory-service host inventories.

This package drives one batch run: it acquires both datasets, stages and
joins them with the ``hostrecon`` building blocks, classifies every host into
matched / service-only / vault-only / all-records, verifies the integrity of
that classification and writes the four reports.
"""

from .cli import run_cli

__all__ = ["run_cli"]
