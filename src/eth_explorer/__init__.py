"""
Ethereum Terminal Explorer

A read-only terminal client for inspecting blocks, transactions and addresses
on an Ethereum-compatible chain through a single JSON-RPC endpoint.
Provides best-effort decoding of raw chain data and link-based navigation
between related blocks, transactions and accounts.
"""

__version__ = "0.1.0"
