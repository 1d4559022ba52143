"""
Ethereum data extraction and decoding.

This module provides tools for fetching chain data from an RPC endpoint
and decoding it into structured, display-ready values.
"""
