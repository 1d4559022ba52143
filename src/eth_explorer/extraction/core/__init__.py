"""
RPC access and raw value normalization.
"""
