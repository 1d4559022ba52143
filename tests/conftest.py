"""
Shared fixtures: view models and screens built from fixed addresses.

Addresses use digits only, so their checksummed form equals the literal.
"""

import pytest

from eth_explorer.models import (
    AddressView,
    BlockStats,
    BlockView,
    DecodedLog,
    DecodedParam,
    NetworkInfo,
    TokenBalance,
    TokenTransfer,
    TransactionView,
    TxSummary,
    TxType,
)

SENDER = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20
TOKEN = "0x" + "33" * 20
OTHER = "0x" + "44" * 20
LOG_ADDRESS_A = "0x" + "55" * 20
LOG_ADDRESS_B = "0x" + "66" * 20
MINER = "0x" + "77" * 20
IMPLEMENTATION = "0x" + "88" * 20
OWNER = "0x" + "99" * 20

TX_HASH = "0x" + "ab" * 32
BLOCK_HASH = "0x" + "cd" * 32
PARENT_HASH = "0x" + "ef" * 32


def address_param(name: str, address: str) -> DecodedParam:
    """Decoded address parameter as the log decoder produces it."""
    return DecodedParam(
        name=name,
        type="address",
        raw=bytes(12) + bytes.fromhex(address[2:]),
        display=address,
        is_address=True,
        value=address,
    )


@pytest.fixture
def transaction_view() -> TransactionView:
    """Transaction with two token transfers and one log carrying two addresses."""
    log = DecodedLog(
        address=TOKEN,
        topics=(),
        data=b"",
        params=(
            address_param("owner", LOG_ADDRESS_A),
            DecodedParam("value", "uint256", bytes(32), "1", value=1),
            address_param("spender", LOG_ADDRESS_B),
        ),
        log_index=0,
    )
    return TransactionView(
        hash=TX_HASH,
        sender=SENDER,
        to=TOKEN,
        value=0,
        nonce=7,
        gas_limit=100_000,
        tx_type=TxType.DYNAMIC_FEE,
        block_number=17_000_000,
        gas_used=52_000,
        effective_gas_price=30 * 10**9,
        status=True,
        token_transfers=(
            # outgoing: counterpart is the recipient
            TokenTransfer(TOKEN, SENDER, RECIPIENT, 5 * 10**6, "USDC", 6),
            # incoming: counterpart is the sender
            TokenTransfer(TOKEN, OTHER, SENDER, 7),
        ),
        logs=(log,),
    )


@pytest.fixture
def block_view() -> BlockView:
    return BlockView(
        number=17_000_000,
        hash=BLOCK_HASH,
        parent_hash=PARENT_HASH,
        timestamp=1_681_000_000,
        gas_used=15_000_000,
        gas_limit=30_000_000,
        miner=MINER,
        tx_count=2,
        base_fee=20 * 10**9,
        builder_tag="Titan",
    )


@pytest.fixture
def block_transactions() -> tuple[TxSummary, ...]:
    return (
        TxSummary(hash="0x" + "01" * 32, sender=SENDER, to=RECIPIENT, value=10**18, gas_limit=21_000),
        TxSummary(hash="0x" + "02" * 32, sender=OTHER, to=None, value=0, gas_limit=500_000),
    )


@pytest.fixture
def block_stats() -> BlockStats:
    return BlockStats(
        total_value_transferred=10**18,
        total_fees=2 * 10**15,
        burnt_fees=10**15,
    )


@pytest.fixture
def address_view() -> AddressView:
    return AddressView(
        address=TOKEN,
        balance=3 * 10**18,
        nonce=1,
        is_contract=True,
        code_size=1024,
        proxy_implementation=IMPLEMENTATION,
        owner=OWNER,
        token_balances=(
            TokenBalance("USDC", "USD Coin", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 1_500_000, 6),
            TokenBalance("DAI", "Dai Stablecoin", "0x6B175474E89094C44Da98b954EedeAC495271d0F", 10**18, 18),
        ),
    )


@pytest.fixture
def network_info() -> NetworkInfo:
    return NetworkInfo(
        latest_block=17_000_000,
        gas_price=25 * 10**9,
        client_version="Geth/v1.13.0",
        base_fee_trend=(20 * 10**9, 30 * 10**9),
        priority_fee_percentiles=(10**8, 10**9, 2 * 10**9),
    )
