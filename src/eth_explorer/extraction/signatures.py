"""
Static lookup tables for function selectors, event topics, block builders
and well-known tokens.

Tables are built once at import time from canonical signature text and are
exposed as read-only mappings. Lookups are exact-match; a miss is a normal
outcome and returns None.

Usage:
    from eth_explorer.extraction.signatures import decode_function_selector

    signature = decode_function_selector(bytes.fromhex("a9059cbb"))
    print(signature.text)  # transfer(address,uint256)
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from web3 import Web3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParamSpec:
    """A single declared parameter of a function or event."""

    name: str
    type: str
    indexed: bool = False

    @property
    def is_dynamic(self) -> bool:
        """True when the ABI encodes this type out-of-line (head holds an offset)."""
        return is_dynamic_type(self.type)

    @property
    def head_words(self) -> int:
        """32-byte slots this parameter occupies in the head of an encoding."""
        return type_head_words(self.type)


def tuple_components(type_str: str) -> tuple[str, ...]:
    """
    Split a tuple type into its component types.

    Examples:
        >>> tuple_components("(bytes,(address,uint24),uint256)")
        ('bytes', '(address,uint24)', 'uint256')
    """
    inner = type_str[1:-1]
    components = []
    depth = start = 0
    for position, char in enumerate(inner):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            components.append(inner[start:position])
            start = position + 1
    if inner:
        components.append(inner[start:])
    return tuple(components)


def is_tuple_type(type_str: str) -> bool:
    return type_str.startswith("(") and type_str.endswith(")")


def is_dynamic_type(type_str: str) -> bool:
    if type_str in ("bytes", "string") or type_str.endswith("[]"):
        return True
    if is_tuple_type(type_str):
        return any(is_dynamic_type(c) for c in tuple_components(type_str))
    return False


def type_head_words(type_str: str) -> int:
    # Static tuples are encoded in place, one slot per static member
    if is_tuple_type(type_str) and not is_dynamic_type(type_str):
        return sum(type_head_words(c) for c in tuple_components(type_str))
    return 1


@dataclass(frozen=True)
class FunctionSignature:
    """Function selector with its human name and ordered parameter types."""

    selector: bytes
    name: str
    params: tuple[ParamSpec, ...]

    @property
    def text(self) -> str:
        return f"{self.name}({','.join(p.type for p in self.params)})"


@dataclass(frozen=True)
class EventSignature:
    """Event topic0 hash with its human name and ordered parameters."""

    topic0: bytes
    name: str
    params: tuple[ParamSpec, ...]

    @property
    def text(self) -> str:
        return f"{self.name}({','.join(p.type for p in self.params)})"

    @property
    def indexed_count(self) -> int:
        return sum(1 for p in self.params if p.indexed)


@dataclass(frozen=True)
class KnownToken:
    """ERC-20 token with fixed metadata."""

    symbol: str
    name: str
    address: str
    decimals: int


def _parse_params(declarations: tuple[str, ...]) -> tuple[ParamSpec, ...]:
    # "address indexed from" / "uint256 value"
    params = []
    for declaration in declarations:
        parts = declaration.split()
        indexed = "indexed" in parts
        parts = [p for p in parts if p != "indexed"]
        params.append(ParamSpec(name=parts[1], type=parts[0], indexed=indexed))
    return tuple(params)


def _function(name: str, *declarations: str) -> FunctionSignature:
    params = _parse_params(declarations)
    text = f"{name}({','.join(p.type for p in params)})"
    return FunctionSignature(
        selector=bytes(Web3.keccak(text=text)[:4]), name=name, params=params
    )


def _event(name: str, *declarations: str) -> EventSignature:
    params = _parse_params(declarations)
    text = f"{name}({','.join(p.type for p in params)})"
    return EventSignature(
        topic0=bytes(Web3.keccak(text=text)), name=name, params=params
    )


_V3_EXACT_SINGLE = "(address,address,uint24,address,uint256,uint256,uint256,uint160)"
_V3_EXACT_SINGLE_NO_DEADLINE = "(address,address,uint24,address,uint256,uint256,uint160)"
_V3_EXACT_PATH = "(bytes,address,uint256,uint256,uint256)"

_FUNCTIONS = (
    # ERC-20
    _function("transfer", "address to", "uint256 amount"),
    _function("transferFrom", "address from", "address to", "uint256 amount"),
    _function("approve", "address spender", "uint256 amount"),
    _function("balanceOf", "address account"),
    _function("allowance", "address owner", "address spender"),
    _function("increaseAllowance", "address spender", "uint256 addedValue"),
    _function("decreaseAllowance", "address spender", "uint256 subtractedValue"),
    # ERC-721
    _function("safeTransferFrom", "address from", "address to", "uint256 tokenId"),
    _function(
        "safeTransferFrom",
        "address from",
        "address to",
        "uint256 tokenId",
        "bytes data",
    ),
    _function("getApproved", "uint256 tokenId"),
    _function("setApprovalForAll", "address operator", "bool approved"),
    # Uniswap V2 router
    _function(
        "swapExactTokensForTokens",
        "uint256 amountIn",
        "uint256 amountOutMin",
        "address[] path",
        "address to",
        "uint256 deadline",
    ),
    _function(
        "swapTokensForExactTokens",
        "uint256 amountOut",
        "uint256 amountInMax",
        "address[] path",
        "address to",
        "uint256 deadline",
    ),
    _function(
        "swapExactETHForTokens",
        "uint256 amountOutMin",
        "address[] path",
        "address to",
        "uint256 deadline",
    ),
    _function(
        "swapExactTokensForETH",
        "uint256 amountIn",
        "uint256 amountOutMin",
        "address[] path",
        "address to",
        "uint256 deadline",
    ),
    _function(
        "swapETHForExactTokens",
        "uint256 amountOut",
        "address[] path",
        "address to",
        "uint256 deadline",
    ),
    # Uniswap V3 router
    _function("exactInputSingle", f"{_V3_EXACT_SINGLE} params"),
    _function("exactInput", f"{_V3_EXACT_PATH} params"),
    _function("exactOutputSingle", f"{_V3_EXACT_SINGLE} params"),
    _function("exactOutput", f"{_V3_EXACT_PATH} params"),
    # SwapRouter02 dropped the deadline member
    _function("exactInputSingle", f"{_V3_EXACT_SINGLE_NO_DEADLINE} params"),
    _function("exactOutputSingle", f"{_V3_EXACT_SINGLE_NO_DEADLINE} params"),
    # Aave lending pools
    _function(
        "supply",
        "address asset",
        "uint256 amount",
        "address onBehalfOf",
        "uint16 referralCode",
    ),
    _function(
        "deposit",
        "address asset",
        "uint256 amount",
        "address onBehalfOf",
        "uint16 referralCode",
    ),
    _function("withdraw", "address asset", "uint256 amount", "address to"),
    _function(
        "borrow",
        "address asset",
        "uint256 amount",
        "uint256 interestRateMode",
        "uint16 referralCode",
        "address onBehalfOf",
    ),
    _function(
        "repay",
        "address asset",
        "uint256 amount",
        "uint256 interestRateMode",
        "address onBehalfOf",
    ),
    _function(
        "flashLoan",
        "address receiverAddress",
        "address[] assets",
        "uint256[] amounts",
        "uint256[] interestRateModes",
        "address onBehalfOf",
        "bytes params",
        "uint16 referralCode",
    ),
    # Multicall
    _function("multicall", "uint256 deadline", "bytes[] data"),
    _function("multicall", "bytes[] data"),
    # WETH
    _function("deposit"),
    _function("withdraw", "uint256 wad"),
    # Mintable and burnable tokens
    _function("mint", "address to", "uint256 amount"),
    _function("burn", "uint256 amount"),
    # ERC-165
    _function("supportsInterface", "bytes4 interfaceId"),
    # Proxies and ownership
    _function("proxy"),
    _function("implementation"),
    _function("admin"),
    _function("owner"),
    _function("upgradeTo", "address newImplementation"),
    _function("upgradeToAndCall", "address newImplementation", "bytes data"),
    _function("transferOwnership", "address newOwner"),
    _function("renounceOwnership"),
    # ENS
    _function("setAddr", "bytes32 node", "address addr"),
    _function("setName", "string name"),
)

_EVENTS = (
    _event(
        "Transfer", "address indexed from", "address indexed to", "uint256 value"
    ),
    _event(
        "Approval",
        "address indexed owner",
        "address indexed spender",
        "uint256 value",
    ),
    _event(
        "ApprovalForAll",
        "address indexed owner",
        "address indexed operator",
        "bool approved",
    ),
    _event(
        "Swap",
        "address indexed sender",
        "uint256 amount0In",
        "uint256 amount1In",
        "uint256 amount0Out",
        "uint256 amount1Out",
        "address indexed to",
    ),
    _event(
        "Swap",
        "address indexed sender",
        "address indexed recipient",
        "int256 amount0",
        "int256 amount1",
        "uint160 sqrtPriceX96",
        "uint128 liquidity",
        "int24 tick",
    ),
    _event("Sync", "uint112 reserve0", "uint112 reserve1"),
    _event("Deposit", "address indexed dst", "uint256 wad"),
    _event("Withdrawal", "address indexed src", "uint256 wad"),
    _event(
        "OwnershipTransferred",
        "address indexed previousOwner",
        "address indexed newOwner",
    ),
    _event("Upgraded", "address indexed implementation"),
)

FUNCTION_SIGNATURES: Mapping[bytes, FunctionSignature] = MappingProxyType(
    {sig.selector: sig for sig in _FUNCTIONS}
)
EVENT_SIGNATURES: Mapping[bytes, EventSignature] = MappingProxyType(
    {sig.topic0: sig for sig in _EVENTS}
)

TRANSFER_TOPIC = next(sig.topic0 for sig in _EVENTS if sig.name == "Transfer")

# Substring patterns matched against lower-cased extra data, first match wins
BUILDER_PATTERNS: tuple[tuple[str, str], ...] = (
    ("flashbots", "Flashbots"),
    ("bloxroute", "bloXroute"),
    ("blxr", "bloXroute"),
    ("builder0x69", "builder0x69"),
    ("titan", "Titan"),
    ("rsync", "rsync"),
    ("beaver", "Beaver"),
    ("buildai", "BuildAI"),
    ("penguinbuild", "Penguin"),
    ("ethbuilder", "EthBuilder"),
    ("blocknative", "Blocknative"),
)

BUILDER_ADDRESSES: Mapping[str, str] = MappingProxyType(
    {
        "0x95222290dd7278aa3ddd389cc1e1d165cc4bafe5": "Flashbots",
        "0x690b9a9e9aa1c9db991c7721a92d351db4fac990": "builder0x69",
        "0x1f9090aae28b8a3dceadf281b0f12828e676c326": "rsync",
        "0xdafea492d9c6733ae3d56b7ed1adb60692c98bc5": "Beacon Depositor",
    }
)

POPULAR_TOKENS: tuple[KnownToken, ...] = (
    KnownToken("USDT", "Tether USD", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6),
    KnownToken("USDC", "USD Coin", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
    KnownToken(
        "WETH", "Wrapped Ether", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18
    ),
    KnownToken(
        "DAI", "Dai Stablecoin", "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18
    ),
    KnownToken(
        "WBTC", "Wrapped Bitcoin", "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", 8
    ),
    KnownToken("LINK", "Chainlink", "0x514910771AF9Ca656af840dff83E8264EcF986CA", 18),
    KnownToken("UNI", "Uniswap", "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984", 18),
    KnownToken("MATIC", "Polygon", "0x7D1AfA7B718fb893dB30A3aBc0Cfc608AaCfeBB0", 18),
    KnownToken("SHIB", "Shiba Inu", "0x95aD61b0a150d79219dCF64E1E6Cc01f0B64C4cE", 18),
    KnownToken(
        "stETH", "Lido Staked ETH", "0xae7ab96520DE3A18E5e111B5EaAb095312D7fE84", 18
    ),
)

TOKENS_BY_ADDRESS: Mapping[str, KnownToken] = MappingProxyType(
    {token.address.lower(): token for token in POPULAR_TOKENS}
)


def decode_function_selector(data: bytes) -> FunctionSignature | None:
    """
    Look up the function invoked by call data.

    Args:
        data: Call data or a bare 4-byte selector

    Returns:
        Matching FunctionSignature, or None when the selector is unknown or
        the input is shorter than 4 bytes
    """
    if len(data) < 4:
        return None
    return FUNCTION_SIGNATURES.get(bytes(data[:4]))


def decode_event_signature(topic0: bytes) -> EventSignature | None:
    """
    Look up an event by its first log topic.

    Args:
        topic0: 32-byte keccak hash of the canonical event signature

    Returns:
        Matching EventSignature, or None when unknown
    """
    return EVENT_SIGNATURES.get(bytes(topic0))


def lookup_token(address: str | None) -> KnownToken | None:
    """Return metadata for a well-known token contract, case-insensitive."""
    if not address:
        return None
    return TOKENS_BY_ADDRESS.get(address.lower())
