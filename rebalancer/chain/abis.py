"""Minimal contract ABIs used by the rebalancer.

Only the functions actually called are included.
"""


def _fn(name, inputs, outputs=(), mutability="view"):
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
    }


ERC20_ABI = [
    _fn("name", [], [("", "string")]),
    _fn("symbol", [], [("", "string")]),
    _fn("decimals", [], [("", "uint8")]),
    _fn("balanceOf", [("account", "address")], [("", "uint256")]),
    _fn("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")]),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")], "nonpayable"),
    _fn(
        "transferFrom",
        [("from", "address"), ("to", "address"), ("amount", "uint256")],
        [("", "bool")],
        "nonpayable",
    ),
]

# Wrapped native token (WETH9 / WMATIC)
WRAPPED_NATIVE_ABI = ERC20_ABI + [
    _fn("deposit", [], [], "payable"),
    _fn("withdraw", [("wad", "uint256")], [], "nonpayable"),
]

# ERC-4626 yield vault
VAULT_ABI = ERC20_ABI + [
    _fn("asset", [], [("", "address")]),
    _fn("previewWithdraw", [("assets", "uint256")], [("", "uint256")]),
    _fn("deposit", [("assets", "uint256"), ("receiver", "address")], [("", "uint256")], "nonpayable"),
    _fn(
        "redeem",
        [("shares", "uint256"), ("receiver", "address"), ("owner", "address")],
        [("", "uint256")],
        "nonpayable",
    ),
]

# Uniswap V3 Quoter (V1). Not a view function on-chain; only ever eth_call'ed.
QUOTER_ABI = [
    _fn(
        "quoteExactInputSingle",
        [
            ("tokenIn", "address"),
            ("tokenOut", "address"),
            ("fee", "uint24"),
            ("amountIn", "uint256"),
            ("sqrtPriceLimitX96", "uint160"),
        ],
        [("amountOut", "uint256")],
        "nonpayable",
    ),
]

SWAP_ROUTER_ABI = [
    {
        "type": "function",
        "name": "exactInputSingle",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "recipient", "type": "address"},
                    {"name": "deadline", "type": "uint256"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
            }
        ],
        "outputs": [{"name": "amountOut", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "exactInput",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "path", "type": "bytes"},
                    {"name": "recipient", "type": "address"},
                    {"name": "deadline", "type": "uint256"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                ],
            }
        ],
        "outputs": [{"name": "amountOut", "type": "uint256"}],
    },
]

# Generic execute-batch router: runs calls through a per-user agent contract
BATCH_ROUTER_ABI = [
    _fn("getAgentAddress", [("user", "address")], [("", "address")]),
    {
        "type": "function",
        "name": "execute",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "to", "type": "address"},
                    {"name": "value", "type": "uint256"},
                    {"name": "data", "type": "bytes"},
                ],
            },
            {"name": "tokensReturn", "type": "address[]"},
        ],
        "outputs": [],
    },
]
