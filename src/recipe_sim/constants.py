"""Well-known addresses and numeric limits."""
from __future__ import annotations

from eth_utils import to_checksum_address

MAX_UINT256 = 2**256 - 1
WEI_PER_ETHER = 10**18

ZERO_ADDRESS = to_checksum_address("0x" + "00" * 20)
ETH_ADDR = to_checksum_address("0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee")
WETH_ADDRESS = to_checksum_address("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
DAI_ADDRESS = to_checksum_address("0x6b175474e89094c44da98b954eedeac495271d0f")

ADMIN_ACC = to_checksum_address("0x25efa336886c74ea8e282ac466bdcd0199f85bb9")

MCD_SUBSCRIPTIONS_ADDR = to_checksum_address("0xc45d4f6b6bf41b6edaa58b01c4298b8d9078269a")
COMPOUND_SUBSCRIPTIONS_ADDR = to_checksum_address("0x52015effd577e08f498a0ccc11905925d58d6207")
AAVE_SUBSCRIPTIONS_ADDR = to_checksum_address("0x6b25043bf08182d8e86056c6548847af607cd7cd")

CDP_OWNER_ACC = to_checksum_address("0x8ecebbf3fa6d894476cd9dd34d6a53ddd185233e")
CDP_ID = 20648
COMPOUND_OWNER_ACC = to_checksum_address("0xe10eb997d51c2afcd3e0f80e0a984949b2ed3349")
AAVE_OWNER_ACC = to_checksum_address("0x160ff555a7836d8bc027eda92fb524bece5c9b88")

DEFAULT_FORK_BLOCK = 14_368_070
DEFAULT_SIGNER_BALANCE = 10_000 * WEI_PER_ETHER

# Well-known development accounts, in signer order.
DEV_ACCOUNTS: tuple[str, ...] = tuple(
    to_checksum_address(address)
    for address in (
        "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
        "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
        "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc",
        "0x90f79bf6eb2c4f870365e785982e1f101e93b906",
        "0x15d34aaf54267db7d7c367839aaf71a00a2c6a65",
        "0x9965507d1a55bcc2695c58ba16fb37d819b0a4dc",
        "0x976ea74026e726554db657fa54763abd0c3a0aa9",
        "0x14dc79964da2c08b23698b3d3cc7ca32193d9955",
        "0x23618e81e3f5cdf7f54c3d65f7fbc0abf5b21e8f",
        "0xa0ee7a142d267c1f36714e4a8f75612f20a79720",
    )
)

TOKEN_SYMBOLS: dict[str, str] = {
    "ETH": ETH_ADDR,
    "WETH": WETH_ADDRESS,
    "DAI": DAI_ADDRESS,
}
