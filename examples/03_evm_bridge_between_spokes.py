"""Example: Bridge USDC from Arbitrum straight to Base through the shared hub vault."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from sodax_intents import SodaxClient
from sodax_intents.constants import ARBITRUM_MAINNET_CHAIN_ID, BASE_MAINNET_CHAIN_ID

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("bridge_between_spokes")

ARBITRUM_USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


def main() -> None:
    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY not found in environment variables")

    arbitrum_rpc = os.getenv("ARBITRUM_RPC", "https://arb1.arbitrum.io/rpc")
    amount = int(os.getenv("BRIDGE_AMOUNT", "1000000"))  # 1 USDC

    client = SodaxClient()
    client.connect()

    try:
        assets = client.assets
        if not assets.is_bridgeable(ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC, BASE_MAINNET_CHAIN_ID, BASE_USDC):
            raise RuntimeError("Arbitrum USDC cannot be bridged to Base USDC")

        limit = assets.get_bridgeable_amount(
            ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC, BASE_MAINNET_CHAIN_ID, BASE_USDC
        )
        if limit.success:
            bound = limit.value
            logger.info("Route limit: %s (%s decimals, %s)", bound.amount, bound.decimals, bound.type.value)

        provider = client.evm_spoke_provider(ARBITRUM_MAINNET_CHAIN_ID, arbitrum_rpc, private_key)
        allowance = assets.is_allowance_valid(ARBITRUM_USDC, amount, provider)
        if allowance.success and not allowance.value:
            approval = assets.approve(ARBITRUM_USDC, amount, provider)
            if not approval.success:
                logger.error("Approval failed: %s", approval.error)
                return
            provider.wait_for_transaction(approval.tx_hash or "")

        logger.info("Bridging %s units of USDC to Base", amount)
        result = assets.bridge(
            ARBITRUM_USDC,
            amount,
            BASE_MAINNET_CHAIN_ID,
            BASE_USDC,
            provider.get_wallet_address(),
            provider,
        )
        if result.success:
            logger.info("Bridge delivered: spoke tx %s, hub tx %s", result.value.tx_hash, result.tx_hash)
        else:
            logger.error("Bridge failed (%s): %s", result.error_code, result.error)
    finally:
        client.disconnect()


if __name__ == "__main__":
    main()
