"""Example: Deposit USDC from Arbitrum into its hub vault, then withdraw it to Base."""

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

logger = logging.getLogger("bridge_deposit_withdraw")

ARBITRUM_USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


def main() -> None:
    """Round-trip USDC through the hub vault."""
    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY not found in environment variables")

    arbitrum_rpc = os.getenv("ARBITRUM_RPC", "https://arb1.arbitrum.io/rpc")
    amount = int(os.getenv("BRIDGE_AMOUNT", "1000000"))  # 1 USDC

    client = SodaxClient()
    logger.info("Connecting to the hub chain")
    client.connect()

    try:
        provider = client.evm_spoke_provider(ARBITRUM_MAINNET_CHAIN_ID, arbitrum_rpc, private_key)

        allowance = client.assets.is_allowance_valid(ARBITRUM_USDC, amount, provider)
        if allowance.success and not allowance.value:
            approval = client.assets.approve(ARBITRUM_USDC, amount, provider)
            if not approval.success:
                logger.error("Approval failed: %s", approval.error)
                return
            provider.wait_for_transaction(approval.tx_hash or "")

        logger.info("Depositing %s units of USDC into the hub vault", amount)
        deposit = client.assets.deposit(ARBITRUM_USDC, amount, provider)
        if not deposit.success:
            logger.error("Deposit failed: %s", deposit.error)
            raise RuntimeError("Deposit failed, aborting")
        logger.info("Deposit delivered in hub tx %s", deposit.tx_hash)

        # Vault shares use 18 decimals; USDC has 6
        shares = amount * 10**12
        logger.info("Withdrawing %s vault shares to Base", shares)
        withdrawal = client.assets.withdraw(
            BASE_MAINNET_CHAIN_ID,
            BASE_USDC,
            shares,
            provider.get_wallet_address(),
            provider,
        )
        if withdrawal.success:
            logger.info("Withdrawal delivered in hub tx %s", withdrawal.tx_hash)
        else:
            logger.error("Withdrawal failed: %s", withdrawal.error)
    finally:
        client.disconnect()
        logger.info("Disconnected")


if __name__ == "__main__":
    main()
