"""Example: Swap USDC on Arbitrum for USDC on Base through a hub intent."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from sodax_intents import (
    CreateIntentParams,
    PartnerFeePercentage,
    QuoteRequest,
    QuoteType,
    Response,
    SodaxClient,
    SodaxConfig,
)
from sodax_intents.config import SolverConfig
from sodax_intents.constants import ARBITRUM_MAINNET_CHAIN_ID, BASE_MAINNET_CHAIN_ID

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("swap_intent")

ARBITRUM_USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
SLIPPAGE_BPS = 50


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{name} not found in environment variables")
    return value


def _log_failure(label: str, response: Response) -> None:
    logger.error("%s failed [%s]: %s", label, response.error_code, response.error)
    if response.raw_response:
        logger.debug("  context: %s", response.raw_response)


def main() -> None:
    private_key = _require_env("PRIVATE_KEY")
    arbitrum_rpc = os.getenv("ARBITRUM_RPC", "https://arb1.arbitrum.io/rpc")
    amount = int(os.getenv("SWAP_AMOUNT", "1000000"))  # 1 USDC

    partner = os.getenv("PARTNER_FEE_ADDRESS")
    partner_fee = PartnerFeePercentage(partner, int(os.getenv("PARTNER_FEE_BPS", "10"))) if partner else None

    client = SodaxClient(SodaxConfig(solver=SolverConfig(partner_fee=partner_fee)))
    client.connect()
    try:
        provider = client.evm_spoke_provider(ARBITRUM_MAINNET_CHAIN_ID, arbitrum_rpc, private_key)
        wallet = provider.get_wallet_address()

        quote = client.intents.get_quote(
            QuoteRequest(
                token_src=ARBITRUM_USDC,
                token_dst=BASE_USDC,
                token_src_chain_id=ARBITRUM_MAINNET_CHAIN_ID,
                token_dst_chain_id=BASE_MAINNET_CHAIN_ID,
                amount=amount,
                quote_type=QuoteType.EXACT_INPUT,
            )
        )
        if not quote.success:
            _log_failure("Quote", quote)
            return
        logger.info("Quoted %s -> %s", amount, quote.value)

        deadline = client.intents.get_swap_deadline()
        if not deadline.success:
            _log_failure("Deadline", deadline)
            return

        params = CreateIntentParams(
            input_token=ARBITRUM_USDC,
            output_token=BASE_USDC,
            input_amount=amount,
            min_output_amount=quote.value * (10_000 - SLIPPAGE_BPS) // 10_000,
            src_chain=ARBITRUM_MAINNET_CHAIN_ID,
            dst_chain=BASE_MAINNET_CHAIN_ID,
            src_address=wallet,
            dst_address=wallet,
            deadline=deadline.value,
        )

        allowance = client.intents.is_allowance_valid(params, provider)
        if not allowance.success:
            _log_failure("Allowance check", allowance)
            return
        if not allowance.value:
            approval = client.intents.approve(params, provider)
            if not approval.success:
                _log_failure("Approval", approval)
                return
            logger.info("Approval sent: %s", approval.tx_hash)
            provider.wait_for_transaction(approval.tx_hash or "")

        result = client.intents.create_and_submit_intent(params, provider)
        if not result.success:
            _log_failure("Swap", result)
            return

        answer, intent, delivery = result.value
        logger.info("Intent %s executed on the hub", intent.intent_id)
        logger.info("  spoke tx: %s", delivery.src_tx_hash)
        logger.info("  hub tx: %s", delivery.dst_tx_hash)
        logger.info("  solver: %s", answer)

        status = client.intents.get_status(delivery.dst_tx_hash)
        if status.success:
            logger.info("Solver status: %s", status.value.name)
    finally:
        client.disconnect()
        logger.info("Disconnected")


if __name__ == "__main__":
    main()
