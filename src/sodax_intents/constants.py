"""Constants and mappings for the Sodax hub and its spoke chains."""

from .exceptions import InvalidParamsError
from .types import ChainFamily

# Spoke chain identifiers as used throughout the SDK and the solver API
AVALANCHE_MAINNET_CHAIN_ID = "0xa86a.avax"
ARBITRUM_MAINNET_CHAIN_ID = "0xa4b1.arbitrum"
BASE_MAINNET_CHAIN_ID = "0x2105.base"
BSC_MAINNET_CHAIN_ID = "0x38.bsc"
OPTIMISM_MAINNET_CHAIN_ID = "0xa.optimism"
POLYGON_MAINNET_CHAIN_ID = "0x89.polygon"
NIBIRU_MAINNET_CHAIN_ID = "nibiru"
SONIC_MAINNET_CHAIN_ID = "sonic"
INJECTIVE_MAINNET_CHAIN_ID = "injective-1"
ICON_MAINNET_CHAIN_ID = "0x1.icon"
SUI_MAINNET_CHAIN_ID = "sui"
SOLANA_MAINNET_CHAIN_ID = "solana"
STELLAR_MAINNET_CHAIN_ID = "stellar"
BITCOIN_MAINNET_CHAIN_ID = "bitcoin"
STACKS_MAINNET_CHAIN_ID = "stacks"

HUB_CHAIN_ID = SONIC_MAINNET_CHAIN_ID

CHAIN_FAMILIES: dict[str, ChainFamily] = {
    AVALANCHE_MAINNET_CHAIN_ID: ChainFamily.EVM,
    ARBITRUM_MAINNET_CHAIN_ID: ChainFamily.EVM,
    BASE_MAINNET_CHAIN_ID: ChainFamily.EVM,
    BSC_MAINNET_CHAIN_ID: ChainFamily.EVM,
    OPTIMISM_MAINNET_CHAIN_ID: ChainFamily.EVM,
    POLYGON_MAINNET_CHAIN_ID: ChainFamily.EVM,
    NIBIRU_MAINNET_CHAIN_ID: ChainFamily.EVM,
    SONIC_MAINNET_CHAIN_ID: ChainFamily.SONIC,
    INJECTIVE_MAINNET_CHAIN_ID: ChainFamily.INJECTIVE,
    ICON_MAINNET_CHAIN_ID: ChainFamily.ICON,
    SUI_MAINNET_CHAIN_ID: ChainFamily.SUI,
    SOLANA_MAINNET_CHAIN_ID: ChainFamily.SOLANA,
    STELLAR_MAINNET_CHAIN_ID: ChainFamily.STELLAR,
    BITCOIN_MAINNET_CHAIN_ID: ChainFamily.BITCOIN,
    STACKS_MAINNET_CHAIN_ID: ChainFamily.STACKS,
}

# Relay network chain ids; a different numbering space from native chain ids.
# Chains missing here (Bitcoin, Stacks) take theirs from SpokeChainConfig.relay_id.
RELAY_CHAIN_IDS: dict[str, int] = {
    AVALANCHE_MAINNET_CHAIN_ID: 6,
    SUI_MAINNET_CHAIN_ID: 21,
    SONIC_MAINNET_CHAIN_ID: 146,
    STELLAR_MAINNET_CHAIN_ID: 27,
    INJECTIVE_MAINNET_CHAIN_ID: 19,
    SOLANA_MAINNET_CHAIN_ID: 1,
    ICON_MAINNET_CHAIN_ID: 1768124270,
    BASE_MAINNET_CHAIN_ID: 30,
    BSC_MAINNET_CHAIN_ID: 4,
    OPTIMISM_MAINNET_CHAIN_ID: 24,
    POLYGON_MAINNET_CHAIN_ID: 5,
    ARBITRUM_MAINNET_CHAIN_ID: 23,
    NIBIRU_MAINNET_CHAIN_ID: 7235938,
}

RELAY_ID_TO_CHAIN = {v: k for k, v in RELAY_CHAIN_IDS.items()}

FEE_PERCENTAGE_SCALE = 10_000
MAX_PARTNER_FEE_BPS = 100
DEFAULT_SOLVER_FEE_BPS = 10
VAULT_TOKEN_DECIMALS = 18
DEFAULT_DEADLINE_OFFSET = 300  # seconds

# Fee data type prefix understood by the settlement contract
FEE_DATA_TYPE = 1

DEFAULT_RELAYER_API_ENDPOINT = "https://xcall-relay.nw.iconblockchain.xyz"
DEFAULT_SOLVER_API_ENDPOINT = "https://staging-new-world.iconblockchain.xyz"
DEFAULT_HUB_RPC_URL = "https://rpc.soniclabs.com"

# Sonic mainnet hub deployment
HUB_ASSET_MANAGER = "0x60c5681bD1DB4e50735c4cA3386005A4BA4937C0"
HUB_WALLET_FACTORY = "0xA0ed3047D358648F2C0583B415CffCA571FDB544"
HUB_INTENTS_CONTRACT = "0x6382D6ccD780758C5e8A6123c33ee8F4472F96ef"
HUB_WALLET_ROUTER = "0xC67C3e55c665E78b25dc9829B3Aa5af47d914733"
HUB_WRAPPED_NATIVE = "0x039e2fB66102314Ce7b64Ce5Ce3E5183bc94aD38"
HUB_STATA_TOKEN_FACTORY = "0x9120956787FcE7D7082C52CDCAafb7F4B88272d4"
HUB_BNUSD_VAULT = "0xE801CA34E19aBCbFeA12025378D19c4FBE250131"


def get_relay_chain_id(chain_id: str) -> int:
    """Return the relay network id for a spoke chain id.

    Raises:
        InvalidParamsError: If the chain is not known to the relay network
    """
    if chain_id not in RELAY_CHAIN_IDS:
        raise InvalidParamsError(
            f"Unknown relay chain id for {chain_id}", field="chain_id", value=chain_id
        )
    return RELAY_CHAIN_IDS[chain_id]


def get_chain_id_from_relay_id(relay_id: int) -> str:
    if relay_id not in RELAY_ID_TO_CHAIN:
        raise InvalidParamsError(
            f"Unknown relay chain id {relay_id}", field="relay_chain_id", value=relay_id
        )
    return RELAY_ID_TO_CHAIN[relay_id]


def get_chain_family(chain_id: str) -> ChainFamily:
    if chain_id not in CHAIN_FAMILIES:
        raise InvalidParamsError(f"Unknown spoke chain {chain_id}", field="chain_id", value=chain_id)
    return CHAIN_FAMILIES[chain_id]
