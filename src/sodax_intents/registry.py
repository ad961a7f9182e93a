"""Static spoke chain and hub asset configuration.

The registry is built once, never mutated, and passed by reference into every
component that resolves spoke tokens to hub assets.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .constants import (
    ARBITRUM_MAINNET_CHAIN_ID,
    AVALANCHE_MAINNET_CHAIN_ID,
    BASE_MAINNET_CHAIN_ID,
    BSC_MAINNET_CHAIN_ID,
    HUB_ASSET_MANAGER,
    HUB_BNUSD_VAULT,
    HUB_WALLET_ROUTER,
    HUB_WRAPPED_NATIVE,
    ICON_MAINNET_CHAIN_ID,
    INJECTIVE_MAINNET_CHAIN_ID,
    NIBIRU_MAINNET_CHAIN_ID,
    OPTIMISM_MAINNET_CHAIN_ID,
    POLYGON_MAINNET_CHAIN_ID,
    SOLANA_MAINNET_CHAIN_ID,
    SONIC_MAINNET_CHAIN_ID,
    STELLAR_MAINNET_CHAIN_ID,
    SUI_MAINNET_CHAIN_ID,
    get_chain_family,
    get_relay_chain_id,
)
from .exceptions import HubAssetNotFoundError, InvalidParamsError
from .types import ZERO_ADDRESS, AssetDescriptor, ChainFamily

# Families whose token identifiers are case-insensitive hex
_HEX_FAMILIES = frozenset({ChainFamily.EVM, ChainFamily.SONIC, ChainFamily.ICON})

_USDC_VAULT = "0xAbbb91c0617090F0028BDC27597Cd0D038F3A833"
_USDT_VAULT = "0xbDf1F453FCB61424011BBDDCB96cFDB30f3Fe876"
_ETH_VAULT = "0x4effB5813271699683C25c734F4daBc45B363709"
_BTC_VAULT = "0x7A1A5555842Ad2D0eD274d09b5c4406a95799D5d"


@dataclass(frozen=True)
class SpokeChainConfig:
    """Deployment addresses of a single spoke chain."""

    chain_id: str
    family: ChainFamily
    name: str
    native_token: str
    asset_manager: str
    connection: str
    bnusd: str | None = None
    wallet_router: str | None = None
    wrapped_native: str | None = None
    relay_id: int | None = None

    @property
    def relay_chain_id(self) -> int:
        if self.relay_id is not None:
            return self.relay_id
        return get_relay_chain_id(self.chain_id)


def _normalise_token(family: ChainFamily, token: str) -> str:
    return token.lower() if family in _HEX_FAMILIES else token


class AssetConfigRegistry:
    """Read-only lookup from (spoke chain, spoke token) to hub asset."""

    def __init__(
        self,
        spoke_chains: Iterable[SpokeChainConfig],
        hub_assets: Mapping[str, Mapping[str, AssetDescriptor]],
    ) -> None:
        chains = {config.chain_id: config for config in spoke_chains}
        assets: dict[str, Mapping[str, AssetDescriptor]] = {}
        for chain_id, tokens in hub_assets.items():
            family = chains[chain_id].family if chain_id in chains else get_chain_family(chain_id)
            assets[chain_id] = MappingProxyType(
                {_normalise_token(family, token): desc for token, desc in tokens.items()}
            )

        self._chains: Mapping[str, SpokeChainConfig] = MappingProxyType(chains)
        self._assets: Mapping[str, Mapping[str, AssetDescriptor]] = MappingProxyType(assets)

    # ------------------------------------------------------------------
    # Chains
    # ------------------------------------------------------------------
    @property
    def chain_ids(self) -> tuple[str, ...]:
        return tuple(self._chains)

    def get_spoke_chain(self, chain_id: str) -> SpokeChainConfig:
        config = self._chains.get(chain_id)
        if config is None:
            raise InvalidParamsError(
                f"Spoke chain {chain_id} is not configured", field="chain_id", value=chain_id
            )
        return config

    def get_relay_chain_id(self, chain_id: str) -> int:
        """Relay id of ``chain_id``, preferring the id configured on its chain entry."""

        config = self._chains.get(chain_id)
        if config is not None:
            return config.relay_chain_id
        return get_relay_chain_id(chain_id)

    def is_native_token(self, chain_id: str, token: str) -> bool:
        config = self.get_spoke_chain(chain_id)
        return _normalise_token(config.family, token) == _normalise_token(
            config.family, config.native_token
        )

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------
    def get_hub_asset(self, chain_id: str, spoke_token: str) -> AssetDescriptor | None:
        tokens = self._assets.get(chain_id)
        if tokens is None:
            return None
        return tokens.get(_normalise_token(get_chain_family(chain_id), spoke_token))

    def require_hub_asset(self, chain_id: str, spoke_token: str) -> AssetDescriptor:
        descriptor = self.get_hub_asset(chain_id, spoke_token)
        if descriptor is None:
            raise HubAssetNotFoundError(
                f"Hub asset not found for token {spoke_token} on {chain_id}",
                chain_id=chain_id,
                token=spoke_token,
            )
        return descriptor

    def hub_assets(self, chain_id: str) -> Mapping[str, AssetDescriptor]:
        return self._assets.get(chain_id, MappingProxyType({}))

    def find_spoke_token(self, chain_id: str, hub_asset: str) -> str | None:
        """Reverse lookup of the spoke token backing a hub asset."""

        target = hub_asset.lower()
        for token, descriptor in self.hub_assets(chain_id).items():
            if descriptor.asset.lower() == target:
                return token
        return None

    def find_by_vault(self, vault: str) -> list[tuple[str, str, AssetDescriptor]]:
        target = vault.lower()
        return [
            (chain_id, token, descriptor)
            for chain_id, tokens in self._assets.items()
            for token, descriptor in tokens.items()
            if descriptor.vault.lower() == target
        ]

    def is_vault(self, address: str) -> bool:
        """True when ``address`` is the hub vault of some configured asset."""

        target = address.lower()
        return any(
            descriptor.vault.lower() == target
            for tokens in self._assets.values()
            for descriptor in tokens.values()
        )

    def with_chain(
        self, config: SpokeChainConfig, assets: Mapping[str, AssetDescriptor] | None = None
    ) -> AssetConfigRegistry:
        """Return a new registry extended with one more spoke chain."""

        chains = [c for c in self._chains.values() if c.chain_id != config.chain_id]
        chains.append(config)
        hub_assets = {cid: dict(tokens) for cid, tokens in self._assets.items()}
        hub_assets[config.chain_id] = dict(assets or {})
        return AssetConfigRegistry(chains, hub_assets)


def _asset(asset: str, decimals: int, vault: str) -> AssetDescriptor:
    return AssetDescriptor(asset=asset, decimals=decimals, vault=vault)


_EVM_ASSET_MANAGER = "0x348BE44F63A458be9C1b13D6fD8e99048F297Bc3"
_EVM_CONNECTION = "0x4555aC13D7338D9E671584C1D118c06B2a3C88eD"

MAINNET_SPOKE_CHAINS: tuple[SpokeChainConfig, ...] = (
    SpokeChainConfig(
        chain_id=SONIC_MAINNET_CHAIN_ID,
        family=ChainFamily.SONIC,
        name="Sonic",
        native_token=ZERO_ADDRESS,
        asset_manager=HUB_ASSET_MANAGER,
        connection=HUB_WALLET_ROUTER,
        bnusd="0x6958a4CBFe11406E2a1c1d3a71A1971aD8B3b92F",
        wallet_router=HUB_WALLET_ROUTER,
        wrapped_native=HUB_WRAPPED_NATIVE,
    ),
    SpokeChainConfig(
        chain_id=AVALANCHE_MAINNET_CHAIN_ID,
        family=ChainFamily.EVM,
        name="Avalanche",
        native_token=ZERO_ADDRESS,
        asset_manager="0x5bDD1E1C5173F4c912cC919742FB94A55ECfaf86",
        connection=_EVM_CONNECTION,
        bnusd="0x6958a4CBFe11406E2a1c1d3a71A1971aD8B3b92F",
    ),
    SpokeChainConfig(
        chain_id=ARBITRUM_MAINNET_CHAIN_ID,
        family=ChainFamily.EVM,
        name="Arbitrum",
        native_token=ZERO_ADDRESS,
        asset_manager=_EVM_ASSET_MANAGER,
        connection=_EVM_CONNECTION,
        bnusd="0xA256dd181C3f6E5eC68C6869f5D50a712d47212e",
    ),
    SpokeChainConfig(
        chain_id=BASE_MAINNET_CHAIN_ID,
        family=ChainFamily.EVM,
        name="Base",
        native_token=ZERO_ADDRESS,
        asset_manager=_EVM_ASSET_MANAGER,
        connection=_EVM_CONNECTION,
        bnusd="0xAcfab3F31C0a18559D78556BBf297EC29c6cf8aa",
    ),
    SpokeChainConfig(
        chain_id=OPTIMISM_MAINNET_CHAIN_ID,
        family=ChainFamily.EVM,
        name="Optimism",
        native_token=ZERO_ADDRESS,
        asset_manager=_EVM_ASSET_MANAGER,
        connection=_EVM_CONNECTION,
        bnusd="0xF4f7dC27c17470a26d0de9039Cf0EA5045F100E8",
    ),
    SpokeChainConfig(
        chain_id=BSC_MAINNET_CHAIN_ID,
        family=ChainFamily.EVM,
        name="BSC",
        native_token=ZERO_ADDRESS,
        asset_manager=_EVM_ASSET_MANAGER,
        connection=_EVM_CONNECTION,
        bnusd="0x8428FedC020737a5A2291F46cB1B80613eD71638",
    ),
    SpokeChainConfig(
        chain_id=POLYGON_MAINNET_CHAIN_ID,
        family=ChainFamily.EVM,
        name="Polygon",
        native_token=ZERO_ADDRESS,
        asset_manager=_EVM_ASSET_MANAGER,
        connection=_EVM_CONNECTION,
        bnusd="0x39E77f86C1B1f3fbAb362A82b49D2E86C09659B4",
    ),
    SpokeChainConfig(
        chain_id=NIBIRU_MAINNET_CHAIN_ID,
        family=ChainFamily.EVM,
        name="Nibiru",
        native_token=ZERO_ADDRESS,
        asset_manager="0x6958a4CBFe11406E2a1c1d3a71A1971aD8B3b92F",
        connection="0x772FFE538E45b2cDdFB5823041EC26C44815B9AB",
        bnusd="0x043fb7e23350Dd5b77dE5E228B528763DEcb9131",
    ),
    SpokeChainConfig(
        chain_id=INJECTIVE_MAINNET_CHAIN_ID,
        family=ChainFamily.INJECTIVE,
        name="Injective",
        native_token="inj",
        asset_manager="inj1dg6tm62uup53wn2kn97caeqfwt0sukx3qjk8rw",
        connection="inj1eexvfglsptxwfj9hft96xcnsdrvr7d7dalcm8w",
        bnusd="factory/inj1d036ftaatxpkqsu9hja8r24rv3v33chz3appxp/bnUSD",
    ),
    SpokeChainConfig(
        chain_id=STELLAR_MAINNET_CHAIN_ID,
        family=ChainFamily.STELLAR,
        name="Stellar",
        native_token="CAS3J7GYLGXMF6TDJBBYYSE3HQ6BBSMLNUQ34T6TZMYMW2EVH34XOWMA",
        asset_manager="CCGF33A4CO6D3BXFEKPXVCFCZBK76I3AQOZK6KIKRPAWAZR3632WHCJ3",
        connection="CDFQDDPUPAM3XPGORHDOEFRNLMKOH3N3X6XTXNLSXJQXIU3RVCM3OPEP",
        bnusd="CD6YBFFWMU2UJHX2NGRJ7RN76IJVTCC7MRA46DUBXNB7E6W7H7JRJ2CX",
    ),
    SpokeChainConfig(
        chain_id=SUI_MAINNET_CHAIN_ID,
        family=ChainFamily.SUI,
        name="Sui",
        native_token="0x0000000000000000000000000000000000000000000000000000000000000002::sui::SUI",
        asset_manager=(
            "0x897f911a4b7691870a1a2513af7e85fdee8de275615c77068fd8b90b8e78c678::asset_manager::"
            "0xcb7346339340b7f8dea40fcafb70721dc2fcfa7e8626a89fd954d46c1f928b61"
        ),
        connection=(
            "0xf3b1e696a66d02cb776dc15aae73c68bc8f03adcb6ba0ec7f6332d9d90a6a3d2::connectionv3::"
            "0x3ee76d13909ac58ae13baab4c9be5a5142818d9a387aed641825e5d4356969bf"
        ),
        bnusd="0xff4de2b2b57dd7611d2812d231a467d007b702a101fd5c7ad3b278257cddb507::bnusd::BNUSD",
    ),
    SpokeChainConfig(
        chain_id=SOLANA_MAINNET_CHAIN_ID,
        family=ChainFamily.SOLANA,
        name="Solana",
        native_token="11111111111111111111111111111111",
        asset_manager="AnCCJjheynmGqPp6Vgat9DTirGKD4CtQzP8cwTYV8qKH",
        connection="GxS8i6D9qQjbSeniD487CnomUxU2pXt6V8P96T6MkUXB",
        bnusd="3rSPCLNEF7Quw4wX8S1NyKivELoyij8eYA2gJwBgt4V5",
    ),
    SpokeChainConfig(
        chain_id=ICON_MAINNET_CHAIN_ID,
        family=ChainFamily.ICON,
        name="ICON",
        native_token="cx0000000000000000000000000000000000000000",
        asset_manager="cx1be33c283c7dc7617181d1b21a6a2309e71b1ee7",
        connection="cxe5cdf3b0f26967b0efc72d470d57bbf534268f94",
        bnusd="cx88fd7df7ddff82f7cc735c871dc519838cb235bb",
    ),
)

MAINNET_HUB_ASSETS: dict[str, dict[str, AssetDescriptor]] = {
    SONIC_MAINNET_CHAIN_ID: {
        ZERO_ADDRESS: _asset(HUB_WRAPPED_NATIVE, 18, "0x62ecc3Eeb80a162c57624B3fF80313FE69f5203e"),
        HUB_WRAPPED_NATIVE: _asset(
            HUB_WRAPPED_NATIVE, 18, "0x62ecc3Eeb80a162c57624B3fF80313FE69f5203e"
        ),
        "0x50c42dEAcD8Fc9773493ED674b675bE577f2634b": _asset(
            "0x50c42dEAcD8Fc9773493ED674b675bE577f2634b", 18, _ETH_VAULT
        ),
        "0x29219dd400f2Bf60E5a23d13Be72B486D4038894": _asset(
            "0x29219dd400f2Bf60E5a23d13Be72B486D4038894", 6, _USDC_VAULT
        ),
        "0x6047828dc181963ba44974801FF68e538dA5eaF9": _asset(
            "0x6047828dc181963ba44974801FF68e538dA5eaF9", 6, _USDT_VAULT
        ),
    },
    AVALANCHE_MAINNET_CHAIN_ID: {
        ZERO_ADDRESS: _asset(
            "0xc9e4f0B6195F389D9d2b639f2878B7674eB9D8cD",
            18,
            "0x14238D267557E9d799016ad635B53CD15935d290",
        ),
        "0x9702230A8Ea53601f5cD2dc00fDBc13d4dF4A8c7": _asset(
            "0x41Fd5c169e014e2A657B9de3553f7a7b735Fe47A", 6, _USDT_VAULT
        ),
        "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E": _asset(
            "0x41abF4B1559FF709Ef8150079BcB26DB1Fffd117", 6, _USDC_VAULT
        ),
        "0x6958a4CBFe11406E2a1c1d3a71A1971aD8B3b92F": _asset(
            "0x289cDa1043b4Ce26BDCa3c12E534f56b24308A5B", 18, HUB_BNUSD_VAULT
        ),
    },
    ARBITRUM_MAINNET_CHAIN_ID: {
        ZERO_ADDRESS: _asset("0xdcd9578b51ef55239b6e68629d822a8d97c95b86", 18, _ETH_VAULT),
        "0x2f2a2543B76A4166549F7aaB2e75Bef0aefC5B0f": _asset(
            "0xfB0ACB1b2720B620935F50a6dd3F7FEA52b2FCBe", 8, _BTC_VAULT
        ),
        "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9": _asset(
            "0x3C0a80C6a1110fC80309382b3989eC626c135eE9", 6, _USDT_VAULT
        ),
        "0xaf88d065e77c8cC2239327C5EDb3A432268e5831": _asset(
            "0xdB7BdA65c3a1C51D64dC4444e418684677334109", 6, _USDC_VAULT
        ),
        "0xA256dd181C3f6E5eC68C6869f5D50a712d47212e": _asset(
            "0x419cA9054E44E94ceAb52846eCdC3997439BBcA6", 18, HUB_BNUSD_VAULT
        ),
    },
    BASE_MAINNET_CHAIN_ID: {
        ZERO_ADDRESS: _asset("0x70178089842be7f8e4726b33f0d1569db8021faa", 18, _ETH_VAULT),
        "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf": _asset(
            "0x2803a23a3BA6b09e57D1c71deC0D9eFdBB00A27F", 8, _BTC_VAULT
        ),
        "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913": _asset(
            "0x72E852545B024ddCbc5b70C1bCBDAA025164259C", 6, _USDC_VAULT
        ),
        "0xAcfab3F31C0a18559D78556BBf297EC29c6cf8aa": _asset(
            "0xDF5639D91359866f266b56D60d98edE9fEEDd100", 18, HUB_BNUSD_VAULT
        ),
    },
    OPTIMISM_MAINNET_CHAIN_ID: {
        ZERO_ADDRESS: _asset("0xad332860dd3b6f0e63f4f66e9457900917ac78cd", 18, _ETH_VAULT),
        "0xF4f7dC27c17470a26d0de9039Cf0EA5045F100E8": _asset(
            "0x238384AE2b4F0EC189ecB5031859bA306B2679c5", 18, HUB_BNUSD_VAULT
        ),
        "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85": _asset(
            "0xb7C213CbD24967dE9838fa014668FDDB338f724B", 6, _USDC_VAULT
        ),
        "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58": _asset(
            "0xc168067d95109003805aC865ae556e8476DC69bc", 6, _USDT_VAULT
        ),
    },
    BSC_MAINNET_CHAIN_ID: {
        ZERO_ADDRESS: _asset(
            "0x13b70564b1ec12876b20fab5d1bb630311312f4f",
            18,
            "0x40Cd41b35DB9e5109ae7E54b44De8625dB320E6b",
        ),
        "0x8428FedC020737a5A2291F46cB1B80613eD71638": _asset(
            "0x5Ce6C1c51ff762cF3acD21396257046f694168b6", 18, HUB_BNUSD_VAULT
        ),
        "0x8ac76a51cc950d9822d68b83fe1ad97b32cd580d": _asset(
            "0x9d58508ad10d34048a11640735ca5075bba07b35", 18, _USDC_VAULT
        ),
    },
    POLYGON_MAINNET_CHAIN_ID: {
        "0x39E77f86C1B1f3fbAb362A82b49D2E86C09659B4": _asset(
            "0x18f85f9E80ff9496EeBD5979a051AF16Ce751567", 18, HUB_BNUSD_VAULT
        ),
    },
    NIBIRU_MAINNET_CHAIN_ID: {
        ZERO_ADDRESS: _asset(
            "0xe0064414c2c1a636a9424C7a17D86fbF7FD3f190",
            18,
            "0xc6c85287a8b173A509C2F198bB719A8a5a2d0C68",
        ),
        "0x043fb7e23350Dd5b77dE5E228B528763DEcb9131": _asset(
            "0x11b93C162aABFfD026539bb3B9F9eC22c8b7ef8a", 18, HUB_BNUSD_VAULT
        ),
    },
    INJECTIVE_MAINNET_CHAIN_ID: {
        "inj": _asset(
            "0xd375590b4955f6ea5623f799153f9b787a3bd319",
            18,
            "0x1f22279C89B213944b7Ea41daCB0a868DdCDFd13",
        ),
        "factory/inj1d036ftaatxpkqsu9hja8r24rv3v33chz3appxp/bnUSD": _asset(
            "0x69425FFb14704124A58d6F69d510f74A59D9a5bC", 18, HUB_BNUSD_VAULT
        ),
        "ibc/2CBC2EA121AE42563B08028466F37B600F2D7D4282342DE938283CC3FB2BC00E": _asset(
            "0x4bc1211faa06fb50ff61a70331f56167ae511057", 6, _USDC_VAULT
        ),
    },
    STELLAR_MAINNET_CHAIN_ID: {
        "CAS3J7GYLGXMF6TDJBBYYSE3HQ6BBSMLNUQ34T6TZMYMW2EVH34XOWMA": _asset(
            "0x8ac68af223907fb1b893086601a3d99e00f2fa9d",
            7,
            "0x6BC8C37cba91F76E68C9e6d689A9C21E4d32079B",
        ),
        "CD6YBFFWMU2UJHX2NGRJ7RN76IJVTCC7MRA46DUBXNB7E6W7H7JRJ2CX": _asset(
            "0x23225Ab8E63FCa4070296678cb46566d57E1BBe3", 7, HUB_BNUSD_VAULT
        ),
        "CCW67TSZV3SSS2HXMBQ5JFGCKJNXKZM7UQUWUZPUTHXSTZLEO7SJMI75": _asset(
            "0x348007B53F25A9A857aB8eA81ec9E3CCBCf440f2", 7, _USDC_VAULT
        ),
    },
    SUI_MAINNET_CHAIN_ID: {
        "0x0000000000000000000000000000000000000000000000000000000000000002::sui::SUI": _asset(
            "0x4676b2a551b25c04e235553c1c81019337384673",
            9,
            "0xdc5B4b00F98347E95b9F94911213DAB4C687e1e3",
        ),
        "0xff4de2b2b57dd7611d2812d231a467d007b702a101fd5c7ad3b278257cddb507::bnusd::BNUSD": _asset(
            "0xDf23097B9AEb917Bf8fb70e99b6c528fffA35364", 9, HUB_BNUSD_VAULT
        ),
        "0xdba34672e30cb065b1f93e3ab55318768fd6fef66c15942c9f7cb846e2f900e7::usdc::USDC": _asset(
            "0x5635369c8a29A081d26C2e9e28012FCa548BA0Cb", 6, _USDC_VAULT
        ),
    },
    SOLANA_MAINNET_CHAIN_ID: {
        "11111111111111111111111111111111": _asset(
            "0x0c09e69a4528945de6d16c7e469dea6996fdf636",
            9,
            "0xdEa692287E2cE8Cb08FA52917Be0F16b1DACDC87",
        ),
        "3rSPCLNEF7Quw4wX8S1NyKivELoyij8eYA2gJwBgt4V5": _asset(
            "0x14C65b1CDc0B821569081b1F77342dA0D0CbF439", 9, HUB_BNUSD_VAULT
        ),
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": _asset(
            "0xC3f020057510ffE10Ceb882e1B48238b43d78a5e", 6, _USDC_VAULT
        ),
    },
    ICON_MAINNET_CHAIN_ID: {
        "cx0000000000000000000000000000000000000000": _asset(
            "0xb66cB7D841272AF6BaA8b8119007EdEE35d2C24F", 18, ZERO_ADDRESS
        ),
        "cx3975b43d260fb8ec802cef6e60c2f4d07486f11d": _asset(
            "0xb66cB7D841272AF6BaA8b8119007EdEE35d2C24F", 18, ZERO_ADDRESS
        ),
        "cx88fd7df7ddff82f7cc735c871dc519838cb235bb": _asset(
            "0x654dddf32a9a2ac53f5fb54bf1e93f66791f8047",
            18,
            "0x9D4b663Eb075d2a1C7B8eaEFB9eCCC0510388B51",
        ),
    },
}


def default_registry() -> AssetConfigRegistry:
    """Registry populated with the mainnet deployment."""

    return AssetConfigRegistry(MAINNET_SPOKE_CHAINS, MAINNET_HUB_ASSETS)
