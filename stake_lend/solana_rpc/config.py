"""Gathering configuration from environment variables"""

from typing import Optional

import json
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from stake_lend.exceptions import InvalidClusterError, NetworkConfigurationError
from stake_lend.solana_rpc.consts import (
    DEFAULT_COMMITMENT,
    DEFAULT_CONFIRM_TIMEOUT_SECONDS,
    DEFAULT_DEACTIVATION_TIMEOUT_SECONDS,
    DEFAULT_KEYPAIR_PATH,
    DEFAULT_POLL_INTERVAL_SECONDS,
    NATIVE_MINT,
)
from stake_lend.solana_rpc.types import Cluster


@dataclass(frozen=True)
class BankConfig:
    """A marginfi bank and the mint it lends."""

    address: Pubkey
    mint: Pubkey


def get_network_addresses(cluster: str) -> dict:
    """Get cluster-specific RPC endpoint and marginfi addresses."""
    if cluster == Cluster.MAINNET_BETA.value:
        return {
            "rpc_url": "https://api.mainnet-beta.solana.com",
            "marginfi_program_id": "MFv2hWf31Z9kbCa1snEPYctwafyhdvnV7FZnsebVacA",
            "marginfi_group": "4qp6Fx6tnZkY5Wropq9wUYgtFxXKwE6viZxFHg3rdAG8",
            "marginfi_banks": {
                "SOL": {
                    "address": "CCKtUs6Cgwo4aaQUmBPmyoApH2gUDErxNZCAntD6LYGh",
                    "mint": str(NATIVE_MINT),
                },
            },
        }
    elif cluster == Cluster.DEVNET.value:
        # marginfi has no canonical devnet group; set MARGINFI_* variables to lend on devnet
        return {
            "rpc_url": "https://api.devnet.solana.com",
            "marginfi_program_id": None,
            "marginfi_group": None,
            "marginfi_banks": {},
        }
    else:
        raise InvalidClusterError(f"Invalid cluster '{cluster}'! It's neither mainnet-beta nor devnet.")


def load_keypair() -> Keypair:
    """Load the authority keypair from PRIVATE_KEY (base58) or a Solana CLI keypair file."""
    private_key = os.environ.get("PRIVATE_KEY")
    if private_key:
        return Keypair.from_base58_string(private_key)

    keypair_path = os.path.expanduser(os.environ.get("SOLANA_KEYPAIR_PATH", DEFAULT_KEYPAIR_PATH))
    try:
        with open(keypair_path, encoding="utf-8") as f:
            secret = json.load(f)
    except FileNotFoundError as e:
        raise NetworkConfigurationError(
            f"No PRIVATE_KEY set and keypair file {keypair_path} does not exist"
        ) from e

    return Keypair.from_bytes(bytes(secret))


def _parse_banks(raw_banks: dict) -> dict[str, BankConfig]:
    return {
        symbol: BankConfig(address=Pubkey.from_string(bank["address"]), mint=Pubkey.from_string(bank["mint"]))
        for symbol, bank in raw_banks.items()
    }


@dataclass
class StakeLendConfig:
    """Configuration for the stake-to-lend workflow"""

    cluster: str
    rpc_url: str
    keypair: Keypair
    stake_account: Optional[Pubkey] = None
    asset: str = "SOL"
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    deactivation_timeout: float = DEFAULT_DEACTIVATION_TIMEOUT_SECONDS
    confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT_SECONDS
    request_timeout: float = 30.0
    commitment: str = DEFAULT_COMMITMENT
    marginfi_program_id: Optional[Pubkey] = None
    marginfi_group: Optional[Pubkey] = None
    marginfi_banks: dict[str, BankConfig] = field(default_factory=dict)

    @property
    def authority(self) -> Pubkey:
        """Wallet that owns the stake account and the lending position"""
        return self.keypair.pubkey()

    @property
    def is_mainnet(self) -> bool:
        return self.cluster == Cluster.MAINNET_BETA.value

    @classmethod
    def from_env(cls) -> "StakeLendConfig":
        """Create a config instance from environment variables."""
        load_dotenv()

        cluster = os.environ.get("SOLANA_CLUSTER", Cluster.MAINNET_BETA.value)
        network_config = get_network_addresses(cluster)

        stake_account = os.environ.get("STAKE_ACCOUNT")
        program_id = os.environ.get("MARGINFI_PROGRAM_ID", network_config["marginfi_program_id"])
        group = os.environ.get("MARGINFI_GROUP", network_config["marginfi_group"])

        banks = dict(network_config["marginfi_banks"])
        if "MARGINFI_SOL_BANK" in os.environ:
            banks["SOL"] = {"address": os.environ["MARGINFI_SOL_BANK"], "mint": str(NATIVE_MINT)}

        return cls(
            cluster=cluster,
            rpc_url=os.environ.get("RPC_ENDPOINT", network_config["rpc_url"]),
            keypair=load_keypair(),
            stake_account=Pubkey.from_string(stake_account) if stake_account else None,
            asset=os.environ.get("LEND_ASSET", "SOL"),
            poll_interval=float(os.environ.get("POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS)),
            deactivation_timeout=float(
                os.environ.get("DEACTIVATION_TIMEOUT_SECONDS", DEFAULT_DEACTIVATION_TIMEOUT_SECONDS)
            ),
            confirm_timeout=float(os.environ.get("CONFIRM_TIMEOUT_SECONDS", DEFAULT_CONFIRM_TIMEOUT_SECONDS)),
            commitment=os.environ.get("COMMITMENT", DEFAULT_COMMITMENT),
            marginfi_program_id=Pubkey.from_string(program_id) if program_id else None,
            marginfi_group=Pubkey.from_string(group) if group else None,
            marginfi_banks=_parse_banks(banks),
        )


def get_config() -> StakeLendConfig:
    """Get configuration from environment."""
    return StakeLendConfig.from_env()
