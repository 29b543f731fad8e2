from solders.pubkey import Pubkey

LAMPORTS_PER_SOL = 1_000_000_000
U64_MAX = 2**64 - 1

SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
STAKE_PROGRAM_ID = Pubkey.from_string("Stake11111111111111111111111111111111111111")
STAKE_CONFIG_ID = Pubkey.from_string("StakeConfig11111111111111111111111111111111")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
NATIVE_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")

SYSVAR_CLOCK_ID = Pubkey.from_string("SysvarC1ock11111111111111111111111111111111")
SYSVAR_RENT_ID = Pubkey.from_string("SysvarRent111111111111111111111111111111111")
SYSVAR_STAKE_HISTORY_ID = Pubkey.from_string("SysvarStakeHistory1111111111111111111111111")

# Size of a StakeStateV2 account
STAKE_ACCOUNT_SPACE = 200

DEFAULT_COMMITMENT = "confirmed"
DEFAULT_POLL_INTERVAL_SECONDS = 5.0
# Cooldown normally completes at the next epoch boundary (~2-3 days on mainnet)
DEFAULT_DEACTIVATION_TIMEOUT_SECONDS = 3 * 24 * 60 * 60.0
DEFAULT_CONFIRM_TIMEOUT_SECONDS = 60.0
DEFAULT_KEYPAIR_PATH = "~/.config/solana/id.json"
