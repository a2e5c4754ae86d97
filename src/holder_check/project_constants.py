"""
Public parameters for holder resolution.

These values define who counts as a holder and how many draw chances
each side gets when the remote config is silent.
Changing them changes eligibility and MUST be publicly announced.
"""

# Logical network and read consistency
DEFAULT_CLUSTER = "mainnet-beta"
DEFAULT_COMMITMENT = "confirmed"

# Hard bound for a single balance query against one endpoint (seconds)
QUERY_TIMEOUT_S = 2.5

# Any positive balance qualifies unless a mint says otherwise
DEFAULT_MIN_HOLD_UI_AMOUNT = 1e-9

# Keyless, CORS-friendly endpoints tried after configured ones.
# The canonical endpoint stays last: it rate-limits browser traffic the most.
PUBLIC_FALLBACK_RPCS = (
    "https://solana.publicnode.com",
    "https://solana-rpc.publicnode.com",
    "https://rpc.ankr.com/solana",
    "https://api.mainnet-beta.solana.com",
)

# Remembered endpoint, one per cluster
LAST_GOOD_RPC_KEY_PREFIX = "lastGoodRpc:"
DEFAULT_STATE_FILE = ".holder_check_state.json"

# Draw config defaults (config/draw)
DEFAULT_FORCE_ALL_AS_HOLDER = False
DEFAULT_HOLDER_CHANCES = 3
DEFAULT_NON_HOLDER_CHANCES = 1

# Document store paths
REMOTE_CONFIG_PATH = ("config", "draw")
WHITELIST_COLLECTION = "whitelist"
