#!/usr/bin/env python3
"""
Constants for the nitro testnode orchestrator.

CRITICAL: This is the SINGLE SOURCE OF TRUTH for fixed paths, accounts and
chain parameters. Workflow modules MUST import from this file instead of
using hardcoded strings.

Naming Convention:
- *.defaults.toml.j2 = Template defaults (packaged)
- *.toml.j2 = Template overrides (work directory, gitignored)
- *.toml = Rendered runtime config (work directory, gitignored)
"""

# ============================================================================
# TOML Configuration Filenames (CANONICAL - DO NOT HARDCODE)
# ============================================================================

SETTINGS_DEFAULTS = 'testnode.defaults.toml.j2'
SETTINGS_OVERRIDES = 'testnode.toml.j2'
SETTINGS_RENDERED = 'testnode.toml'

DOCKER_COMPOSE_FILE = 'docker-compose.yaml'
DOCKER_COMPOSE_CI_CACHE_FILE = 'docker-compose-ci-cache.json'

# ============================================================================
# Images and versions
# ============================================================================

NITRO_NODE_VERSION = 'offchainlabs/nitro-node:v3.6.7-a7c9f1e'
BLOCKSCOUT_VERSION = 'offchainlabs/blockscout:v1.1.0-0e716c8'
NITRO_NODE_TESTNODE_TAG = 'nitro-node-dev-testnode'
NITRO_NODE_DEV_IMAGE = 'nitro-node-dev'
BLOCKSCOUT_TESTNODE_TAG = 'blockscout-testnode'
BLOCKSCOUT_DEV_IMAGE = 'blockscout'

# ============================================================================
# Chains
# ============================================================================

DEFAULT_L1_CHAIN_ID = 1337
DEFAULT_L2_CHAIN_ID = 412346
DEFAULT_L3_CHAIN_ID = 333333

L2_CHAIN_NAME = 'arb-dev-test'
L3_CHAIN_NAME = 'orbit-dev-test'
L2_MAX_DATA_SIZE = 117964
L3_MAX_DATA_SIZE = 104857
AUTHORIZE_VALIDATORS = 10

L1_RPC_URL = 'http://geth:8545'
L2_RPC_URL = 'http://sequencer:8547'
L3_RPC_URL = 'http://l3node:3347'

# Development key for the local network only
DEV_PRIVATE_KEY = 'b6b15c8cb491557369f3c7d2c287b053eb229daa9c22138887752191c9520659'

# Seed hashed into the L2-L3 token bridge deployer key
TOKEN_BRIDGE_DEPLOYER_SEED = 'user_token_bridge_deployer'

# ============================================================================
# Flag limits
# ============================================================================

MAX_BATCH_POSTERS = 3
MAX_REDUNDANT_SEQUENCERS = 3
MIN_FEE_TOKEN_DECIMALS = 0
MAX_FEE_TOKEN_DECIMALS = 36
DEFAULT_FEE_TOKEN_DECIMALS = 18

# ============================================================================
# Files inside the execution environment
# ============================================================================

GETH_GENESIS_PATH = '/config/geth_genesis.json'
L2_CHAIN_CONFIG_PATH = '/config/l2_chain_config.json'
L2_DEPLOYMENT_PATH = '/config/deployment.json'
L2_DEPLOYED_CHAIN_INFO_PATH = '/config/deployed_chain_info.json'
L2_CHAIN_INFO_PATH = '/config/l2_chain_info.json'
L3_CHAIN_CONFIG_PATH = '/config/l3_chain_config.json'
L3_DEPLOYMENT_PATH = '/config/l3deployment.json'
L3_DEPLOYED_CHAIN_INFO_PATH = '/config/deployed_l3_chain_info.json'
L3_CHAIN_INFO_PATH = '/config/l3_chain_info.json'
SEQUENCER_CONFIG_PATH = '/config/sequencer_config.json'
DAS_KEYSET_CONFIG_PATH = '/config/l2_das_keyset.json'
DAS_KEYSET_HEX_PATH = '/config/l2_das_keyset.hex'
WASM_MODULE_ROOT_PATH = '/home/user/target/machines/latest/module-root.txt'

DAS_COMMITTEES = ('a', 'b')
DAS_DIRECTORIES = [
    '/das-committee-a/keys', '/das-committee-a/data', '/das-committee-a/metadata',
    '/das-committee-b/keys', '/das-committee-b/data', '/das-committee-b/metadata',
    '/das-mirror/data', '/das-mirror/metadata',
]

# Container user that owns mounted data directories
CONTAINER_OWNER = '1000:1000'

# ============================================================================
# Timeouts (seconds)
# ============================================================================

SYNC_WAIT_TIMEOUT = 120
ROLLUP_DEPLOY_TIMEOUT = 300
TOKEN_BRIDGE_DEPLOY_TIMEOUT = 300
KEYSET_TIMEOUT = 120
BEACON_GENESIS_TIMEOUT = 120
CONTRACT_DEPLOY_TIMEOUT = 120
BRIDGE_FUNDS_TIMEOUT = 120
RESTART_TIMEOUT = 120

# Pause before the L1-L2 token bridge deploy; shorter waits fail at random
TOKEN_BRIDGE_SETTLE_SECONDS = 10

# ============================================================================
# Traffic generators
# ============================================================================

BACKGROUND_TRAFFIC_ITERATIONS = 1000000
