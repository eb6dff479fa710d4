"""
L2 rollup deployment and the AnyTrust committee setup.
"""

from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from testnode.errors import CommandError, ParseError, PreconditionError  # noqa: E402
from testnode.workflows.anytrust import setup_anytrust  # noqa: E402
from testnode.workflows.l2_deploy import chain_info_filter, deploy_l2, rollup_env  # noqa: E402

OWNER = "0x00000000000000000000000000000000000000a1"
SEQUENCER = "0x00000000000000000000000000000000000000b2"


def _script_of(invocation) -> str:
    """The ``sh -c`` script of a compose shell invocation."""
    return invocation.args[-1]


@pytest.fixture
def deploy_ctx(make_context, executor):
    def _make(**flags):
        executor.respond("print-address --account sequencer", stdout=SEQUENCER + "\n")
        executor.respond("print-private-key --account l2owner", stdout="ownerkey\n")
        executor.respond("module-root.txt", stdout="0xwasmroot\n")
        ctx = make_context(**flags)
        ctx.l2_owner_address = OWNER
        return ctx

    return _make


class TestDeployL2:
    def test_populates_context(self, deploy_ctx):
        ctx = deploy_ctx()

        deploy_l2(ctx)

        assert ctx.sequencer_address == SEQUENCER
        assert ctx.l2_owner_key == "ownerkey"
        assert ctx.wasm_root == "0xwasmroot"
        assert ctx.anytrust is None

    def test_rollup_env(self, deploy_ctx, executor):
        deploy_l2(deploy_ctx())

        (deploy,) = executor.find("create-rollup-testnode")
        assert deploy.timeout == 300
        for pair in (
            "PARENT_CHAIN_RPC=http://geth:8545",
            "DEPLOYER_PRIVKEY=ownerkey",
            "PARENT_CHAIN_ID=1337",
            "CHILD_CHAIN_NAME=arb-dev-test",
            "MAX_DATA_SIZE=117964",
            f"OWNER_ADDRESS={OWNER}",
            "WASM_MODULE_ROOT=0xwasmroot",
            f"SEQUENCER_ADDRESS={SEQUENCER}",
            "AUTHORIZE_VALIDATORS=10",
            "CHILD_CHAIN_CONFIG_PATH=/config/l2_chain_config.json",
            "CHAIN_DEPLOYMENT_INFO=/config/deployment.json",
            "CHILD_CHAIN_INFO=/config/deployed_chain_info.json",
        ):
            assert pair in deploy.args

    def test_chain_config_before_rollup(self, deploy_ctx, executor):
        deploy_l2(deploy_ctx())

        assert executor.index(f"--l2owner {OWNER} write-l2-chain-config") < executor.index("create-rollup-testnode")
        assert executor.index("create-rollup-testnode") < executor.index("l2_chain_info.json")

    def test_anytrust_flag_on_chain_config(self, deploy_ctx, executor):
        executor.respond("dumpkeyset", stdout="Keyset: 0x00ff\n")
        deploy_l2(deploy_ctx(l2_anytrust=True))

        assert executor.count("write-l2-chain-config --anytrust") == 1

    def test_requires_l2_owner_address(self, make_context, executor):
        ctx = make_context()

        with pytest.raises(PreconditionError, match="l2_owner_address"):
            deploy_l2(ctx)

        assert executor.count("create-rollup-testnode") == 0

    def test_rollup_failure_is_fatal(self, deploy_ctx, executor):
        executor.fail("create-rollup-testnode", stderr="execution reverted")

        with pytest.raises(CommandError, match="execution reverted"):
            deploy_l2(deploy_ctx())

        assert executor.count("l2_chain_info.json") == 0

    def test_sequencer_address_must_be_hex(self, deploy_ctx, executor):
        ctx = deploy_ctx()
        executor.respond("print-address --account sequencer", stdout="error: no such account\n")

        with pytest.raises(ParseError):
            deploy_l2(ctx)


class TestChainInfoProcessing:
    def test_plain_filter(self):
        assert chain_info_filter(False) == "[.[]]"

    def test_timeboost_filter_tracks_block_metadata(self):
        assert chain_info_filter(True) == '.[] | ."track-block-metadata-from"=1 | [.]'

    def test_shell_script_uses_filter(self, deploy_ctx, executor):
        deploy_l2(deploy_ctx(l2_timeboost=True))

        (process,) = executor.find("l2_chain_info.json")
        assert _script_of(process) == (
            "jq '.[] | .\"track-block-metadata-from\"=1 | [.]' "
            "/config/deployed_chain_info.json > /config/l2_chain_info.json"
        )

    def test_rollup_env_requires_discovered_values(self, make_context):
        ctx = make_context()
        ctx.l2_owner_address = OWNER

        with pytest.raises(PreconditionError, match="l2_owner_key"):
            rollup_env(ctx)


class TestSetupAnyTrust:
    @pytest.fixture
    def anytrust_ctx(self, make_context, executor):
        executor.respond("das-committee-a/keys/das_bls.pub", stdout="BLS_A\n")
        executor.respond("das-committee-b/keys/das_bls.pub", stdout="BLS_B\n")
        executor.respond("dumpkeyset", stdout="loading\nKeyset: 0x0001abcd\nKeysetHash: 0x99\n")
        return make_context(l2_anytrust=True)

    def test_disabled_returns_none(self, make_context, executor):
        assert setup_anytrust(make_context()) is None
        assert executor.commands == []

    def test_returns_keys_and_keyset(self, anytrust_ctx):
        config = setup_anytrust(anytrust_ctx)

        assert config.das_bls_a == "BLS_A"
        assert config.das_bls_b == "BLS_B"
        assert config.keyset_hex == "0x0001abcd"
        assert config.node_config_args() == ["--anytrust", "--dasBlsA", "BLS_A", "--dasBlsB", "BLS_B"]

    def test_step_order(self, anytrust_ctx, executor):
        setup_anytrust(anytrust_ctx)

        order = [
            "mkdir -p /das-committee-a/keys",
            "keygen --dir /das-committee-a/keys",
            "keygen --dir /das-committee-b/keys",
            "write-l2-das-committee-config",
            "write-l2-das-mirror-config",
            "write-l2-das-keyset-config --dasBlsA BLS_A --dasBlsB BLS_B",
            "dumpkeyset --conf.file /config/l2_das_keyset.json",
            "l2_das_keyset.hex",
            "set-valid-keyset",
            "up -d das-committee-a das-committee-b das-mirror",
        ]
        positions = [executor.index(needle) for needle in order]
        assert positions == sorted(positions)

    def test_keyset_written_from_parsed_value(self, anytrust_ctx, executor):
        setup_anytrust(anytrust_ctx)

        (write,) = executor.find("l2_das_keyset.hex")
        assert _script_of(write) == "printf %s 0x0001abcd > /config/l2_das_keyset.hex"

    def test_keyset_registration_timeout(self, anytrust_ctx, executor):
        setup_anytrust(anytrust_ctx)

        (register,) = executor.find("set-valid-keyset")
        assert register.timeout == 120

    def test_non_hex_keyset_is_rejected(self, anytrust_ctx, executor):
        executor.respond("dumpkeyset", stdout="Keyset: $(rm -rf /)\n")

        with pytest.raises(ParseError):
            setup_anytrust(anytrust_ctx)

        assert executor.count("l2_das_keyset.hex") == 0

    def test_services_not_started_without_run(self, make_context, executor):
        executor.respond("dumpkeyset", stdout="Keyset: 0x01\n")

        setup_anytrust(make_context(l2_anytrust=True, run=False))

        assert executor.count("up -d das-committee-a") == 0

    def test_keygen_failure_is_fatal(self, anytrust_ctx, executor):
        executor.fail("keygen --dir /das-committee-b/keys")

        with pytest.raises(CommandError, match="committee B"):
            setup_anytrust(anytrust_ctx)

        assert executor.count("set-valid-keyset") == 0
