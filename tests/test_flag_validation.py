"""
Flag combination rules.
"""

from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from testnode.errors import ConfigurationError  # noqa: E402
from testnode.flags import FlagSet  # noqa: E402
from testnode.validation import assert_valid_flags, validate_flags  # noqa: E402


def _flags(**changes) -> FlagSet:
    # L3 traffic is on by default and would add a warning to every case
    changes.setdefault("l3_traffic", False)
    return FlagSet(**changes)


class TestValidConfigurations:
    def test_defaults_are_valid(self):
        result = validate_flags(_flags())

        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_full_l3_feature_set_is_valid(self):
        result = validate_flags(_flags(
            l3node=True,
            l3_fee_token=True,
            l3_fee_token_pricer=True,
            l3_fee_token_decimals=6,
            l3_token_bridge=True,
        ))

        assert result.valid is True

    def test_nowait_with_detach_is_valid(self):
        assert validate_flags(_flags(detach=True, nowait=True)).valid is True


class TestValidationErrors:
    def test_nowait_requires_detach(self):
        result = validate_flags(_flags(nowait=True))

        assert result.valid is False
        assert result.error_codes == {"NOWAIT_REQUIRES_DETACH"}

    def test_fee_token_requires_l3node(self):
        result = validate_flags(_flags(l3_fee_token=True))

        assert result.error_codes == {"L3_FEE_TOKEN_REQUIRES_L3NODE"}

    def test_pricer_requires_fee_token(self):
        result = validate_flags(_flags(l3node=True, l3_fee_token_pricer=True))

        assert result.error_codes == {"L3_FEE_TOKEN_PRICER_REQUIRES_FEE_TOKEN"}

    def test_custom_decimals_require_fee_token(self):
        result = validate_flags(_flags(l3node=True, l3_fee_token_decimals=6))

        assert result.error_codes == {"L3_FEE_TOKEN_DECIMALS_REQUIRES_FEE_TOKEN"}

    @pytest.mark.parametrize("decimals", [-1, 37])
    def test_decimals_out_of_range(self, decimals):
        result = validate_flags(_flags(l3node=True, l3_fee_token=True, l3_fee_token_decimals=decimals))

        assert result.error_codes == {"L3_FEE_TOKEN_DECIMALS_OUT_OF_RANGE"}

    @pytest.mark.parametrize("decimals", [0, 36])
    def test_decimals_range_is_inclusive(self, decimals):
        result = validate_flags(_flags(l3node=True, l3_fee_token=True, l3_fee_token_decimals=decimals))

        assert result.valid is True

    def test_token_bridge_requires_l3node(self):
        result = validate_flags(_flags(l3_token_bridge=True))

        assert result.error_codes == {"L3_TOKEN_BRIDGE_REQUIRES_L3NODE"}

    @pytest.mark.parametrize("count", [-1, 4])
    def test_batchposters_out_of_range(self, count):
        result = validate_flags(_flags(simple=False, batchposters=count))

        assert "BATCH_POSTERS_OUT_OF_RANGE" in result.error_codes

    @pytest.mark.parametrize("count", [-1, 4])
    def test_redundantsequencers_out_of_range(self, count):
        result = validate_flags(_flags(simple=False, redundantsequencers=count))

        assert "REDUNDANT_SEQUENCERS_OUT_OF_RANGE" in result.error_codes

    def test_reports_every_violation(self):
        result = validate_flags(_flags(
            nowait=True,
            l3_fee_token_pricer=True,
            l3_token_bridge=True,
            batchposters=9,
        ))

        assert result.error_codes == {
            "NOWAIT_REQUIRES_DETACH",
            "L3_FEE_TOKEN_PRICER_REQUIRES_FEE_TOKEN",
            "L3_TOKEN_BRIDGE_REQUIRES_L3NODE",
            "BATCH_POSTERS_OUT_OF_RANGE",
        }

    def test_error_carries_field_and_message(self):
        issue = validate_flags(_flags(nowait=True)).errors[0]

        assert issue.field == "nowait"
        assert "--nowait requires --detach" in issue.message


class TestValidationWarnings:
    def test_simple_mode_ignores_batchposters(self):
        result = validate_flags(_flags(batchposters=2))

        assert result.valid is True
        assert result.warning_codes == {"SIMPLE_MODE_IGNORES_BATCH_POSTERS"}

    def test_simple_mode_ignores_redundantsequencers(self):
        result = validate_flags(_flags(redundantsequencers=2))

        assert result.valid is True
        assert result.warning_codes == {"SIMPLE_MODE_IGNORES_REDUNDANT_SEQUENCERS"}

    def test_l3_traffic_without_l3node_is_only_a_warning(self):
        result = validate_flags(FlagSet(l3_traffic=True))

        assert result.valid is True
        assert result.warning_codes == {"L3_TRAFFIC_WITHOUT_L3NODE"}

    def test_no_warnings_in_full_mode(self):
        result = validate_flags(_flags(simple=False, batchposters=3, redundantsequencers=3))

        assert result.warnings == []


class TestAssertValidFlags:
    def test_raises_with_all_messages(self):
        with pytest.raises(ConfigurationError) as exc_info:
            assert_valid_flags(_flags(nowait=True, l3_token_bridge=True))

        assert len(exc_info.value.errors) == 2
        assert "Invalid flag configuration" in str(exc_info.value)

    def test_returns_result_with_warnings(self):
        result = assert_valid_flags(FlagSet())

        assert result.valid is True
        assert result.warning_codes == {"L3_TRAFFIC_WITHOUT_L3NODE"}
