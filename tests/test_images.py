"""
Image build/fetch and cleanup of previous runs.
"""

from dataclasses import replace
from pathlib import Path

import pytest
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from testnode.errors import CommandError  # noqa: E402
from testnode.workflows.cleanup import cleanup_existing_state  # noqa: E402
from testnode.workflows.images import build_or_fetch_images, nitro_source_dir, utility_images  # noqa: E402


class TestBuildOrFetchImages:
    def test_existing_image_is_tagged_without_pull(self, make_context, executor):
        build_or_fetch_images(make_context())

        assert executor.count("image inspect offchainlabs/nitro-node") == 1
        assert executor.count("docker pull") == 0
        assert executor.count("tag offchainlabs/nitro-node:v3.6.7-a7c9f1e nitro-node-dev-testnode") == 1

    def test_missing_image_is_pulled(self, make_context, executor):
        executor.fail("image inspect")

        build_or_fetch_images(make_context())

        assert executor.index("docker pull offchainlabs/nitro-node") < executor.index("docker tag")

    def test_pull_failure_is_fatal(self, make_context, executor):
        executor.fail("image inspect")
        executor.fail("docker pull", stderr="manifest unknown")

        with pytest.raises(CommandError, match="Failed to pull nitro node image"):
            build_or_fetch_images(make_context())

    def test_blockscout_image_only_when_enabled(self, make_context, executor):
        build_or_fetch_images(make_context(blockscout=True))

        assert executor.count("tag offchainlabs/blockscout:v1.1.0-0e716c8 blockscout-testnode") == 1

    def test_dev_nitro_is_built_and_tagged(self, make_context, executor, tmp_path):
        build_or_fetch_images(make_context(dev_nitro=True, build_dev_nitro=True))

        (build,) = executor.find("docker build")
        assert build.args[-1] == str(tmp_path / "..")
        assert "--target" in build.args
        assert executor.count("tag nitro-node-dev:latest nitro-node-dev-testnode") == 1
        assert executor.count("image inspect") == 0

    def test_utility_images_with_compose(self, make_context, executor, monkeypatch):
        monkeypatch.delenv("CI", raising=False)

        build_or_fetch_images(make_context(build_utils=True, force_build_utils=True, tokenbridge=True))

        assert executor.count("build --no-cache --no-rm scripts rollupcreator tokenbridge") == 1

    def test_utility_images_with_bake_on_ci(self, make_context, executor, monkeypatch):
        monkeypatch.setenv("CI", "true")

        build_or_fetch_images(make_context(build_utils=True))

        (bake,) = executor.find("buildx bake")
        assert "--allow=fs=/tmp" in bake.args
        assert bake.args[-2:] == ("scripts", "rollupcreator")

    def test_node_images_built_for_topology(self, make_context, executor):
        build_or_fetch_images(make_context(build_node_images=True, simple=False))

        assert executor.count("build --no-rm sequencer redis poster staker-unsafe") == 1


class TestImageHelpers:
    def test_utility_images(self, make_context):
        assert utility_images(make_context()) == ["scripts", "rollupcreator"]
        assert utility_images(make_context(ci=True)) == ["scripts", "rollupcreator", "tokenbridge"]

    def test_nitro_source_relative_to_work_dir(self, make_context, tmp_path):
        assert nitro_source_dir(make_context()) == str(tmp_path / "..")

    def test_nitro_source_absolute(self, make_context):
        ctx = make_context()
        ctx.settings = replace(ctx.settings, nitro_src="/src/nitro")
        assert nitro_source_dir(ctx) == "/src/nitro"


class TestCleanupExistingState:
    def test_removes_labelled_containers_and_volumes(self, make_context, executor):
        executor.respond("container ls", stdout="c1\nc2\n")
        executor.respond("volume ls", stdout="nitro-testnode_l1data\n")

        cleanup_existing_state(make_context())

        label = "label=com.docker.compose.project=nitro-testnode"
        assert executor.count("docker rm -f c1 c2") == 1
        assert executor.count(f"volume prune -f --filter {label}") == 1
        assert executor.count("volume rm nitro-testnode_l1data") == 1

    def test_nothing_to_remove(self, make_context, executor):
        executor.respond("container ls", stdout="")
        executor.respond("volume ls", stdout="")

        cleanup_existing_state(make_context())

        assert executor.count("docker rm") == 0
        assert executor.count("volume rm") == 0

    def test_failures_never_raise(self, make_context, executor):
        executor.fail(" down")
        executor.fail("container ls")
        executor.fail("volume")

        cleanup_existing_state(make_context())

        assert executor.count(" down") == 1
