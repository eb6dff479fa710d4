"""
docker compose and docker argument construction.
"""

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from testnode.compose import ComposeClient  # noqa: E402
from testnode.docker import DockerClient  # noqa: E402
from testnode.services import ServiceName  # noqa: E402

from conftest import FakeExecutor  # noqa: E402


def _compose(executor, **kwargs) -> ComposeClient:
    kwargs.setdefault("compose_file", "docker-compose.yaml")
    kwargs.setdefault("project_name", "nitro-testnode")
    return ComposeClient(executor, "/work", **kwargs)


class TestComposeInvocation:
    def test_base_arguments(self):
        executor = FakeExecutor()

        _compose(executor).ps()

        (invocation,) = executor.invocations
        assert invocation.command == "docker"
        assert invocation.args == ("compose", "-f", "docker-compose.yaml", "-p", "nitro-testnode", "ps")
        assert invocation.cwd == "/work"

    def test_without_file_and_project(self):
        executor = FakeExecutor()

        ComposeClient(executor, "/work").down()

        assert executor.invocations[0].args == ("compose", "down")

    def test_run_with_env_and_entrypoint(self):
        executor = FakeExecutor()

        _compose(executor, project_name=None).run(
            "rollupcreator", ["create-rollup-testnode"],
            env={"A": "1", "B": "two"}, entrypoint="sh", timeout=300,
        )

        (invocation,) = executor.invocations
        assert invocation.args == (
            "compose", "-f", "docker-compose.yaml",
            "run", "--rm", "-e", "A=1", "-e", "B=two", "--entrypoint", "sh",
            "rollupcreator", "create-rollup-testnode",
        )
        assert invocation.timeout == 300

    def test_shell_wraps_script(self):
        executor = FakeExecutor()

        _compose(executor).shell("geth", "echo passphrase > /datadir/passphrase")

        assert executor.invocations[0].args[-5:] == (
            "--entrypoint", "sh", "geth", "-c", "echo passphrase > /datadir/passphrase",
        )

    def test_spawn_run_is_detached(self):
        executor = FakeExecutor()

        _compose(executor).spawn_run("scripts", ["send-l1"])

        assert executor.spawned[0].args[-4:] == ("run", "--rm", "scripts", "send-l1")


class TestComposeLifecycle:
    def test_up_flags(self):
        executor = FakeExecutor()

        result = _compose(executor).up(
            [ServiceName.SEQUENCER, ServiceName.REDIS],
            detach=True, wait=True, no_build=True, force_recreate=True, remove_orphans=True,
        )

        assert result.ok
        assert executor.invocations[0].args[5:] == (
            "up", "-d", "--wait", "--remove-orphans", "--no-build", "--force-recreate", "sequencer", "redis",
        )

    def test_up_reports_exit_code(self):
        executor = FakeExecutor()
        executor.fail("up", exit_code=17)

        result = _compose(executor).up(["geth"], detach=True)

        assert result.exit_code == 17
        assert not result.ok

    def test_down_flags(self):
        executor = FakeExecutor()

        _compose(executor).down(volumes=True, remove_orphans=True)

        assert executor.invocations[0].args[5:] == ("down", "-v", "--remove-orphans")

    def test_build_logs_restart(self):
        executor = FakeExecutor()
        compose = _compose(executor)

        compose.build(["scripts"], no_cache=True, no_rm=True)
        compose.logs(["sequencer"], follow=True, tail=50)
        compose.restart([ServiceName.SEQUENCER], timeout=120)

        tails = [invocation.args[5:] for invocation in executor.invocations]
        assert tails == [
            ("build", "--no-cache", "--no-rm", "scripts"),
            ("logs", "-f", "--tail", "50", "sequencer"),
            ("restart", "sequencer"),
        ]
        assert executor.invocations[-1].timeout == 120


class TestDockerClient:
    def test_image_exists(self):
        executor = FakeExecutor()
        docker = DockerClient(executor, "/work")

        assert docker.image_exists("nitro") is True
        executor.fail("image inspect")
        assert docker.image_exists("nitro") is False

    def test_build_arguments(self):
        executor = FakeExecutor()

        DockerClient(executor, "/work").build(
            "/src", "img", dockerfile="Dockerfile", target="dev", build_args={"V": "1"}, no_cache=True,
        )

        assert executor.invocations[0].args == (
            "build", "-f", "Dockerfile", "-t", "img", "--build-arg", "V=1", "--target", "dev", "--no-cache", "/src",
        )

    def test_pull_with_platform(self):
        executor = FakeExecutor()

        DockerClient(executor, "/work").pull("nitro:1", platform="linux/amd64")

        assert executor.invocations[0].args == ("pull", "--platform", "linux/amd64", "nitro:1")

    def test_list_volumes_by_prefix(self):
        executor = FakeExecutor()
        executor.respond("volume ls", stdout="nitro-testnode_a\nother_b\nnitro-testnode_c\n")

        volumes = DockerClient(executor, "/work").list_volumes(prefix="nitro-testnode")

        assert volumes == ["nitro-testnode_a", "nitro-testnode_c"]

    def test_list_volumes_failure_is_empty(self):
        executor = FakeExecutor()
        executor.fail("volume ls")

        assert DockerClient(executor, "/work").list_volumes() == []

    def test_remove_volumes_reports_failures(self):
        executor = FakeExecutor()
        executor.fail("volume rm -f busy")

        removed, failed = DockerClient(executor, "/work").remove_volumes(["idle", "busy"], force=True)

        assert removed == ["idle"]
        assert failed == ["busy"]

    def test_prune_images(self):
        executor = FakeExecutor()

        DockerClient(executor, "/work").prune_images(all_images=True)

        assert executor.invocations[0].args == ("image", "prune", "-f", "-a")

    def test_containers_by_label(self):
        executor = FakeExecutor()
        executor.respond("container ls", stdout="abc\ndef\n")
        docker = DockerClient(executor, "/work")

        containers = docker.list_containers("com.docker.compose.project=x")
        docker.remove_containers(containers)

        assert executor.invocations[0].args == (
            "container", "ls", "-a", "--filter", "label=com.docker.compose.project=x", "-q",
        )
        assert executor.invocations[1].args == ("rm", "-f", "abc", "def")
