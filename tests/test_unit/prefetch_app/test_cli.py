"""Tests for the prefetch command-line interface.

The provider is replaced by an ``httpx.MockTransport`` so that the commands
run end to end without a network.
"""

import json
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from prefetch_app import main as main_module
from prefetch_app.main import cli
from prefetch_core.config import PrefetchConfig
from prefetch_core.kv_store import KeyValueStore
from prefetch_core.manager import PrefetchQueueManager
from prefetch_core.retry import create_retry_engine
from prefetch_http.fetch_client import FetchClient
from prefetch_http.http_config import HttpProtocolConfig


def _printed_items(output: str) -> list[dict[str, Any]]:
    """Return the item records printed by a command, skipping log lines."""
    records = []
    for line in output.splitlines():
        try:
            record = json.loads(line)
        except ValueError:
            continue
        if isinstance(record, dict) and "event" not in record:
            records.append(record)
    return records


class TestCli:
    """Test the run, show and clear commands."""

    @pytest.fixture
    def runner(self) -> CliRunner:
        return CliRunner()

    @pytest.fixture
    def store_dir(self, tmp_path: Path) -> Path:
        return tmp_path / "kv"

    @pytest.fixture
    def requests(self) -> list[httpx.Request]:
        return []

    @pytest.fixture
    def install_provider(
        self, monkeypatch: pytest.MonkeyPatch, requests: list[httpx.Request]
    ) -> Callable[..., None]:
        """Serve the given batches of IDs, then empty batches."""

        def _install(*batches: Iterable[Any], status_code: int = 200) -> None:
            pending = [list(batch) for batch in batches]

            def handler(request: httpx.Request) -> httpx.Response:
                requests.append(request)
                if status_code != 200:
                    return httpx.Response(status_code)
                ids = pending.pop(0) if pending else []
                items = [
                    {"id": i, "image_url": f"https://img.example/{i}.jpg"} for i in ids
                ]
                return httpx.Response(
                    200, json={"success": True, "data": {"items": items}}
                )

            def create_manager(
                http_config: HttpProtocolConfig,
                prefetch_config: PrefetchConfig,
                kv_store: KeyValueStore | None = None,
                **_kwargs: Any,
            ) -> tuple[PrefetchQueueManager, FetchClient, None]:
                fetch_client = FetchClient(
                    http_config,
                    client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
                    retry_engine=create_retry_engine(max_retries=0),
                )
                manager = PrefetchQueueManager(
                    fetch_client, config=prefetch_config, kv_store=kv_store
                )
                return manager, fetch_client, None

            monkeypatch.setattr(main_module, "create_prefetch_manager", create_manager)

        return _install

    def _invoke(self, runner: CliRunner, store_dir: Path, *args: str) -> Any:
        return runner.invoke(
            cli,
            [
                "--base-url",
                "http://provider.test",
                "--kvstore",
                "file",
                "--kvstore-file-path",
                str(store_dir),
                "--log-level",
                "WARNING",
                *args,
            ],
        )

    def test_run_prints_items(
        self,
        runner: CliRunner,
        store_dir: Path,
        install_provider: Callable[..., None],
        requests: list[httpx.Request],
    ) -> None:
        install_provider(range(1, 6))

        result = self._invoke(runner, store_dir, "run", "--count", "3")

        assert result.exit_code == 0, result.output
        assert [record["id"] for record in _printed_items(result.output)] == [1, 2, 3]
        assert requests[0].url.params["count"] == "10"
        assert "exclude" not in requests[0].url.params

    def test_remaining_items_survive_between_runs(
        self,
        runner: CliRunner,
        store_dir: Path,
        install_provider: Callable[..., None],
    ) -> None:
        install_provider(range(1, 6))
        assert self._invoke(runner, store_dir, "run", "-n", "2").exit_code == 0

        shown = self._invoke(runner, store_dir, "show")
        assert [record["id"] for record in _printed_items(shown.output)] == [3, 4, 5]

        resumed = self._invoke(runner, store_dir, "run", "-n", "1")
        assert resumed.exit_code == 0, resumed.output
        assert _printed_items(resumed.output)[0]["id"] == 3

    def test_clear_erases_snapshot(
        self,
        runner: CliRunner,
        store_dir: Path,
        install_provider: Callable[..., None],
    ) -> None:
        install_provider(range(1, 6))
        self._invoke(runner, store_dir, "run", "-n", "1")

        cleared = self._invoke(runner, store_dir, "clear")
        shown = self._invoke(runner, store_dir, "show")

        assert cleared.exit_code == 0
        assert "Snapshot erased." in cleared.output
        assert "No snapshot stored." in shown.output
        assert _printed_items(shown.output) == []

    def test_run_stops_when_feed_is_exhausted(
        self,
        runner: CliRunner,
        store_dir: Path,
        install_provider: Callable[..., None],
    ) -> None:
        install_provider([1, 2])

        result = self._invoke(runner, store_dir, "run", "-n", "5")

        assert result.exit_code == 0, result.output
        assert [record["id"] for record in _printed_items(result.output)] == [1, 2]
        assert "No more items available after 2." in result.output

    def test_run_reports_fetch_error(
        self,
        runner: CliRunner,
        store_dir: Path,
        install_provider: Callable[..., None],
    ) -> None:
        install_provider(status_code=500)

        result = self._invoke(runner, store_dir, "run", "-n", "1")

        assert result.exit_code == 1
        assert "Error: Failed to fetch: 500" in result.output

    def test_batch_size_from_environment_and_option(
        self,
        runner: CliRunner,
        store_dir: Path,
        install_provider: Callable[..., None],
        requests: list[httpx.Request],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("PREFETCH_APP_BATCH_SIZE", "4")
        install_provider([1], [2])

        self._invoke(runner, store_dir, "run", "-n", "1", "--no-persist")
        self._invoke(runner, store_dir, "run", "-n", "1", "--no-persist", "--batch-size", "6")

        assert requests[0].url.params["count"] == "4"
        assert requests[-1].url.params["count"] == "6"

    def test_no_persist_writes_nothing(
        self,
        runner: CliRunner,
        store_dir: Path,
        install_provider: Callable[..., None],
    ) -> None:
        install_provider(range(1, 6))

        result = self._invoke(runner, store_dir, "run", "-n", "1", "--no-persist")

        assert result.exit_code == 0, result.output
        assert not store_dir.exists()

    def test_batch_size_out_of_range(self, runner: CliRunner, store_dir: Path) -> None:
        result = self._invoke(runner, store_dir, "run", "--batch-size", "21")

        assert result.exit_code == 2

    @pytest.mark.parametrize("command", ["show", "clear"])
    def test_invalid_environment_config_is_a_usage_error(
        self,
        runner: CliRunner,
        store_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        command: str,
    ) -> None:
        monkeypatch.setenv("PREFETCH_APP_BATCH_SIZE", "50")

        result = self._invoke(runner, store_dir, command)

        assert result.exit_code == 2
        assert "batch_size must be between 1 and" in result.output
        assert "Traceback" not in result.output

    def test_unknown_log_level(self, runner: CliRunner, store_dir: Path) -> None:
        result = runner.invoke(
            cli, ["--log-level", "LOUD", "--kvstore", "memory", "show"]
        )

        assert result.exit_code == 2
        assert "Unknown log level: LOUD" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output
