"""End-to-end CLI runs against a snapshot file."""
from __future__ import annotations

from pathlib import Path

import pytest

from rebalancer.cli import main


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


class TestCliFlow:
    def test_plan(
        self,
        sample_yaml_path: Path,
        sample_snapshot_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["--config", str(sample_yaml_path), "plan", str(sample_snapshot_path)])
        out = capsys.readouterr().out
        assert code == 0
        assert "Status: ready" in out
        assert "Transfers:" in out
        assert "Base Mainnet (8453)" in out
        assert "Optimism (10) → Base Mainnet (8453)" in out

    def test_assess(
        self,
        sample_yaml_path: Path,
        sample_snapshot_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["--config", str(sample_yaml_path), "assess", str(sample_snapshot_path)])
        out = capsys.readouterr().out
        assert code == 0
        assert "CRITICAL" in out
        assert "no debt" in out

    def test_repair(
        self,
        sample_yaml_path: Path,
        sample_snapshot_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["--config", str(sample_yaml_path), "repair", str(sample_snapshot_path)])
        out = capsys.readouterr().out
        assert code == 0
        assert "Base Mainnet (8453)" in out
        assert "repay" in out

    def test_chain_filter_leaves_nothing_to_do(
        self,
        sample_yaml_path: Path,
        sample_snapshot_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(
            [
                "--config",
                str(sample_yaml_path),
                "plan",
                str(sample_snapshot_path),
                "--chain",
                "10",
            ]
        )
        assert code == 0
        assert "Status: no_unhealthy_positions" in capsys.readouterr().out
