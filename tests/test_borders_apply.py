import os
from pathlib import Path

import pytest

import border_picker
from border_picker import (
    BordersToolError,
    Color,
    apply_borders,
    borders_args,
    format_width,
)

ACTIVE = Color(a=0xFF, r=0xE2, g=0xE2, b=0xE3)
INACTIVE = Color(a=0xFF, r=0x41, g=0x45, b=0x50)


def install_fake_borders(bin_dir: Path, exit_code: int = 0) -> Path:
    """Put a `borders` script on disk that records its argv, one per line."""
    bin_dir.mkdir(parents=True, exist_ok=True)
    log = bin_dir / "calls.log"
    script = bin_dir / "borders"
    script.write_text(
        "#!/bin/sh\n"
        f'for a in "$@"; do echo "$a" >> "{log}"; done\n'
        f'echo "--" >> "{log}"\n'
        f"exit {exit_code}\n"
    )
    script.chmod(0o755)
    return log


@pytest.fixture
def fake_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    bin_dir = tmp_path / "bin"
    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    return bin_dir


@pytest.mark.parametrize("width,expected", [(6.0, "6.0"), (0, "0.0"), (20, "20.0"), (3.14159, "3.1")])
def test_format_width_has_one_decimal(width, expected) -> None:
    assert format_width(width) == expected


def test_borders_args_order() -> None:
    assert borders_args(ACTIVE, INACTIVE, 6.0) == [
        "active_color=0xffe2e2e3",
        "inactive_color=0xff414550",
        "width=6.0",
    ]


def test_apply_runs_borders_from_path(fake_path: Path) -> None:
    log = install_fake_borders(fake_path)

    apply_borders(ACTIVE, INACTIVE, 0)

    assert log.read_text().splitlines() == [
        "active_color=0xffe2e2e3",
        "inactive_color=0xff414550",
        "width=0.0",
        "--",
    ]


def test_apply_nonzero_exit_raises(fake_path: Path) -> None:
    install_fake_borders(fake_path, exit_code=3)
    with pytest.raises(BordersToolError):
        apply_borders(ACTIVE, INACTIVE, 6.0)


def test_apply_missing_executable_raises_same_error(fake_path: Path) -> None:
    with pytest.raises(BordersToolError) as excinfo:
        apply_borders(ACTIVE, INACTIVE, 6.0, executable="borders-does-not-exist")
    assert isinstance(excinfo.value.__cause__, OSError)


def test_apply_spawns_exactly_one_process(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_run(args, **kwargs):
        calls.append((args, kwargs))

    monkeypatch.setattr(border_picker.subprocess, "run", fake_run)
    apply_borders(ACTIVE, INACTIVE, 6.0)

    assert len(calls) == 1
    args, kwargs = calls[0]
    assert args[0] == "borders"
    assert kwargs["check"] is True
    assert kwargs["stdout"] == border_picker.subprocess.DEVNULL


def test_apply_saved_uses_file_and_exits_zero(tmp_path: Path, fake_path: Path) -> None:
    log = install_fake_borders(fake_path)
    config = tmp_path / "border_picker.json"
    config.write_text(
        '{"active_color": "0x80112233", "inactive_color": "bad", "border_width": 2.25}',
        encoding="utf-8",
    )

    assert border_picker.apply_saved(path=config) == 0
    assert log.read_text().splitlines() == [
        "active_color=0x80112233",
        "inactive_color=0xff414550",
        "width=2.2",
        "--",
    ]


def test_apply_saved_without_config_applies_defaults(tmp_path: Path, fake_path: Path) -> None:
    log = install_fake_borders(fake_path)

    assert border_picker.apply_saved(path=tmp_path / "missing.json") == 0
    assert log.read_text().splitlines()[:3] == borders_args(ACTIVE, INACTIVE, 6.0)


def test_apply_saved_exits_one_when_tool_missing(tmp_path: Path, fake_path: Path) -> None:
    code = border_picker.apply_saved(path=tmp_path / "missing.json", executable="borders-does-not-exist")
    assert code == 1


def test_apply_saved_exits_one_when_tool_fails(tmp_path: Path, fake_path: Path) -> None:
    install_fake_borders(fake_path, exit_code=2)
    assert border_picker.apply_saved(path=tmp_path / "missing.json") == 1


@pytest.mark.parametrize("width,expected", [(-3.0, 0.0), (25, 20.0), (7.5, 7.5), (20, 20.0)])
def test_clamp_width_keeps_slider_range(width, expected) -> None:
    assert border_picker.clamp_width(width) == expected
