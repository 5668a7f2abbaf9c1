"""Tests for the command-line entry point."""

from __future__ import annotations

import logging

import pytest

from wfcmaze import config
from wfcmaze.__main__ import main


def test_prints_maze_and_collapsed_map(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--width", "6", "--height", "5", "--seed", "abc"]) == 0

    out = capsys.readouterr().out
    maze_text, map_text = out.split("\n\n", 1)
    assert maze_text.startswith("┏")
    assert map_text.startswith("┏")
    # Every map cell is collapsed, so none shows a remaining-tile count.
    assert map_text.count("#") == 6 * 5


def test_same_seed_same_output(capsys: pytest.CaptureFixture[str]) -> None:
    args = ["--width", "5", "--height", "4", "--seed", "carcassonne"]

    assert main(args) == 0
    first = capsys.readouterr().out
    assert main(args) == 0
    second = capsys.readouterr().out

    assert first == second


def test_default_seed_comes_from_config(capsys: pytest.CaptureFixture[str]) -> None:
    size = ["--width", "4", "--height", "4"]

    assert main(size) == 0
    default = capsys.readouterr().out
    assert main([*size, "--seed", str(config.RANDOM_SEED)]) == 0
    explicit = capsys.readouterr().out

    assert default == explicit


@pytest.mark.parametrize(
    "argv",
    [
        ["--width", "0"],
        ["--width", "4", "--height", "4", "--path-percentage", "1.5"],
    ],
)
def test_invalid_arguments_fail(
    argv: list[str], caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.ERROR):
        assert main(argv) == 1

    assert "Generation failed" in caplog.text
