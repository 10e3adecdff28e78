"""
Unit tests for the command-line interface.
"""

import json

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from godiagram.base import InputAction
from godiagram.board import Coordinate
from godiagram.cli import main, parse_input

PROBLEM = "problem\na b .\n. . .\n. . .\n---\nsize: 3\nto-play: black\nsolutions: a>b\n"


@pytest.fixture
def write_source(tmp_path):
    """Write a diagram source file and return its path."""
    def _write(text):
        path = tmp_path / "diagram.txt"
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def config_file(tmp_path):
    """Config with replies played immediately."""
    path = tmp_path / "godiagram.yaml"
    path.write_text("diagrams:\n  reply_delay: 0\nlogging:\n  level: WARNING\n", encoding="utf-8")
    return str(path)


class TestParseInput:
    """Tests for parse_input()."""

    def test_buttons(self):
        """Test button inputs take no point."""
        assert parse_input("next", 9) == (InputAction.NEXT, None)
        assert parse_input("UNDO", 9) == (InputAction.UNDO, None)

    def test_click_gtp(self):
        """Test click with a GTP vertex."""
        assert parse_input("click A3", 3) == (InputAction.CLICK, Coordinate(0, 0))
        assert parse_input("click C1", 3) == (InputAction.CLICK, Coordinate(2, 2))

    def test_click_row_col(self):
        """Test click with row,col."""
        assert parse_input("click 0,2", 3) == (InputAction.CLICK, Coordinate(0, 2))

    def test_invalid(self):
        """Test malformed inputs raise ValueError."""
        for text in ("", "resign", "click", "next 1", "click 0,x", "click Z9"):
            with pytest.raises(ValueError):
                parse_input(text, 3)


class TestMain:
    """Tests for main()."""

    def test_text_output(self, write_source, config_file, capsys):
        """Test the default human-readable output."""
        code = main([write_source(PROBLEM), "--config", config_file])
        assert code == 0

        out = capsys.readouterr().out
        assert "Problem diagram" in out
        assert "To play: black" in out
        assert "Result: incomplete" in out

    def test_json_with_inputs(self, write_source, config_file, capsys):
        """Test inputs are applied and replies play out."""
        code = main([write_source(PROBLEM), "-c", config_file, "--seed", "1", "-i", "click A3", "--json"])
        assert code == 0

        data = json.loads(capsys.readouterr().out)
        assert data["rows"][0] == "X O ."
        assert data["result"] == "success"

    def test_replay_navigation(self, write_source, config_file, capsys):
        """Test button inputs on a replay."""
        path = write_source("replay\n1 2\n. .\n")
        code = main([path, "-c", config_file, "-i", "last", "-i", "previous", "--json"])
        assert code == 0

        data = json.loads(capsys.readouterr().out)
        assert data["move_number"] == 1
        assert data["total_moves"] == 2

    def test_invalid_diagram(self, write_source, config_file, capsys):
        """Test an invalid diagram exits with 1."""
        code = main([write_source("replay\n1 3\n. .\n"), "-c", config_file])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_input(self, write_source, config_file, capsys):
        """Test a malformed input exits with 2."""
        code = main([write_source(PROBLEM), "-c", config_file, "-i", "jump"])
        assert code == 2
        assert "Input error" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, config_file, capsys):
        """Test a missing source file exits with 1."""
        code = main([str(tmp_path / "missing.txt"), "-c", config_file])
        assert code == 1

    def test_missing_config(self, write_source, tmp_path, capsys):
        """Test an explicit missing config exits with 1."""
        code = main([write_source(PROBLEM), "-c", str(tmp_path / "nope.yaml")])
        assert code == 1
        assert "Config file not found" in capsys.readouterr().err
