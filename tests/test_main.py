"""
Tests for the Replay Command Line
==================================
"""

import json
import logging

import pytest

pytest.importorskip("torch")

from sign_tutor.main import load_recording, main, parse_args
from sign_tutor.modules.utils.config import Config

from conftest import make_hand


@pytest.fixture(autouse=True)
def fresh_state():
    Config.reset()
    yield
    Config.reset()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if not type(handler).__name__.startswith("LogCapture"):
            root.removeHandler(handler)


@pytest.fixture
def recording(tmp_path):
    hand = [{"x": p.x, "y": p.y, "z": p.z} for p in make_hand()]
    frames = [{"timestamp": i / 30.0, "hands": [hand] if i % 7 else []} for i in range(20)]
    path = tmp_path / "recording.json"
    path.write_text(json.dumps({"frames": frames}))
    return str(path)


@pytest.fixture
def user_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("models:\n  model_dir: %s\n" % tmp_path.as_posix())
    return str(path)


class TestCommandLine:
    """End-to-end replay through untrained networks."""

    def test_parse_args_defaults(self):
        args = parse_args(["rec.json"])

        assert args.mode == "practice"
        assert args.target is None
        assert args.export is None

    def test_load_recording_accepts_bare_list(self, tmp_path):
        path = tmp_path / "frames.json"
        path.write_text(json.dumps([{"timestamp": 0.0, "hands": []}]))

        assert len(load_recording(str(path))) == 1

    def test_missing_recording(self, tmp_path):
        assert main([str(tmp_path / "absent.json")]) == 1

    def test_missing_restore_file(self, recording, user_config, tmp_path):
        code = main([recording, "--config", user_config, "--target", "A",
                     "--restore", str(tmp_path / "absent.json")])

        assert code == 1

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
    def test_invalid_restore_file(self, recording, user_config, tmp_path, content):
        saved = tmp_path / "saved.json"
        saved.write_text(content)

        code = main([recording, "--config", user_config, "--restore", str(saved)])

        assert code == 1

    def test_target_prints_progress(self, recording, user_config, capsys):
        """Without --export a targeted run writes the progress JSON to stdout."""
        code = main([recording, "--config", user_config, "--target", "B"])

        state = json.loads(capsys.readouterr().out)
        assert code == 0
        assert len(state["practiceAttempts"]) == 17
        assert state["practiceAttempts"][0]["targetSign"] == "B"

    def test_no_target_prints_nothing(self, recording, user_config, capsys):
        assert main([recording, "--config", user_config]) == 0
        assert capsys.readouterr().out == ""

    def test_practice_export(self, recording, user_config, tmp_path):
        export = tmp_path / "progress.json"

        code = main([recording, "--config", user_config, "--target", "A",
                     "--export", str(export)])

        state = json.loads(export.read_text())
        assert code == 0
        assert len(state["practiceAttempts"]) == 17
        assert all(a["targetSign"] == "A" for a in state["practiceAttempts"])
        assert state["testResults"] == []

    def test_restore_then_test_mode(self, recording, user_config, tmp_path):
        saved = tmp_path / "saved.json"
        saved.write_text(json.dumps({"signsLearned": ["B"], "practiceTime": 12}))
        export = tmp_path / "progress.json"

        code = main([recording, "--config", user_config, "--mode", "test", "--target", "HELLO",
                     "--restore", str(saved), "--export", str(export)])

        state = json.loads(export.read_text())
        assert code == 0
        assert state["signsLearned"] == ["B"]
        assert state["practiceAttempts"] == []
        assert len(state["testResults"]) == 1
        assert state["testResults"][0]["questionSign"] == "HELLO"
        assert state["practiceTime"] == 12


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
