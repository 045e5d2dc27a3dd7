import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from ccm.errors import EditorFailed, LaunchFailed
from ccm.external import detect_editor, open_in_editor, run_program


def test_run_program_splits_command_and_appends_args():
    with patch("ccm.external.subprocess.run") as mock_run:
        mock_run.return_value = subprocess.CompletedProcess([], 3)

        code = run_program("claude --model x", ["--resume", "a b"])

    assert code == 3
    mock_run.assert_called_once_with(["claude", "--model", "x", "--resume", "a b"], check=False)


def test_run_program_missing_executable():
    with patch("ccm.external.subprocess.run", side_effect=FileNotFoundError()):
        with pytest.raises(LaunchFailed) as exc:
            run_program("claude")
    assert "make sure 'claude' is available in PATH" in str(exc.value)


def test_run_program_empty_command():
    with pytest.raises(LaunchFailed):
        run_program("   ")


def test_detect_editor_prefers_configured():
    assert detect_editor("code --wait") == "code --wait"


def test_detect_editor_falls_back_to_path_search():
    with patch("ccm.external.shutil.which", side_effect=lambda name: name == "nano"):
        assert detect_editor(None) == "nano"
    with patch("ccm.external.shutil.which", return_value=None):
        assert detect_editor(None) == "vi"


def test_open_in_editor_nonzero_exit(tmp_path: Path):
    target = tmp_path / "p.json"
    with patch("ccm.external.subprocess.run") as mock_run:
        mock_run.return_value = subprocess.CompletedProcess([], 2)
        with pytest.raises(EditorFailed) as exc:
            open_in_editor(target, "vim")
    assert exc.value.exit_code == 2
    mock_run.assert_called_once_with(["vim", str(target)], check=False)
