"""Tests for the satbuild command-line interface."""

from unittest.mock import patch

import pytest

from satbuild.cli import main
from satbuild.config import INSTALL_ROOT_ENV


@pytest.fixture
def project(project_dir, toolchain_root, monkeypatch):
    """Demo project with a satbuild.ini pointing at the fake toolchain root."""
    monkeypatch.delenv(INSTALL_ROOT_ENV, raising=False)
    (project_dir / "satbuild.ini").write_text(
        f"[program]\nname = demo\nsources = main.c\n\n[toolchain]\ninstall_root = {toolchain_root}\n",
        encoding="utf-8",
    )
    return project_dir


def _exit_code(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestBuildCommand:
    def test_build_succeeds(self, project, fake_toolchain, capsys):
        with patch("satbuild.build.stage_executor.safe_run", fake_toolchain):
            assert _exit_code(["build", str(project)]) == 0

        assert (project / "demo.iso").exists()
        assert (project / "demo.cue").exists()
        assert "Build successful" in capsys.readouterr().out

    def test_rebuild_is_up_to_date(self, project, fake_toolchain, capsys):
        with patch("satbuild.build.stage_executor.safe_run", fake_toolchain):
            assert _exit_code(["build", str(project)]) == 0
            capsys.readouterr()
            assert _exit_code(["build", str(project)]) == 0

        assert "Everything up to date" in capsys.readouterr().out

    def test_verbose_prints_stage_table(self, project, fake_toolchain, capsys):
        with patch("satbuild.build.stage_executor.safe_run", fake_toolchain):
            assert _exit_code(["build", str(project), "--verbose"]) == 0

        out = capsys.readouterr().out
        assert "disc image" in out
        assert "cue sheet" in out

    def test_missing_config_fails(self, tmp_path, capsys):
        assert _exit_code(["build", str(tmp_path)]) == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_alternate_config(self, project, fake_toolchain):
        (project / "satbuild.ini").rename(project / "alt.ini")
        with patch("satbuild.build.stage_executor.safe_run", fake_toolchain):
            assert _exit_code(["build", str(project), "-c", "alt.ini"]) == 0

    def test_tool_failure_fails(self, project, fake_toolchain, capsys):
        fake_toolchain.fail_on = "make-ip"
        with patch("satbuild.build.stage_executor.safe_run", fake_toolchain):
            assert _exit_code(["build", str(project)]) == 1

        err = capsys.readouterr().err
        assert "Build failed at stage 'header'" in err
        assert (project / "build" / "demo.bin").exists()

    def test_interrupt_exits_130(self, project):
        with patch("satbuild.cli.BuildPipeline.run", side_effect=KeyboardInterrupt):
            assert _exit_code(["build", str(project)]) == 130


class TestArguments:
    def test_unknown_command(self):
        assert _exit_code(["deploy"]) == 2

    def test_missing_command(self):
        assert _exit_code([]) == 2

    def test_project_dir_must_exist(self, tmp_path):
        assert _exit_code(["build", str(tmp_path / "missing")]) == 2

    def test_version(self, capsys):
        assert _exit_code(["--version"]) == 0
        assert "satbuild" in capsys.readouterr().out


class TestCleanCommand:
    def test_clean_after_build(self, project, fake_toolchain, capsys):
        with patch("satbuild.build.stage_executor.safe_run", fake_toolchain):
            assert _exit_code(["build", str(project)]) == 0

        assert _exit_code(["clean", str(project)]) == 0

        assert not (project / "build").exists()
        assert not (project / "demo.iso").exists()
        assert (project / "main.c").exists()
        assert "Clean complete" in capsys.readouterr().out
