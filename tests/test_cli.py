# tests/test_cli.py
import sys
import textwrap

import pytest
from click.testing import CliRunner

from juche.cli import cli

SCRIPT = textwrap.dedent(
    """
    import sys
    from juche import IN, OUT, new_step, targets

    TOOL = {tool!r}

    def build_targets():
        obj = new_step(sys.executable, "main.o")
        obj.add_argument(TOOL)
        obj.add_argument(IN)
        obj.add_argument(OUT)
        obj.add_input("main.c")

        app = new_step(sys.executable, "app")
        app.add_argument(TOOL)
        app.add_argument(IN)
        app.add_argument(OUT)
        app.add_input("main.o")
        app.add_dependency(obj)
        return targets(app, obj)
    """
)

TOOL = textwrap.dedent(
    """
    import sys
    *sources, out = sys.argv[1:]
    if any("fail" in open(s).read() for s in sources):
        sys.exit(4)
    with open(out, "w") as f:
        f.write("built")
    """
)


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for var in ("JUCHE_SCRIPT", "JUCHE_KEEP_GOING", "JUCHE_DRY_RUN", "JUCHE_MEMOIZE", "JUCHE_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    tool = tmp_path / "tool.py"
    tool.write_text(TOOL)
    (tmp_path / "main.c").write_text("int main;\n")
    (tmp_path / "juche_build.py").write_text(SCRIPT.format(tool=str(tool)))
    return tmp_path


def test_build_runs_and_second_build_is_up_to_date(project):
    runner = CliRunner()
    result = runner.invoke(cli, ["build"])
    assert result.exit_code == 0, result.output
    assert (project / "app").read_text() == "built"
    assert "main.o: BUILT" in result.output
    assert "app: BUILT" in result.output

    result = runner.invoke(cli, ["build"])
    assert result.exit_code == 0, result.output
    assert "app: UP-TO-DATE" in result.output


def test_build_selected_output_only(project):
    result = CliRunner().invoke(cli, ["build", "main.o"])
    assert result.exit_code == 0, result.output
    assert (project / "main.o").exists()
    assert not (project / "app").exists()


def test_unknown_output_fails(project):
    result = CliRunner().invoke(cli, ["build", "nope"])
    assert result.exit_code == 1


def test_dry_run_executes_nothing(project):
    result = CliRunner().invoke(cli, ["build", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert not (project / "main.o").exists()
    assert "main.c main.o" in result.output
    assert "main.o: WOULD-BUILD" in result.output
    assert "app: WOULD-BUILD" in result.output
    assert "BUILT" not in result.output.replace("WOULD-BUILD", "")


def test_dry_run_from_environment(project, monkeypatch):
    monkeypatch.setenv("JUCHE_DRY_RUN", "1")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 0, result.output
    assert not (project / "main.o").exists()


def test_failing_step_exits_non_zero(project):
    (project / "main.c").write_text("fail\n")
    result = CliRunner().invoke(cli, ["build", "--keep-going"])
    assert result.exit_code == 1
    assert "main.o: FAILED" in result.output
    assert "app: BLOCKED" in result.output


def test_plan_lists_order_without_building(project):
    result = CliRunner().invoke(cli, ["plan"])
    assert result.exit_code == 0, result.output
    lines = [l for l in result.output.splitlines() if "[" in l]
    assert "main.o" in lines[0] and "[stale]" in lines[0]
    assert "app" in lines[1]
    assert not (project / "main.o").exists()


def test_missing_script_is_reported(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("JUCHE_SCRIPT", raising=False)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "No build script found" in result.output


def test_explicit_script_option(project):
    (project / "juche_build.py").rename(project / "other_build.py")
    result = CliRunner().invoke(cli, ["build", "--script", "other_build"])
    assert result.exit_code == 0, result.output


def test_several_candidate_scripts_are_ambiguous(project):
    (project / "juche_build.py").rename(project / "app_build.py")
    (project / "lib_build.py").write_text("TARGETS = []\n")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Ambiguous build script" in result.output
    assert "app_build.py" in result.output and "lib_build.py" in result.output
    assert not (project / "main.o").exists()


def test_script_option_accepts_a_directory(project, tmp_path_factory, monkeypatch):
    monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
    result = CliRunner().invoke(cli, ["plan", "--script", str(project)])
    assert result.exit_code == 0, result.output
    assert "main.o" in result.output
