import pandas as pd
import pytest
from click.testing import CliRunner

from ops.run_pipeline import ConfigOverride, apply_override, cli


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, project_dir, *args):
    return runner.invoke(cli, ["--config-file", str(project_dir / "config.yaml"), *args])


def test_render_writes_the_map(runner, project_dir, tmp_path):
    output = tmp_path / "out" / "map.html"
    result = invoke(runner, project_dir, "render", "--output", str(output))

    assert result.exit_code == 0, result.output
    assert output.exists()
    assert "WAVERLEY" in output.read_text()


def test_render_is_the_default_command(runner, project_dir, monkeypatch):
    monkeypatch.chdir(project_dir)
    result = invoke(runner, project_dir)

    assert result.exit_code == 0, result.output
    assert (project_dir / "html" / "case_map.html").exists()


def test_threshold_option_narrows_the_window(runner, project_dir, tmp_path):
    output = tmp_path / "late.html"
    result = invoke(runner, project_dir, "render", "--threshold", "2021-06-21", "--output", str(output))

    assert result.exit_code == 0, result.output
    html = output.read_text()
    assert "SYDNEY" in html
    assert "WAVERLEY" not in html


def test_strict_mode_fails_on_regions_without_polygons(runner, project_dir):
    cases = pd.read_csv(project_dir / "cases.csv")
    cases.loc[0, "lga_name19"] = "Nowhere (C)"
    cases.to_csv(project_dir / "cases.csv", index=False)

    assert invoke(runner, project_dir, "summary").exit_code == 0
    assert invoke(runner, project_dir, "summary", "--strict").exit_code == 1


def test_missing_source_exits_with_error(runner, project_dir):
    result = invoke(runner, project_dir, "render", "--cases-csv", str(project_dir / "gone.csv"))
    assert result.exit_code == 1


def test_config_override_option(runner, project_dir, tmp_path):
    output = tmp_path / "map.html"
    result = invoke(
        runner,
        project_dir,
        "--config",
        "visualization.legend_title=Locally acquired",
        "render",
        "--output",
        str(output),
    )

    assert result.exit_code == 0, result.output
    assert "Locally acquired" in output.read_text()


def test_bad_override_format_is_a_usage_error(runner, project_dir):
    result = invoke(runner, project_dir, "--config", "no-equals-sign", "render")
    assert result.exit_code == 2


def test_config_override_parsing():
    override = ConfigOverride()
    assert override.convert("a.b=true", None, None) == ("a.b", True)
    assert override.convert("a.b=12", None, None) == ("a.b", 12)
    assert override.convert("a.b=0.5", None, None) == ("a.b", 0.5)
    assert override.convert("a.b=Reds", None, None) == ("a.b", "Reds")


def test_apply_override_creates_nested_keys():
    data = {"analysis": {"excluded_source": "Overseas"}}
    apply_override(data, "analysis.unmatched_policy", "raise")
    apply_override(data, "visualization.outline.weight", 3)

    assert data == {
        "analysis": {"excluded_source": "Overseas", "unmatched_policy": "raise"},
        "visualization": {"outline": {"weight": 3}},
    }
