import pandas as pd
import pytest
from click.testing import CliRunner

from modelperf.cli import main


@pytest.fixture
def iris_csv(iris, tmp_path):
    path = tmp_path / "iris.csv"
    frame = iris.copy()
    frame["Species"] = frame["Species"].astype(str)
    frame.to_csv(path, index=False)
    return path


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "version" in result.output


def test_compare_gaussian(iris_csv, tmp_path):
    output_dir = tmp_path / "reports"
    result = CliRunner().invoke(
        main,
        [
            "compare",
            str(iris_csv),
            "-f",
            "Sepal_Length ~ Species",
            "-f",
            "Sepal_Length ~ Species + Petal_Length",
            "--output-dir",
            str(output_dir),
        ],
    )
    assert result.exit_code == 0, result.output
    table = pd.read_csv(output_dir / "performance.csv")
    assert list(table.columns) == [
        "Name",
        "Model",
        "AIC",
        "BIC",
        "R2",
        "R2_adjusted",
        "RMSE",
        "Sigma",
    ]
    assert list(table["Name"]) == [
        "Sepal_Length ~ Species",
        "Sepal_Length ~ Species + Petal_Length",
    ]


def test_compare_binomial_ranked(iris_csv, tmp_path):
    output_dir = tmp_path / "reports"
    result = CliRunner().invoke(
        main,
        [
            "compare",
            str(iris_csv),
            "--family",
            "binomial",
            "-f",
            "Virginica ~ Sepal_Length",
            "-f",
            "Virginica ~ Sepal_Width",
            "-m",
            "common",
            "--rank",
            "--output-dir",
            str(output_dir),
        ],
    )
    assert result.exit_code == 0, result.output
    table = pd.read_csv(output_dir / "performance.csv")
    assert list(table.columns) == [
        "Name",
        "Model",
        "AIC",
        "BIC",
        "R2_Tjur",
        "RMSE",
        "Performance_Score",
    ]
    assert list(table["Model"]) == ["glm", "glm"]


def test_compare_unknown_metric(iris_csv):
    result = CliRunner().invoke(
        main,
        ["compare", str(iris_csv), "-f", "Sepal_Length ~ Species", "-m", "nope"],
    )
    assert result.exit_code != 0
