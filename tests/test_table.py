import numpy
import pandas
import pytest

from btrecon import chain
from btrecon import table


def _samples(iterations, columns):
    return pandas.DataFrame(columns, index=pandas.Index(list(iterations), name="Iteration"))


def test_melt_state_probability_single_row():
    samples = _samples([1000], {"Lh": [-12.0], "3.p.0": [0.7], "3.p.1": [0.3]})
    df = table.melt_state_probability(samples, chain_id=1)
    assert df.columns.tolist() == table.LONG_COLUMNS
    assert df.shape[0] == 2
    assert df["node"].tolist() == ["3", "3"]
    assert df["state"].tolist() == ["0", "1"]
    numpy.testing.assert_allclose(df["probability"].values, [0.7, 0.3])
    assert df["iteration"].tolist() == [1000, 1000]
    assert df["chain_id"].tolist() == [1, 1]


def test_melt_state_probability_drops_missing_values():
    samples = _samples([10, 20], {"Root - P(0)": [0.5, numpy.nan], "Root - P(1)": [0.5, 0.6]})
    df = table.melt_state_probability(samples, chain_id="a")
    assert df.shape[0] == 3
    assert not df["probability"].isnull().any()
    assert df.loc[df["iteration"] == 20, "state"].tolist() == ["1"]


def test_melt_state_probability_without_state_columns():
    samples = _samples([10, 20], {"Lh": [-1.0, -2.0], "q01": [0.1, 0.2]})
    df = table.melt_state_probability(samples, chain_id=1)
    assert df.shape[0] == 0
    assert df.columns.tolist() == table.LONG_COLUMNS


def test_melt_state_probability_row_count_matches_non_missing_cells():
    rng = numpy.random.default_rng(0)
    values = rng.uniform(size=(5, 4))
    values[1, 2] = numpy.nan
    values[4, 0] = numpy.nan
    columns = ["x3_p_0", "x3_p_1", "root_p_0", "root_p_1"]
    samples = _samples(range(10, 51, 10), dict(zip(columns, values.T)))
    df = table.melt_state_probability(samples, chain_id=1)
    assert df.shape[0] == 18
    assert set(df["node"]) == {"3", "Root"}


def test_get_state_long_table_sorts_root_first(tmp_path, bayestraits_log):
    paths = [
        bayestraits_log(tmp_path / "c{}.Log.txt".format(i), iterations=range(10, 51, 10), nodes=("7", "Root", "6"), seed=i)
        for i in range(2)
    ]
    cs = chain.ChainSet.from_files(paths)
    df = table.get_state_long_table(cs)
    assert df.shape[0] == 2 * 5 * 3 * 2
    nodes = df["node"].drop_duplicates().tolist()
    assert nodes == ["Root", "6", "7"]
    first = df.iloc[:5]
    assert first["chain_id"].tolist() == [1] * 5
    assert first["iteration"].tolist() == [10, 20, 30, 40, 50]


def test_summarize_single_value_returns_that_value():
    df = pandas.DataFrame({
        "chain_id": [1],
        "iteration": [1000],
        "node": ["3"],
        "state": ["0"],
        "probability": [0.7],
    })
    summary = table.summarize_state_probability(df, ci=0.95)
    row = summary.iloc[0]
    assert row["num_sample"] == 1
    for col in ["mean", "median", "lower", "upper"]:
        assert row[col] == pytest.approx(0.7)


def test_summarize_state_probability_interval():
    probs = numpy.linspace(0, 1, 101)
    df = pandas.DataFrame({
        "chain_id": 1,
        "iteration": numpy.arange(101),
        "node": "Root",
        "state": "1",
        "probability": probs,
    })
    summary = table.summarize_state_probability(df, ci=0.9)
    row = summary.iloc[0]
    assert row["num_sample"] == 101
    assert row["mean"] == pytest.approx(0.5)
    assert row["median"] == pytest.approx(0.5)
    assert row["lower"] == pytest.approx(0.05)
    assert row["upper"] == pytest.approx(0.95)


def test_compare_state_probability(tmp_path):
    summary = pandas.DataFrame({
        "node": ["Root", "Root", "6"],
        "state": ["0", "1", "0"],
        "num_sample": [10, 10, 10],
        "mean": [0.6, 0.4, 0.9],
        "median": [0.6, 0.4, 0.9],
        "lower": [0.5, 0.3, 0.85],
        "upper": [0.7, 0.5, 0.95],
    })
    ref_path = tmp_path / "ref.tsv"
    ref_path.write_text("node\tstate\tprobability\nroot\t0\t0.65\nroot\t1\t0.35\n7\t0\t0.2\n", encoding="utf-8")
    reference = table.read_reference_table(str(ref_path))
    assert reference["node"].tolist() == ["Root", "Root", "7"]

    df = table.compare_state_probability(summary, reference)
    assert df["node"].tolist() == ["Root", "Root", "6", "7"]
    assert df["presence"].tolist() == ["both", "both", "this_only", "reference_only"]
    assert df["is_within_ci"].tolist() == ["Y", "Y", "", ""]
    numpy.testing.assert_allclose(df["abs_diff"].values[:2], [0.05, 0.05])
    assert df["abs_diff"].iloc[2:].isnull().all()


def test_read_reference_table_requires_columns(tmp_path):
    ref_path = tmp_path / "ref.tsv"
    ref_path.write_text("node\tprob\n1\t0.5\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Missing: state, probability"):
        table.read_reference_table(str(ref_path))


def test_get_state_long_table_ml(tmp_path):
    path = tmp_path / "ml.Log.txt"
    path.write_text(
        "Options:\nAnalysis Type: Maximum Likelihood\n"
        "Tree No\tLh\tq01\tq10\tRoot P(0)\tRoot P(1)\t6 P(0)\t6 P(1)\t\n"
        "1\t-12.3\t0.5\t0.7\t0.8\t0.2\t0.9\t0.1\t\n",
        encoding="utf-8",
    )
    df = table.get_state_long_table_ml([str(path)])
    assert df.columns.tolist() == table.LONG_COLUMNS
    assert df["node"].tolist() == ["Root", "Root", "6", "6"]
    assert df["state"].tolist() == ["0", "1", "0", "1"]
    numpy.testing.assert_allclose(df["probability"].values, [0.8, 0.2, 0.9, 0.1])
    assert df["iteration"].tolist() == [1, 1, 1, 1]
    summary = table.summarize_state_probability(df)
    numpy.testing.assert_allclose(summary["mean"].values, [0.8, 0.2, 0.9, 0.1])
