import os
import pathlib
import sys
import tempfile
import importlib.util

import numpy as np
import pytest

# Ensure tests import the local checkout rather than an installed btrecon package.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if "btrecon" in sys.modules:
    for module_name in list(sys.modules):
        if module_name == "btrecon" or module_name.startswith("btrecon."):
            del sys.modules[module_name]
spec = importlib.util.spec_from_file_location(
    "btrecon",
    ROOT / "btrecon" / "__init__.py",
    submodule_search_locations=[str(ROOT / "btrecon")],
)
module = importlib.util.module_from_spec(spec)
sys.modules["btrecon"] = module
assert spec.loader is not None
spec.loader.exec_module(module)

# arviz pulls in matplotlib at import time; ensure its cache is writable.
os.environ.setdefault("MPLCONFIGDIR", tempfile.mkdtemp(prefix="mplconfig-"))


@pytest.fixture(autouse=True)
def _set_random_seed():
    np.random.seed(0)


def _format_value(value):
    if isinstance(value, str):
        return value
    return "{:.6f}".format(value)


def write_bayestraits_log(path, iterations, sample_period=10, nodes=("Root", "6"), states=("0", "1"),
                          seed=0, columns=None):
    """Write a small BayesTraits MultiState MCMC log with one row per iteration."""
    rng = np.random.default_rng(seed)
    header = [
        "BayesTraits V4.0.0 (Oct 2 2026 10:00:00)",
        "Options:",
        "Model:                           MultiState",
        "Tree File Name:                  btrecon_tree.nex",
        "Data File Name:                  btrecon_trait.txt",
        "Log File Name:                   btrecon.Log.txt",
        "Analysis Type:                   MCMC",
        "Sample Period:                   {}".format(sample_period),
        "Iterations:                      {}".format(max(iterations)),
        "Burn in:                         {}".format(min(iterations) - sample_period),
        "Tags:",
        "            T5    A B C D",
        "",
    ]
    if columns is None:
        columns = ["{} - P({})".format(node, state) for node in nodes for state in states]
    table_columns = ["Iteration", "Lh", "Tree No", "q01", "q10"] + list(columns)
    lines = header + ["\t".join(table_columns) + "\t"]
    for iteration in iterations:
        values = [str(iteration), -20 + rng.normal(), "1", rng.exponential(), rng.exponential()]
        num_group = len(columns) // len(states)
        for _ in range(num_group):
            p = rng.dirichlet(np.ones(len(states)))
            values += list(p)
        values += [rng.uniform() for _ in range(len(columns) - num_group * len(states))]
        lines.append("\t".join(_format_value(v) for v in values) + "\t")
    pathlib.Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def bayestraits_log():
    return write_bayestraits_log
