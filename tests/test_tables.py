import csv
import numpy as np
import os
import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from pathlib import Path

import xsgamma
import xsgamma.case_generation as case_generation
import xsgamma.tables as tables

from xsgamma.tables import (
    _calculate_checksum,
    compute_err_table,
    get_in_out_types,
    get_input_rows,
    get_output_rows,
)


CASES = {
    "erf": [np.array([-2.0, -0.5, 0.0, 1e-3, 0.75, 3.0])],
    "gamma": [np.array([0.5, 1.0, 4.5, -2.5, 20.25])],
    "regularized_beta": [
        np.array([0.1, 0.5, 0.9]), np.array([[0.5], [2.0]]), np.array([3.0]),
    ],
}


@pytest.fixture(scope="module")
def tables_root(tmp_path_factory):
    root = tmp_path_factory.mktemp("tables")
    for funcname, arrays in CASES.items():
        case_generation.generate_cases(funcname, arrays, root / funcname)
    tables.main(root, logpath_root=root / "logs", ertol=0.0)
    return root


@pytest.fixture(params=sorted(CASES))
def table_paths(request, tables_root):
    (input_table_path, ) = (tables_root / request.param).glob("In_*.parquet")
    output_table_path = input_table_path.parent / input_table_path.name.replace("In_", "Out_")
    err_table_path = input_table_path.parent / input_table_path.name.replace("In_", "Err_")
    return request.param, input_table_path, output_table_path, err_table_path


class TestCaseGeneration:
    def test_broadcast_and_unique(self, tmp_path):
        path = case_generation.generate_cases(
            "gamma_ratio", [np.array([1.0, 2.0, 2.0]), np.array([3.0])], tmp_path
        )
        assert path.name == "In_dd-d.parquet"
        assert get_input_rows(path) == [(1.0, 3.0), (2.0, 3.0)]
        assert get_in_out_types(path) == ("dd", "d")

    def test_wrong_number_of_arrays(self, tmp_path):
        with pytest.raises(ValueError, match="takes 1 arguments"):
            case_generation.generate_cases("erf", [np.zeros(2), np.zeros(2)], tmp_path)

    def test_sample_domain(self):
        rng = np.random.default_rng(1234)
        a, x = case_generation.sample_domain(rng, [(1e-5, 1e4), (-1.0, 1.0)], 200)
        assert a.dtype == np.float64 and len(a) == 200
        assert np.all((a >= 1e-5) & (a <= 1e4))
        assert np.all((x >= -1.0) & (x <= 1.0))

    def test_every_domain_names_a_reference(self):
        for funcname, domain in case_generation.DOMAINS.items():
            func = getattr(xsgamma._reference._functions, funcname)
            assert len(func._input_types) == len(domain)

    def test_main(self, tmp_path):
        case_generation.main(tmp_path, seed=0, size=5, funcnames=["erf", "beta"])
        assert len(get_input_rows(tmp_path / "random" / "erf" / "In_d-d.parquet")) == 5
        assert os.path.exists(tmp_path / "random" / "beta" / "In_dd-d.parquet")


class TestTableIntegrity:
    def test_checksums_match(self, table_paths):
        # The checksums of the input and output tables stored in the
        # metadata match the checksums of the tables on disk.
        _, input_table_path, output_table_path, err_table_path = table_paths
        input_checksum = _calculate_checksum(input_table_path)
        output_metadata = pq.read_schema(output_table_path).metadata
        assert output_metadata[b"input_checksum"].decode("ascii") == input_checksum

        err_metadata = pq.read_schema(err_table_path).metadata
        assert err_metadata[b"input_checksum"].decode("ascii") == input_checksum
        assert (
            err_metadata[b"output_checksum"].decode("ascii")
            == _calculate_checksum(output_table_path)
        )
        assert err_metadata[b"xsgamma_version"].decode("ascii") == xsgamma.__version__

    def test_consistent_type_signatures_metadata(self, table_paths):
        funcname, input_table_path, output_table_path, err_table_path = table_paths
        input_metadata = pq.read_schema(input_table_path).metadata
        for path in [output_table_path, err_table_path]:
            metadata = pq.read_schema(path).metadata
            assert metadata[b"in"] == input_metadata[b"in"]
            assert metadata[b"out"] == input_metadata[b"out"]
            assert metadata[b"function"] == funcname.encode("ascii")

    def test_consistent_type_signatures_metadata_filename(self, table_paths):
        # The signature in the input table filename matches the metadata.
        _, input_table_path, _, _ = table_paths
        intypes, outtypes = input_table_path.name.removesuffix(".parquet").split("_")[1].split("-")
        assert get_in_out_types(input_table_path) == (intypes, outtypes)

    def test_consistent_column_types(self, table_paths):
        _, input_table_path, output_table_path, err_table_path = table_paths
        input_schema = pq.read_schema(input_table_path)
        intypes, outtypes = get_in_out_types(input_table_path)
        assert input_schema.types == [pa.float64()] * len(intypes)
        output_schema = pq.read_schema(output_table_path)
        # The last column records whether the reference fell back to SciPy.
        assert output_schema.types == [pa.float64()] * len(outtypes) + [pa.bool_()]
        assert output_schema.names[-1] == "fallback"
        assert pq.read_schema(err_table_path).names == [f"err{i}" for i in range(len(outtypes))]

    def test_num_rows_match(self, table_paths):
        _, input_table_path, output_table_path, err_table_path = table_paths
        nrows = len(pq.read_table(input_table_path))
        assert len(pq.read_table(output_table_path)) == nrows
        assert len(pq.read_table(err_table_path)) == nrows

    def test_reference_values(self, table_paths):
        funcname, input_table_path, output_table_path, _ = table_paths
        func = getattr(xsgamma, funcname)
        for args, (ref, ) in zip(
                get_input_rows(input_table_path), get_output_rows(output_table_path)
        ):
            assert np.isclose(func(*args), ref, rtol=1e-13)

    def test_no_fallback(self, table_paths):
        _, _, output_table_path, _ = table_paths
        assert not pl.read_parquet(output_table_path)["fallback"].any()

    def test_errors_small(self, table_paths):
        _, _, _, err_table_path = table_paths
        err = pl.read_parquet(err_table_path)["err0"].to_numpy()
        assert np.all(err < 1e-13)


class TestMain:
    def test_logs_mirror_inputs(self, tables_root):
        # ertol=0 logs every case.
        logpath = tables_root / "logs" / "erf" / "In_d-d.log"
        with open(logpath, newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["in0", "ref_out0", "xsgamma_out0"]
        assert len(rows) == 1 + len(CASES["erf"][0])

    def test_up_to_date_tables_are_skipped(self, tables_root):
        outpath = tables_root / "gamma" / "Out_d-d.parquet"
        mtime = os.stat(outpath).st_mtime_ns
        tables.main(tables_root)
        assert os.stat(outpath).st_mtime_ns == mtime

    def test_force(self, tmp_path):
        case_generation.generate_cases("erfc", [np.array([0.5, 2.0])], tmp_path)
        tables.main(tmp_path)
        outpath = tmp_path / "Out_d-d.parquet"
        assert os.path.exists(outpath)
        os.remove(tmp_path / "Err_d-d.parquet")
        tables.main(tmp_path, force=True)
        assert os.path.exists(tmp_path / "Err_d-d.parquet")

    def test_err_table_needs_outputs(self, tmp_path):
        path = case_generation.generate_cases("erf", [np.array([0.5])], tmp_path)
        assert compute_err_table(path) is None


def test_output_rows_drop_fallback(tmp_path):
    path = Path(tmp_path) / "Out_d-d.parquet"
    pq.write_table(pa.table({"out0": [1.5, 2.5], "fallback": [False, True]}), path)
    assert get_output_rows(path) == [(1.5, ), (2.5, )]


class TestGitInfo:
    def fake_git(self, status):
        def check_output(args, **kwargs):
            if "rev-parse" in args:
                return b"0123abcd\n"
            return status
        return check_output

    def test_clean(self, monkeypatch):
        monkeypatch.setattr(tables.subprocess, "check_output", self.fake_git(b""))
        assert tables._get_git_info() == (b"0123abcd", b"clean")

    def test_any_tracked_change_is_dirty(self, monkeypatch):
        monkeypatch.setattr(
            tables.subprocess, "check_output", self.fake_git(b" M tables/erf/Out_d-d.parquet\n")
        )
        assert tables._get_git_info() == (b"0123abcd", b"dirty")
