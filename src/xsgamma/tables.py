import argparse
import csv
import hashlib
import mpmath
import numpy as np
import os
import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq
import subprocess
import warnings

from concurrent.futures import ProcessPoolExecutor
from functools import partial
from multiprocessing import Manager
from pathlib import Path

import xsgamma
import xsgamma.special as special
import xsgamma._reference._functions as reference_funcs

from xsgamma.float_tools import extended_relative_error
from xsgamma._reference._framework import XSGammaFallbackWarning


def get_in_out_types(table_path):
    """Get input and output types of the function for table_path.

    Parameters
    ----------
    table_path : str
        Path to a parquet table in the format written by
        `xsgamma.case_generation.generate_cases`.

    Returns
    -------
    tuple of str
        NumPy dtype typecode strings of the inputs and outputs. Every
        argument and result is a double, so these are runs of ``"d"``.
    """
    metadata = pq.read_schema(table_path).metadata
    return metadata[b"in"].decode("ascii"), metadata[b"out"].decode("ascii")


def get_input_rows(table_path):
    """Return test case arguments from an inputs parquet table."""
    table = pl.read_parquet(table_path)
    return [tuple(np.float64(x) for x in row) for row in table.iter_rows()]


def get_output_rows(table_path):
    """Return reference values from an outputs parquet table.

    The final column, ``"fallback"``, is True where the reference value came
    from SciPy rather than mpmath; it is not included in the rows.
    """
    table = pl.read_parquet(table_path)
    return [tuple(np.float64(x) for x in row[:-1]) for row in table.iter_rows()]


def _write_log_row(logpath, lock, args, ref_results, observed):
    with lock:
        if not os.path.exists(logpath):
            with open(logpath, 'w', newline='') as csvfile:
                csv.writer(csvfile, dialect="unix").writerow(
                    [f"in{i}" for i in range(len(args))]
                    + [f"ref_out{i}" for i in range(len(ref_results))]
                    + [f"xsgamma_out{i}" for i in range(len(observed))]
                )
        with open(logpath, 'a', newline='') as csvfile:
            csv.writer(csvfile, dialect="unix").writerow(
                args + ref_results + observed
            )


def _evaluate(funcname, logpath, ertol, lock, args):
    func = getattr(reference_funcs, funcname)
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always", XSGammaFallbackWarning)
        ref_results = func(*args)
        fallback = any(x.category is XSGammaFallbackWarning for x in w)
    if not isinstance(ref_results, tuple):
        ref_results = (ref_results, )

    observed = getattr(special, funcname)(*(float(x) for x in args))
    if not isinstance(observed, tuple):
        observed = (observed, )
    observed = tuple(np.float64(x) for x in observed)

    if len(observed) != len(ref_results):
        raise ValueError(
            f"Reference function {funcname} returned a different number of"
            f" outputs from xsgamma for args {args}."
        )

    if logpath is not None:
        errors = [
            extended_relative_error(x, ref) for x, ref in zip(observed, ref_results)
        ]
        if any(error >= ertol for error in errors):
            _write_log_row(logpath, lock, args, ref_results, observed)
    return list(ref_results) + [fallback]


def _calculate_checksum(filepath):
    with open(filepath, "rb") as f:
        content = f.read()
        checksum = hashlib.sha256(content).hexdigest()
    return checksum


def _get_git_info():
    # A commit hash is only available from a source checkout.
    try:
        commit_hash = subprocess.check_output(
            ["git", "rev-parse", "HEAD"], cwd=Path(__file__).parent,
            stderr=subprocess.DEVNULL,
        ).strip()

        status_check = subprocess.check_output(
            ["git", "status", "--porcelain", "--untracked-files=no"],
            cwd=Path(__file__).parent, stderr=subprocess.DEVNULL,
        ).decode("utf-8").splitlines()

        working_tree = b"dirty" if status_check else b"clean"

    except (subprocess.CalledProcessError, FileNotFoundError):
        commit_hash = b""
        working_tree = b""
    return commit_hash, working_tree


def compute_output_table(inpath, *, logpath=None, ertol=1e-2, nworkers=1):
    """Compute arrow table of reference outputs for a parquet file of inputs.

    Parameters
    ----------
    inpath : str
        Path to a parquet file of inputs with one ``f64`` column per
        argument. The metadata holds the input and output typecodes in the
        fields ``b"in"`` and ``b"out"`` and the name of the reference function
        in ``b"function"``.

    logpath : Optional[str]
        Path of a csv log of cases where xsgamma differs from the arbitrary
        precision reference by an extended relative error of at least
        `ertol`. Each row holds the arguments, the reference outputs and the
        xsgamma outputs. If None, no log is written. Default: ``None``

    ertol : Optional[float]
        Extended relative error cutoff for adding a row to the log.
        Default: ``1e-2``

    nworkers : Optional[int]
        Max number of workers used by `ProcessPoolExecutor`.
        Default: ``1``.

    Returns
    -------
    pyarrow.lib.Table or None
        Reference outputs plus a Boolean column ``"fallback"`` that is
        ``True`` where the reference fell back to SciPy. None if the input
        table is empty. The metadata is that of the input table with the
        added entries

        input_checksum
            sha256 checksum of the input parquet table.
        mpmath_version
            mpmath.__version__ at time of running
        xsgamma_commit_hash
            git commit hash of a source checkout, otherwise empty.
        working_tree_state
            One of b"dirty", b"clean" or empty.
    """
    metadata = pq.read_schema(inpath).metadata
    checksum = _calculate_checksum(inpath)
    metadata[b"input_checksum"] = checksum.encode("ascii")
    metadata[b"mpmath_version"] = mpmath.__version__.encode("ascii")

    commit_hash, working_tree = _get_git_info()
    metadata[b"xsgamma_commit_hash"] = commit_hash
    metadata[b"working_tree_state"] = working_tree

    funcname = metadata[b"function"].decode("ascii")

    manager = Manager()
    lock = manager.Lock()

    with ProcessPoolExecutor(max_workers=nworkers) as executor:
        results = list(
            executor.map(
                partial(_evaluate, funcname, logpath, ertol, lock),
                get_input_rows(inpath),
            )
        )
    if not results:
        return None

    schema = {
        f"out{i}": pl.Float64 for i in range(len(metadata[b"out"].decode("ascii")))
    }
    schema["fallback"] = pl.Boolean

    table = pl.DataFrame(results, orient="row", schema=schema).to_arrow()
    table = table.replace_schema_metadata(metadata)
    return table


def compute_err_table(inpath):
    """Extended relative errors of xsgamma against the reference outputs.

    Parameters
    ----------
    inpath : str
        Path to a parquet file with inputs for test cases. The outputs table
        ``Out_*.parquet`` must exist beside it.

    Returns
    -------
    pyarrow.lib.Table or None

    Rows correspond to test cases and columns ``err0, err1, ...`` to outputs.
    The metadata adds the checksums of both tables and the xsgamma version
    so a stale error table can be detected. None if there is no outputs
    table.
    """
    inpath = Path(inpath)
    outpath = inpath.parent / inpath.name.replace("In_", "Out_")
    if not os.path.exists(outpath):
        return None
    metadata = pq.read_schema(inpath).metadata
    funcname = metadata[b"function"].decode("ascii")
    func = np.vectorize(getattr(special, funcname), otypes=[np.float64])

    input_rows = get_input_rows(inpath)
    reference = np.asarray(get_output_rows(outpath), dtype=np.float64).T
    observed = np.atleast_2d(func(*np.asarray(input_rows, dtype=np.float64).T))

    err = extended_relative_error(observed, reference)

    err_table = pa.table(
        {f"err{i}": pa.array(err[i, :]) for i in range(err.shape[0])}
    )

    metadata[b"input_checksum"] = _calculate_checksum(inpath).encode("ascii")
    metadata[b"output_checksum"] = _calculate_checksum(outpath).encode("ascii")
    metadata[b"xsgamma_version"] = xsgamma.__version__.encode("ascii")
    commit_hash, working_tree = _get_git_info()
    metadata[b"xsgamma_commit_hash"] = commit_hash
    metadata[b"working_tree_state"] = working_tree

    return err_table.replace_schema_metadata(metadata)


def _write(table, path):
    pq.write_table(table, path, compression="zstd", compression_level=22)


def main(inpath_root, *, logpath_root=None, force=False, ertol=1e-2, nworkers=1):
    inpath_root = Path(inpath_root)
    if logpath_root is not None:
        logpath_root = Path(logpath_root)
        logpath_root.mkdir(exist_ok=True, parents=True)
    for inpath in inpath_root.glob("**/In_*.parquet"):
        outpath = inpath.parent / inpath.name.replace("In_", "Out_")
        errpath = inpath.parent / inpath.name.replace("In_", "Err_")
        input_checksum = _calculate_checksum(inpath)
        if os.path.exists(outpath) and not force:
            output_metadata = pq.read_schema(outpath).metadata
            if input_checksum == output_metadata[b"input_checksum"].decode("ascii"):
                continue
        logpath = None
        if logpath_root is not None:
            logpath = logpath_root / inpath.relative_to(
                inpath_root
            ).with_suffix(".log")
            logpath.parent.mkdir(exist_ok=True, parents=True)
        table = compute_output_table(
            inpath, logpath=logpath, ertol=ertol, nworkers=nworkers,
        )
        if table is None:
            continue
        _write(table, outpath)
        _write(compute_err_table(inpath), errpath)


# Regenerates reference outputs, and the matching xsgamma error tables, for
# every input table under inpath_root whose outputs are missing or were
# computed from a different input table. Logs under --logpath_root mirror the
# directory structure under inpath_root and list the cases where xsgamma and
# the mpmath reference disagree by at least --ertol.

# Work is split one input file at a time, so many small files leave workers
# idle when nworkers is large.


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description=(
            "Generate reference output parquet files corresponding to input"
            " parquet files under inpath_root (searches directories recursively"
            " for all with filename matching the pattern \"In_*.parquet\" and"
            " generates the corresponding output files alongside them as"
            " \"Out_*.parquet\" and \"Err_*.parquet\")."
        )
    )
    parser.add_argument(
        "inpath_root",
        type=str,
        help="The root directory where input parquet files are located."
    )
    parser.add_argument(
        "--logpath_root",
        type=str,
        default=None,
        help="The directory where log files will be saved. Defaults to None.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Force processing even if output already exists and checksums match.",
    )
    parser.add_argument(
        "--ertol",
        type=float,
        default=1e-2,
        help="Error tolerance for cases that end up in the logs (default: 1e-2).",
    )
    parser.add_argument(
        "--nworkers",
        type=int,
        default=1,
        help="Number of workers to use for computation (default: 1).",
    )

    args = parser.parse_args()
    main(
        args.inpath_root,
        logpath_root=args.logpath_root,
        force=args.force,
        ertol=args.ertol,
        nworkers=args.nworkers,
    )
