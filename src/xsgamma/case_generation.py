import argparse
import numpy as np
import polars as pl
import pyarrow.parquet as pq

from pathlib import Path

import xsgamma._reference._functions as reference_funcs


__all__ = ["DOMAINS", "generate_cases", "sample_domain"]


# Sampling boxes per reference function. Each argument is drawn log-uniformly
# from (lo, hi) when lo > 0, otherwise uniformly.
DOMAINS = {
    "gamma": [(-170.0, 171.5)],
    "log_gamma": [(1e-300, 1e300)],
    "gamma1pm1": [(-0.5, 2.0)],
    "log_gamma1p": [(-0.5, 1.5)],
    "gamma_ratio": [(1e-5, 1e3), (1e-5, 1e3)],
    "gamma_ratio_delta": [(1e-5, 1e3), (-0.5, 50.0)],
    "regularized_gamma_p": [(1e-5, 1e4), (1e-5, 1e4)],
    "regularized_gamma_q": [(1e-5, 1e4), (1e-5, 1e4)],
    "regularized_gamma_p_derivative": [(1e-3, 1e3), (1e-3, 1e3)],
    "regularized_gamma_q_derivative": [(1e-3, 1e3), (1e-3, 1e3)],
    "incomplete_gamma_lower": [(1e-5, 150.0), (1e-5, 1e3)],
    "incomplete_gamma_upper": [(1e-5, 150.0), (1e-5, 1e3)],
    "beta": [(1e-5, 1e3), (1e-5, 1e3)],
    "log_beta": [(1e-5, 1e5), (1e-5, 1e5)],
    "incomplete_beta": [(0.0, 1.0), (1e-3, 1e2), (1e-3, 1e2)],
    "incomplete_beta_complement": [(0.0, 1.0), (1e-3, 1e2), (1e-3, 1e2)],
    "regularized_beta": [(0.0, 1.0), (1e-3, 1e4), (1e-3, 1e4)],
    "regularized_beta_complement": [(0.0, 1.0), (1e-3, 1e4), (1e-3, 1e4)],
    "regularized_beta_derivative": [(0.0, 1.0), (1e-2, 1e2), (1e-2, 1e2)],
    "erf": [(-6.0, 6.0)],
    "erfc": [(-6.0, 27.0)],
    "erfcx": [(-26.0, 1e8)],
    "inverse_erf": [(-1.0, 1.0)],
    "inverse_erfc": [(1e-300, 2.0)],
}


def sample_domain(rng, domain, size):
    """Draw `size` float64 values for each ``(lo, hi)`` box in `domain`."""
    columns = []
    for lo, hi in domain:
        if lo > 0:
            column = np.exp(rng.uniform(np.log(lo), np.log(hi), size))
        else:
            column = rng.uniform(lo, hi, size)
        columns.append(column.astype(np.float64))
    return columns


def generate_cases(funcname, arrays, outdir):
    """Write an input table of test cases for a reference function.

    Parameters
    ----------
    funcname : str
        Name of a reference function in ``xsgamma._reference._functions``.
    arrays : sequence of array_like
        One float64 array per argument, broadcast against each other.
    outdir : str or Path
        Directory to place ``In_<types>-<types>.parquet`` in.

    Returns
    -------
    Path
        Path of the written table.
    """
    func = getattr(reference_funcs, funcname)
    nin = len(func._input_types)
    nout = len(func._output_types)
    if len(arrays) != nin:
        raise ValueError(
            f"{funcname} takes {nin} arguments, received {len(arrays)} arrays."
        )
    arrays = [np.ravel(a) for a in np.broadcast_arrays(*arrays)]
    df = pl.DataFrame(
        {f"in{i}": pl.Series(a, dtype=pl.Float64) for i, a in enumerate(arrays)}
    ).unique(maintain_order=True)

    in_types = "d" * nin
    out_types = "d" * nout
    table = df.to_arrow().replace_schema_metadata(
        {
            b"in": in_types.encode("ascii"),
            b"out": out_types.encode("ascii"),
            b"function": funcname.encode("ascii"),
        }
    )
    outdir = Path(outdir)
    outdir.mkdir(exist_ok=True, parents=True)
    outpath = outdir / f"In_{in_types}-{out_types}.parquet"
    pq.write_table(table, outpath, compression="zstd", compression_level=22)
    return outpath


def main(outpath_root, *, seed=0, size=1000, funcnames=None):
    rng = np.random.default_rng(seed)
    outpath_root = Path(outpath_root)
    for funcname in funcnames or sorted(DOMAINS):
        arrays = sample_domain(rng, DOMAINS[funcname], size)
        generate_cases(funcname, arrays, outpath_root / "random" / funcname)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description=(
            "Write input parquet tables of randomly sampled arguments for each"
            " reference function under outpath_root/random/<function>."
        )
    )
    parser.add_argument(
        "outpath_root",
        type=str,
        help="The root directory to write input tables under.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for numpy.random.default_rng (default: 0).",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=1000,
        help="Number of cases drawn per function (default: 1000).",
    )
    args = parser.parse_args()
    main(args.outpath_root, seed=args.seed, size=args.size)
