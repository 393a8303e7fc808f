import logging
from pathlib import Path

import numpy as np
import pandas as pd
import typer
import xarray as xr
from tqdm import tqdm

import psha_engine as pe

app = typer.Typer()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Single source probabilistic seismic hazard analysis."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _get_config(config_ffp: Path, period_index: int | None) -> pe.config.HazardConfig:
    config = pe.config.load_config(config_ffp)
    if period_index is None:
        return config

    period = pe.utils.select_by_index(pe.gmm.PERIODS, period_index, "Period index")
    return pe.config.HazardConfig(
        dist=config.dist,
        gmm_config=config.gmm_config.with_period(float(period)),
        rrup=config.rrup,
        dm=config.dm,
        im_levels=config.im_levels,
        eps_bins=config.eps_bins,
    )


@app.command("hazard-curve")
def hazard_curve(
    config_ffp: Path = typer.Argument(..., help="Path to the hazard config file"),
    output_ffp: Path = typer.Argument(..., help="File path to save the hazard curve"),
    period_index: int = typer.Option(
        None, help="Index of the tabulated GMM period, overrides the config period"
    ),
):
    """Compute the hazard curve for the configured source and site."""
    config = _get_config(config_ffp, period_index)

    hcurve = pe.hazard.compute_hazard_curve(
        config.dist, config.gmm_config, config.rrup, config.dm, config.im_levels
    )
    hcurve.to_csv(output_ffp, index_label="im_level")

    print(f"{pe.utils.get_im_name(config.gmm_config.period)} hazard curve:")
    print(hcurve.to_string())


@app.command("disagg")
def disagg(
    config_ffp: Path = typer.Argument(..., help="Path to the hazard config file"),
    im_index: int = typer.Argument(
        ..., help="Index of the IM level (of the configured IM levels) to disaggregate"
    ),
    output_ffp: Path = typer.Argument(
        ..., help="File path to save the disaggregation (netCDF)"
    ),
    period_index: int = typer.Option(
        None, help="Index of the tabulated GMM period, overrides the config period"
    ),
):
    """Compute the magnitude-epsilon disaggregation for a single IM level."""
    config = _get_config(config_ffp, period_index)
    im_level = pe.utils.select_by_index(config.im_levels, im_index, "IM level index")

    disagg_da = pe.disagg.compute_disaggregation(
        config.dist,
        config.gmm_config,
        config.rrup,
        config.dm,
        float(im_level),
        config.eps_bins,
    )
    disagg_da.to_netcdf(output_ffp)

    print(
        f"{pe.utils.get_im_name(config.gmm_config.period)} = {im_level:.4g}g, "
        f"excd_rate = {disagg_da.attrs['excd_rate']:.4g}"
    )
    if disagg_da.attrs["excd_rate"] > 0:
        print((pe.disagg.mag_contributions(disagg_da) * 100).round(2).to_string())


@app.command("uhs")
def uhs(
    config_ffp: Path = typer.Argument(..., help="Path to the hazard config file"),
    output_ffp: Path = typer.Argument(
        ..., help="File path to save the computed UHS DataFrame"
    ),
    excd_rates: list[float] = typer.Option(
        None,
        help="List of exceedance rates to compute UHS for. "
        "One of `excd_rates` or `rps` must be provided.",
    ),
    rps: list[float] = typer.Option(
        None,
        help="List of return periods to compute UHS for. "
        "One of `excd_rates` or `rps` must be provided.",
    ),
):
    """Compute the Uniform Hazard Spectrum (UHS) over the tabulated GMM periods."""
    if not (excd_rates or rps):
        raise ValueError("One of `excd_rates` or `rps` must be provided.")
    if excd_rates and rps:
        raise ValueError("Only one of `excd_rates` or `rps` can be provided.")

    # Ensure we have both RPs and Exceedance rates
    excd_rates = (
        excd_rates
        if excd_rates
        else [pe.utils.rp_to_prob(cur_rp) for cur_rp in rps]
    )
    rps = (
        rps
        if rps
        else [int(np.round(pe.utils.prob_to_rp(cur_excd))) for cur_excd in excd_rates]
    )

    config = pe.config.load_config(config_ffp)
    hcurves = pe.uhs.compute_hazard_curves(
        config.dist,
        config.gmm_config,
        config.rrup,
        config.dm,
        config.im_levels,
        show_progress=True,
    )

    uhs_df = pe.uhs.compute_uhs(hcurves, excd_rates, rps=rps)
    uhs_df.to_csv(output_ffp)


@app.command("disagg-mean-values")
def disagg_mean_values(
    disagg_results_ffps: list[Path] = typer.Argument(
        ..., help="Path to the disaggregation result netCDF files"
    ),
    output_ffp: Path = typer.Argument(
        ..., help="File path to save the mean disaggregation values"
    ),
):
    """Compute mean magnitude and epsilon for the given disaggregation results."""
    results = []
    for cur_result_ffp in tqdm(disagg_results_ffps, desc="Processing files"):
        with xr.open_dataarray(cur_result_ffp) as disagg_da:
            mean_values = pe.disagg.get_mean_values(disagg_da.load())

            results.append(
                {
                    "file": cur_result_ffp.name,
                    "im": pe.utils.get_im_name(disagg_da.attrs.get("period", 0.0)),
                    "im_level": disagg_da.attrs["im_level"],
                    "excd_rate": disagg_da.attrs["excd_rate"],
                    **mean_values.to_dict(),
                }
            )

    results_df = pd.DataFrame(results).sort_values(by=["im", "im_level"])
    results_df.to_csv(output_ffp, index=False)


if __name__ == "__main__":
    app()
