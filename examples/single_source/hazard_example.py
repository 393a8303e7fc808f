"""
Example for computing the hazard curve, uniform hazard spectrum
and magnitude-epsilon disaggregation for a single source.
"""

from pathlib import Path

import numpy as np
import pandas as pd

import psha_engine as pe

config_ffp = Path(__file__).parent / "gr_source.yaml"
config = pe.config.load_config(config_ffp)

# Return periods of interest
RPS = [100, 475, 2500]

### Magnitude discretisation
rupture_df = pe.hazard.get_rupture_df(
    config.dist, config.gmm_config, config.rrup, config.dm
)
print(rupture_df[["mag_lo", "mag_hi", "prob", "rate", "mean_mag", "mu", "sigma"]])
print(
    f"Rate conserved: {pe.hazard.check_rate_conservation(rupture_df, config.dist)}"
)

### Hazard curve
hcurve = pe.hazard.compute_rupture_hazard(rupture_df, config.im_levels)
print(hcurve.to_frame())

### UHS
hcurves = pe.uhs.compute_hazard_curves(
    config.dist,
    config.gmm_config,
    config.rrup,
    config.dm,
    config.im_levels,
    show_progress=True,
)
uhs_df = pe.uhs.compute_uhs(
    hcurves, [pe.utils.rp_to_prob(cur_rp) for cur_rp in RPS], rps=RPS
)
print(uhs_df)

### Disaggregation
im_level = pe.utils.select_by_index(config.im_levels, 5, "IM level index")
disagg_da = pe.disagg.disagg_mag_eps(rupture_df, im_level, config.eps_bins)

contr_df = pd.DataFrame(
    pe.disagg.disagg_contributions(disagg_da).to_pandas() * 100
).round(2)
contr_df["total"] = contr_df.sum(axis=1)
print(f"Disaggregation (%) at {im_level:.3g}g:")
print(contr_df)
print(pe.disagg.get_mean_values(disagg_da))
print(
    f"Sum of contributions = {disagg_da.sum().item():.6g}, "
    f"hazard = {hcurve.iloc[5]:.6g}, "
    f"conserved: {np.isclose(disagg_da.sum().item(), hcurve.iloc[5])}"
)
