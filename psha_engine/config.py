"""
Loading of hazard scenario configurations from YAML files

Example config:

    source:
      type: gutenberg_richter
      m_min: 5.0
      m_max: 8.0
      b_value: 1.0
      lambda_eq: 0.05
    site:
      rrup: 10.0
      is_soil: 0
    gmm:
      period: 0.0
      fault_type: 0
      hanging_wall: 0
    discretisation:
      dm: 0.2
      im_levels: {min: 0.01, max: 1.0, n: 11}
      eps: {min: -3.0, max: 3.0, n: 7}

Any section that is not specified uses the default values shown above.
"""

import copy
import dataclasses
import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import yaml

from . import disagg, mfd, utils
from .errors import InvalidParameterError
from .gmm import GMMConfig

logger = logging.getLogger(__name__)

SOURCE_TYPES = {
    "gutenberg_richter": mfd.GutenbergRichter,
    "youngs_coppersmith": mfd.YoungsCoppersmith,
}

DEFAULT_CONFIG = {
    "source": {
        "type": "gutenberg_richter",
        "m_min": 5.0,
        "m_max": 8.0,
        "b_value": 1.0,
        "lambda_eq": 0.05,
    },
    "site": {"rrup": 10.0, "is_soil": 0},
    "gmm": {"period": 0.0, "fault_type": 0, "hanging_wall": 0},
    "discretisation": {
        "dm": 0.2,
        "im_levels": {"min": 0.01, "max": 1.0, "n": 11},
        "eps": {"min": -3.0, "max": 3.0, "n": 7},
    },
}


@dataclasses.dataclass(frozen=True, eq=False)
class HazardConfig:
    """
    A single source hazard scenario

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
        The magnitude-frequency distribution of the source
    gmm_config: GMMConfig
        The ground motion model configuration
    rrup: float
        The rupture distance (km)
    dm: float
        The magnitude bin width
    im_levels: np.ndarray
        The IM levels of the hazard curve
    eps_bins: pd.DataFrame
        The epsilon bins of the disaggregation
    """

    dist: mfd.MagnitudeFrequencyDistribution
    gmm_config: GMMConfig
    rrup: float
    dm: float
    im_levels: np.ndarray
    eps_bins: pd.DataFrame


def get_source(source_config: dict[str, Any]) -> mfd.MagnitudeFrequencyDistribution:
    """Creates the magnitude-frequency distribution from the source section"""
    source_config = dict(source_config)
    source_type = source_config.pop("type", None)
    if source_type not in SOURCE_TYPES:
        raise InvalidParameterError(
            f"Unknown source type {source_type}, "
            f"has to be one of {list(SOURCE_TYPES.keys())}"
        )

    try:
        return SOURCE_TYPES[source_type](**source_config)
    except TypeError as e:
        raise InvalidParameterError(
            f"Invalid parameters for source type {source_type}: {e}"
        ) from e


def from_dict(config: dict[str, Any]) -> HazardConfig:
    """
    Creates the hazard configuration from a dictionary,
    missing sections and values are set to their defaults

    Parameters
    ----------
    config: dict
        The configuration, see module docstring for the format

    Returns
    -------
    HazardConfig
    """
    unknown_sections = set(config.keys()) - set(DEFAULT_CONFIG.keys())
    if len(unknown_sections) > 0:
        raise InvalidParameterError(f"Unknown config sections: {unknown_sections}")

    # The source section is not merged with the defaults,
    # as the parameters depend on the source type
    source_config = config.get("source", DEFAULT_CONFIG["source"])
    site_config = {**DEFAULT_CONFIG["site"], **config.get("site", {})}
    gmm_params = {**DEFAULT_CONFIG["gmm"], **config.get("gmm", {})}
    disc_config = copy.deepcopy(DEFAULT_CONFIG["discretisation"])
    for key, value in config.get("discretisation", {}).items():
        if isinstance(value, dict):
            disc_config[key] = {**disc_config.get(key, {}), **value}
        else:
            disc_config[key] = value

    try:
        gmm_config = GMMConfig(
            period=float(gmm_params["period"]),
            is_soil=int(site_config["is_soil"]),
            fault_type=int(gmm_params["fault_type"]),
            hanging_wall=int(gmm_params["hanging_wall"]),
        )
        rrup, dm = float(site_config["rrup"]), float(disc_config["dm"])
        im_levels = utils.get_im_levels(
            float(disc_config["im_levels"]["min"]),
            float(disc_config["im_levels"]["max"]),
            int(disc_config["im_levels"]["n"]),
        )
        eps_bins = disagg.get_epsilon_bins(
            float(disc_config["eps"]["min"]),
            float(disc_config["eps"]["max"]),
            int(disc_config["eps"]["n"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidParameterError(f"Invalid hazard configuration: {e}") from e

    if not np.isfinite(rrup) or rrup < 0:
        raise InvalidParameterError(f"rrup has to be non-negative, got {rrup}")

    return HazardConfig(
        dist=get_source(source_config),
        gmm_config=gmm_config,
        rrup=rrup,
        dm=dm,
        im_levels=im_levels,
        eps_bins=eps_bins,
    )


def load_config(config_ffp: Path) -> HazardConfig:
    """
    Loads the hazard configuration from a YAML file

    Parameters
    ----------
    config_ffp: Path
        Path to the YAML config file

    Returns
    -------
    HazardConfig
    """
    config = yaml.safe_load(Path(config_ffp).read_text()) or {}
    if not isinstance(config, dict):
        raise InvalidParameterError(f"Invalid config file {config_ffp}")

    hazard_config = from_dict(config)
    logger.info(
        f"Loaded config {config_ffp}: {hazard_config.dist}, {hazard_config.gmm_config}, "
        f"rrup = {hazard_config.rrup} km"
    )
    return hazard_config
