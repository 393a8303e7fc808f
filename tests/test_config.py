from pathlib import Path

import numpy as np
import pytest
import yaml

import psha_engine as pe


def _write_config(config_dir: Path, config: dict) -> Path:
    config_ffp = config_dir / "config.yaml"
    config_ffp.write_text(yaml.safe_dump(config))
    return config_ffp


def test_default_config(tmp_path: Path):
    config_ffp = tmp_path / "config.yaml"
    config_ffp.write_text("")

    config = pe.config.load_config(config_ffp)

    assert config.dist == pe.mfd.make_gr(5.0, 8.0, 1.0, 0.05)
    assert config.gmm_config == pe.gmm.GMMConfig()
    assert config.rrup == 10.0
    assert config.dm == 0.2
    assert np.allclose(config.im_levels, pe.utils.get_im_levels(0.01, 1.0, 11))
    assert config.eps_bins.equals(pe.disagg.get_epsilon_bins(-3.0, 3.0, 7))


def test_youngs_coppersmith_config(tmp_path: Path):
    config_ffp = _write_config(
        tmp_path,
        {
            "source": {
                "type": "youngs_coppersmith",
                "m_min": 5.0,
                "m_char": 7.0,
                "dm_char": 0.5,
                "p_char": 0.1,
                "b_value": 1.0,
                "lambda_eq": 0.02,
            },
            "site": {"rrup": 25.0, "is_soil": 1},
            "gmm": {"period": 1.0, "fault_type": 2},
            "discretisation": {"dm": 0.25, "im_levels": {"n": 21}},
        },
    )

    config = pe.config.load_config(config_ffp)

    assert isinstance(config.dist, pe.mfd.YoungsCoppersmith)
    assert config.dist.m_char == 7.0
    assert config.gmm_config == pe.gmm.GMMConfig(
        period=1.0, is_soil=1, fault_type=2, hanging_wall=0
    )
    assert config.rrup == 25.0
    assert config.dm == 0.25

    # Partially specified discretisation sections use the remaining defaults
    assert config.im_levels.size == 21
    assert config.im_levels[0] == pytest.approx(0.01)
    assert config.im_levels[-1] == pytest.approx(1.0)
    assert config.eps_bins.shape[0] == 7


@pytest.mark.parametrize(
    "config",
    [
        {"source": {"type": "poisson", "m_min": 5.0}},
        {"source": {"m_min": 5.0, "m_max": 8.0, "b_value": 1.0, "lambda_eq": 0.05}},
        {"source": {"type": "gutenberg_richter", "m_min": 5.0, "m_max": 8.0}},
        {
            "source": {
                "type": "gutenberg_richter",
                "m_min": 8.0,
                "m_max": 5.0,
                "b_value": 1.0,
                "lambda_eq": 0.05,
            }
        },
        {"site": {"rrup": -5.0}},
        {"site": {"is_soil": 2}},
        {"gmm": {"fault_type": 4}},
        {"gmm": {"period": "pga"}},
        {"discretisation": {"im_levels": {"min": 0.0}}},
        {"discretisation": {"eps": {"n": 1}}},
        {"hazard": {"rrup": 10.0}},
    ],
)
def test_invalid_config(config: dict):
    with pytest.raises(pe.InvalidParameterError):
        pe.config.from_dict(config)


def test_invalid_config_file(tmp_path: Path):
    config_ffp = tmp_path / "config.yaml"
    config_ffp.write_text("- 1.0\n- 2.0\n")

    with pytest.raises(pe.InvalidParameterError):
        pe.config.load_config(config_ffp)


def test_example_configs():
    examples_dir = Path(__file__).parent.parent / "examples"
    config_ffps = sorted(examples_dir.rglob("*.yaml"))
    assert len(config_ffps) > 0

    for cur_config_ffp in config_ffps:
        config = pe.config.load_config(cur_config_ffp)
        assert config.dist.lambda_eq > 0
