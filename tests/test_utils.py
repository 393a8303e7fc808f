import numpy as np
import pytest

import psha_engine as pe


def test_get_im_levels():
    im_levels = pe.utils.get_im_levels()

    assert im_levels.size == 11
    assert im_levels[0] == pytest.approx(0.01)
    assert im_levels[5] == pytest.approx(0.1)
    assert im_levels[-1] == pytest.approx(1.0)
    assert np.allclose(np.diff(np.log(im_levels)), np.log(10) / 5)


@pytest.mark.parametrize(
    "im_min, im_max, n_values", [(0.0, 1.0, 11), (1.0, 0.1, 11), (0.01, 1.0, 1)]
)
def test_get_im_levels_invalid(im_min: float, im_max: float, n_values: int):
    with pytest.raises(pe.InvalidParameterError):
        pe.utils.get_im_levels(im_min, im_max, n_values)


def test_select_by_index():
    values = [0.1, 0.2, 0.3]

    assert pe.utils.select_by_index(values, 0) == 0.1
    assert pe.utils.select_by_index(values, 2) == 0.3

    for cur_index in [-1, 3, 10]:
        with pytest.raises(pe.InvalidParameterError):
            pe.utils.select_by_index(values, cur_index)


def test_rp_prob():
    assert pe.utils.rp_to_prob(475) == pytest.approx(0.0021031, rel=1e-4)
    assert pe.utils.prob_to_rp(pe.utils.rp_to_prob(2500)) == pytest.approx(2500)
    assert pe.utils.rp_to_prob(475, t=50) == pytest.approx(0.1, rel=1e-2)


def test_get_im_name():
    assert pe.utils.get_im_name(0.0) == "PGA"
    assert pe.utils.get_im_name(0.005) == "PGA"
    assert pe.utils.get_im_name(0.01) == "pSA_0.01"
    assert pe.utils.get_im_name(1.5) == "pSA_1.5"


def test_exceedance_to_im():
    im_values = np.asarray([0.01, 0.1, 1.0, 2.0])
    hazard_values = np.asarray([1e-1, 1e-2, 1e-3, 0.0])

    # Log-log interpolation, the zero hazard level is ignored
    result = pe.utils.exceedance_to_im(
        np.asarray([1e-2, np.sqrt(1e-2 * 1e-3)]), im_values, hazard_values
    )
    assert np.allclose(result, [0.1, np.sqrt(0.1)])

    with pytest.raises(ValueError):
        pe.utils.exceedance_to_im(np.asarray([1e-4]), im_values, hazard_values)

    result = pe.utils.exceedance_to_im(
        np.asarray([1e-4]), im_values, hazard_values, bounds_error=False
    )
    assert np.isnan(result[0])


@pytest.mark.parametrize(
    "hazard_values", [[0.0, 0.0, 0.0, 0.0], [1e-2, 0.0, 0.0, 0.0]]
)
def test_exceedance_to_im_degenerate(hazard_values: list):
    im_values = np.asarray([0.01, 0.1, 1.0, 2.0])
    exceedances = np.asarray([1e-2, 1e-3])

    result = pe.utils.exceedance_to_im(
        exceedances, im_values, np.asarray(hazard_values), bounds_error=False
    )
    assert result.shape == (2,)
    assert np.all(np.isnan(result))

    with pytest.raises(ValueError, match="non-zero hazard values"):
        pe.utils.exceedance_to_im(exceedances, im_values, np.asarray(hazard_values))
