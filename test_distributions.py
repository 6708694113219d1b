import numpy as np
import pytest

from config import MIXTURE, MIN_DROPLET_SIZE
from distributions import (DistributionConfigError, expected_count, population_scale,
                           sample_population, sample_sizes, sample_velocities, validate_mixture)


def test_reference_mixture_counts():
    assert len(MIXTURE) == 16
    assert expected_count(1) == 63
    assert expected_count(10) == 630
    sizes, velocities = sample_population(10, random_state=0)
    assert sizes.shape == (630,)
    assert velocities.shape == (630, 2)


def test_sizes_floored():
    sizes, _ = sample_population(10, random_state=2)
    assert sizes.min() >= MIN_DROPLET_SIZE

    clamped = sample_sizes(0.0, 1.0, 50, np.random.default_rng(3))
    assert clamped.min() == MIN_DROPLET_SIZE
    assert np.all(clamped >= MIN_DROPLET_SIZE)


def test_zero_spread_entry():
    sizes, _ = sample_population(2, mixture=((1500.0, 0.0, 3),), random_state=0)
    assert sizes.tolist() == [1500.0] * 6
    assert sample_sizes(0.0, 0.0, 2).tolist() == [MIN_DROPLET_SIZE] * 2


def test_components_in_table_order():
    sizes, _ = sample_population(1, mixture=((3.0, 0.0, 2), (1500.0, 0.0, 1)), random_state=0)
    assert sizes.tolist() == [3.0, 3.0, 1500.0]


def test_fractional_weights_floor():
    assert expected_count(3, ((10.0, 1.0, 0.5),)) == 1
    sizes, _ = sample_population(3, mixture=((10.0, 1.0, 0.5),), random_state=0)
    assert sizes.size == 1


@pytest.mark.parametrize("mixture", [
    ((3.0, -1.62, 2),),
    ((3.0, np.nan, 2),),
    ((np.inf, 1.0, 2),),
    ((3.0, 1.0, -1),),
    ((3.0, 1.0),),
])
def test_bad_mixture(mixture):
    with pytest.raises(DistributionConfigError):
        validate_mixture(mixture)
    with pytest.raises(ValueError):
        sample_population(1, mixture=mixture)


def test_bad_entry_anywhere_rejects_whole_table():
    mixture = MIXTURE + ((5.0, -0.1, 1),)
    with pytest.raises(DistributionConfigError):
        sample_population(1, mixture=mixture)


def test_seeded_population_is_reproducible():
    a_sizes, a_velocities = sample_population(5, random_state=42)
    b_sizes, b_velocities = sample_population(5, random_state=42)
    np.testing.assert_array_equal(a_sizes, b_sizes)
    np.testing.assert_array_equal(a_velocities, b_velocities)


def test_velocity_axes_independent():
    velocities = sample_velocities(20000, np.random.default_rng(7))
    assert velocities.shape == (20000, 2)
    assert abs(velocities.mean() - 11.7e6) < 1e5
    assert abs(velocities.std() - 2.0e6) < 1e5
    assert abs(np.corrcoef(velocities[:, 0], velocities[:, 1])[0, 1]) < 0.05


def test_population_scale():
    assert population_scale(10000) == 158
    assert expected_count(158) <= 10000 < expected_count(159)
    assert population_scale(62) == 0
    with pytest.raises(DistributionConfigError):
        population_scale(100, mixture=((3.0, 1.0, 0),))
