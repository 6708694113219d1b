import math

import numpy as np
import scipy.stats

from config import MIXTURE, MIN_DROPLET_SIZE, speed_average, speed_deviation


class DistributionConfigError(ValueError):
    """Raised when the size mixture table cannot be sampled."""


def validate_mixture(mixture):
    for i, entry in enumerate(mixture):
        try:
            mean, std, weight = entry
        except (TypeError, ValueError):
            raise DistributionConfigError(f"mixture entry {i} is not a (mean, std, weight) triple: {entry!r}")
        if not math.isfinite(mean):
            raise DistributionConfigError(f"mixture entry {i}: mean {mean} is not finite")
        if not math.isfinite(std) or std < 0:
            raise DistributionConfigError(f"mixture entry {i}: standard deviation {std} must be finite and >= 0")
        if not math.isfinite(weight) or weight < 0:
            raise DistributionConfigError(f"mixture entry {i}: weight {weight} must be finite and >= 0")


def component_count(weight, n):
    # floor; exact for integer weights
    return int(weight * n)


def expected_count(n, mixture=MIXTURE):
    return sum(component_count(weight, n) for _, _, weight in mixture)


def population_scale(target, mixture=MIXTURE):
    """Largest scale factor whose population does not exceed `target` droplets."""
    per_unit = expected_count(1, mixture)
    if per_unit <= 0:
        raise DistributionConfigError("mixture weights sum to zero, no droplets can be created")
    n = target // per_unit
    while n > 0 and expected_count(n, mixture) > target:
        n -= 1
    return n


def sample_sizes(mean, std, count, random_state=None):
    # zero std is a delta at `mean`
    if std == 0:
        samples = np.full(count, mean, dtype=np.float64)
    else:
        samples = scipy.stats.norm(mean, std).rvs(size=count, random_state=random_state)
    return np.maximum(np.asarray(samples, dtype=np.float64), MIN_DROPLET_SIZE)


def sample_velocities(count, random_state=None, mean=speed_average, std=speed_deviation):
    if not math.isfinite(std) or std < 0:
        raise DistributionConfigError(f"velocity standard deviation {std} must be finite and >= 0")
    if std == 0:
        return np.full((count, 2), mean, dtype=np.float64)
    speed_normal = scipy.stats.norm(mean, std)
    return np.asarray(speed_normal.rvs(size=(count, 2), random_state=random_state), dtype=np.float64)


def sample_population(n, mixture=MIXTURE, random_state=None):
    """Sizes and velocities of a population of scale `n`, in table order."""
    validate_mixture(mixture)
    if n < 0:
        raise DistributionConfigError(f"population scale must be >= 0, got {n}")
    random_state = np.random.default_rng(random_state)

    sizes = []
    for mean, std, weight in mixture:
        sizes.append(sample_sizes(mean, std, component_count(weight, n), random_state))
    sizes = np.concatenate(sizes) if sizes else np.empty(0)
    velocities = sample_velocities(sizes.size, random_state)
    return sizes, velocities
