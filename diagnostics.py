import numpy as np
import numba


class EmptyPopulationError(ValueError):
    """Raised when a statistic is requested for a world with no droplets."""


def _require_droplets(values, what):
    values = np.asarray(values, dtype=np.float64)
    if values.shape[0] == 0:
        raise EmptyPopulationError(f"{what} of an empty droplet population is undefined")
    return values


def speeds(velocities):
    velocities = np.asarray(velocities, dtype=np.float64).reshape(-1, 2)
    return np.hypot(velocities[:, 0], velocities[:, 1])


def average_speed(velocities):
    """Arithmetic mean of |v| over all droplets [um/s]."""
    velocities = _require_droplets(np.reshape(velocities, (-1, 2)), "average speed")
    return float(np.mean(speeds(velocities)))


def max_speed(velocities):
    velocities = _require_droplets(np.reshape(velocities, (-1, 2)), "maximum speed")
    return float(np.max(speeds(velocities)))


def mean_radius(sizes):
    return float(np.mean(_require_droplets(sizes, "mean radius")))


def median_radius(sizes):
    return float(np.median(_require_droplets(sizes, "median radius")))


@numba.vectorize(['float32(float32, float32)',
                  'float64(float64, float64)',
                  ])
def W_estimator(Y, sigma):
    return np.exp(-Y**2 / (2 * sigma**2)) / (np.sqrt(2 * np.pi) * sigma)


def size_spectrum(sizes, logRadiiPlot, sigma0=0.62):
    """Kernel estimate of the number fraction of droplets per unit ln(radius)."""
    sizes = _require_droplets(sizes, "size spectrum")
    sigma = sigma0 * sizes.size**(-1/5)
    logRadii = np.log(sizes)
    argW = logRadiiPlot.reshape(1, logRadiiPlot.size) - logRadii[:, np.newaxis]
    W = W_estimator(argW, sigma)
    return np.sum(W, axis=0) / sizes.size
