import logging
import math

import numpy as np
import pandas
import tqdm
import matplotlib.pyplot as plt
import seaborn
import numba

from config import (MICRO, eta, rho_b, WIDTH, HEIGHT, EXTENT, ORIGIN, TIME_STEP,
                    MIXTURE, GRADIENT_LOW, GRADIENT_HIGH, DROPLET_ALPHA, BACKGROUND)
import diagnostics
from diagnostics import size_spectrum
from distributions import sample_population, population_scale

logger = logging.getLogger("flowsim")

rest_speed = 1e3  # um/s


@numba.vectorize(['float32(float32, float32)',
                  'float64(float64, float64)',
                  ])
def stokes_drag(speed, radius):
    """Stokes drag force [N] on a sphere of `radius` [m] moving at `speed` [m/s]."""
    return 6 * np.pi * eta * speed * radius


@numba.njit
def rasterize(frame, indices, colors):
    # sequential, so at a shared pixel the last droplet wins
    for i in range(indices.shape[0]):
        index = indices[i]
        for channel in range(4):
            frame[index + channel] = colors[i, channel]


def masses(sizes):
    # kg, as if the droplets were pure water
    volumes = 4 / 3 * np.pi * (np.asarray(sizes, dtype=np.float64) / MICRO) ** 3
    return volumes * rho_b


def drag_acceleration(velocities, sizes):
    """Per-axis drag deceleration [um/s^2] of (N, 2) velocities for N radii [um]."""
    sizes = np.asarray(sizes, dtype=np.float64)
    forces = stokes_drag(velocities / MICRO, sizes[:, np.newaxis] / MICRO)
    return forces / masses(sizes)[:, np.newaxis] * MICRO


def drag_step(positions, velocities, sizes, delta):
    """Explicit Euler step under Stokes drag; returns new (positions, velocities).

    A velocity component that would change sign is set to 0 instead.
    Displacements are truncated toward zero and z is left alone.
    """
    if delta < 0:
        raise ValueError(f"time step must be >= 0, got {delta}")
    new_velocities = velocities - drag_acceleration(velocities, sizes) * delta
    new_velocities[new_velocities * velocities < 0] = 0.0
    new_positions = positions.copy()
    new_positions[:, :2] += (new_velocities * delta).astype(np.int64)
    return new_positions, new_velocities


def project_positions(positions, extent, width, height):
    scaled = positions[:, :2] / np.asarray(extent, dtype=np.float64) * (width, height)
    pixels = np.clip(np.trunc(scaled), 0, (width, height))
    return pixels.astype(np.int64)


def size_colors(sizes):
    ratio = np.sqrt(np.maximum(np.asarray(sizes, dtype=np.float64), 0.0)) / 100
    ratio = np.clip(ratio, 0.0, 1.0)
    low = np.array(GRADIENT_LOW, dtype=np.int64)
    high = np.array(GRADIENT_HIGH, dtype=np.int64)
    colors = np.empty((ratio.size, 4), dtype=np.uint8)
    colors[:, :3] = low + np.trunc((high - low) * ratio[:, np.newaxis]).astype(np.int64)
    colors[:, 3] = DROPLET_ALPHA
    return colors


def size_color(size):
    """RGBA color of a droplet of radius `size` [um]."""
    return tuple(int(c) for c in size_colors([size])[0])


class Droplet:
    """A water droplet moving through still air.

    position is integer micrometres (x, y, z), velocity is um/s (x, y),
    size is the radius in um.
    """

    def __init__(self, position, velocity, size):
        position = np.asarray(position)
        if position.shape == (2,):
            position = np.append(position, 0)
        if position.shape != (3,):
            raise ValueError(f"position must be (x, y) or (x, y, z), got {position.tolist()}")
        if position.dtype.kind == "f" and not np.all(np.isfinite(position)):
            raise ValueError(f"position must be finite, got {position.tolist()}")
        self.position = position.astype(np.int64)
        self.velocity = velocity
        self.size = size

    @property
    def size(self):
        return self._size

    @size.setter
    def size(self, size):
        size = float(size)
        if not math.isfinite(size) or size <= 0:
            raise ValueError(f"droplet radius must be a positive number, got {size}")
        self._size = size

    @property
    def velocity(self):
        return self._velocity

    @velocity.setter
    def velocity(self, velocity):
        velocity = np.array(velocity, dtype=np.float64)
        if velocity.shape != (2,):
            raise ValueError(f"velocity must be (vx, vy), got {velocity.tolist()}")
        if not np.all(np.isfinite(velocity)):
            raise ValueError(f"velocity must be finite, got {velocity.tolist()}")
        self._velocity = velocity

    def __repr__(self):
        return (f"Droplet(position={tuple(self.position.tolist())}, "
                f"velocity={tuple(self.velocity.tolist())}, size={self.size})")

    def mass(self):
        return float(masses([self.size])[0])

    def acceleration(self):
        return drag_acceleration(self.velocity[np.newaxis], [self.size])[0]

    def step(self, delta):
        positions, velocities = drag_step(self.position[np.newaxis], self.velocity[np.newaxis],
                                          [self.size], delta)
        self.velocity = velocities[0]
        self.position = positions[0]

    def project(self, extent, width, height):
        """Pixel coordinates, clamped into [0, width] x [0, height]."""
        x, y = project_positions(self.position[np.newaxis], extent, width, height)[0]
        return int(x), int(y)

    def color(self):
        return size_color(self.size)


def create_droplets(n, origin=ORIGIN, mixture=MIXTURE, random_state=None):
    sizes, velocities = sample_population(n, mixture, random_state)
    start = (origin[0], origin[1], 0)
    return [Droplet(start, velocity, size) for size, velocity in zip(sizes, velocities)]


class World:
    def __init__(self, width=WIDTH, height=HEIGHT, extent=EXTENT, origin=ORIGIN,
                 time_step=TIME_STEP):
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas must have a positive size, got {width}x{height}")
        if min(extent) <= 0:
            raise ValueError(f"world extent must be positive, got {extent}")
        if time_step < 0:
            raise ValueError(f"time step must be >= 0, got {time_step}")
        self.width = width
        self.height = height
        self.extent = tuple(extent)
        self.origin = tuple(origin)
        self.time_step = time_step
        self.droplets = []

    def create_droplets(self, n, mixture=MIXTURE, random_state=None):
        droplets = create_droplets(n, self.origin, mixture, random_state)
        self.droplets.extend(droplets)
        logger.info("Created %d droplets.", len(droplets))
        return droplets

    def update(self):
        if not self.droplets:
            return
        positions, velocities = drag_step(self.positions(), self.velocities(), self.sizes(),
                                          self.time_step)
        for droplet, position, velocity in zip(self.droplets, positions, velocities):
            droplet.position = position
            droplet.velocity = velocity
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("average droplet speed %.4g um/s", diagnostics.average_speed(velocities))

    def frame_size(self):
        return self.width * self.height * 4

    def pixel_indices(self):
        pixels = project_positions(self.positions(), self.extent, self.width, self.height)
        x = np.minimum(pixels[:, 0], self.width - 1)
        y = np.minimum(pixels[:, 1], self.height - 1)
        return np.minimum(4 * (y * self.width + x), self.frame_size() - 4)

    def colors(self):
        return size_colors(self.sizes())

    def draw(self, canvas):
        frame = np.frombuffer(canvas, dtype=np.uint8)
        if frame.size < self.frame_size():
            raise ValueError(f"canvas holds {frame.size} bytes, "
                             f"{self.width}x{self.height} RGBA needs {self.frame_size()}")
        frame[:] = BACKGROUND
        rasterize(frame, self.pixel_indices(), self.colors())

    def positions(self):
        return np.array([d.position for d in self.droplets], dtype=np.int64).reshape(-1, 3)

    def velocities(self):
        return np.array([d.velocity for d in self.droplets], dtype=np.float64).reshape(-1, 2)

    def sizes(self):
        return np.array([d.size for d in self.droplets], dtype=np.float64)

    def average_speed(self):
        return diagnostics.average_speed(self.velocities())

    def snapshot(self, i):
        velocities = self.velocities()
        sizes = self.sizes()
        return {
            "i": i,
            "t": i * self.time_step,
            "N droplets": len(self.droplets),
            "mean speed [um/s]": diagnostics.average_speed(velocities),
            "max speed [um/s]": diagnostics.max_speed(velocities),
            "mean radius [um]": diagnostics.mean_radius(sizes),
            "median radius [um]": diagnostics.median_radius(sizes),
        }



def simulation(world, NT, canvas=None, every=10):
    """Tick `world` NT times: update, then draw into `canvas`.

    Returns the diagnostics rows collected every `every` ticks and the canvas.
    """
    if canvas is None:
        canvas = np.zeros((world.height, world.width, 4), dtype=np.uint8)
    diagnostics_rows = []
    progressbar = tqdm.trange(NT)

    waiting_for_rest = True
    for i in progressbar:
        world.update()
        world.draw(canvas)
        if not world.droplets:
            continue

        if (i % every) == 0:
            current_diagnostics = world.snapshot(i)
            diagnostics_rows.append(current_diagnostics)
            progressbar.set_postfix(**{"N": current_diagnostics["N droplets"],
                                       "mean speed": f"{current_diagnostics['mean speed [um/s]']:.3e}"})
        if waiting_for_rest and world.average_speed() < rest_speed:
            progressbar.write(f"average speed below {rest_speed:.0e} um/s at iteration {i}")
            waiting_for_rest = False
    return diagnostics_rows, canvas


from config import *


def main(plot=False):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    frame = None
    if new_run:
        world = World()
        world.create_droplets(population_scale(AMOUNT_OF_DROPLETS), random_state=SEED)
        initial_sizes = world.sizes()
        rows, frame = simulation(world, NT)
        df = pandas.DataFrame(rows)
        df.to_json("flowsim.json")
    else:
        df = pandas.read_json("flowsim.json")

    plotted = ["mean speed [um/s]",
               "max speed [um/s]",
               ]
    fig, axes = plt.subplots(len(plotted), sharex=True)
    for col, ax in zip(plotted, axes):
        ax.semilogy(df.t, df[col], ".", label=col)
        ax.set_title(col)
        ax.set_xlim(df.t.min(), df.t.max())
        ax.axhline(rest_speed, color="k", label="rest")
        ax.legend(loc='best')
        ax.set_ylabel(col)
    ax.set_xlabel("time [s]")
    fig.savefig("Flowsim_speed.png")

    if frame is None:
        print("Can only plot the frame and size spectrum after fresh sim run")
    else:
        fig2, axis2 = plt.subplots()
        axis2.imshow(frame)
        axis2.set_title(f"t = {NT * TIME_STEP:.3f} s")
        fig2.savefig("Flowsim.png")

        fig3, (axis_hist, axis_kde) = plt.subplots(2, sharex=True)
        seaborn.histplot(x=initial_sizes, log_scale=True, ax=axis_hist)
        logRadiiPlot = np.log(np.logspace(np.log10(radii_min_plot), np.log10(radii_max_plot), 2000))
        axis_kde.semilogx(np.exp(logRadiiPlot), size_spectrum(initial_sizes, logRadiiPlot))
        for axis in (axis_hist, axis_kde):
            axis.axvline(drizzle_cutoff, color="k", label="drizzle")
            axis.axvline(rain_cutoff, color="r", label="rain")
        axis_kde.legend(loc='best')
        axis_kde.set_xlabel("radius [um]")
        axis_hist.set_title("initial droplet radii")
        fig3.savefig("Flowsim_sizes.png")

    print(df.tail())
    if plot:
        plt.show()
    else:
        plt.close('all')


if __name__ == "__main__":
    main(False)
