import astropy.units as u

SEED = 4

MICRO = (1 * u.m).to(u.um).value  # micrometres per metre

eta = (1.81e-5 * u.kg / (u.m * u.s)).si.value    # air dynamic viscosity
rho_b = (997 * u.kg / u.m**3).si.value  # body density - assumed water

WIDTH = 800
HEIGHT = 800

extent = (40 * u.m).to(u.um).value
EXTENT = (round(extent), round(extent))
ORIGIN = (EXTENT[0] // 2, EXTENT[1] // 2)

TIME_STEP = (0.0166 * 0.01 * u.s).si.value
AMOUNT_OF_DROPLETS = 10000
NT = int(2000)

MIN_DROPLET_SIZE = 0.2  # um

# (mean [um], std [um], weight) - reference raindrop spectrum
MIXTURE = (
    (3.0, 1.62, 2),
    (6.0, 8.94, 27),
    (12.0, 4.67, 9),
    (20.0, 4.07, 5),
    (28.0, 2.36, 3),
    (36.0, 1.03, 2),
    (45.0, 0.9, 2),
    (62.5, 0.98, 2),
    (87.5, 0.65, 1),
    (112.5, 1.01, 2),
    (137.5, 1.03, 2),
    (175.0, 1.01, 2),
    (225.0, 1.82, 2),
    (375.0, 0.5, 1),
    (750.0, 0.82, 1),
    (1500.0, 0.0, 0),
)

speed_average = (11.7 * u.m / u.s).to(u.um / u.s).value
speed_deviation = (2.0 * u.m / u.s).to(u.um / u.s).value

GRADIENT_HIGH = (168, 50, 121)
GRADIENT_LOW = (211, 131, 18)
DROPLET_ALPHA = 255
BACKGROUND = 0

drizzle_cutoff = (100 * u.um).value
rain_cutoff = (1 * u.mm).to(u.um).value

radii_min_plot = 1e-1
radii_max_plot = 1e4

new_run = True
