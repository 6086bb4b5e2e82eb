"""
Constants shared across natural-neighbor.
"""

# Upper bound on natural neighbours, envelope edges and fan triangles walked per query.
DEFAULT_DEGREE_LIMIT = 30

# Probe offsets used to break locate ties, scaled by the extent of the sites.
# Also the width of the hull-boundary band, relative to the length of each hull edge.
PROBE_EPSILON = 1e-9
PROBE_DIRECTIONS = ((1.0, 1.0), (1.0, -1.0), (-1.0, 1.0), (-1.0, -1.0))

# netCDF layout of a saved interpolator.
FILE_FORMAT_VERSION = 1
SITE_DIM = "site"
EDGE_DIM = "edge"
CONFIG_ATTR = "interpolator_config"
