"""Configuration for plot styling and parameters."""

# Figure sizes
STANDARD_FIGSIZE = (12, 6)
LARGE_FIGSIZE = (12, 8)

# Transparency
STANDARD_ALPHA = 0.7

# Line styles
STANDARD_LINEWIDTH = 2
THIN_LINEWIDTH = 1.5

# Grid
GRID_ALPHA = 0.3

# Leaderboard bars
BAR_COLOR = '#3498db'
TOP_LEADERBOARD_SIZE = 10
