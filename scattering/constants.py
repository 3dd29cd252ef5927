"""Numerical and physical constants.

Units: GeV, fm, fm/c, mb (natural units c = 1).
"""

# Threshold below which a quantity is treated as numerical noise.
really_small = 1.0e-6

# Conversion factor from mb to fm^2.
fm2_mb = 0.1

# hbar * c in GeV fm.
hbarc = 0.197327053

# Largest cross section any channel model is allowed to return [mb].
maximum_cross_section = 2000.0

# Particles with a width below this are treated as stable [GeV].
width_cutoff = 1.0e-5
