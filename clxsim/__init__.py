"""Coulomb-excitation simulation components: kinematics, polarization, event generation, detector geometry and output records."""

__version__ = "0.1.0"