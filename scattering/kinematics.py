"""
Kinematics helpers for the interaction finder.

Units: GeV and fm (natural units c = 1). Four-vectors use the (+,-,-,-)
metric; positions and momenta share the same type.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Tuple
import numpy as np

# -----------------------------
# FourVector
# -----------------------------
@dataclass(frozen=True)
class FourVector:
    x0: float
    x1: float
    x2: float
    x3: float

    # Momentum-style aliases
    @property
    def E(self) -> float:
        return self.x0

    @property
    def px(self) -> float:
        return self.x1

    @property
    def py(self) -> float:
        return self.x2

    @property
    def pz(self) -> float:
        return self.x3

    @property
    def threevec(self) -> np.ndarray:
        return np.array([self.x1, self.x2, self.x3], dtype=float)

    def Dot(self, other: "FourVector") -> float:
        """Minkowski inner product."""
        return self.x0 * other.x0 - (self.x1 * other.x1 + self.x2 * other.x2 + self.x3 * other.x3)

    def sqr(self) -> float:
        return self.Dot(self)

    def abs(self) -> float:
        """Invariant length; negative for space-like vectors."""
        s = self.sqr()
        return math.sqrt(s) if s >= 0.0 else -math.sqrt(-s)

    @property
    def mass(self) -> float:
        return math.sqrt(max(self.sqr(), 0.0))

    def velocity(self) -> np.ndarray:
        if self.x0 == 0.0:
            return np.zeros(3, dtype=float)
        return self.threevec / self.x0

    def boost(self, beta: np.ndarray) -> "FourVector":
        """Return this vector as seen from a frame moving with ``-beta``."""
        boosted = lorentz_boost_array(self.to_array(), np.asarray(beta, dtype=float))
        return FourVector(float(boosted[0]), float(boosted[1]), float(boosted[2]), float(boosted[3]))

    def to_array(self) -> np.ndarray:
        return np.array([self.x0, self.x1, self.x2, self.x3], dtype=float)

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x0, self.x1, self.x2, self.x3)

    def __add__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.x0 + other.x0, self.x1 + other.x1, self.x2 + other.x2, self.x3 + other.x3)

    def __sub__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.x0 - other.x0, self.x1 - other.x1, self.x2 - other.x2, self.x3 - other.x3)

    def __mul__(self, factor: float) -> "FourVector":
        return FourVector(self.x0 * factor, self.x1 * factor, self.x2 * factor, self.x3 * factor)

    __rmul__ = __mul__

    def __repr__(self) -> str:
        return f"FourVector({self.x0:.6f}, {self.x1:.6f}, {self.x2:.6f}, {self.x3:.6f})"


def momentum_from_mass(mass: float, px: float, py: float = 0.0, pz: float = 0.0) -> FourVector:
    """On-shell four-momentum for the given rest mass and 3-momentum."""
    energy = math.sqrt(mass * mass + px * px + py * py + pz * pz)
    return FourVector(energy, px, py, pz)


# -----------------------------
# Lorentz boost
# -----------------------------
def lorentz_boost_array(p4: np.ndarray, beta: np.ndarray) -> np.ndarray:
    beta = np.asarray(beta, dtype=float)
    p4 = np.asarray(p4, dtype=float)
    beta2 = float(np.dot(beta, beta))
    if beta2 >= 1.0:
        raise ValueError("beta^2 < 1 required.")
    if beta2 <= 1e-18:
        return p4.copy()
    gamma = 1.0 / math.sqrt(1.0 - beta2)
    bp = float(np.dot(beta, p4[1:]))
    Eprime = gamma * (p4[0] + bp)
    factor = ((gamma - 1.0) * bp / beta2) + gamma * p4[0]
    pprime = p4[1:] + factor * beta
    return np.array([Eprime, pprime[0], pprime[1], pprime[2]], dtype=float)


def beta_cm(p_a: FourVector, p_b: FourVector) -> np.ndarray:
    """Velocity of the centre-of-momentum frame of two particles."""
    return (p_a + p_b).velocity()


# -----------------------------
# Two-body invariants
# -----------------------------
def s_from_plab(plab: float, m_a: float, m_b: float) -> float:
    """Mandelstam s for projectile a with lab momentum ``plab`` on target b at rest."""
    return m_a * m_a + m_b * m_b + 2.0 * m_b * math.sqrt(m_a * m_a + plab * plab)


def pcm_from_s(s: float, m_a: float, m_b: float) -> float:
    """Centre-of-mass momentum of a two-body system with invariant mass squared s."""
    if s <= 0.0:
        return 0.0
    term1 = s - (m_a + m_b) ** 2
    term2 = s - (m_a - m_b) ** 2
    return math.sqrt(max(term1 * term2, 0.0)) / (2.0 * math.sqrt(s))


def relative_velocity(p_a: FourVector, p_b: FourVector) -> float:
    """Lorentz-invariant relative velocity in the computational frame."""
    m_a = p_a.mass
    m_b = p_b.mass
    s = (p_a + p_b).sqr()
    lam = (s - (m_a + m_b) ** 2) * (s - (m_a - m_b) ** 2)
    return math.sqrt(max(lam, 0.0)) / (2.0 * p_a.x0 * p_b.x0)
