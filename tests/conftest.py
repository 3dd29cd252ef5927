"""Shared fixtures: a small hadron registry, configurations and controllable random sources."""
import importlib.util
from pathlib import Path

import pytest

from scattering.config import CollisionTermConfig
from scattering.kinematics import FourVector
from scattering.particles import ParticleData, ParticleTypeRegistry

ROOT = Path(__file__).resolve().parents[1]

PARTICLES = [
    dict(name="N⁺", symbol="p", pdg=2212, mass=0.938, spin=0.5, charge=1, baryon_number=1),
    dict(name="N⁰", symbol="n", pdg=2112, mass=0.938, spin=0.5, charge=0, baryon_number=1),
    dict(name="π⁺", symbol="pi+", pdg=211, mass=0.138, charge=1),
    dict(name="π⁰", symbol="pi0", pdg=111, mass=0.138),
    dict(name="π⁻", symbol="pi-", pdg=-211, mass=0.138, charge=-1),
    dict(name="K⁺", symbol="K+", pdg=321, mass=0.494, charge=1, strangeness=1),
    dict(name="ρ⁰", symbol="rho0", pdg=113, mass=0.776, width=0.149, spin=1.0),
    dict(name="ω", symbol="omega", pdg=223, mass=0.783, width=0.0085, spin=1.0),
    dict(name="Δ⁺⁺", symbol="Delta++", pdg=2224, mass=1.232, width=0.117, spin=1.5, charge=2, baryon_number=1),
    dict(name="Δ⁺", symbol="Delta+", pdg=2214, mass=1.232, width=0.117, spin=1.5, charge=1, baryon_number=1),
]

DECAYS = [
    ("ρ⁰", ["π⁺", "π⁻"], 1.0),
    ("ω", ["π⁺", "π⁻", "π⁰"], 1.0),
    ("Δ⁺⁺", ["N⁺", "π⁺"], 1.0),
    ("Δ⁺", ["N⁺", "π⁰"], 2.0 / 3.0),
    ("Δ⁺", ["N⁰", "π⁺"], 1.0 / 3.0),
]


class FixedRng:
    """Random source whose uniform draws always sit at the same fraction of the interval."""

    def __init__(self, fraction):
        self.fraction = fraction

    def uniform(self, low=0.0, high=1.0):
        return low + self.fraction * (high - low)


@pytest.fixture
def registry():
    return ParticleTypeRegistry.from_records(PARTICLES, DECAYS)


@pytest.fixture
def make_config():
    def _make(**kwargs):
        return CollisionTermConfig(**kwargs)
    return _make


@pytest.fixture
def make_particle(registry):
    """ParticleData at position (t=0, x, y, z) with 3-momentum (px, py, pz)."""
    def _make(name, id, x=0.0, px=0.0, y=0.0, py=0.0, z=0.0, pz=0.0, **kwargs):
        data = ParticleData.from_type(registry.find(name), id=id, px=px, py=py, pz=pz, **kwargs)
        data.position = FourVector(0.0, x, y, z)
        return data
    return _make


def load_script(relative_path):
    """Import a script that lives outside the installed packages."""
    path = ROOT / relative_path
    spec = importlib.util.spec_from_file_location(path.stem, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def sqlite_db(tmp_path):
    """scattering.db built from the CSV tables in data/."""
    db_path = tmp_path / "scattering.db"
    load_script("scripts/migrate_to_sql.py").migrate(db_path, ROOT / "data")
    return db_path
