import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .constants import width_cutoff
from .decay_modes import DecayBranch, canonicalize_mode, normalize_branches, read_decay_modes
from .errors import UnknownParticleError
from .kinematics import FourVector, momentum_from_mass

logger = logging.getLogger(__name__)

# Path to the default particle database
DB_PATH = Path(__file__).resolve().parents[1] / "scattering.db"

# Characters that distinguish the charge states of one isospin multiplet
ISO_CHARGE_MARKS = "⁺⁻⁰"


def isoclean(name: str) -> str:
    """Remove charge marks, so that 'Δ⁺⁺' and 'Δ⁰' both become 'Δ'."""
    return "".join(c for c in name if c not in ISO_CHARGE_MARKS)


@dataclass(eq=False)
class ParticleType:
    """
    A hadron species as listed in the particle database.
    Identity comparison only: every species exists once per registry.
    """

    name: str
    pdg: int
    mass: float
    width: float = 0.0
    spin: float = 0.0
    charge: int = 0
    baryon_number: int = 0
    strangeness: int = 0
    symbol: str = ""
    decay_modes: List[DecayBranch] = field(default_factory=list)

    @property
    def is_stable(self) -> bool:
        return self.width < width_cutoff

    @property
    def iso_name(self) -> str:
        return isoclean(self.name)

    @property
    def is_baryon(self) -> bool:
        return self.baryon_number != 0

    @property
    def is_nucleon(self) -> bool:
        return abs(self.pdg) in (2212, 2112)

    @property
    def n_quarks(self) -> int:
        return 3 if self.is_baryon else 2

    @property
    def strange_fraction(self) -> float:
        """Fraction of (anti)strange valence quarks."""
        return abs(self.strangeness) / self.n_quarks

    def __repr__(self) -> str:
        return (
            f"ParticleType(name={self.name}, pdg={self.pdg}, mass={self.mass:.4f} GeV, "
            f"width={self.width:.4f} GeV, spin={self.spin}, charge={self.charge:+d})"
        )


@dataclass
class IsoParticleType:
    """All charge states sharing one isospin multiplet name."""

    name: str
    states: List[ParticleType] = field(default_factory=list)


@dataclass
class ParticleData:
    """
    One simulated particle. The interaction finder only reads it.

    ``id_process`` is the identifier of the last process the particle took
    part in (0 if none). The formation fields describe how its cross
    section grows until it is fully formed.
    """

    id: int
    type: ParticleType
    momentum: FourVector
    position: FourVector = FourVector(0.0, 0.0, 0.0, 0.0)
    id_process: int = 0
    formation_time: float = 0.0
    begin_formation_time: float = 0.0
    initial_xsec_scaling_factor: float = 1.0
    formation_power: float = 0.0

    @classmethod
    def from_type(cls, ptype: ParticleType, id: int = 0, px: float = 0.0, py: float = 0.0,
                  pz: float = 0.0, mass: Optional[float] = None, **kwargs) -> "ParticleData":
        """Particle of the given type on its mass shell (pole mass unless ``mass`` is given)."""
        m = ptype.mass if mass is None else mass
        return cls(id=id, type=ptype, momentum=momentum_from_mass(m, px, py, pz), **kwargs)

    @property
    def effective_mass(self) -> float:
        return self.momentum.mass

    def xsec_scaling_factor(self, delta_time: float = 0.0) -> float:
        """Cross-section scaling factor at ``delta_time`` after the particle's current time."""
        time_of_interest = self.position.x0 + delta_time
        if self.formation_time <= time_of_interest:
            return 1.0
        if self.formation_power <= 0.0:
            return self.initial_xsec_scaling_factor
        progress = (time_of_interest - self.begin_formation_time) / (
            self.formation_time - self.begin_formation_time)
        progress = min(max(progress, 0.0), 1.0)
        return self.initial_xsec_scaling_factor + (
            1.0 - self.initial_xsec_scaling_factor) * progress ** self.formation_power

    def __repr__(self) -> str:
        return f"ParticleData(id={self.id}, {self.type.name}, p={self.momentum}, x={self.position})"


class ParticleTypeRegistry:
    """
    Species and decay-mode lookup, backed by the scattering.db schema
    (sqlite by default, PostgreSQL through db.get_conn).
    Lookups by name or symbol are cached.
    """

    def __init__(self, types: Iterable[ParticleType] = ()):
        self._types: List[ParticleType] = []
        self._by_pdg: Dict[int, ParticleType] = {}
        self._cache: Dict[str, ParticleType] = {}
        for ptype in types:
            self.add(ptype)

    # -------------------- Construction --------------------

    def add(self, ptype: ParticleType) -> ParticleType:
        if ptype.name.lower() in self._cache:
            raise ValueError(f"Particle '{ptype.name}' is already registered")
        self._types.append(ptype)
        self._by_pdg[ptype.pdg] = ptype
        self._cache[ptype.name.lower()] = ptype
        if ptype.symbol:
            self._cache.setdefault(ptype.symbol.lower(), ptype)
        return ptype

    def add_decay(self, parent: str, products: Sequence[str], weight: float) -> DecayBranch:
        """Attach a decay branch; product names are resolved through the registry."""
        ptype = self.find(parent)
        branch = DecayBranch(tuple(self.find(p) for p in products), float(weight))
        ptype.decay_modes.append(branch)
        return branch

    def normalize_decay_modes(self) -> None:
        for ptype in self._types:
            if ptype.decay_modes:
                ptype.decay_modes[:] = normalize_branches(ptype.name, ptype.decay_modes)

    @classmethod
    def from_records(cls, particles: Iterable[dict],
                     decays: Iterable[Tuple[str, Sequence[str], float]] = ()) -> "ParticleTypeRegistry":
        """Build a registry from plain dicts (ParticleType fields) and (parent, products, weight) tuples."""
        registry = cls(ParticleType(**record) for record in particles)
        for parent, products, weight in decays:
            registry.add_decay(parent, products, weight)
        registry.normalize_decay_modes()
        return registry

    @classmethod
    def from_sqlite(cls, db_path: Path = DB_PATH) -> "ParticleTypeRegistry":
        if not Path(db_path).exists():
            raise FileNotFoundError(
                f"❌ Particle database not found at {db_path}; run scripts/migrate_to_sql.py first")
        conn = sqlite3.connect(db_path)
        try:
            registry = cls._from_connection(conn)
        finally:
            conn.close()
        logger.info(f"Loaded {len(registry)} particle types from {db_path}")
        return registry

    @classmethod
    def from_postgres(cls, conn=None) -> "ParticleTypeRegistry":
        """Load from PostgreSQL; the connection comes from db.get_conn unless given."""
        if conn is None:
            from db import get_conn
            conn = get_conn()
        try:
            registry = cls._from_connection(conn)
        finally:
            conn.close()
        logger.info(f"Loaded {len(registry)} particle types from PostgreSQL")
        return registry

    @classmethod
    def _from_connection(cls, conn) -> "ParticleTypeRegistry":
        cur = conn.cursor()
        cur.execute("""
            SELECT "Name", "Symbol", "PDG ID", "Mass (GeV)", "Width (GeV)",
                   "Spin", "Charge (e)", "Baryon Number", "Strangeness"
            FROM particles
        """)
        registry = cls()
        for name, symbol, pdg, mass, width, spin, charge, baryon, strangeness in cur.fetchall():
            registry.add(ParticleType(
                name=name,
                symbol=symbol or "",
                pdg=int(pdg),
                mass=float(mass),
                width=float(width or 0.0),
                spin=float(spin or 0.0),
                charge=int(charge or 0),
                baryon_number=int(baryon or 0),
                strangeness=int(strangeness or 0),
            ))

        for pdg_id, mode, br in read_decay_modes(cur):
            try:
                parent = registry.by_pdg(pdg_id)
                registry.add_decay(parent.name, canonicalize_mode(mode), br)
            except UnknownParticleError as exc:
                logger.warning(f"Skipping decay row {pdg_id} '{mode}': {exc}")
        registry.normalize_decay_modes()
        return registry

    # -------------------- Lookup --------------------

    def find(self, name_or_symbol: str) -> ParticleType:
        """Particle type by name or symbol, case-insensitive."""
        key = name_or_symbol.lower()
        if key in self._cache:
            return self._cache[key]
        raise UnknownParticleError(f"❌ Particle '{name_or_symbol}' not found in registry")

    def by_pdg(self, pdg: int) -> ParticleType:
        try:
            return self._by_pdg[pdg]
        except KeyError:
            raise UnknownParticleError(f"❌ PDG code {pdg} not found in registry") from None

    def list_all(self) -> List[ParticleType]:
        return list(self._types)

    def iso_types(self) -> List[IsoParticleType]:
        """Isospin multiplets in order of first appearance."""
        multiplets: Dict[str, IsoParticleType] = {}
        for ptype in self._types:
            multiplets.setdefault(ptype.iso_name, IsoParticleType(ptype.iso_name)).states.append(ptype)
        return list(multiplets.values())

    def index(self, ptype: ParticleType) -> int:
        """Position in the registry, used as a stable ordering of species."""
        return next(i for i, t in enumerate(self._types) if t is ptype)

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self):
        return iter(self._types)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._cache
