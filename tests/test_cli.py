"""Command-line driver, end to end on the bundled hadron tables."""
import pandas as pd

import cross_sections
from conftest import ROOT

CHANNELS = str(ROOT / "data" / "channels.yaml")


def test_partial_cross_sections(sqlite_db, capsys):
    code = cross_sections.main(["--db", str(sqlite_db), "--channels", CHANNELS,
                                "--particles", "p", "p", "--plab", "1.0", "2.0"])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "10 iso-particle types."
    assert lines[1] == "# Dumping partial N⁺N⁺ cross-sections in mb, energies in GeV"
    assert lines[2].startswith("   sqrt_s           total")
    assert len(lines) == 5


def test_final_state_csv_export(sqlite_db, tmp_path, capsys):
    csv_path = tmp_path / "pp.csv"
    code = cross_sections.main(["--db", str(sqlite_db), "--channels", CHANNELS,
                                "--particles", "p", "p", "--plab", "3.0",
                                "--final-state", "--csv", str(csv_path)])
    assert code == 0
    df = pd.read_csv(csv_path, index_col="sqrt_s")
    assert df.shape[0] == 1
    assert df.columns[0] == "total"
    # Δ decays lead to nucleon + pion final states
    assert any("π" in column for column in df.columns)


def test_reaction_listing(sqlite_db, capsys):
    code = cross_sections.main(["--db", str(sqlite_db), "--channels", CHANNELS, "--reactions"])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "10 iso-particle types."
    assert lines[1] == "They can make 45 pairs."


def test_missing_database(tmp_path, capsys):
    code = cross_sections.main(["--db", str(tmp_path / "none.db"), "--particles", "p", "p"])
    assert code == 1


def test_unknown_particle(sqlite_db):
    code = cross_sections.main(["--db", str(sqlite_db), "--channels", CHANNELS, "--particles", "p", "glueball"])
    assert code == 1
