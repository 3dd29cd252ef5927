"""
Build scattering.db from the CSV hadron tables in data/.

    python scripts/migrate_to_sql.py [--db scattering.db] [--data data]
"""
import argparse
import sqlite3
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]


def migrate(db_path: Path, data_dir: Path) -> None:
    particles_df = pd.read_csv(data_dir / "particles.csv")
    decays_df = pd.read_csv(data_dir / "decays.csv")

    # Clean up decays_df column names
    decays_df = decays_df.rename(columns={
        "PDG ID": "pdg_id",
        "Decay mode": "decay_mode",
        "Branching fraction": "branching_fraction"
    })

    # Drop unwanted unnamed columns if they exist
    decays_df = decays_df.loc[:, ["pdg_id", "decay_mode", "branching_fraction"]]

    conn = sqlite3.connect(db_path)
    try:
        particles_df.to_sql('particles', conn, if_exists='replace', index=False)
        decays_df.to_sql('decays', conn, if_exists='replace', index=False)
        conn.commit()
    finally:
        conn.close()

    print(f"Migration complete: {db_path} refreshed with {len(particles_df)} particles "
          f"and {len(decays_df)} decay rows.")


def main():
    parser = argparse.ArgumentParser(description="Build the sqlite particle database from CSV tables")
    parser.add_argument("--db", type=Path, default=ROOT / "scattering.db", help="Output sqlite file")
    parser.add_argument("--data", type=Path, default=ROOT / "data", help="Directory with particles.csv and decays.csv")
    args = parser.parse_args()
    migrate(args.db, args.data)


if __name__ == "__main__":
    main()
