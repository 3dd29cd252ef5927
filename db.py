import psycopg2
import os

def get_conn():
    """PostgreSQL connection holding the particles and decays tables."""
    return psycopg2.connect(
        dbname=os.getenv("PGDATABASE", "scattering"),
        user=os.getenv("PGUSER", "postgres"),
        password=os.getenv("PGPASSWORD", ""),
        host=os.getenv("PGHOST", "localhost"),
        port=os.getenv("PGPORT", 5432),
    )
