"""
Plot the partial cross sections of one incoming pair against sqrt(s).

    python plots/cross_section_scan.py p p --channels data/channels.yaml
    python plots/cross_section_scan.py pi+ p --final-state --csv pip.csv
"""
import argparse
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from cross_sections import build_finder  # noqa: E402
from scattering.diagnostics import dump_cross_sections  # noqa: E402


def plot_scan(df: pd.DataFrame, title: str, output=None):
    plt.figure(figsize=(8, 5))
    for column in df.columns:
        style = 'k-' if column == "total" else '-'
        plt.plot(df.index, df[column], style, label=column)

    plt.xlabel(r'$\sqrt{s}$ [GeV]')
    plt.ylabel(r'$\sigma$ [mb]')
    plt.title(title)
    plt.grid(alpha=0.3)
    plt.legend(fontsize='small', ncol=2)
    plt.tight_layout()
    if output:
        plt.savefig(output, dpi=150)
    else:
        plt.show()


def main():
    parser = argparse.ArgumentParser(description="Plot a cross-section scan")
    parser.add_argument("a", help="First particle (name or symbol)")
    parser.add_argument("b", help="Second particle (name or symbol)")
    parser.add_argument("--db", type=Path, default=ROOT / "scattering.db")
    parser.add_argument("--config", type=Path, default=ROOT / "data" / "config.yaml")
    parser.add_argument("--channels", type=Path, default=ROOT / "data" / "channels.yaml")
    parser.add_argument("--final-state", action="store_true", help="Plot final states after all decays")
    parser.add_argument("--csv", type=Path, help="Read the scan from a CSV written by cross_sections.py instead")
    parser.add_argument("--output", type=Path, help="Save the figure instead of showing it")
    args = parser.parse_args()

    if args.csv:
        df = pd.read_csv(args.csv, index_col="sqrt_s")
        title = args.csv.stem
    else:
        finder = build_finder(args.db, args.config, args.channels)
        type_a = finder.registry.find(args.a)
        type_b = finder.registry.find(args.b)
        scan = dump_cross_sections(finder, type_a, type_b, type_a.mass, type_b.mass,
                                   final_state=args.final_state)
        df = scan.to_dataframe()
        title = f"{scan.pair_name} cross sections"

    plot_scan(df, title, args.output)


if __name__ == "__main__":
    main()
