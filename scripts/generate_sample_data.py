#!/usr/bin/env python3
"""
Sample data generator for testing the Engine Log Viewer application.

Generates synthetic engine logs with:
- Relative seconds and RPM/AFR/MAF/boost channels (comma separated)
- Wall-clock time with a comma decimal separator (semicolon separated)
- Gaps and non-numeric cells in some channels
"""

import argparse
from pathlib import Path

import numpy as np
import pandas as pd


def generate_noise(size: int, scale: float = 0.1) -> np.ndarray:
    """Generate random noise."""
    return np.random.normal(0, scale, size)


def engine_channels(t: np.ndarray) -> dict:
    """RPM sweeps with AFR, MAF and boost loosely following load."""
    n = len(t)
    load = 0.5 + 0.5 * np.sin(2 * np.pi * 0.02 * t)
    rpm = 900 + 5200 * load + generate_noise(n, 40)
    return {
        "Engine Speed (RPM)": rpm,
        "AFR": 14.7 - 2.6 * load + generate_noise(n, 0.1),
        "MAF (g/s)": 4 + 0.03 * rpm * load + generate_noise(n, 0.5),
        "Boost [psi]": np.clip(18 * (load - 0.3), -10, None) + generate_noise(n, 0.2),
        "Inj Duty %": 5 + 80 * load + generate_noise(n, 1.0),
        "Coolant Temp": 88 + 4 * np.sin(2 * np.pi * 0.005 * t) + generate_noise(n, 0.2),
        "Oil Pressure": 20 + 45 * load + generate_noise(n, 1.0),
        "TPS": 100 * load,
    }


def generate_pull_log(output_path: Path, num_points: int = 5000):
    """
    Comma-separated log with a relative 'Time (s)' column.
    """
    time = np.linspace(0, 120, num_points)
    df = pd.DataFrame({"Time (s)": time, **engine_channels(time)})

    # A few dropouts so gaps show up in the charts
    df.loc[df.sample(frac=0.01, random_state=1).index, "AFR"] = np.nan

    df.to_csv(output_path, index=False, float_format="%.3f")
    print(f"Generated: {output_path} ({num_points} points, {len(df.columns)} columns)")


def generate_wallclock_log(output_path: Path, num_points: int = 3000):
    """
    Semicolon-separated log with HH:MM:SS.mmm timestamps and decimal commas.
    """
    seconds = np.arange(num_points) * 0.1
    start = pd.Timestamp("2024-01-01 14:05:00")
    stamps = [(start + pd.Timedelta(seconds=s)).strftime("%H:%M:%S.%f")[:-3] for s in seconds]

    df = pd.DataFrame({"Timestamp": stamps, **engine_channels(seconds)})
    df.to_csv(output_path, index=False, sep=";", decimal=",", float_format="%.2f")
    print(f"Generated: {output_path} ({num_points} points, {len(df.columns)} columns)")


def generate_messy_log(output_path: Path, num_points: int = 500):
    """
    Log with a BOM, quoted fields, short rows and non-numeric sensor cells.
    """
    time = np.linspace(0, 25, num_points)
    channels = engine_channels(time)

    lines = ['Time,RPM,AFR,"Knock, count",Status']
    for i, t in enumerate(time):
        afr = "ERR" if i % 97 == 0 else f"{channels['AFR'][i]:.2f}"
        row = [f"{t:.3f}", f"{channels['Engine Speed (RPM)'][i]:.0f}", afr, str(i % 3), '"idle, ok"']
        if i % 53 == 0:
            row = row[:3]
        lines.append(",".join(row))

    output_path.write_text("\ufeff" + "\n".join(lines) + "\n", encoding="utf-8")
    print(f"Generated: {output_path} ({num_points} points, 5 columns)")


def generate_large_log(output_path: Path, num_points: int = 500000):
    """
    Generate a large log for performance testing.
    """
    print(f"Generating large log with {num_points} points...")

    time = np.linspace(0, 3600, num_points)
    df = pd.DataFrame({"Time (s)": time, **engine_channels(time)})
    df.to_csv(output_path, index=False, float_format="%.3f")
    print(f"Generated: {output_path} ({num_points} points, {len(df.columns)} columns)")


def main():
    parser = argparse.ArgumentParser(description="Generate sample engine logs for Engine Log Viewer")
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=Path("sample_data"),
        help="Output directory for generated files"
    )
    parser.add_argument(
        "--large",
        action="store_true",
        help="Also generate a large log for performance testing"
    )

    args = parser.parse_args()
    args.output_dir.mkdir(parents=True, exist_ok=True)

    np.random.seed(42)

    generate_pull_log(args.output_dir / "pull_log.csv")
    generate_wallclock_log(args.output_dir / "wallclock_log.csv")
    generate_messy_log(args.output_dir / "messy_log.csv")

    if args.large:
        generate_large_log(args.output_dir / "large_log.csv")

    print(f"\nSample logs written to: {args.output_dir.absolute()}")


if __name__ == "__main__":
    main()
