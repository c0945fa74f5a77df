#!/usr/bin/env python3
"""Benchmark full area generation over several area sizes."""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path

from delve.generator import (
    AreaGenerator,
    EncounterKindBuilder,
    EncounterParamsBuilder,
    GeneratorBuilder,
    GeneratorParams,
    PassParams,
    PropKindBuilder,
    PropParamsBuilder,
    RoomParams,
    TerrainParamsBuilder,
    TerrainPatchBuilder,
)
from delve.module import Edge, Encounter, Module, Prop, TerrainKind, Tile, WallKind
from delve.util.rng import ReproducibleRandom

AREA_SIZES: tuple[tuple[int, int], ...] = (
    (32, 32),
    (64, 64),
    (128, 96),
    (200, 200),
)


def create_module() -> Module:
    """Small stone dungeon module with one of everything."""
    stone = Tile("stone", "walls", width=2, height=2, impassable=True)
    stone_edges = {
        edge: Tile(f"stone_{edge.name.lower()}", "wall_border") for edge in Edge
    }
    floor = Tile("floor", "terrain")
    moss = Tile("moss", "terrain")
    return Module(
        tiles=[stone, floor, moss, *stone_edges.values()],
        wall_kinds=[WallKind("stone", stone, stone_edges)],
        terrain_kinds=[TerrainKind("floor", floor), TerrainKind("moss", moss)],
        props=[Prop("barrel"), Prop("crate")],
        encounters=[Encounter("rats")],
    )


def create_builder() -> GeneratorBuilder:
    return GeneratorBuilder(
        id="benchmark",
        wall_kinds={"stone": 1},
        rooms=RoomParams(
            min_size=(1, 1),
            max_size=(3, 3),
            max_rooms=12,
            room_edge_overfill_chance=20,
            corridor_edge_overfill_chance=20,
        ),
        terrain=TerrainParamsBuilder(
            base_kinds={"floor": 1},
            patches=[TerrainPatchBuilder(kinds={"moss": 1}, edge_underfill_chance=30)],
        ),
        props=PropParamsBuilder(
            kinds={"clutter": PropKindBuilder(props={"barrel": 1, "crate": 1})}
        ),
        encounters=EncounterParamsBuilder(
            kinds={"vermin": EncounterKindBuilder(encounters={"rats": 1})}
        ),
    )


class AreaGeneratorBenchmark:
    """Benchmark runner for AreaGenerator.generate."""

    def __init__(self, iterations: int) -> None:
        self.iterations = iterations
        self.generator = AreaGenerator(create_builder(), create_module())
        self.params = GeneratorParams(
            props=(PassParams("clutter"),), encounters=(PassParams("vermin"),)
        )
        self.results: dict[str, dict[str, float]] = {}

    def _run_case(self, width: int, height: int) -> float:
        """Run one benchmark case and return average generation time in ms."""
        elapsed_total = 0.0

        for i in range(self.iterations):
            rand = ReproducibleRandom(f"{width}x{height}:{i}")

            start = time.perf_counter()
            self.generator.generate(width, height, rand, self.params)
            elapsed_total += time.perf_counter() - start

        return (elapsed_total / self.iterations) * 1000.0

    def run(self) -> None:
        print("Area Generator Benchmark")
        print("=" * 42)
        print(f"Iterations per size: {self.iterations}")
        print()
        print(f"{'Size':>12} {'Generate (ms)':>16}")
        print("-" * 42)

        for width, height in AREA_SIZES:
            generate_ms = self._run_case(width, height)

            size_key = f"{width}x{height}"
            self.results[size_key] = {"generate_ms": generate_ms}

            print(f"{size_key:>12} {generate_ms:16.2f}")

    def save_results(self, filename: str) -> None:
        """Save benchmark output to a JSON file."""
        with Path(filename).open("w") as f:
            json.dump(self.results, f, indent=2)
        print(f"\nSaved benchmark results to {filename}")

    def compare_with_baseline(self, baseline_file: str) -> None:
        """Compare current run with a saved baseline JSON file."""
        try:
            with Path(baseline_file).open() as f:
                baseline: dict[str, dict[str, float]] = json.load(f)
        except FileNotFoundError:
            print(f"\nBaseline file not found: {baseline_file}")
            return

        print(f"\nComparison vs baseline: {baseline_file}")
        print("=" * 64)

        for size_key, current in self.results.items():
            old_ms = baseline.get(size_key, {}).get("generate_ms", 0.0)
            if old_ms <= 0:
                continue

            new_ms = current["generate_ms"]
            delta_pct = ((new_ms - old_ms) / old_ms) * 100.0
            trend = "faster" if new_ms < old_ms else "slower"
            print(
                f"{size_key:>12}: {new_ms:8.2f}ms vs {old_ms:8.2f}ms "
                f"| {trend} ({delta_pct:+6.1f}%)"
            )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Benchmark area generation")
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of runs per area size (default: 5)",
    )
    parser.add_argument("--save", type=str, help="Save current results to JSON")
    parser.add_argument(
        "--compare",
        type=str,
        help="Compare current results against baseline JSON",
    )
    args = parser.parse_args(argv)

    benchmark = AreaGeneratorBenchmark(iterations=args.iterations)
    benchmark.run()

    if args.save:
        benchmark.save_results(args.save)

    if args.compare:
        benchmark.compare_with_baseline(args.compare)


if __name__ == "__main__":
    main()
