"""Command-line report for dephaze scans.

Generates a seeded scan from one of the synthetic profiles, builds the
phase field, optionally compresses it and prints storage and fidelity
metrics for the requested modes.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from dephaze.config import load_config
from dephaze.encoding import available_encodings
from dephaze.errors import DephazeError
from dephaze.io.field_json import dump_model
from dephaze.logging_config import setup_logging
from dephaze.metrics import primitive_metrics
from dephaze.pipeline import MODES, FieldPipeline, PipelineResult
from dephaze.primitive import StabilityPrimitive, validate_against_reference
from dephaze.scan import available_profiles, generate_scan
from dephaze.spectral import BASES

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build, compress and score a synthetic dephaze scan.")
    parser.add_argument("--profile", default="bumpy", choices=available_profiles(),
                        help="Synthetic scan profile (default: bumpy).")
    parser.add_argument("--samples", type=int, default=1000, help="Number of scan samples (default: 1000).")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for the scan (default: 0).")
    parser.add_argument("--resolution", type=int, default=None, help="Phase field resolution N.")
    parser.add_argument("--top-k", type=int, default=None, help="Spectral coefficient budget K.")
    parser.add_argument("--encoding", default=None, choices=available_encodings(),
                        help="Field encoding.")
    parser.add_argument("--basis", default=None, choices=BASES, help="Spectral basis.")
    parser.add_argument("--mode", default="both", choices=MODES + ("both",),
                        help="Which model(s) to score (default: both).")
    parser.add_argument("--config", type=Path, default=None, help="Optional YAML configuration file.")
    parser.add_argument("--save", type=Path, default=None,
                        help="Write the scored model as field JSON (single mode only).")
    parser.add_argument("--primitive", nargs=2, type=float, metavar=("RADIUS", "ORDER"), default=None,
                        help="Also report the closed-form primitive with this radius and order.")
    parser.add_argument("--validate", action="store_true",
                        help="Check the kernel against the classical sphere, octahedron and cube.")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _run(args: argparse.Namespace) -> Dict[str, object]:
    config = load_config(args.config) if args.config is not None else None
    pipeline = FieldPipeline(config)
    scan = generate_scan(args.profile, args.samples, args.seed)
    params = dict(resolution=args.resolution, encoding=args.encoding, top_k=args.top_k, basis=args.basis)

    if args.mode == "both":
        results: Dict[str, PipelineResult] = pipeline.compare(scan, **params)
    else:
        results = {args.mode: pipeline.evaluate(scan, args.mode, **params)}

    if args.save is not None:
        if len(results) != 1:
            raise DephazeError("--save needs a single --mode")
        (result,) = results.values()
        dump_model(result.model, args.save)
        logger.info("wrote %s model to %s", result.metrics.mode, args.save)

    report: Dict[str, object] = {
        "scan": scan.name,
        "modes": {mode: res.metrics.to_dict() for mode, res in results.items()},
    }
    if args.primitive is not None:
        prim = StabilityPrimitive(*args.primitive)
        entry = primitive_metrics(prim, config=config).to_dict()
        entry["topology"] = prim.topology
        report["primitive"] = entry
    if args.validate:
        report["validation"] = {
            shape: validate_against_reference(shape).accuracy
            for shape in ("sphere", "octahedron", "cube")
        }
    return report


def _print_report(report: Dict[str, object]) -> None:
    print(f"scan: {report['scan']}")
    for mode, m in report["modes"].items():
        print(f"  {mode:8s} raw={m['raw_bytes']}B compressed={m['compressed_bytes']}B "
              f"ratio={m['ratio']:.2f}:1 mae={m['mean_absolute_error']:.4f} "
              f"stability={m['stability_score']:.2f}%")
    prim = report.get("primitive")
    if prim:
        print(f"  primitive {prim['topology']}: raw={prim['raw_bytes']}B "
              f"compressed={prim['compressed_bytes']}B ratio={prim['ratio']:.0f}:1")
    validation = report.get("validation")
    if validation:
        for shape, accuracy in validation.items():
            print(f"  {shape:10s} accuracy {accuracy:.1f}%")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        report = _run(args)
    except (DephazeError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    if args.json:
        print(json.dumps(report, indent=2))
    else:
        _print_report(report)
    return 0


__all__ = ["build_parser", "main"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
