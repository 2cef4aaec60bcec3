"""Command-line entry point for the identity threat toolkit.

Usage:
    python -m identity_threat.main simulate --threat shock --institution delayed
    python -m identity_threat.main compare --observations 50
    python -m identity_threat.main generate
    python -m identity_threat.main report --forecasts
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional, Sequence

from identity_threat.bayesian.scenarios import compare_scenarios, summarize_scenarios
from identity_threat.bayesian.simulator import simulate_belief_evolution
from identity_threat.bayesian.trajectories import (
    HIGH_THREAT,
    LOW_THREAT,
    AbsentInstitution,
    DelayedInstitution,
    Escalating,
    ResponsiveInstitution,
    ShockEvent,
    TrajectoryFn,
)
from identity_threat.config import DEFAULT_OBSERVATIONS, SIMULATION_SEED, setup_logging
from identity_threat.data.generation import GenerationConfig, generate_identity_threat_data
from identity_threat.exceptions import InvalidConfiguration
from identity_threat.report import build_dashboard, dataset_summary, frame_records

logger = logging.getLogger(__name__)

THREATS: dict[str, TrajectoryFn] = {
    "low": LOW_THREAT,
    "high": HIGH_THREAT,
    "shock": ShockEvent(),
    "escalating": Escalating(),
}
INSTITUTIONS = ("responsive", "delayed", "absent")


def _institution(kind: str, threat: TrajectoryFn, delay: int) -> TrajectoryFn:
    if kind == "responsive":
        return ResponsiveInstitution(threat)
    if kind == "delayed":
        return DelayedInstitution(threat, delay=delay)
    return AbsentInstitution()


def _cmd_simulate(args: argparse.Namespace) -> Any:
    threat = THREATS[args.threat]
    frame = simulate_belief_evolution(
        args.observations,
        threat_trajectory=threat,
        institutional_trajectory=_institution(args.institution, threat, args.delay),
        seed=args.seed,
    )
    return frame_records(frame)


def _cmd_compare(args: argparse.Namespace) -> Any:
    frame = compare_scenarios(args.observations, seed=args.seed)
    return frame_records(summarize_scenarios(frame))


def _cmd_generate(args: argparse.Namespace) -> Any:
    return dataset_summary(generate_identity_threat_data(GenerationConfig(seed=args.seed)))


def _cmd_report(args: argparse.Namespace) -> Any:
    return build_dashboard(
        seed=args.seed,
        observations=args.observations,
        include_forecasts=args.forecasts,
        forecast_method=args.method,
    ).to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Identity threat dynamics toolkit")
    parser.add_argument("--seed", type=int, default=SIMULATION_SEED,
                        help="Random seed for reproducible runs")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("simulate", help="Single belief evolution run")
    p.add_argument("--observations", type=int, default=DEFAULT_OBSERVATIONS)
    p.add_argument("--threat", choices=sorted(THREATS), default="shock")
    p.add_argument("--institution", choices=INSTITUTIONS, default="responsive")
    p.add_argument("--delay", type=int, default=14,
                   help="Lag in steps for the delayed institution")
    p.set_defaults(func=_cmd_simulate)

    p = sub.add_parser("compare", help="Compare the default threat scenarios")
    p.add_argument("--observations", type=int, default=DEFAULT_OBSERVATIONS)
    p.set_defaults(func=_cmd_compare)

    p = sub.add_parser("generate", help="Summarise the synthetic dataset")
    p.set_defaults(func=_cmd_generate)

    p = sub.add_parser("report", help="Full dashboard summary")
    p.add_argument("--observations", type=int, default=DEFAULT_OBSERVATIONS)
    p.add_argument("--forecasts", action="store_true",
                   help="Include forecast backtests (slow)")
    p.add_argument("--method", choices=("structural", "arima"), default="structural")
    p.set_defaults(func=_cmd_report)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(sys.stderr)
    logger.info("command_starting", extra={"command": args.command, "seed": args.seed})

    try:
        output = args.func(args)
    except InvalidConfiguration as e:
        logger.error("invalid_configuration", extra={"error": str(e)})
        return 2

    json.dump(output, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
