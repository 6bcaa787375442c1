"""
stepsim: Main Entry Point

Replays the reference wager scenario against an in-process simulator.
Runs headless and unattended.
"""
import sys
import json
import argparse
from .core.logger import configure_logging
from .harness.assertions import AssertionHarness
from .harness.scenario import reference_scenario
from .harness.transport import InProcessTransport, SimulatorClient
from .harness.verdict import VerdictStatus
from .protocol.wager import WagerProtocol
from .simulator.context import SimulatorConfig

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="stepsim reference wager replay"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Base RNG seed for participant randomness"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="structlog level (DEBUG, INFO, WARNING, ERROR)"
    )
    parser.add_argument(
        "--output-hashes",
        help="Path to save the per-step state hash log"
    )

    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    config = SimulatorConfig(rng_seed=args.seed)
    transport = InProcessTransport(WagerProtocol().program, config)
    client = SimulatorClient(transport, config)
    scenario = reference_scenario()

    print(f"=== stepsim ===")
    print(f"Scenario: {scenario.name}")
    print(f"RNG Seed: {config.rng_seed}")
    print(f"Config Hash: {config.config_hash}")
    print()

    verdict = AssertionHarness(client).run(scenario)

    print("=== VERDICT ===")
    print(f"Status: {verdict.status.value}")
    print(verdict.summary())

    if verdict.mismatch:
        print()
        print("=== MISMATCH DETAILS ===")
        print(f"Step: {verdict.mismatch.step}")
        print(f"Participant: {verdict.mismatch.participant}")
        print(f"Variable: {verdict.mismatch.variable}")
        print(f"Expected: {verdict.mismatch.expected}")
        print(f"Actual: {verdict.mismatch.actual}")

    if args.output_hashes:
        with open(args.output_hashes, 'w') as f:
            json.dump(transport.simulator.hash_log, f, indent=2)
        print(f"Hash log saved to: {args.output_hashes}")

    return 0 if verdict.status == VerdictStatus.PASS else 1

if __name__ == "__main__":
    sys.exit(main())
