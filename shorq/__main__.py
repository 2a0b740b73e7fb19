"""
Command line entry point.

    python -m shorq 15                 # factor with random guesses
    python -m shorq 15 --guess 7 -v    # one shot with a fixed guess
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import SimulatorConfig
from .errors import ShorqError
from .shor import ShorPipeline, factorize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shorq",
        description="Factor an integer with Shor's algorithm on a state-vector simulator.",
    )
    parser.add_argument("number", type=int, help="integer to factor")
    parser.add_argument("--guess", type=int, default=None,
                        help="run a single shot with this base instead of random guesses")
    parser.add_argument("--seed", type=int, default=None, help="measurement seed")
    parser.add_argument("--max-qubits", type=int, default=None, help="qubit budget")
    parser.add_argument("--attempts", type=int, default=10,
                        help="maximum number of shots without --guess (default: 10)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = SimulatorConfig.from_env()
        if args.max_qubits is not None:
            config = config.replace(max_qubits=args.max_qubits)
        if args.seed is not None:
            config = config.replace(seed=args.seed)

        if args.guess is not None:
            result = ShorPipeline(args.number, args.guess, config=config).run()
        else:
            result = factorize(args.number, attempts=args.attempts, config=config)
    except (ShorqError, ValueError) as exc:
        print(f"shorq: error: {exc}", file=sys.stderr)
        return 2

    print(result)
    return 0 if result.found else 1


if __name__ == "__main__":
    sys.exit(main())
