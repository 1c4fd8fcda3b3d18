"""Allow running as: python -m signal_core.pipeline --features f.json [--config path] [--horizons ...]."""

import argparse
import sys

from signal_core.pipeline.cli import main

parser = argparse.ArgumentParser(description="Ensemble signal recommendation for one symbol")
parser.add_argument("--config", default=None, help="Path to config.yaml")
parser.add_argument("--features", required=True, help="Path to a JSON feature/request file")
parser.add_argument("--horizons", nargs="+", default=None, help="Horizons to predict, e.g. 1h 1d")
parser.add_argument("--timeframe", default=None, help="Timeframe label attached to the signal")
args = parser.parse_args()
sys.exit(main(args.config, args.features, horizons=args.horizons, timeframe=args.timeframe))
