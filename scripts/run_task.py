import argparse
import logging

from screen_pilot.agent.orchestrator import run_script_blocking
from screen_pilot.config import settings


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--script", required=True, help="JSON automation script to run")
    parser.add_argument("--url", default=None, help="Page to open (defaults to START_URL)")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    outcomes = run_script_blocking(args.script, args.url)
    for index, outcome in enumerate(outcomes):
        print(f"step={index} kind={outcome.kind} target={outcome.target_id} status={outcome.status} error={outcome.error}")


if __name__ == "__main__":
    main()
