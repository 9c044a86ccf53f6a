import argparse
import logging

import uvicorn

from screen_pilot.config import settings


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run("screen_pilot.server.api:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
