"""CLI argument parsing and uvicorn entry point."""

import logging
import os


def main():
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Orchestra API Server")
    parser.add_argument("--host", default=os.getenv("ORCHESTRA_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("ORCHESTRA_PORT", "8000")))
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(levelname)s: %(name)s - %(message)s",
    )

    from server.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
