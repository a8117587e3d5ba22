#!/usr/bin/env python3
"""
Run the alert monitor API with uvicorn.

    alert-monitor --host 0.0.0.0 --port 3000
"""
import argparse
import os

import uvicorn


def parse_args():
    p = argparse.ArgumentParser(description="Alert feed monitor server")
    p.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p.add_argument("--port", type=int, default=int(os.getenv("PORT", "3000")))
    p.add_argument("--reload", action="store_true")
    return p.parse_args()


def main():
    args = parse_args()
    # Single worker: the ingestion loop assumes one process owns the data files
    uvicorn.run("alert_monitor.main:app", host=args.host, port=args.port, reload=args.reload, workers=1)


if __name__ == "__main__":
    main()
