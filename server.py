#!/usr/bin/env python3
"""
Local entrypoint for the reward curve API.

The engine and HTTP layer live under `reward_curve_app/`.
Run with `python3 server.py`.
"""

from reward_curve_app.main import app, run


if __name__ == "__main__":
    run()
