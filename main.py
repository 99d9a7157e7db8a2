"""Thin launcher so `python main.py ...` runs the lectio CLI from a checkout."""
from lectio.run import main

if __name__ == "__main__":
    raise SystemExit(main())
