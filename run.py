"""Entry point for the cache trace simulator.

Usage:
    python run.py -s 4 -E 1 -b 4 -t traces/yi.trace
    python run.py --help
"""
from csim.cli import main


if __name__ == '__main__':
    main()
