#!/usr/bin/env python3
"""Pomagotchi — entry point.

Run with:
    python main.py run --minutes 25
    python -m pomagotchi status
"""

from pomagotchi.__main__ import main


if __name__ == "__main__":
    main()
