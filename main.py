"""
Convenience entrypoint for the ThreadTalk console harness.

Allows running `python main.py` in addition to `python -m threadtalk.cli`.
"""

from threadtalk.cli import main


if __name__ == "__main__":
    main()
