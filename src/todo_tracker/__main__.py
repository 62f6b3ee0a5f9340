"""Entry point for `python -m todo_tracker`."""

from todo_tracker.cli import main

if __name__ == "__main__":
    main()
