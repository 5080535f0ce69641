"""
reset_data.py
-------------
Utility script to clear the saved catalog (vehicles, rentals, tickets) from
the local pickle file.

This script is meant for development and testing. It writes an empty catalog
through the same repository the app uses, so the file stays loadable.

Usage:
    $ python reset_data.py

After running this script, you can repopulate the demo fleet by executing:
    $ python seeds.py
"""

from fleetrent.config import Config
from fleetrent.models.store import PickleRepository


def reset(path) -> PickleRepository:
    """Overwrite every collection in the data file at ``path`` with an empty list."""
    repo = PickleRepository(path)
    repo.save_vehicles([])
    repo.save_rentals([])
    repo.save_tickets([])
    return repo


def main():
    path = Config.DATA_PATH
    if not path:
        print("ℹ️  No data file configured (FLEETRENT_DATA_PATH is empty); nothing to reset.")
        return
    reset(path)

    print(f"✅ {path} has been successfully cleared.")
    print("💡 Tip: Run `python seeds.py` to register the demo fleet again.")


if __name__ == "__main__":
    main()
