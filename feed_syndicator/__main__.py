"""Main entry point for the feed syndicator package."""

from feed_syndicator.cli import main

if __name__ == "__main__":
    main()
