"""Download orchestration and chapter reconstruction."""
