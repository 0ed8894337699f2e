"""Pytest configuration: keep the API from writing log or history files into the tree."""
import os

os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("SEARCH_HISTORY_PATH", os.path.join("data", "test_search_history.json"))
