"""
Scan for duplicate values behind unique indexes that failed to build.
Reads input/updateIndex.failure.json, writes output/duplicates_json/.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from mongo_audit.main import main_duplicates

if __name__ == "__main__":
    sys.exit(main_duplicates())
