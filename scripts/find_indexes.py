"""
Report collections with 64 or more indexes, indexes ranked by usage.
Writes output/indexes_json/.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from mongo_audit.main import main_indexes

if __name__ == "__main__":
    sys.exit(main_indexes())
