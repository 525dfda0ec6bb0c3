import sys

from mongo_audit.main import main_duplicates

sys.exit(main_duplicates())
