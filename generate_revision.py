import argparse
import os
import sys

from alembic import command
from alembic.config import Config

os.chdir(os.path.dirname(os.path.abspath(__file__)))
alembic_cfg = Config("alembic.ini")

parser = argparse.ArgumentParser(description="Autogenerate an alembic revision from the models.")
parser.add_argument("message")
args = parser.parse_args()

print(f"Config script location: {alembic_cfg.get_main_option('script_location')}")
try:
    revision = command.revision(alembic_cfg, message=args.message, autogenerate=True)
    print(f"Revision generated: {revision.revision if revision else None}")
except Exception as e:
    print(f"Error: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
