import argparse
import os
import sys

import psycopg2
from dotenv import load_dotenv

from candidate_ingest.db.schema import SCHEMA_SQL
from candidate_ingest.services.users import register_role
from candidate_ingest.db.postgres import PostgresUserStore

load_dotenv()

parser = argparse.ArgumentParser(description="Create candidate tables and optionally seed an admin account.")
parser.add_argument('--admin-uid', help='uid to register with the admin role')
parser.add_argument('--admin-email', help='email for the admin account')
args = parser.parse_args()

db_url = os.getenv('DATABASE_URL')
if db_url is None:
    print("Environment variable DATABASE_URL is not set. Please set it before running this script.", file=sys.stderr)
    sys.exit(1)

conn = psycopg2.connect(db_url)
cur = conn.cursor()
cur.execute(SCHEMA_SQL)
if args.admin_uid:
    status = register_role(PostgresUserStore(cur), args.admin_uid, args.admin_email, 'admin')
    print(f"admin {args.admin_uid} {status}")
conn.commit()
cur.close()
conn.close()
print("schema ready")
