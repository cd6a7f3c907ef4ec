"""PostgreSQL DDL for the record store.

Email uniqueness is enforced by the ingestion pre-insert lookup, not by a
constraint (manual entry may legitimately leave email empty).
"""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    uid         TEXT PRIMARY KEY,
    email       TEXT,
    role        TEXT NOT NULL DEFAULT 'candidate'
);

CREATE TABLE IF NOT EXISTS candidates (
    id                  SERIAL PRIMARY KEY,
    name                TEXT NOT NULL,
    email               TEXT,
    phone               TEXT,
    experience_years    NUMERIC NOT NULL DEFAULT 0,
    previous_experience TEXT,
    age                 NUMERIC NOT NULL DEFAULT 0,
    photo_path          TEXT,
    status              TEXT NOT NULL DEFAULT 'pending',
    created_by          TEXT NOT NULL,
    created_at          TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS candidates_email_idx ON candidates (email);

CREATE TABLE IF NOT EXISTS interviews (
    id            SERIAL PRIMARY KEY,
    candidate_id  INTEGER NOT NULL REFERENCES candidates (id) ON DELETE CASCADE,
    date          TEXT NOT NULL,
    time          TEXT NOT NULL,
    type          TEXT NOT NULL DEFAULT 'General',
    status        TEXT NOT NULL DEFAULT 'scheduled',
    scheduled_by  TEXT NOT NULL,
    created_at    TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""
