"""
Read-only access to patient records used to enrich prompts.

The table is owned by the clinic's records system; this module only reads
it. create_schema() exists for local development and tests.
"""
import logging
import os
from typing import Optional

import aiosqlite

logger = logging.getLogger(__name__)

PATIENT_QUERY = """
    SELECT
        patient_id,
        patient_name,
        age,
        gender,
        weight,
        height,
        blood_group,
        allergies,
        medical_history,
        current_medication,
        ROUND(weight * 10000.0 / (height * height), 1) AS bmi
    FROM patients
    WHERE patient_id = ?
"""

PATIENT_SCHEMA = """
    CREATE TABLE IF NOT EXISTS patients (
        patient_id TEXT PRIMARY KEY,
        patient_name TEXT NOT NULL,
        age INTEGER,
        gender TEXT,
        weight REAL,
        height REAL,
        blood_group TEXT,
        allergies TEXT,
        medical_history TEXT,
        current_medication TEXT
    )
"""


class PatientStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    async def get_patient(self, patient_id: str) -> Optional[dict]:
        """Fetch one patient record, or None when there is no such patient."""
        if not os.path.exists(self.db_path):
            logger.info(f"Patient database {self.db_path} not found; no patient context")
            return None

        async with aiosqlite.connect(f"file:{self.db_path}?mode=ro", uri=True) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(PATIENT_QUERY, (str(patient_id),))
            row = await cursor.fetchone()

        if row is None:
            logger.info(f"No patient record for {patient_id}")
            return None
        return dict(row)

    async def create_schema(self) -> None:
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(PATIENT_SCHEMA)
            await db.commit()

    async def add_patient(self, **fields) -> None:
        columns = ", ".join(fields)
        placeholders = ", ".join("?" for _ in fields)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"INSERT INTO patients ({columns}) VALUES ({placeholders})",
                tuple(fields.values()),
            )
            await db.commit()
