"""
Text formatting utilities for clinical data in prompts.

Converts vitals readings and patient records into the plain-text blocks the
prompt templates embed.
"""
from typing import Optional

from .models import VitalsSnapshot


def _series(values: list[float]) -> str:
    return ", ".join(f"{v:g}" for v in values) if values else "N/A"


def format_vitals(vitals: VitalsSnapshot) -> str:
    """One bullet per vital, readings in time order."""
    return "\n".join([
        f"- Heart Rate (bpm): [{_series(vitals.heart_rate)}]",
        f"- Blood Pressure Systolic (mmHg): [{_series(vitals.blood_pressure.systolic)}]",
        f"- Blood Pressure Diastolic (mmHg): [{_series(vitals.blood_pressure.diastolic)}]",
        f"- SpO2 (%): [{_series(vitals.spo2)}]",
        f"- Temperature (°F): [{_series(vitals.temperature_f)}]",
    ])


def format_vitals_context(vitals: Optional[VitalsSnapshot]) -> str:
    """Vitals block appended to a transcript, or "" without vitals."""
    if vitals is None:
        return ""
    return f"\n\nAdditional patient vitals:\n{format_vitals(vitals)}"


def format_patient_details(patient: Optional[dict]) -> str:
    """Patient record as a markdown block, or "" without a record."""
    if not patient:
        return ""
    return "\n".join([
        "**Patient Information:**",
        f"- Name: {patient.get('patient_name') or 'N/A'}",
        f"- Age: {patient.get('age') if patient.get('age') is not None else 'N/A'} years",
        f"- Gender: {patient.get('gender') or 'N/A'}",
        f"- Weight: {patient.get('weight') if patient.get('weight') is not None else 'N/A'} kg",
        f"- Height: {patient.get('height') if patient.get('height') is not None else 'N/A'} cm",
        f"- BMI: {patient.get('bmi') if patient.get('bmi') is not None else 'N/A'}",
        f"- Blood Group: {patient.get('blood_group') or 'N/A'}",
        f"- Allergies: {patient.get('allergies') or 'None reported'}",
        f"- Medical History: {patient.get('medical_history') or 'No significant history'}",
        f"- Current Medications: {patient.get('current_medication') or 'None reported'}",
    ])


def count_readings(vitals: VitalsSnapshot) -> dict:
    return {
        "hr": len(vitals.heart_rate),
        "spo2": len(vitals.spo2),
        "temp": len(vitals.temperature_f),
        "bp": len(vitals.blood_pressure.systolic),
    }
