"""Tests for clinical data formatting utilities."""
from rx_service.formatters import (
    count_readings,
    format_patient_details,
    format_vitals,
    format_vitals_context,
)
from rx_service.models import VitalsSnapshot


class TestFormatVitals:
    def test_all_series(self):
        vitals = VitalsSnapshot.model_validate({
            "hr": [72, 88.5],
            "bp": {"sys": [120], "dia": [80]},
            "spo2": [98],
            "temp": [98.6],
        })
        result = format_vitals(vitals)
        assert "- Heart Rate (bpm): [72, 88.5]" in result
        assert "- Blood Pressure Systolic (mmHg): [120]" in result
        assert "- Blood Pressure Diastolic (mmHg): [80]" in result
        assert "- SpO2 (%): [98]" in result
        assert "- Temperature (°F): [98.6]" in result

    def test_missing_series(self):
        result = format_vitals(VitalsSnapshot())
        assert result.count("[N/A]") == 5

    def test_context_block(self):
        block = format_vitals_context(VitalsSnapshot.model_validate({"hr": [60]}))
        assert block.startswith("\n\nAdditional patient vitals:\n")
        assert "[60]" in block

    def test_no_vitals_no_block(self):
        assert format_vitals_context(None) == ""


class TestFormatPatientDetails:
    def test_full_record(self):
        result = format_patient_details({
            "patient_name": "Asha",
            "age": 42,
            "gender": "F",
            "weight": 60,
            "height": 160,
            "bmi": 23.4,
            "blood_group": "O+",
            "allergies": "Penicillin",
            "medical_history": "Asthma",
            "current_medication": "Salbutamol",
        })
        assert result.startswith("**Patient Information:**")
        assert "- Age: 42 years" in result
        assert "- BMI: 23.4" in result
        assert "- Current Medications: Salbutamol" in result

    def test_defaults_for_missing_fields(self):
        result = format_patient_details({"patient_name": "Ravi"})
        assert "- Age: N/A years" in result
        assert "- Allergies: None reported" in result
        assert "- Medical History: No significant history" in result

    def test_zero_age_is_kept(self):
        assert "- Age: 0 years" in format_patient_details({"patient_name": "Baby", "age": 0})

    def test_no_record(self):
        assert format_patient_details(None) == ""
        assert format_patient_details({}) == ""


class TestCountReadings:
    def test_counts(self):
        vitals = VitalsSnapshot.model_validate({"heartRate": [1, 2, 3], "bloodPressure": {"systolic": [1, 2]}})
        assert count_readings(vitals) == {"hr": 3, "spo2": 0, "temp": 0, "bp": 2}
