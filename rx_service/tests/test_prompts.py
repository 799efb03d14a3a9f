"""Tests for prompt construction."""
from rx_service.prompts import (
    DIAGNOSTIC_CLOSING,
    DIAGNOSTIC_GUIDELINES,
    PRESCRIPTION_PROMPTS,
    build_diagnostic_prompt,
    build_prescription_prompt,
    build_suggestion_prompt,
    build_vitals_summary_prompt,
)

TRANSCRIPT = 'Patient reports chest pain on exertion; BP 150/95. {not a placeholder} "quoted"'


class TestPrescriptionPrompt:
    def test_known_specialties_use_their_template(self):
        for context, template in PRESCRIPTION_PROMPTS.items():
            assert build_prescription_prompt(context, "notes") == template.format(transcript="notes")

    def test_cardiology_mentions_cardiology_items(self):
        prompt = build_prescription_prompt("Cardiology", TRANSCRIPT)
        assert "cardiolog" in prompt.lower()
        assert "ECG" in prompt

    def test_transcript_verbatim(self):
        for context in ("Cardiology", "Oncology", "Nephrology", "General", "Dermatology"):
            assert TRANSCRIPT in build_prescription_prompt(context, TRANSCRIPT)

    def test_unknown_specialty_named_in_prompt(self):
        prompt = build_prescription_prompt("Dermatology", "itchy rash")
        assert "Dermatology" in prompt
        assert prompt not in [t.format(transcript="itchy rash") for t in PRESCRIPTION_PROMPTS.values()]

    def test_context_match_is_exact(self):
        assert build_prescription_prompt("cardiology", "x") != build_prescription_prompt("Cardiology", "x")

    def test_optional_section_instruction_present(self):
        assert "omit" in build_prescription_prompt("General", "x").lower()

    def test_deterministic(self):
        assert build_prescription_prompt("Oncology", TRANSCRIPT) == build_prescription_prompt("Oncology", TRANSCRIPT)


class TestDiagnosticPrompt:
    def test_specialty_guidelines_included(self):
        prompt = build_diagnostic_prompt("Nephrology", "raised creatinine")
        assert DIAGNOSTIC_GUIDELINES["Nephrology"] in prompt
        assert "raised creatinine" in prompt
        assert prompt.endswith(DIAGNOSTIC_CLOSING)

    def test_unknown_specialty_uses_general_guidelines(self):
        prompt = build_diagnostic_prompt("Dermatology", "rash")
        assert DIAGNOSTIC_GUIDELINES["General"] in prompt
        assert DIAGNOSTIC_GUIDELINES["Cardiology"] not in prompt

    def test_transcript_verbatim(self):
        assert TRANSCRIPT in build_diagnostic_prompt("Cardiology", TRANSCRIPT)


class TestSupplementaryPrompts:
    def test_vitals_summary_with_patient(self):
        prompt = build_vitals_summary_prompt("- Heart Rate (bpm): [80]", "**Patient Information:**")
        assert "- Heart Rate (bpm): [80]" in prompt
        assert "**Patient Information:**" in prompt

    def test_vitals_summary_without_patient(self):
        prompt = build_vitals_summary_prompt("- SpO2 (%): [97]")
        assert "- SpO2 (%): [97]" in prompt
        assert "Patient Information" not in prompt

    def test_suggestion_prompt(self):
        prompt = build_suggestion_prompt("Cardiology", "chest pain since morning")
        assert "Cardiology" in prompt
        assert "chest pain since morning" in prompt

    def test_suggestion_prompt_default_context(self):
        assert "General Medicine" in build_suggestion_prompt("", "cough")
