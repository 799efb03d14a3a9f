"""
Prompt templates for prescription, diagnostic-test, vitals-summary and
follow-up suggestion generation.

Templates carry their own "omit sections that are not mentioned" rules; the
builders never add or drop sections themselves.
Note: literal braces in templates must be doubled ({{ }}) for .format()
"""
from typing import Optional

CARDIOLOGY_PRESCRIPTION_PROMPT = """
You are a clinical assistant helping a cardiologist prepare a prescription summary from doctor's notes. Extract and organize the prescription details for a cardiology outpatient consultation.

Only include sections if the corresponding information is available in the doctor's notes. If something is not mentioned, omit that section completely.

Include the following if applicable:
- Patient details (if available)
- Clinical diagnosis (e.g., hypertension, coronary artery disease)
- Current medications with dosages
- Lifestyle and dietary recommendations
- Investigations ordered (e.g., ECG, lipid profile)
- Follow-up instructions (e.g., BP monitoring, next review)

doctor's notes:
"{transcript}"

Summarize concisely and clearly for patient understanding using structured markdown format.
"""

ONCOLOGY_PRESCRIPTION_PROMPT = """
You are a clinical assistant helping an oncologist prepare a prescription summary from doctor's notes. Extract and organize the prescription details for an oncology outpatient consultation.

Only include sections if the corresponding information is present in the doctor's notes. If something is not mentioned, skip that section entirely instead of writing "Not specified".

Ensure the output includes:
- Patient details (if available)
- Diagnosis and staging (if mentioned)
- Treatment plan (e.g., chemotherapy regimen, radiation plan)
- Supportive medications (e.g., antiemetics, pain meds)
- Any follow-up instructions (e.g., next cycle, lab tests)
- Special instructions (e.g., hydration, diet, side-effect precautions)

doctor's notes:
"{transcript}"

Summarize concisely and clearly for patient understanding using structured markdown format.
"""

NEPHROLOGY_PRESCRIPTION_PROMPT = """
You are a clinical assistant helping a nephrologist prepare a prescription summary from doctor's notes. Extract and organize the prescription details for a nephrology consultation.

Only include sections if the relevant details are present in the notes. Omit any sections that are not mentioned.

Include:
- Patient details (if available)
- Renal diagnosis or conditions (e.g., CKD, proteinuria)
- Current medications with doses
- Dialysis status or instructions (if applicable)
- Recommended tests (e.g., renal panel, GFR, urinalysis)
- Lifestyle/diet (e.g., fluid restriction, protein intake)
- Follow-up instructions

doctor's notes:
"{transcript}"

Summarize in clear markdown for clinical clarity and patient understanding.
"""

GENERAL_PRESCRIPTION_PROMPT = """
You are a clinical assistant preparing a general medical prescription summary based on doctor's notes. Use standard medical practices and clinical judgment.

Only include sections that have relevant information. Skip any section that is not supported by the doctor's notes.

Recommended structure (omit any sections not mentioned):
1. Chief complaint
2. Summary of findings
3. Provisional diagnosis
4. Medications (dose, frequency, duration)
5. Investigations (if any)
6. Advice and follow-up

doctor's notes:
"{transcript}"

Format the output as structured, professional markdown. Ensure readability for both clinician and patient.
"""

SPECIALIST_PRESCRIPTION_PROMPT = """
You are a qualified medical doctor specialized in {context}. Based on the conversation and medical history provided below, generate a structured medical prescription. Use standard medical practices and clinical judgment. Only include sections supported by the conversation. The prescription should include:

1. Chief complaint
2. Summary of findings
3. Provisional diagnosis
4. Medications (with dose, frequency, and duration)
5. Investigations (if any)
6. Advice and follow-up

doctor's conversation:
"{transcript}"

Output only the prescription in a professional, structured markdown format.
"""

PRESCRIPTION_PROMPTS = {
    "Cardiology": CARDIOLOGY_PRESCRIPTION_PROMPT,
    "Oncology": ONCOLOGY_PRESCRIPTION_PROMPT,
    "Nephrology": NEPHROLOGY_PRESCRIPTION_PROMPT,
    "General": GENERAL_PRESCRIPTION_PROMPT,
}

DIAGNOSTIC_TESTS_PROMPT = """
You are a clinical diagnostician. Based on the doctor's notes and patient information provided, suggest appropriate diagnostic tests that would help confirm or rule out potential diagnoses. Focus on evidence-based, cost-effective testing strategies.

Provide recommendations in the following format:
## Recommended Diagnostic Tests

### Immediate/Priority Tests
(Tests that should be done urgently or first)

### Confirmatory Tests
(Tests to confirm suspected diagnoses)

### Monitoring Tests
(Tests for ongoing monitoring if applicable)

### Additional Tests (if indicated)
(Additional tests based on clinical findings)

Omit any of these subsections that do not apply. For each test, briefly explain the clinical rationale.

Doctor's notes:
"{transcript}"
"""

DIAGNOSTIC_GUIDELINES = {
    "Cardiology": """
Focus on cardiovascular diagnostic tests such as:
- ECG/EKG for rhythm and electrical activity
- Echocardiogram for structural heart disease
- Stress tests for coronary artery disease
- Lipid profiles for cardiovascular risk
- Cardiac biomarkers (troponin, BNP) if indicated
- Holter monitoring for arrhythmias
- CT angiography or catheterization for advanced cases
""",
    "Oncology": """
Focus on cancer screening and staging tests such as:
- Tumor markers (CEA, CA-125, PSA, etc.)
- Imaging studies (CT, MRI, PET scans)
- Tissue biopsies for definitive diagnosis
- Complete blood count and comprehensive metabolic panel
- Liver function tests
- Staging studies based on primary tumor location
""",
    "Nephrology": """
Focus on kidney function and related tests such as:
- Comprehensive metabolic panel (creatinine, BUN, eGFR)
- Urinalysis with microscopy
- Urine protein/creatinine ratio
- Electrolyte panel
- Renal ultrasound
- Kidney biopsy if indicated
- Parathyroid hormone (PTH) levels
""",
    "General": """
Focus on general diagnostic approach:
- Complete blood count (CBC)
- Comprehensive metabolic panel (CMP)
- Lipid profile
- Thyroid function tests if indicated
- Inflammatory markers (ESR, CRP) if indicated
- Imaging studies based on presenting symptoms
- Specialized tests based on clinical presentation
""",
}

DIAGNOSTIC_CLOSING = "Provide clear, evidence-based recommendations with brief clinical rationale for each test."

VITALS_SUMMARY_PROMPT = """You are a qualified medical doctor. Analyze the patient's vital signs over time using evidence-based clinical guidelines. Identify any abnormalities or significant trends.
{patient_block}
**Normal Vital Sign Ranges:**
- Heart Rate: 60–100 bpm
- Blood Pressure: 90/60 to 120/80 mmHg
- SpO2: ≥ 95%
- Temperature: 97°F to 99°F

**Vital Signs Over Time:**
{vitals_block}

**Instructions:**
1. Identify abnormalities (e.g., bradycardia, tachycardia, hypertension, hypoxia, fever).
2. Comment on trends, fluctuations, or outliers.
3. Explain any potential clinical significance.
4. Factor in patient age, BMI, and medical history where relevant.
5. Provide output in **Markdown** format using the following structure:

### Vital Signs Summary
- Bullet points summarizing observations per vital.

### Clinical Interpretation
- Reasoning behind abnormal values or risks.

### Recommendations
- Next steps, follow-up needs, or reassurance if stable.
"""

SUGGESTION_PROMPT = """
You are a clinical assistant LLM specializing in {context}. Given the partial transcription of a conversation with a patient, suggest 1-2 relevant follow-up questions or clinical probes for the doctor to ask.

Partial Transcript:
"{transcript}"

Format your response as a bullet list of only 2 to 3 questions or probes."""


def build_prescription_prompt(context: str, transcript: str) -> str:
    """Prescription prompt for a clinical specialty tag.

    Unknown tags get the specialist template with the tag named in it.
    """
    template = PRESCRIPTION_PROMPTS.get(context)
    if template is None:
        return SPECIALIST_PRESCRIPTION_PROMPT.format(context=context or "General", transcript=transcript)
    return template.format(transcript=transcript)


def build_diagnostic_prompt(context: str, transcript: str) -> str:
    """Diagnostic-test prompt: base instructions plus the specialty guideline set."""
    guidelines = DIAGNOSTIC_GUIDELINES.get(context, DIAGNOSTIC_GUIDELINES["General"])
    return (
        DIAGNOSTIC_TESTS_PROMPT.format(transcript=transcript)
        + "\n" + guidelines + "\n\n" + DIAGNOSTIC_CLOSING
    )


def build_vitals_summary_prompt(vitals_block: str, patient_block: Optional[str] = None) -> str:
    patient_section = f"\n{patient_block}\n" if patient_block else ""
    return VITALS_SUMMARY_PROMPT.format(patient_block=patient_section, vitals_block=vitals_block)


def build_suggestion_prompt(context: str, transcript: str) -> str:
    return SUGGESTION_PROMPT.format(context=context or "General Medicine", transcript=transcript)
