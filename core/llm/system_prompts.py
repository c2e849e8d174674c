CANDIDATE_ANALYSIS_SYSTEM_PROMPT = """
You are an expert HR analyst specializing in candidate evaluation for employment and upskilling programs.
Provide detailed, objective assessments and always answer through the analyze_candidate function.
"""

CANDIDATE_ANALYSIS_USER_PROMPT = """
You are analyzing a candidate application. Conduct a THOROUGH and DETAILED analysis of EVERY section of their CV/resume.

RESUME/CV:
{resume_text}
{cover_letter_section}
ANALYSIS REQUIREMENTS:

1. SKILLS ASSESSMENT (0-100):
   - Evaluate ALL technical skills mentioned
   - Assess soft skills and competencies
   - Consider skill relevance and proficiency level
   - Extract EVERY skill mentioned (aim for 8-15 skills)

2. EXPERIENCE EVALUATION (0-100):
   - Analyze ALL work experiences listed
   - Consider duration, responsibilities, and achievements
   - Evaluate career progression and relevance

3. EDUCATION REVIEW (0-100):
   - Examine ALL educational qualifications
   - Consider certifications, courses, and training
   - Evaluate relevance to the applied position

4. OVERALL FIT (0-100):
   - Holistic assessment combining all factors
   - Evaluate alignment with the job requirements

Scores must be whole numbers between 0 and 100.
"""


def build_candidate_analysis_prompt(resume_text: str, cover_letter: str | None = None) -> str:
    cover_letter_section = f"\nCOVER LETTER:\n{cover_letter}\n" if cover_letter else ""
    return CANDIDATE_ANALYSIS_USER_PROMPT.format(
        resume_text=resume_text,
        cover_letter_section=cover_letter_section,
    )
