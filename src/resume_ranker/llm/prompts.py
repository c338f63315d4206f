from __future__ import annotations

BASIC_INFO_PROMPT = """
Extract basic information from this resume and return as JSON:

{{
  "name": "Full name",
  "email": "Email address",
  "phone": "Phone number or null",
  "location": "City, State or null",
  "experience": "X years",
  "education": "Degree, University",
  "currentRole": "Current job title and company"
}}

Resume (first 1000 chars):
{resume_excerpt}

Return ONLY valid JSON, no other text.
""".strip()

SKILLS_PROMPT = """
Analyze this resume and extract technical skills with proficiency estimates.

Return as JSON array:
[
  {{ "name": "Skill name", "proficiency": 0-100 }}
]

Base proficiency on:
- Years of experience mentioned
- Project complexity
- Depth of knowledge indicated

Resume text:
{resume_excerpt}

Return ONLY the JSON array, max 15 skills.
""".strip()

ASSESSMENT_PROMPT = """
Assess this candidate for: {role_title}

Candidate: {candidate_name}
Experience: {candidate_experience}
Education: {candidate_education}
Skills: {skills_summary}

Resume excerpt:
{resume_excerpt}

Provide assessment as JSON:
{{
  "technicalScore": 0-100,
  "experienceScore": 0-100,
  "educationScore": 0-100,
  "culturalScore": 0-100,
  "recommendation": "Strong Hire|Hire|Maybe|No Hire",
  "detailedComments": "2-3 sentences",
  "strengths": ["max 4 strengths"],
  "weaknesses": ["max 3 concerns"]
}}

Return ONLY JSON.
""".strip()
