from typing import Iterable, Optional, Union

DEFAULT_INDUSTRY = "technology"
DEFAULT_EXPERIENCE = "intermediate"
DEFAULT_SKILLS = "general skills"


def format_skills(skills: Optional[Iterable[str]]) -> str:
    if not skills:
        return DEFAULT_SKILLS
    return ", ".join(str(skill) for skill in skills)


def compose_assessment_prompt(
    topic: str,
    difficulty: str,
    question_count: Union[int, str],
    industry: Optional[str] = None,
    experience: Optional[Union[int, str]] = None,
    skills: Optional[Iterable[str]] = None,
) -> str:
    """
    Build the Gemini prompt for a multiple choice assessment.

    Profile attributes fall back to generic placeholders when missing.
    ``question_count`` is written into the prompt exactly as given.
    """
    user_industry = industry or DEFAULT_INDUSTRY
    user_experience = experience if experience not in (None, "") else DEFAULT_EXPERIENCE
    user_skills = format_skills(skills)

    return f"""As an expert interviewer and career advisor, generate a technical assessment for a {user_industry} professional with {user_experience} years of experience.

ASSESSMENT DETAILS:
- Topic: {topic}
- Difficulty: {difficulty}
- Number of Questions: {question_count}

USER PROFILE:
- Industry: {user_industry}
- Experience: {user_experience} years
- Skills: {user_skills}

REQUIREMENTS:
1. Generate exactly {question_count} multiple choice questions
2. Include a mix of question types (technical, behavioral, situational)
3. Tailor questions to {difficulty} difficulty level
4. Focus on {topic} within the context of {user_industry}
5. For each question, provide:
   - The question text
   - Four answer options (A, B, C, D)
   - The correct answer (one of A, B, C, or D)
   - An explanation for the correct answer
   - Difficulty rating (1-5)
   - Estimated time to answer (in minutes)
   - Key skills being assessed
6. Format the response as JSON with the following exact structure:

{{
  "questions": [
    {{
      "question": "Question text",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": "A",
      "explanation": "Explanation of why the correct answer is right",
      "difficulty": 3,
      "timeToAnswer": "2",
      "skills": ["skill1", "skill2"]
    }}
  ]
}}

IMPORTANT:
- Return ONLY valid JSON, no markdown, no code blocks, no additional text
- "correctAnswer" must be exactly one of "A", "B", "C" or "D"
- Make sure each question has exactly one correct answer
- Ensure the options are plausible but only one is correct
- Focus questions on the user's industry and skills when relevant

Return the JSON now:"""
