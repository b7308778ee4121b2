"""Technical skill assessment prompt templates."""


TECHNICAL_SKILLS_PROMPT = """Analyze this transcript for technical skills demonstration. Focus on:

1. Programming languages mentioned/demonstrated
2. Frameworks and technologies discussed
3. Tools and methodologies referenced
4. Code quality indicators
5. Problem-solving approaches
6. Technical depth and understanding

Industry Context: {industry_context}
Focus Areas: {focus_areas}

Transcript: "{transcript}"

For each identified skill, assess:
- Proficiency level (beginner/intermediate/advanced/expert)
- Confidence in explanation (0-100)
- Practical application evidence (0-100)
- Communication clarity (0-100)
- Real-world experience indicators (0-100)

Only list skills the candidate actually talks about. Return an empty array if none are mentioned.

Return JSON array format:
[
  {{
    "skill": "<skill name>",
    "category": "<programming|framework|tool|methodology|database|cloud>",
    "confidence": <0-100>,
    "evidence": [<array of evidence phrases>],
    "traits": {{
      "proficiency": "<beginner|intermediate|advanced|expert>",
      "confidence": <0-100>,
      "practicalApplication": <0-100>,
      "theoreticalKnowledge": <0-100>,
      "realWorldExperience": <0-100>,
      "communicationClarity": <0-100>
    }},
    "demonstrationQuality": {{
      "clarity": <0-100>,
      "depth": <0-100>,
      "examples": <0-100>,
      "problemSolving": <0-100>
    }}
  }}
]

Provide only the JSON array, no additional text."""
