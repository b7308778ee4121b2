"""Soft skill assessment prompt templates."""


SOFT_SKILLS_PROMPT = """Analyze this transcript for soft skills and personality traits:

1. Communication skills (clarity, confidence, engagement, articulation)
2. Leadership indicators (initiative, decision-making, teamwork, mentoring)
3. Problem-solving approach (analytical thinking, creativity, systematic approach, adaptability)
4. Professionalism (presentation, time management, reliability, ethics)

Video Category: {category}

Transcript: "{transcript}"

Provide detailed scores (0-100) for each dimension.

Return JSON format:
{{
  "communication": {{
    "clarity": <0-100>,
    "confidence": <0-100>,
    "engagement": <0-100>,
    "articulation": <0-100>
  }},
  "leadership": {{
    "initiative": <0-100>,
    "decisionMaking": <0-100>,
    "teamwork": <0-100>,
    "mentoring": <0-100>
  }},
  "problemSolving": {{
    "analyticalThinking": <0-100>,
    "creativity": <0-100>,
    "systematicApproach": <0-100>,
    "adaptability": <0-100>
  }},
  "professionalism": {{
    "presentation": <0-100>,
    "timeManagement": <0-100>,
    "reliability": <0-100>,
    "ethics": <0-100>
  }}
}}

Provide only the JSON response, no additional text."""
