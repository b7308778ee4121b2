"""Content analysis prompt templates."""

from agents.common.prompts import SCORING_GUIDELINES


CONTENT_ANALYSIS_PROMPT = """Analyze this video transcript for a candidate's CV video. Provide detailed insights on:

1. Video Quality Assessment (audio clarity, engagement, pacing, structure)
2. Key Topics and Themes mentioned
3. Personality Insights based on communication style
4. Communication Effectiveness

Video Details:
- Title: {title}
- Category: {category}
- Duration: {duration:g} seconds
- Industry Context: {industry_context}

Transcript: "{transcript}"

""" + SCORING_GUIDELINES + """

Provide analysis in the following JSON format:
{{
  "videoQuality": {{
    "audioClarity": <score 0-100>,
    "visualQuality": <score 0-100>,
    "engagement": <score 0-100>,
    "pacing": <score 0-100>,
    "structure": <score 0-100>,
    "accessibility": {{
      "hasSubtitles": <boolean>,
      "audioLevel": <score 0-100>,
      "visualContrast": <score 0-100>
    }}
  }},
  "personalityInsights": {{
    "traits": {{
      "openness": <score 0-100>,
      "conscientiousness": <score 0-100>,
      "extraversion": <score 0-100>,
      "agreeableness": <score 0-100>,
      "neuroticism": <score 0-100>
    }},
    "workStyle": {{
      "collaborative": <score 0-100>,
      "independent": <score 0-100>,
      "detailOriented": <score 0-100>,
      "bigPicture": <score 0-100>
    }},
    "motivators": [<array of key motivators>],
    "communicationStyle": "<analytical|direct|diplomatic|expressive>"
  }},
  "keyTopics": [
    {{
      "topic": "<topic name>",
      "relevance": <score 0-100>,
      "mentions": <count>,
      "context": [<array of context phrases>]
    }}
  ]
}}

Provide only the JSON response, no additional text."""
