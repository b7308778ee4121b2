"""Improvement recommendation prompt templates."""


RECOMMENDATIONS_PROMPT = """Based on the video analysis results, generate specific, actionable recommendations for improvement:

Content Analysis Summary:
- Video Quality: {video_quality}
- Key Topics: {key_topics}

Technical Skills Summary:
- Skills Count: {skill_count}
- Average Confidence: {average_confidence}

Soft Skills Summary:
- Communication Average: {communication_average:.1f}
- Leadership Average: {leadership_average:.1f}

Generate 3-5 recommendations in these categories:
1. Content improvements
2. Technical skill development
3. Presentation enhancement
4. Career development

Return JSON array format:
[
  {{
    "type": "<content|technical|presentation|career>",
    "priority": "<high|medium|low>",
    "title": "<recommendation title>",
    "description": "<detailed description>",
    "actionItems": [<array of specific action items>]
  }}
]

Provide only the JSON array, no additional text."""
