"""
Agents package for Gemini-backed analysis stages.

Each stage lives in its own subpackage with agent.py and prompts.py.
"""

from agents.base import BaseAgent, build_genai_client
from agents.content.agent import ContentAnalysisAgent
from agents.recommendations.agent import RecommendationsAgent
from agents.soft_skills.agent import SoftSkillsAgent
from agents.technical.agent import TechnicalSkillsAgent

__all__ = [
    "BaseAgent",
    "build_genai_client",
    "ContentAnalysisAgent",
    "TechnicalSkillsAgent",
    "SoftSkillsAgent",
    "RecommendationsAgent",
]
