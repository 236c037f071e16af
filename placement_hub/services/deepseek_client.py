"""
DeepSeek API Client

DeepSeek uses OpenAI-compatible API, so we use the openai library.
Backs the generate-resume function: profile data in, markdown resume out.
"""
import json
import logging

from openai import OpenAI
from placement_hub.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

RESUME_PROMPT = """You are a resume writer for college placement candidates.
You receive a student's profile as JSON. Write a one-page resume in Markdown with
these sections, skipping any section that has no data:
# <Full Name>
contact line (email | phone)
## Summary
## Skills
## Areas of Expertise
## Experience
## Education
## Courses & Certifications
Use only the facts given. Do not invent employers, dates or grades.
Return ONLY the Markdown, no explanation."""


class DeepSeekClient:
    """
    Wrapper for DeepSeek API.
    """

    def __init__(self):
        self.client = OpenAI(
            api_key=settings.deepseek_api_key,
            base_url=settings.deepseek_base_url
        )
        # Use the cheapest model
        self.model = "deepseek-chat"

    def _call_api(self, system_prompt: str, user_content: str, max_tokens: int = 1000) -> str:
        """
        Internal method to call DeepSeek API.
        Returns raw text response.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            max_tokens=max_tokens,
            temperature=0.3
        )
        return response.choices[0].message.content

    def _strip_fences(self, text: str) -> str:
        """Remove markdown code fences the model sometimes wraps output in."""
        text = text.strip()
        if text.startswith("```markdown"):
            text = text[11:]
        elif text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        return text.strip()

    def generate_resume(self, profile: dict) -> str:
        """Write a Markdown resume from the student's profile fields."""
        content = json.dumps(profile, ensure_ascii=False, default=str)
        response = self._call_api(RESUME_PROMPT, content, max_tokens=1500)
        return self._strip_fences(response)

    def test_connection(self) -> bool:
        """Test if DeepSeek API is reachable"""
        try:
            response = self._call_api(
                "You are a test assistant.",
                "Reply with exactly: OK",
                max_tokens=10
            )
            return "OK" in response.upper()
        except Exception as e:
            logger.warning(f"DeepSeek connection failed: {e}")
            return False


# Singleton instance
_deepseek_client: DeepSeekClient = None


def get_deepseek_client() -> DeepSeekClient:
    """Get or create DeepSeek client (singleton pattern)"""
    global _deepseek_client
    if _deepseek_client is None:
        _deepseek_client = DeepSeekClient()
    return _deepseek_client
