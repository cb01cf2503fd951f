"""
AI Service Module

This module handles AI operations using Google's Gemini API.
It asks the model whether a post announces a genuine public event in the
target region and, if so, to return the event fields as JSON.
"""

from typing import Optional, Dict, Any
import json
import re

import google.generativeai as genai

from config import settings
from data.models import SocialPost, ParsedEvent, EventCategory
from utils.exceptions import AIServiceError, AIParseError
from utils.helpers import parse_iso_datetime
from utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("title", "description", "date", "location")

EVENT_PROMPT = """You extract tech events in Nigeria from social media posts.

Post created at: {created_at}
Post text:
{text}

Rules:
1. Ignore personal or private posts (birthdays, weddings, private meetings).
2. Ignore posts reporting on events that already happened.
3. The event must take place in Nigeria or be aimed at a Nigerian audience.
4. Resolve relative dates ("tomorrow", "next Friday") against the post creation time.
5. If this is not a genuine upcoming public event, return exactly {{"isEvent": false}}.

Otherwise return ONLY a JSON object with these fields:
{{"isEvent": true,
  "title": "short event name, 15 to 120 characters",
  "description": "what the event is about",
  "date": "ISO 8601 date and time, with UTC offset +01:00 if not stated",
  "location": "city or venue in Nigeria",
  "category": one of {categories},
  "isFree": true or false,
  "link": "registration or event URL, or null"}}"""


class AIService:
    """Service for AI operations with Google's Gemini API."""

    def __init__(self, model=None, api_key: Optional[str] = None):
        """
        Initialize the AI service with the Gemini API.

        Configures the API key and selects an appropriate model based on availability,
        unless a ready model is passed in.

        Raises:
            AIServiceError: If no key is configured or no model can be selected
        """
        if model is not None:
            self.model = model
            return

        api_key = api_key or settings.GOOGLE_AI_API_KEY
        if not api_key:
            raise AIServiceError("Missing required GOOGLE_AI_API_KEY")

        genai.configure(api_key=api_key)

        # Get available models
        try:
            available_models = [m.name for m in genai.list_models()]
        except Exception as e:
            logger.error(f"Error initializing Gemini AI: {e}")
            raise AIServiceError(f"Could not list Gemini models: {e}") from e

        # Select a model based on preference order
        model_name = None
        for preferred in settings.DEFAULT_AI_MODELS:
            for available in available_models:
                if preferred in available:
                    model_name = available
                    break
            if model_name:
                break

        if not model_name and len(available_models) > 0:
            # If none of our preferred models are available, just use the first one
            model_name = available_models[0]

        if not model_name:
            raise AIServiceError("No Gemini models available")

        logger.info(f"Selected AI model: {model_name}")
        self.model = genai.GenerativeModel(model_name=model_name)

    def build_prompt(self, post: SocialPost) -> str:
        text = (post.text or "")[:settings.AI_POST_TEXT_LIMIT]
        return EVENT_PROMPT.format(
            created_at=post.created_at.isoformat(),
            text=text,
            categories=", ".join(EventCategory.values()),
        )

    def parse_event(self, post: SocialPost) -> Optional[ParsedEvent]:
        """
        Ask the model to parse a post into event fields.

        Args:
            post: The post to parse

        Returns:
            Optional[ParsedEvent]: Parsed fields, or None if the model says it is not an event

        Raises:
            AIServiceError: If the model call fails
            AIParseError: If the response is malformed or misses a required field
        """
        try:
            response = self.model.generate_content(self.build_prompt(post))
            response_text = response.text
        except Exception as e:
            raise AIServiceError(f"Gemini request failed: {e}") from e

        payload = self._load_json(response_text)

        if not payload.get("isEvent"):
            return None

        missing = [name for name in REQUIRED_FIELDS if not payload.get(name)]
        if missing:
            raise AIParseError(f"AI response missing required fields: {', '.join(missing)}")

        try:
            date = parse_iso_datetime(str(payload["date"]))
        except ValueError as e:
            raise AIParseError(f"AI response has an unreadable date: {payload['date']!r}") from e

        category = payload.get("category")
        if category not in EventCategory.values():
            logger.debug(f"AI returned unknown category {category!r}, using {settings.DEFAULT_CATEGORY}")
            category = settings.DEFAULT_CATEGORY

        link = payload.get("link")
        return ParsedEvent(
            title=str(payload["title"]).strip(),
            description=str(payload["description"]).strip(),
            date=date,
            location=str(payload["location"]).strip(),
            category=category,
            is_free=payload.get("isFree") is True,
            link=str(link).strip() if link else None,
        )

    @staticmethod
    def _load_json(response_text: str) -> Dict[str, Any]:
        """Decode the model's JSON, tolerating a markdown code fence around it."""
        text = (response_text or "").strip()
        fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL)
        if fenced:
            text = fenced.group(1)
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise AIParseError(f"AI response is not valid JSON: {text[:80]!r}") from e
        if not isinstance(payload, dict):
            raise AIParseError("AI response is not a JSON object")
        return payload
